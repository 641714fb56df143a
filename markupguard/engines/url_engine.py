"""URL validation for URL-bearing attributes (`href`, `src`).

The check is an allowlist on the scheme: only http, https, protocol-relative
and relative references survive. A handful of well-known attack schemes are
rejected up front, but anything not on the allowlist is rejected anyway.

Browsers ignore tabs, newlines and other control characters inside a scheme,
so `java\\tscript:` behaves like `javascript:`. The value is therefore
compacted before the scheme is inspected.
"""

import re
from typing import Optional

# C0 controls, DEL, any Unicode whitespace and the BOM.
_HIDDEN_CHARS = re.compile(r"[\x00-\x1f\x7f\s\ufeff]+")

_BLOCKED_PREFIXES = ("javascript:", "vbscript:", "data:", "file:")
_ALLOWED_SCHEMES = frozenset({"http", "https"})


def normalize_url(raw: str) -> str:
    """Strips control characters and whitespace everywhere, then lowercases."""
    return _HIDDEN_CHARS.sub("", raw).lower()


def is_safe_url(raw: Optional[str]) -> bool:
    """Decides whether a URL attribute value may be kept.

    Args:
        raw (Optional[str]): The raw attribute value.

    Returns:
        bool: True for empty values, protocol-relative URLs, relative
        references and http(s) URLs. False for every other scheme.
    """
    if not raw:
        return True

    compact = normalize_url(str(raw))

    if compact.startswith(_BLOCKED_PREFIXES):
        return False

    if compact.startswith("//"):
        return True

    colon = compact.find(":")
    if colon > 0:
        return compact[:colon] in _ALLOWED_SCHEMES

    # No scheme: relative reference
    return True
