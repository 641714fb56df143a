"""markupguard: allowlist-based HTML fragment sanitizer.

Typical Usage:
    from markupguard import sanitize
    safe = sanitize('<p onclick="x()">hi<script>alert(1)</script></p>')
    # '<p>hi</p>'
"""

from markupguard.app.config import SanitizeOptions
from markupguard.app.policy import DEFAULT_POLICY, SanitizerPolicy
from markupguard.engines import instances
from markupguard.engines.sanitizer_engine import ElementAction, SanitizerEngine
from markupguard.engines.url_engine import is_safe_url
from markupguard.errors import ConfigurationError, MarkupGuardError

__version__ = "0.1.0"

__all__ = [
    "ConfigurationError",
    "DEFAULT_POLICY",
    "ElementAction",
    "MarkupGuardError",
    "SanitizeOptions",
    "SanitizerEngine",
    "SanitizerPolicy",
    "is_safe_url",
    "sanitize",
]


def sanitize(html, options=None) -> str:
    """Sanitizes `html` with the process-wide engine. See `SanitizerEngine.sanitize`."""
    return instances.get_sanitizer().sanitize(html, options)
