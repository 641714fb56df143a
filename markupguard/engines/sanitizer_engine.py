"""HTML Sanitization Engine for XSS Protection.

This module walks a parsed BeautifulSoup tree and reduces it to markup that is
safe to render. Every element ends up in exactly one of three states:

1.  **Drop**: tags such as <script> or <svg> are removed with their whole subtree.
2.  **Unwrap**: unknown tags are removed but their children stay in place.
3.  **Keep**: allowlisted tags survive with their attributes filtered, and
    `target="_blank"` links get `rel="noopener noreferrer"`.

Security Policy:
    - The set of elements to visit is fixed before the first mutation. Nodes
      detached by an earlier drop are skipped, never re-attached.
    - Stripping a tag or attribute is a normal outcome, not an error. The only
      exception raised here is `ConfigurationError` when no parser is available.
"""

import logging
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from bs4.element import PreformattedString

from markupguard.app.config import SanitizeOptions
from markupguard.app.policy import SanitizerPolicy, policy as active_policy
from markupguard.engines.document_engine import fragment_root, resolve_builder, serialize_children
from markupguard.engines.url_engine import is_safe_url

logger = logging.getLogger("markupguard.engine")

URL_ATTRIBUTES = frozenset({"href", "src"})


class ElementAction(str, Enum):
    """Outcome of classifying a single element."""
    DROP = "drop"
    UNWRAP = "unwrap"
    KEEP = "keep"


def _text(value) -> str:
    # Builders that split multi-valued attributes hand back lists.
    if isinstance(value, (list, tuple)):
        return " ".join(value)
    return "" if value is None else str(value)


def _is_detached(element) -> bool:
    return getattr(element, "decomposed", False) or element.parent is None


class SanitizerEngine:
    """A configured HTML cleaner enforcing a strict allowlist of tags."""

    def __init__(self, policy: Optional[SanitizerPolicy] = None):
        """Binds the engine to an immutable policy.

        Args:
            policy (SanitizerPolicy, optional): Tables to enforce. Defaults to
                the process-wide policy from `markupguard.app.policy`.
        """
        self.policy = policy or active_policy

    # --- Attribute Filter ---
    def is_allowed_attribute(self, tag: str, name: str) -> bool:
        """Decides whether attribute `name` may stay on a `tag` element.

        Event handlers (`on*`) and inline `style` are refused no matter what
        the tables say.
        """
        name = name.lower()
        if name.startswith("on") or name == "style":
            return False
        if name in self.policy.global_attributes:
            return True
        return name in self.policy.tag_attributes.get(tag.lower(), frozenset())

    def filter_attributes(self, element, tag: str) -> None:
        """Removes every attribute the policy does not allow on `element`."""
        # Snapshot: attributes are deleted while iterating.
        for raw_name, value in list(element.attrs.items()):
            name = raw_name.lower()

            if not self.is_allowed_attribute(tag, name):
                del element[raw_name]
                logger.debug(f"Stripped attribute {name!r} from <{tag}>")
                continue

            if name in URL_ATTRIBUTES and not is_safe_url(_text(value)):
                del element[raw_name]
                logger.debug(f"Stripped unsafe URL in {name!r} on <{tag}>")

    # --- Link Hardener ---
    def harden_link(self, element) -> None:
        """Forces `noopener noreferrer` onto `<a target="_blank">`."""
        if element.name.lower() != "a" or _text(element.get("target")) != "_blank":
            return

        tokens: List[str] = []
        # rel tokens are ASCII case-insensitive.
        for token in _text(element.get("rel")).lower().split():
            if token not in tokens:
                tokens.append(token)
        for token in self.policy.link_rel_tokens:
            if token not in tokens:
                tokens.append(token)

        element["rel"] = " ".join(tokens)

    # --- Element Classifier ---
    def classify(self, tag: str) -> ElementAction:
        """Maps a tag name to drop, unwrap or keep, in that priority."""
        if self.policy.is_always_dropped(tag):
            return ElementAction.DROP
        if not self.policy.is_safe_tag(tag):
            return ElementAction.UNWRAP
        return ElementAction.KEEP

    def sanitize_element(self, element) -> None:
        """Applies the classification of `element` to the tree."""
        if _is_detached(element):
            return

        tag = element.name.lower()
        action = self.classify(tag)

        if action is ElementAction.DROP:
            element.decompose()
            logger.debug(f"Dropped <{tag}> and its subtree")
        elif action is ElementAction.UNWRAP:
            element.unwrap()
            logger.debug(f"Unwrapped <{tag}>")
        else:
            self.filter_attributes(element, tag)
            self.harden_link(element)

    # --- Tree Walker ---
    def strip_non_elements(self, root) -> None:
        """Removes comments, CDATA, doctypes and processing instructions."""
        for node in root.find_all(string=lambda s: isinstance(s, PreformattedString)):
            node.extract()

    def walk(self, root) -> None:
        """Sanitizes every element below `root` in document order."""
        if self.policy.strip_comments:
            self.strip_non_elements(root)

        elements = list(root.find_all(True))
        for element in elements:
            self.sanitize_element(element)

    # --- Entry Point ---
    def sanitize(self, html: Optional[str], options: Union[SanitizeOptions, Dict[str, Any], None] = None) -> str:
        """Sanitizes an HTML fragment and returns safe HTML.

        Args:
            html (Optional[str]): Untrusted markup. `None` yields "".
            options (SanitizeOptions, optional): `create_document` overrides the
                ambient parser.

        Returns:
            str: The sanitized fragment.

        Raises:
            ConfigurationError: If no document builder is available. Raised
                before any parsing happens.
        """
        if html is None:
            return ""

        if isinstance(options, dict):
            options = SanitizeOptions(**options)
        options = options or SanitizeOptions()

        build = resolve_builder(options.create_document)
        document = build(str(html))

        root = fragment_root(document)
        self.walk(root)
        return serialize_children(root)

