"""Sanitization Policy Tables.

This module holds the allowlists that drive the sanitizer: which tags are kept,
which tags are dropped together with their subtree, and which attributes may
survive on a kept tag. Any tag in neither table is unwrapped.

The default tables are compiled in. A deployment may instead point
`MARKUPGUARD_POLICY_PATH` at a YAML file whose `sanitization` section
overrides individual tables. Either way the policy is built once and never
mutated afterwards, so a single instance is shared by every sanitize call.

Typical Usage:
    from markupguard.app.policy import policy
    if policy.is_safe_tag("p"):
        ...
"""

import logging
import os
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, FrozenSet, Iterable, Mapping, Optional

import yaml

from markupguard.app.config import settings
from markupguard.errors import ConfigurationError

logger = logging.getLogger("markupguard.policy")

DEFAULT_SAFE_TAGS = frozenset({
    "a", "abbr", "b", "blockquote", "br", "code", "div", "em", "i", "img",
    "li", "ol", "p", "pre", "s", "small", "span", "strong", "sub", "sup",
    "table", "tbody", "td", "th", "thead", "tr", "u", "ul", "hr", "h1",
    "h2", "h3", "h4", "h5", "h6", "section", "article", "nav", "header", "footer",
})

DEFAULT_ALWAYS_DROP_TAGS = frozenset({
    "script", "style", "template", "iframe", "object", "embed",
    "svg", "math", "base", "link", "meta",
})

DEFAULT_GLOBAL_ATTRIBUTES = frozenset({"class", "id", "title", "role"})

DEFAULT_TAG_ATTRIBUTES = {
    "a": frozenset({"href", "target", "rel"}),
    "img": frozenset({"src", "alt", "width", "height"}),
    "table": frozenset(), "thead": frozenset(), "tbody": frozenset(),
    "tr": frozenset(), "th": frozenset(), "td": frozenset(),
}

# Tokens forced onto <a target="_blank">, in this order.
DEFAULT_LINK_REL_TOKENS = ("noopener", "noreferrer")


def _names(values: Iterable[str], key: str = "names") -> FrozenSet[str]:
    if isinstance(values, (str, bytes)) or not isinstance(values, (list, tuple, set, frozenset)):
        raise ConfigurationError(f"{key} must be a list of names, got {type(values).__name__}")
    return frozenset(str(v).strip().lower() for v in values if str(v).strip())


@dataclass(frozen=True)
class SanitizerPolicy:
    """An immutable set of sanitization tables.

    Attributes:
        safe_tags (FrozenSet[str]): Tags kept (with filtered attributes).
        always_drop_tags (FrozenSet[str]): Tags removed with their whole subtree.
        global_attributes (FrozenSet[str]): Attribute names allowed on every kept tag.
        tag_attributes (Mapping[str, FrozenSet[str]]): Extra attribute names per tag.
        strip_comments (bool): Remove comments and other non-element markup.
        link_rel_tokens (tuple): `rel` tokens enforced on `target="_blank"` links.

    Raises:
        ConfigurationError: If a table has the wrong shape (a bare string where a
            list is expected, a non-mapping `tag_attributes`) or a tag is listed
            as both safe and always-dropped.
    """
    safe_tags: FrozenSet[str] = DEFAULT_SAFE_TAGS
    always_drop_tags: FrozenSet[str] = DEFAULT_ALWAYS_DROP_TAGS
    global_attributes: FrozenSet[str] = DEFAULT_GLOBAL_ATTRIBUTES
    tag_attributes: Mapping[str, FrozenSet[str]] = field(
        default_factory=lambda: MappingProxyType(dict(DEFAULT_TAG_ATTRIBUTES))
    )
    strip_comments: bool = True
    link_rel_tokens: tuple = DEFAULT_LINK_REL_TOKENS

    def __post_init__(self):
        # Normalize everything to lowercase frozensets so lookups never depend
        # on how the tables were written.
        object.__setattr__(self, "safe_tags", _names(self.safe_tags, "safe_tags"))
        object.__setattr__(self, "always_drop_tags", _names(self.always_drop_tags, "always_drop_tags"))
        object.__setattr__(self, "global_attributes", _names(self.global_attributes, "global_attributes"))
        if not isinstance(self.tag_attributes, Mapping):
            raise ConfigurationError(
                f"tag_attributes must map tags to attribute names, got {type(self.tag_attributes).__name__}"
            )
        if not isinstance(self.strip_comments, bool):
            raise ConfigurationError("strip_comments must be true or false")
        object.__setattr__(self, "tag_attributes", MappingProxyType({
            str(tag).lower(): _names(names or (), f"tag_attributes.{tag}")
            for tag, names in dict(self.tag_attributes).items()
        }))

        overlap = self.safe_tags & self.always_drop_tags
        if overlap:
            logger.error(f"⛔ Tags listed as both safe and always-dropped: {sorted(overlap)}")
            raise ConfigurationError(
                f"Tags cannot be both safe and always-dropped: {', '.join(sorted(overlap))}"
            )

    def is_safe_tag(self, tag: str) -> bool:
        """True if `tag` is kept verbatim (modulo attribute filtering)."""
        return tag.lower() in self.safe_tags

    def is_always_dropped(self, tag: str) -> bool:
        """True if `tag` is removed together with everything inside it."""
        return tag.lower() in self.always_drop_tags

    def allowed_attribute_names(self, tag: str) -> FrozenSet[str]:
        """Returns the global allowlist merged with the tag-specific one."""
        return self.global_attributes | self.tag_attributes.get(tag.lower(), frozenset())

    @classmethod
    def from_dict(cls, section: Optional[Dict[str, Any]]) -> "SanitizerPolicy":
        """Builds a policy from a `sanitization` mapping.

        Keys that are absent keep their compiled-in default. `tag_attributes`
        replaces the default per-tag table as a whole.
        """
        section = section or {}
        if not isinstance(section, dict):
            raise ConfigurationError(f"sanitization section must be a mapping, got {type(section).__name__}")
        kwargs = {}
        for key in ("safe_tags", "always_drop_tags", "global_attributes"):
            if section.get(key) is not None:
                kwargs[key] = section[key]
        if section.get("tag_attributes") is not None:
            kwargs["tag_attributes"] = section["tag_attributes"]
        if section.get("strip_comments") is not None:
            kwargs["strip_comments"] = section["strip_comments"]
        return cls(**kwargs)

    @classmethod
    def from_yaml(cls, config_path: str) -> "SanitizerPolicy":
        """Loads a policy from the `sanitization` section of a YAML file.

        If the file is missing or cannot be parsed, the compiled-in defaults
        are used and a warning is logged, so a broken deployment still
        sanitizes. A file that parses but contradicts itself (a tag both safe
        and dropped) is rejected.

        Args:
            config_path (str): Path to the YAML policy document.

        Raises:
            ConfigurationError: If the loaded tables are malformed or violate
                the policy invariants.
        """
        if not os.path.exists(config_path):
            logger.warning(f"⚠️ Policy file not found at {config_path}. Using Defaults.")
            return cls()

        try:
            with open(config_path, "r") as f:
                document = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            logger.critical(f"❌ Failed to load sanitization policy: {e}")
            return cls()

        if not isinstance(document, dict):
            logger.critical(f"❌ Policy file {config_path} is not a mapping. Using Defaults.")
            return cls()

        loaded = cls.from_dict(document.get("sanitization"))
        logger.info(f"✅ Sanitization Policy loaded from {config_path}")
        return loaded


def load_policy(config_path: Optional[str] = None) -> SanitizerPolicy:
    """Returns the policy named by `config_path`, or the compiled-in default."""
    if not config_path:
        return SanitizerPolicy()
    return SanitizerPolicy.from_yaml(config_path)


DEFAULT_POLICY = SanitizerPolicy()

policy = load_policy(settings.MARKUPGUARD_POLICY_PATH)
