"""Document collaborator backed by BeautifulSoup.

The sanitizer never parses or prints markup itself. This module turns a
string into a mutable BeautifulSoup tree using the configured tree builder,
finds the node whose children make up the fragment, and prints that node's
children back to a string.
"""

import logging
from typing import Any, Callable, Optional

from bs4 import BeautifulSoup, FeatureNotFound
from bs4.dammit import EntitySubstitution
from bs4.element import PreformattedString, Tag
from bs4.formatter import HTMLFormatter

from markupguard.app.config import settings
from markupguard.errors import ConfigurationError

logger = logging.getLogger("markupguard.document")

DocumentBuilder = Callable[[str], Any]


class FragmentFormatter(HTMLFormatter):
    """HTML5 output: no slash on void elements, attributes in source order."""

    def __init__(self):
        super().__init__(
            entity_substitution=EntitySubstitution.substitute_xml,
            void_element_close_prefix=None,
        )

    def attributes(self, tag):
        # BeautifulSoup sorts attributes alphabetically by default.
        if not tag.attrs:
            return []
        return list(tag.attrs.items())


FRAGMENT_FORMATTER = FragmentFormatter()


def ambient_builder(parser: Optional[str] = None) -> DocumentBuilder:
    """Returns a builder for the tree builder named in settings.

    Args:
        parser (Optional[str]): Overrides `MARKUPGUARD_PARSER` (used by tests).

    Raises:
        ConfigurationError: If no parser is configured or the named tree
            builder is not installed.
    """
    features = settings.MARKUPGUARD_PARSER if parser is None else parser
    if not features:
        logger.error("⛔ No document builder: MARKUPGUARD_PARSER is empty and none was injected.")
        raise ConfigurationError(
            "No document builder available. Pass SanitizeOptions(create_document=...) "
            "or set MARKUPGUARD_PARSER."
        )

    try:
        # Probe once so a missing parser fails before any markup is touched.
        BeautifulSoup("", features)
    except FeatureNotFound as e:
        logger.error(f"⛔ Tree builder '{features}' is not installed: {e}")
        raise ConfigurationError(
            f"Tree builder '{features}' is not available. Install it or "
            "pass SanitizeOptions(create_document=...)."
        ) from e

    def build(html: str) -> BeautifulSoup:
        return create_document(html, features)

    return build


def create_document(html: str, features: str = "html.parser") -> BeautifulSoup:
    """Parses `html` keeping every attribute value as one raw string."""
    return BeautifulSoup(html, features, multi_valued_attributes=None)


def resolve_builder(factory: Optional[DocumentBuilder] = None) -> DocumentBuilder:
    """Picks the injected factory if present, otherwise the ambient parser."""
    if factory is not None:
        if not callable(factory):
            raise ConfigurationError("create_document must be callable.")
        return factory
    return ambient_builder()


def _significant_children(node):
    """Element children plus any non-whitespace text, skipping comments and doctypes."""
    return [
        child for child in node.contents
        if not isinstance(child, PreformattedString)
        and (isinstance(child, Tag) or child.strip())
    ]


def fragment_root(document):
    """Returns the body-equivalent node.

    Only a `<body>` the tree builder placed structurally counts: the document
    holds nothing but `<html>`, and `<html>` holds nothing but `<head>` and
    `<body>`. html5lib and lxml always build that shape. A `<body>` found
    anywhere else is ordinary markup, so the document itself is the root and
    the stray `<body>` gets unwrapped like any other unknown tag.
    """
    top = _significant_children(document)
    if len(top) != 1 or not isinstance(top[0], Tag) or top[0].name.lower() != "html":
        return document

    sections = _significant_children(top[0])
    if not all(isinstance(child, Tag) and child.name.lower() in ("head", "body") for child in sections):
        return document

    bodies = [child for child in sections if child.name.lower() == "body"]
    if len(bodies) != 1:
        return document
    return bodies[0]


def serialize_children(root) -> str:
    """Serializes the descendants of `root` (its inner HTML)."""
    return root.decode_contents(formatter=FRAGMENT_FORMATTER)
