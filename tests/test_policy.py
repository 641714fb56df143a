"""
Unit tests for the sanitization policy tables and YAML loading.
"""

import logging
from dataclasses import FrozenInstanceError

import pytest

from markupguard import ConfigurationError, SanitizerEngine
from markupguard.app.policy import DEFAULT_POLICY, SanitizerPolicy, load_policy


def tables(policy):
    return (
        policy.safe_tags,
        policy.always_drop_tags,
        policy.global_attributes,
        dict(policy.tag_attributes),
        policy.strip_comments,
    )


def test_default_tables_are_disjoint():
    assert not DEFAULT_POLICY.safe_tags & DEFAULT_POLICY.always_drop_tags
    assert "script" in DEFAULT_POLICY.always_drop_tags
    assert "p" in DEFAULT_POLICY.safe_tags


def test_lookups_ignore_case():
    assert DEFAULT_POLICY.is_safe_tag("P")
    assert DEFAULT_POLICY.is_always_dropped("ScRiPt")
    assert not DEFAULT_POLICY.is_safe_tag("custom")
    assert not DEFAULT_POLICY.is_always_dropped("custom")


def test_allowed_attribute_names_merges_global_and_tag_tables():
    assert DEFAULT_POLICY.allowed_attribute_names("A") == {"class", "id", "title", "role", "href", "target", "rel"}
    assert DEFAULT_POLICY.allowed_attribute_names("td") == {"class", "id", "title", "role"}
    assert DEFAULT_POLICY.allowed_attribute_names("unknown") == {"class", "id", "title", "role"}


def test_policy_is_immutable():
    with pytest.raises(FrozenInstanceError):
        DEFAULT_POLICY.safe_tags = frozenset({"script"})
    with pytest.raises(TypeError):
        DEFAULT_POLICY.tag_attributes["a"] = frozenset({"onclick"})


def test_overlapping_tables_are_rejected():
    with pytest.raises(ConfigurationError):
        SanitizerPolicy(safe_tags={"p", "Script"}, always_drop_tags={"script"})


def test_names_are_normalized_on_construction():
    policy = SanitizerPolicy(safe_tags=["P", " Em "], tag_attributes={"IMG": ["SRC"]})
    assert policy.safe_tags == {"p", "em"}
    assert policy.tag_attributes["img"] == {"src"}


def test_load_policy_without_path_uses_defaults():
    assert tables(load_policy(None)) == tables(DEFAULT_POLICY)


def test_missing_policy_file_falls_back_to_defaults(tmp_path, caplog):
    missing = tmp_path / "nope.yaml"
    with caplog.at_level(logging.WARNING, logger="markupguard.policy"):
        policy = SanitizerPolicy.from_yaml(str(missing))

    assert tables(policy) == tables(DEFAULT_POLICY)
    assert "Policy file not found" in caplog.text


def test_unparsable_policy_file_falls_back_to_defaults(tmp_path, caplog):
    path = tmp_path / "broken.yaml"
    path.write_text("sanitization: [unclosed\n")

    with caplog.at_level(logging.CRITICAL, logger="markupguard.policy"):
        policy = SanitizerPolicy.from_yaml(str(path))

    assert tables(policy) == tables(DEFAULT_POLICY)
    assert "Failed to load sanitization policy" in caplog.text


def test_yaml_policy_overrides_selected_tables(tmp_path, caplog):
    path = tmp_path / "markupguard.yaml"
    path.write_text(
        "sanitization:\n"
        "  safe_tags: [p, dl, dt, dd]\n"
        "  tag_attributes:\n"
        "    p: [lang]\n"
        "    dl:\n"
        "  strip_comments: false\n"
    )

    with caplog.at_level(logging.INFO, logger="markupguard.policy"):
        policy = load_policy(str(path))

    assert "Sanitization Policy loaded" in caplog.text
    assert policy.safe_tags == {"p", "dl", "dt", "dd"}
    assert policy.always_drop_tags == DEFAULT_POLICY.always_drop_tags
    assert policy.global_attributes == DEFAULT_POLICY.global_attributes
    assert policy.tag_attributes["dl"] == frozenset()
    assert policy.strip_comments is False

    engine = SanitizerEngine(policy)
    assert (
        engine.sanitize('<dl><dt>k</dt><dd><p lang="en" title="x">v<!--c--></p></dd></dl><b>bold</b>')
        == '<dl><dt>k</dt><dd><p lang="en" title="x">v<!--c--></p></dd></dl>bold'
    )


def test_yaml_policy_violating_invariants_is_rejected(tmp_path):
    path = tmp_path / "bad.yaml"
    path.write_text("sanitization:\n  safe_tags: [p, iframe]\n")

    with pytest.raises(ConfigurationError):
        SanitizerPolicy.from_yaml(str(path))


def test_yaml_cannot_allow_event_handlers_or_style(tmp_path):
    path = tmp_path / "lenient.yaml"
    path.write_text(
        "sanitization:\n"
        "  global_attributes: [class, onclick, style]\n"
    )
    engine = SanitizerEngine(SanitizerPolicy.from_yaml(str(path)))

    assert engine.sanitize('<p class="c" onclick="x()" style="color:red">t</p>') == '<p class="c">t</p>'


@pytest.mark.parametrize(
    "document",
    [
        "sanitization:\n  safe_tags: p\n",
        "sanitization:\n  global_attributes: 42\n",
        "sanitization:\n  tag_attributes: [a, img]\n",
        "sanitization:\n  tag_attributes:\n    a: href\n",
        "sanitization:\n  strip_comments: sometimes\n",
        "sanitization: [p, b]\n",
    ],
)
def test_malformed_policy_tables_are_rejected(tmp_path, document):
    path = tmp_path / "shape.yaml"
    path.write_text(document)

    with pytest.raises(ConfigurationError):
        load_policy(str(path))


def test_bare_string_table_is_rejected_on_construction():
    with pytest.raises(ConfigurationError):
        SanitizerPolicy(safe_tags="p")
