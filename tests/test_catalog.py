import pytest

from markdown_master.catalog import BUILTIN_RULES, RuleCatalog, default_catalog
from markdown_master.errors import UnknownRuleError
from markdown_master.rules import CustomRegexRule

BUILTIN_NAMES = [
    "link_removal", "heading_conversion", "bold_removal", "reference_removal",
    "space_after_headings", "space_after_list_items", "excessive_newlines",
    "ordered_list_format", "yaml_metadata", "table_format", "code_highlight",
    "image_optimization", "link_format", "title_numbering", "list_indentation",
    "blockquote_format", "math_format", "special_chars", "custom_regex",
]


def test_default_catalog_has_every_builtin():
    catalog = default_catalog()
    assert sorted(catalog.list_names()) == sorted(BUILTIN_NAMES)
    assert len(catalog) == len(BUILTIN_RULES)


def test_builtin_priorities_leave_custom_rules_last():
    priorities = {cls.name: cls.priority for cls in BUILTIN_RULES}
    assert priorities["link_removal"] == 10
    assert priorities["heading_conversion"] == 20
    assert priorities["custom_regex"] == max(priorities.values())


def test_catalogs_are_independent():
    a, b = default_catalog(), default_catalog()
    a.register("shout", lambda: CustomRegexRule("!", "!!", name="shout"))
    assert "shout" in a
    assert "shout" not in b


def test_create_returns_new_instances():
    catalog = default_catalog()
    r1 = catalog.create("bold_removal")
    r2 = catalog.create("bold_removal")
    assert r1 is not r2
    assert r1.name == "bold_removal"


def test_create_passes_parameters():
    rule = default_catalog().create("table_format", policy="column")
    assert rule.policy == "column"


def test_unknown_rule():
    with pytest.raises(UnknownRuleError) as exc:
        RuleCatalog().create("nope")
    assert exc.value.name == "nope"
    assert str(exc.value) == "Unknown rule: nope"


def test_unknown_rule_is_a_key_error():
    with pytest.raises(KeyError):
        default_catalog().create("nope")
    with pytest.raises(KeyError):
        default_catalog().factory("nope")


def test_register_overrides_builtin():
    catalog = default_catalog()
    catalog.register("bold_removal", lambda: CustomRegexRule("__", name="bold_removal"))
    assert catalog.create("bold_removal").apply("__x__ **y**") == "x **y**"
