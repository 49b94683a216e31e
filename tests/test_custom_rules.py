import pytest

from markdown_master.errors import InvalidPatternError
from markdown_master.rules import CustomRegexRule


def test_simple_replacement():
    out = CustomRegexRule("TODO", "DONE").process("TODO one, TODO two")
    assert out.text == "DONE one, DONE two"
    assert out.substitutions == 2


def test_group_references():
    assert CustomRegexRule(r"(\w+)@(\w+)", r"\2 at \1").apply("me@host") == "host at me"


def test_ignore_case():
    assert CustomRegexRule("todo", "x", ignore_case=True).apply("TODO") == "x"
    assert CustomRegexRule("todo", "x").apply("TODO") == "TODO"


def test_multiline_anchors():
    assert CustomRegexRule(r"^> ", "").apply("> a\n> b") == "a\nb"


def test_invalid_pattern():
    with pytest.raises(InvalidPatternError) as exc:
        CustomRegexRule("[unclosed", "x")
    assert exc.value.pattern == "[unclosed"


def test_empty_pattern():
    with pytest.raises(InvalidPatternError):
        CustomRegexRule("", "x")


def test_bad_group_reference_becomes_a_warning():
    out = CustomRegexRule("a", r"\2", description="broken").process("abc")
    assert out.text == "abc"
    assert len(out.warnings) == 1
    assert "broken" in out.warnings[0]


def test_applies_inside_code_blocks():
    assert CustomRegexRule("x", "y").apply("```\nx\n```") == "```\ny\n```"


def test_instance_name():
    rule = CustomRegexRule("x", name="custom_regex[3]")
    assert rule.name == "custom_regex[3]"
    assert rule.priority == 150
