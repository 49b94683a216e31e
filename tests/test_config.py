from pathlib import Path

import pytest

import markdown_master
from markdown_master.config import CustomRule, FormatConfig, load_config
from markdown_master.errors import ConfigError


def test_defaults():
    cfg = FormatConfig()
    assert cfg.enable_link_removal
    assert cfg.enable_heading_conversion
    assert cfg.enable_table_format
    assert not cfg.enable_bold_removal
    assert cfg.heading_conversion_rules == {level: 0 for level in range(1, 7)}
    assert cfg.list_indentation == 4
    assert cfg.special_char_handling == "ignore"


def test_camel_case_keys():
    cfg = FormatConfig.from_dict({
        "enableBoldRemoval": True,
        "headingConversionRules": {"2": "1"},
        "listIndentation": "2",
        "specialCharHandling": "escape",
    })
    assert cfg.enable_bold_removal is True
    assert cfg.heading_conversion_rules == {2: 1}
    assert cfg.list_indentation == 2
    assert cfg.special_char_handling == "escape"


def test_string_booleans():
    assert FormatConfig.from_dict({"enable_bold_removal": "yes"}).enable_bold_removal is True
    assert FormatConfig.from_dict({"enable_link_removal": "off"}).enable_link_removal is False
    with pytest.raises(ConfigError):
        FormatConfig.from_dict({"enable_bold_removal": "maybe"})


def test_string_booleans_on_direct_construction():
    cfg = FormatConfig(enable_table_format="false", enable_bold_removal="on")
    assert cfg.enable_table_format is False
    assert cfg.enable_bold_removal is True
    assert CustomRule("a", enabled="no").enabled is False
    with pytest.raises(ConfigError):
        FormatConfig(enable_table_format="sometimes")


def test_unknown_keys_ignored():
    assert FormatConfig.from_dict({"enableTextStatistics": True}) == FormatConfig()


def test_nested_format_options():
    cfg = FormatConfig.from_dict({
        "formatOptions": {
            "content": {
                "enableBoldRemoval": True,
                "customRegexRules": [{"pattern": "a", "replacement": "b"}],
            },
            "advanced": {"customRegexRules": [{"pattern": "c"}]},
        },
        "enableRegexReplacement": True,
        "regexReplacements": [{"regex": "d", "replacement": "e", "enabled": False}],
    })
    assert cfg.enable_bold_removal
    assert [r.pattern for r in cfg.custom_regex_rules] == ["a", "c", "d"]
    assert cfg.custom_regex_rules[2].enabled is False
    assert cfg.custom_regex_rules[0].replacement == "b"


def test_regex_replacements_need_their_toggle():
    cfg = FormatConfig.from_dict({
        "enableRegexReplacement": False,
        "regexReplacements": [{"regex": "d", "replacement": "e"}],
    })
    assert cfg.custom_regex_rules == []


@pytest.mark.parametrize("settings", [
    {"special_char_handling": "bogus"},
    {"table_width_policy": "diagonal"},
    {"link_style": "footnote"},
    {"heading_conversion_rules": {7: 1}},
    {"list_indentation": 0},
    {"list_indentation": "wide"},
    {"numbering_max_depth": 9},
    {"list_bullet": "#"},
])
def test_invalid_values(settings):
    with pytest.raises(ConfigError):
        FormatConfig.from_dict(settings)


def test_custom_rule_forms():
    assert CustomRule.from_value(["a", "b"]) == CustomRule(pattern="a", replacement="b")
    assert CustomRule.from_value({"regex": "x", "ignoreCase": True}).ignore_case is True
    with pytest.raises(ConfigError):
        CustomRule.from_value(42)
    with pytest.raises(ConfigError):
        CustomRule.from_value({"replacement": "x"})


def test_round_trip_through_dict():
    cfg = FormatConfig(
        enable_bold_removal=True,
        heading_conversion_rules={2: 1},
        custom_regex_rules=[CustomRule("TODO", "DONE", description="markers")],
    )
    assert FormatConfig.from_dict(cfg.to_dict()) == cfg


def test_load_config(tmp_path):
    path = tmp_path / "settings.yml"
    path.write_text("enableBoldRemoval: true\ncustom_regex_rules:\n  - pattern: TODO\n    replacement: DONE\n", encoding="utf-8")
    cfg = load_config(str(path))
    assert cfg.enable_bold_removal
    assert cfg.custom_regex_rules == [CustomRule("TODO", "DONE")]


def test_load_empty_config(tmp_path):
    path = tmp_path / "empty.yml"
    path.write_text("", encoding="utf-8")
    assert load_config(str(path)) == FormatConfig()


def test_load_invalid_yaml(tmp_path):
    path = tmp_path / "bad.yml"
    path.write_text("a: [unclosed\n", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_config(str(path))


def test_bundled_defaults_match_dataclass():
    path = Path(markdown_master.__file__).parent / "defaults.yml"
    assert load_config(str(path)) == FormatConfig()
