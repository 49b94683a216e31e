"""
Formatter configuration.

``FormatConfig`` is a flat set of toggles, per-rule parameters and an
ordered list of custom regex rules. It can be built from a mapping using
either snake_case keys or the camelCase keys of the editor plugin settings
store, including its nested ``formatOptions`` layout, and loaded from a
YAML (or JSON) file.
"""
from __future__ import annotations
from dataclasses import dataclass, field, asdict, fields
from typing import Any, Dict, List, Mapping, Optional
import logging
import re

import yaml

from markdown_master.errors import ConfigError
from markdown_master.rules.builtin import LINK_STYLES, SPECIAL_CHAR_MODES
from markdown_master.rules.headings import validate_heading_map
from markdown_master.rules.tables import WIDTH_POLICIES

logger = logging.getLogger(__name__)

_TRUE = {"true", "yes", "on", "1"}
_FALSE = {"false", "no", "off", "0"}


@dataclass
class CustomRule:
    pattern: str
    replacement: str = ""
    description: str = ""
    enabled: bool = True
    ignore_case: bool = False

    def __post_init__(self):
        self.enabled = _as_bool(self.enabled, "enabled")
        self.ignore_case = _as_bool(self.ignore_case, "ignore_case")

    @classmethod
    def from_value(cls, value: Any) -> "CustomRule":
        if isinstance(value, CustomRule):
            return value
        if isinstance(value, (list, tuple)) and 1 <= len(value) <= 2:
            return cls(pattern=str(value[0]), replacement=str(value[1]) if len(value) > 1 else "")
        if not isinstance(value, Mapping):
            raise ConfigError(f"Custom rule must be a mapping, got {value!r}")
        data = {_snake(k): v for k, v in value.items()}
        pattern = data.get("pattern", data.get("regex"))
        if pattern is None:
            raise ConfigError(f"Custom rule needs a 'pattern': {dict(value)!r}")
        return cls(
            pattern=str(pattern),
            replacement=str(data.get("replacement") or ""),
            description=str(data.get("description") or ""),
            enabled=_as_bool(data.get("enabled", True), "enabled"),
            ignore_case=_as_bool(data.get("ignore_case", False), "ignore_case"),
        )


def _default_heading_map() -> Dict[int, int]:
    return {level: 0 for level in range(1, 7)}


@dataclass
class FormatConfig:
    """Which rules run and with which parameters. Defaults match the editor plugin."""
    # Stripping
    enable_link_removal: bool = True
    enable_bold_removal: bool = False
    enable_reference_removal: bool = False

    # Headings
    enable_heading_conversion: bool = True
    heading_conversion_rules: Dict[int, int] = field(default_factory=_default_heading_map)
    enable_cascading_conversion: bool = True
    enable_title_numbering: bool = False
    numbering_max_depth: int = 3

    # Spacing: space after "#", "-" and "1.", blank line collapsing
    enable_spacing_fixes: bool = True

    # Lists and tables
    enable_list_indent_format: bool = False
    list_indentation: int = 4
    list_bullet: Optional[str] = None
    enable_table_format: bool = True
    table_width_policy: str = "row"

    # Links, quotes, code, images
    enable_link_format: bool = False
    link_style: str = "keep"
    enable_blockquote_format: bool = False
    enable_code_highlight: bool = True
    default_code_language: str = ""
    enable_image_optimization: bool = True

    # Front matter and math
    enable_yaml_metadata_format: bool = False
    enable_math_format: bool = False

    # remove | escape | ignore
    special_char_handling: str = "ignore"

    # Ordered user rules, applied after the built-ins
    custom_regex_rules: List[CustomRule] = field(default_factory=list)

    # Additional catalog rules to activate by name (plug-in rules)
    extra_rules: List[str] = field(default_factory=list)

    def __post_init__(self):
        self.validate()

    def validate(self) -> None:
        for f in fields(self):
            if f.type in ("bool", bool):
                setattr(self, f.name, _as_bool(getattr(self, f.name), f.name))
        self.heading_conversion_rules = validate_heading_map(self.heading_conversion_rules)
        self.custom_regex_rules = [CustomRule.from_value(r) for r in self.custom_regex_rules or []]
        self.extra_rules = [str(n) for n in self.extra_rules or []]
        if self.list_bullet == "":
            self.list_bullet = None
        if self.special_char_handling not in SPECIAL_CHAR_MODES:
            raise ConfigError(f"special_char_handling must be one of {SPECIAL_CHAR_MODES}, got {self.special_char_handling!r}")
        if self.link_style not in LINK_STYLES:
            raise ConfigError(f"link_style must be one of {LINK_STYLES}, got {self.link_style!r}")
        if self.table_width_policy not in WIDTH_POLICIES:
            raise ConfigError(f"table_width_policy must be one of {WIDTH_POLICIES}, got {self.table_width_policy!r}")
        if self.list_bullet not in (None, "-", "*", "+"):
            raise ConfigError(f"list_bullet must be '-', '*' or '+', got {self.list_bullet!r}")
        try:
            self.list_indentation = int(self.list_indentation)
            self.numbering_max_depth = int(self.numbering_max_depth)
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Expected an integer: {e}")
        if self.list_indentation < 1:
            raise ConfigError(f"list_indentation must be positive, got {self.list_indentation}")
        if not 1 <= self.numbering_max_depth <= 6:
            raise ConfigError(f"numbering_max_depth must be 1-6, got {self.numbering_max_depth}")

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "FormatConfig":
        flat = _flatten_settings(data or {})
        known = {f.name: f for f in fields(cls)}
        kwargs: Dict[str, Any] = {}
        for key, value in flat.items():
            if key not in known:
                logger.debug(f"Ignoring unknown config key: {key}")
                continue
            kwargs[key] = value
        return cls(**kwargs)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _snake(key: str) -> str:
    return re.sub(r"(?<!^)(?=[A-Z])", "_", str(key)).lower()


def _as_bool(value: Any, key: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return bool(value)
    if isinstance(value, str) and value.strip().lower() in _TRUE | _FALSE:
        return value.strip().lower() in _TRUE
    raise ConfigError(f"{key} must be a boolean, got {value!r}")


def _flatten_settings(data: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Collapse the nested plugin layout into flat snake_case keys.

    ``formatOptions: {content, structure, style, advanced}`` sections are
    merged, and ``regexReplacements`` (enabled by ``enableRegexReplacement``)
    are appended to the custom rules.
    """
    if not isinstance(data, Mapping):
        raise ConfigError(f"Configuration must be a mapping, got {type(data).__name__}")

    flat: Dict[str, Any] = {}
    for key, value in data.items():
        key = _snake(key)
        if key == "format_options" and isinstance(value, Mapping):
            for section in value.values():
                if not isinstance(section, Mapping):
                    continue
                for k, v in _flatten_settings(section).items():
                    if k == "custom_regex_rules":
                        flat[k] = list(flat.get(k) or []) + list(v or [])
                    else:
                        flat[k] = v
        else:
            flat[key] = value

    replacements = flat.pop("regex_replacements", None) or []
    use_replacements = _as_bool(flat.pop("enable_regex_replacement", True), "enable_regex_replacement")
    if replacements and use_replacements:
        flat["custom_regex_rules"] = list(flat.get("custom_regex_rules") or []) + list(replacements)
    return flat


def load_config(path: str) -> FormatConfig:
    """Read a YAML/JSON configuration file. An empty file gives the defaults."""
    with open(path, "r", encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Could not parse {path}: {e}") from e
    logger.info(f"Loaded configuration from {path}")
    return FormatConfig.from_dict(data)
