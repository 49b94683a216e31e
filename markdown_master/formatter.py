"""
Formatter - builds the active rule set for one run and applies it.

One call to ``Formatter.format``:
1. Builds the active rules from the configuration through the catalog
2. Orders them with the execution planner
3. Threads the text through each rule in order
4. Strips leading/trailing whitespace from the result

Structural problems (unknown rule, dependency cycle) abort the call before
any rule runs. A custom rule with a bad pattern is skipped with a warning.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple, Union
import logging

from markdown_master.catalog import RuleCatalog, default_catalog
from markdown_master.config import FormatConfig
from markdown_master.errors import InvalidPatternError
from markdown_master.planner import plan_execution
from markdown_master.rules.base import Rule

logger = logging.getLogger(__name__)


# =============================================================================
# Data Classes
# =============================================================================

@dataclass
class FormatWarning:
    rule_id: str
    message: str
    details: Dict[str, str] = field(default_factory=dict)


@dataclass
class FormatResult:
    """Output of one formatting run."""
    text: str
    original: str = ""
    substitutions: int = 0
    warnings: List[FormatWarning] = field(default_factory=list)
    order: List[str] = field(default_factory=list)
    per_rule: Dict[str, int] = field(default_factory=dict)

    @property
    def changed(self) -> bool:
        return self.text != self.original

    def to_dict(self) -> Dict[str, Any]:
        return {
            "summary": {
                "changed": self.changed,
                "substitutions": self.substitutions,
                "warnings": len(self.warnings),
            },
            "order": list(self.order),
            "per_rule": dict(self.per_rule),
            "warnings": [
                {"rule_id": w.rule_id, "message": w.message, "details": dict(w.details)}
                for w in self.warnings
            ],
        }

    def to_text_report(self) -> str:
        lines = [
            f"Substitutions: {self.substitutions}",
            f"Changed:       {'yes' if self.changed else 'no'}",
            f"Rules:         {', '.join(self.order) or '[none]'}",
        ]
        for name, n in self.per_rule.items():
            if n:
                lines.append(f"- {name}: {n}")
        for w in self.warnings:
            lines.append(f"[WARNING] {w.rule_id}: {w.message}")
        return "\n".join(lines)


# =============================================================================
# Toggle table
# =============================================================================

# (config flag, catalog name, parameters taken from the config)
_ToggleSpec = Tuple[str, str, Callable[[FormatConfig], Dict[str, Any]]]

_NO_PARAMS: Callable[[FormatConfig], Dict[str, Any]] = lambda c: {}

TOGGLES: List[_ToggleSpec] = [
    ("enable_link_removal", "link_removal", _NO_PARAMS),
    ("enable_heading_conversion", "heading_conversion",
     lambda c: {"mapping": c.heading_conversion_rules, "cascading": c.enable_cascading_conversion}),
    ("enable_bold_removal", "bold_removal", _NO_PARAMS),
    ("enable_reference_removal", "reference_removal", _NO_PARAMS),
    ("enable_spacing_fixes", "space_after_headings", _NO_PARAMS),
    ("enable_spacing_fixes", "space_after_list_items", _NO_PARAMS),
    ("enable_spacing_fixes", "excessive_newlines", _NO_PARAMS),
    ("enable_spacing_fixes", "ordered_list_format", _NO_PARAMS),
    ("enable_yaml_metadata_format", "yaml_metadata", _NO_PARAMS),
    ("enable_table_format", "table_format", lambda c: {"policy": c.table_width_policy}),
    ("enable_code_highlight", "code_highlight", lambda c: {"default_language": c.default_code_language}),
    ("enable_image_optimization", "image_optimization", _NO_PARAMS),
    ("enable_link_format", "link_format", lambda c: {"link_style": c.link_style}),
    ("enable_title_numbering", "title_numbering", lambda c: {"max_depth": c.numbering_max_depth}),
    ("enable_list_indent_format", "list_indentation",
     lambda c: {"indentation": c.list_indentation, "bullet": c.list_bullet}),
    ("enable_blockquote_format", "blockquote_format", _NO_PARAMS),
    ("enable_math_format", "math_format", _NO_PARAMS),
]


# =============================================================================
# Formatter
# =============================================================================

class Formatter:
    """
    Applies a configuration's rules to Markdown text.

    The catalog is the only state the formatter keeps; the active rule set
    is rebuilt on every call and thrown away afterwards.
    """

    def __init__(self, catalog: Optional[RuleCatalog] = None):
        self.catalog = catalog if catalog is not None else default_catalog()

    def build_rules(self, config: FormatConfig) -> Tuple[List[Rule], List[FormatWarning]]:
        rules: List[Rule] = []
        warnings: List[FormatWarning] = []

        for flag, name, params in TOGGLES:
            if getattr(config, flag):
                rules.append(self.catalog.create(name, **params(config)))

        if config.special_char_handling != "ignore":
            rules.append(self.catalog.create("special_chars", handling=config.special_char_handling))

        for name in config.extra_rules:
            rules.append(self.catalog.create(name))

        for i, custom in enumerate(config.custom_regex_rules):
            if not custom.enabled:
                continue
            rule_id = f"custom_regex[{i}]"
            try:
                rules.append(self.catalog.create(
                    "custom_regex",
                    pattern=custom.pattern,
                    replacement=custom.replacement,
                    description=custom.description,
                    ignore_case=custom.ignore_case,
                    name=rule_id,
                ))
            except InvalidPatternError as e:
                logger.warning(f"Skipping {rule_id}: {e}")
                warnings.append(FormatWarning(
                    rule_id=rule_id,
                    message=str(e),
                    details={"pattern": custom.pattern, "description": custom.description},
                ))

        return rules, warnings

    def format(self, text: str, config: Optional[FormatConfig] = None) -> FormatResult:
        config = config if config is not None else FormatConfig()
        rules, warnings = self.build_rules(config)
        order = plan_execution(rules)
        logger.info(f"Formatting with {len(order)} rules")

        current = text
        total = 0
        per_rule: Dict[str, int] = {}
        for rule in order:
            outcome = rule.process(current)
            current = outcome.text
            per_rule[rule.name] = outcome.substitutions
            total += outcome.substitutions
            for message in outcome.warnings:
                logger.warning(f"{rule.name}: {message}")
                warnings.append(FormatWarning(rule_id=rule.name, message=message))
            logger.debug(f"{rule.name}: {outcome.substitutions} substitutions")

        result = FormatResult(
            text=current.strip(),
            original=text,
            substitutions=total,
            warnings=warnings,
            order=[r.name for r in order],
            per_rule=per_rule,
        )
        logger.info(f"Formatting complete: {total} substitutions, {len(warnings)} warnings")
        return result


def format_markdown(
    text: str,
    config: Union[FormatConfig, Mapping[str, Any], None] = None,
    catalog: Optional[RuleCatalog] = None,
) -> FormatResult:
    """Format ``text`` with a config object or a settings mapping."""
    if config is not None and not isinstance(config, FormatConfig):
        config = FormatConfig.from_dict(config)
    return Formatter(catalog).format(text, config)
