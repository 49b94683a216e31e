"""
Markdown Master

Rule-based Markdown formatter: a catalog of named rules, a dependency-aware
execution planner and a formatter that threads text through the active rules.
"""
from markdown_master.catalog import RuleCatalog, default_catalog
from markdown_master.config import CustomRule, FormatConfig, load_config
from markdown_master.errors import (
    FormatError,
    ConfigError,
    UnknownRuleError,
    DuplicateRuleError,
    CyclicDependencyError,
    InvalidPatternError,
)
from markdown_master.formatter import Formatter, FormatResult, FormatWarning, format_markdown
from markdown_master.planner import plan_execution

__version__ = "1.0.0"

__all__ = [
    "RuleCatalog",
    "default_catalog",
    "CustomRule",
    "FormatConfig",
    "load_config",
    "FormatError",
    "ConfigError",
    "UnknownRuleError",
    "DuplicateRuleError",
    "CyclicDependencyError",
    "InvalidPatternError",
    "Formatter",
    "FormatResult",
    "FormatWarning",
    "format_markdown",
    "plan_execution",
]
