"""
Formatting rules.

Every rule shares the contract in ``base``: a declared name, a priority,
optional dependencies and a pure ``apply(text) -> text``.
"""
from markdown_master.rules.base import Rule, RegexRule, RuleOutcome, split_fenced_blocks
from markdown_master.rules.builtin import (
    LinkRemovalRule,
    BoldRemovalRule,
    ReferenceRemovalRule,
    SpaceAfterHeadingsRule,
    SpaceAfterListItemsRule,
    ExcessiveNewlinesRule,
    OrderedListFormatRule,
    YamlMetadataRule,
    CodeHighlightRule,
    ImageOptimizationRule,
    LinkFormatRule,
    ListIndentationRule,
    BlockquoteFormatRule,
    MathFormatRule,
    SpecialCharRule,
)
from markdown_master.rules.headings import HeadingRemapRule, TitleNumberingRule
from markdown_master.rules.tables import TableAlignRule
from markdown_master.rules.custom import CustomRegexRule

__all__ = [
    # === Contract ===
    "Rule",
    "RegexRule",
    "RuleOutcome",
    "split_fenced_blocks",
    # === Built-ins ===
    "LinkRemovalRule",
    "BoldRemovalRule",
    "ReferenceRemovalRule",
    "SpaceAfterHeadingsRule",
    "SpaceAfterListItemsRule",
    "ExcessiveNewlinesRule",
    "OrderedListFormatRule",
    "YamlMetadataRule",
    "CodeHighlightRule",
    "ImageOptimizationRule",
    "LinkFormatRule",
    "ListIndentationRule",
    "BlockquoteFormatRule",
    "MathFormatRule",
    "SpecialCharRule",
    "HeadingRemapRule",
    "TitleNumberingRule",
    "TableAlignRule",
    # === User rules ===
    "CustomRegexRule",
]
