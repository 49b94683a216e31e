"""
Rule catalog: name -> factory.

A catalog is a plain object owned by whoever builds the Formatter. There is
no module-level registry; ``default_catalog()`` hands out a fresh catalog
with every built-in rule registered, and callers may register their own
rules (or override built-ins) on it.
"""
from __future__ import annotations
from typing import Any, Callable, Dict, List
import logging

from markdown_master.errors import UnknownRuleError
from markdown_master.rules import (
    Rule,
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
    HeadingRemapRule,
    TitleNumberingRule,
    TableAlignRule,
    CustomRegexRule,
)

logger = logging.getLogger(__name__)

RuleFactory = Callable[..., Rule]

BUILTIN_RULES = [
    LinkRemovalRule,
    HeadingRemapRule,
    BoldRemovalRule,
    ReferenceRemovalRule,
    SpaceAfterHeadingsRule,
    SpaceAfterListItemsRule,
    ExcessiveNewlinesRule,
    OrderedListFormatRule,
    YamlMetadataRule,
    TableAlignRule,
    CodeHighlightRule,
    ImageOptimizationRule,
    LinkFormatRule,
    TitleNumberingRule,
    ListIndentationRule,
    BlockquoteFormatRule,
    MathFormatRule,
    SpecialCharRule,
    CustomRegexRule,
]

assert len({cls.name for cls in BUILTIN_RULES}) == len(BUILTIN_RULES), "Duplicate built-in rule name"


class RuleCatalog:
    """Registry of rule factories keyed by rule name."""

    def __init__(self):
        self._factories: Dict[str, RuleFactory] = {}

    def register(self, name: str, factory: RuleFactory) -> None:
        """Add or overwrite the factory for ``name``."""
        if name in self._factories:
            logger.debug(f"Overriding rule factory: {name}")
        self._factories[name] = factory

    def create(self, name: str, /, *args: Any, **kwargs: Any) -> Rule:
        """Build a new rule instance, or raise ``UnknownRuleError``."""
        try:
            factory = self._factories[name]
        except KeyError:
            raise UnknownRuleError(name) from None
        return factory(*args, **kwargs)

    def factory(self, name: str) -> RuleFactory:
        try:
            return self._factories[name]
        except KeyError:
            raise UnknownRuleError(name) from None

    def list_names(self) -> List[str]:
        return list(self._factories)

    def __contains__(self, name: object) -> bool:
        return name in self._factories

    def __len__(self) -> int:
        return len(self._factories)


def default_catalog() -> RuleCatalog:
    """Return a new catalog with every built-in rule registered under its name."""
    catalog = RuleCatalog()
    for cls in BUILTIN_RULES:
        catalog.register(cls.name, cls)
    return catalog
