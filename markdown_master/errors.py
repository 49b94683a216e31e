from __future__ import annotations
from typing import Sequence


class FormatError(Exception):
    """Base class for every error raised by the formatting engine."""


class ConfigError(FormatError, ValueError):
    """Configuration value is missing, malformed or out of range."""


class UnknownRuleError(FormatError, KeyError):
    """Configuration asked for a rule name the catalog does not know."""

    def __init__(self, name: str):
        super().__init__(name)
        self.name = name

    def __str__(self) -> str:
        return f"Unknown rule: {self.name}"


class DuplicateRuleError(FormatError):
    """Two rules with the same name ended up in one active rule set."""

    def __init__(self, name: str):
        super().__init__(f"Duplicate rule in active set: {name}")
        self.name = name


class CyclicDependencyError(FormatError):
    """The dependency graph of the active rule set contains a cycle."""

    def __init__(self, rule: str, cycle: Sequence[str] = ()):
        self.rule = rule
        self.cycle = list(cycle) or [rule]
        super().__init__(f"Circular dependency detected at '{rule}': {' -> '.join(self.cycle)}")


class InvalidPatternError(FormatError, ValueError):
    """A user supplied regular expression failed to compile."""

    def __init__(self, pattern: str, reason: str):
        super().__init__(f"Invalid regular expression {pattern!r}: {reason}")
        self.pattern = pattern
        self.reason = reason
