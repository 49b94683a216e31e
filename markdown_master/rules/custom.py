from __future__ import annotations
from typing import Optional
import re

from markdown_master.errors import InvalidPatternError
from markdown_master.rules.base import Rule, RuleOutcome


class CustomRegexRule(Rule):
    """
    User supplied ``pattern -> replacement`` substitution.

    The pattern is compiled with ``re.MULTILINE`` (plus ``re.IGNORECASE``
    when asked) and the replacement uses Python template syntax (``\\1``,
    ``\\g<name>``). A pattern that does not compile raises
    ``InvalidPatternError`` from the constructor. A replacement that refers
    to a missing group is reported as a warning and the text passes through
    unchanged.
    """
    name = "custom_regex"
    priority = 150
    skip_code_blocks = False

    def __init__(
        self,
        pattern: str,
        replacement: str = "",
        description: str = "",
        ignore_case: bool = False,
        name: Optional[str] = None,
        priority: Optional[int] = None,
    ):
        super().__init__(name=name, priority=priority)
        if not pattern:
            raise InvalidPatternError(pattern, "empty pattern")
        flags = re.MULTILINE | (re.IGNORECASE if ignore_case else 0)
        try:
            self._regex = re.compile(pattern, flags)
        except re.error as e:
            raise InvalidPatternError(pattern, str(e)) from e
        self.pattern = pattern
        self.replacement = replacement or ""
        self.description = description

    def transform(self, text: str) -> RuleOutcome:
        try:
            new_text, n = self._regex.subn(self.replacement, text)
        except (re.error, IndexError) as e:
            label = self.description or self.pattern
            return RuleOutcome(text=text, warnings=[f"Replacement for {label!r} failed: {e}"])
        return RuleOutcome(text=new_text, substitutions=n)
