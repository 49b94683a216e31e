"""
Rule contract shared by every formatting rule.

A rule is identified by its declared ``name`` (never by its class), carries
a ``priority`` (lower runs earlier when no dependency says otherwise) and a
tuple of ``dependencies`` naming rules that must run before it when they are
active in the same run.

Rules hold constructor parameters only. ``apply`` must give the same output
for the same input every time it is called.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Tuple, Union
import re

__all__ = ["Rule", "RegexRule", "RuleOutcome", "split_fenced_blocks"]

_FENCE_OPEN = re.compile(r"^ {0,3}(`{3,}|~{3,})")


@dataclass
class RuleOutcome:
    text: str
    substitutions: int = 0
    warnings: List[str] = field(default_factory=list)


def split_fenced_blocks(text: str) -> List[Tuple[bool, str]]:
    """
    Split text into (is_code, segment) pairs.

    Fenced code blocks (``` or ~~~) become code segments including their
    fence lines; everything else is prose. An unclosed fence runs to the end
    of the text. Joining all segments gives back the input unchanged.
    """
    segments: List[Tuple[bool, str]] = []
    prose: List[str] = []
    code: List[str] = []
    fence: Optional[str] = None

    for line in text.splitlines(keepends=True):
        if fence is None:
            m = _FENCE_OPEN.match(line)
            # backtick fences may not carry backticks in their info string
            if m and not (m.group(1)[0] == "`" and "`" in line[m.end():]):
                if prose:
                    segments.append((False, "".join(prose)))
                    prose = []
                fence = m.group(1)
                code.append(line)
            else:
                prose.append(line)
        else:
            code.append(line)
            stripped = line.strip()
            if stripped and set(stripped) == {fence[0]} and len(stripped) >= len(fence) and len(line) - len(line.lstrip(" ")) <= 3:
                segments.append((True, "".join(code)))
                code = []
                fence = None

    if code:
        segments.append((True, "".join(code)))
    if prose:
        segments.append((False, "".join(prose)))
    return segments


class Rule:
    name: str = ""
    priority: int = 0
    dependencies: Tuple[str, ...] = ()
    # rules that read Markdown structure leave fenced code alone
    skip_code_blocks: bool = True

    def __init__(self, name: Optional[str] = None, priority: Optional[int] = None):
        if name is not None:
            self.name = name
        if priority is not None:
            self.priority = priority
        if not self.name:
            raise ValueError(f"{type(self).__name__} needs a name")

    def transform(self, text: str) -> RuleOutcome:
        raise NotImplementedError

    def process(self, text: str) -> RuleOutcome:
        if not self.skip_code_blocks:
            return self.transform(text)

        out: List[str] = []
        total = 0
        warnings: List[str] = []
        for is_code, segment in split_fenced_blocks(text):
            if is_code:
                out.append(segment)
                continue
            res = self.transform(segment)
            out.append(res.text)
            total += res.substitutions
            warnings.extend(res.warnings)
        return RuleOutcome(text="".join(out), substitutions=total, warnings=warnings)

    def apply(self, text: str) -> str:
        return self.process(text).text

    def __repr__(self) -> str:
        return f"<{type(self).__name__} name={self.name!r} priority={self.priority}>"


Replacement = Union[str, Callable[[re.Match], str]]


class RegexRule(Rule):
    """A rule that is a single ``re.subn`` call."""

    pattern: str = ""
    replacement: Replacement = ""
    flags: int = re.MULTILINE

    def __init__(self, name: Optional[str] = None, priority: Optional[int] = None):
        super().__init__(name=name, priority=priority)
        self._regex = re.compile(self.pattern, self.flags)

    def transform(self, text: str) -> RuleOutcome:
        new_text, n = self._regex.subn(self.replacement, text)
        return RuleOutcome(text=new_text, substitutions=n)
