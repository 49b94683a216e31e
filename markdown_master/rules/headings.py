"""
Heading rules: level remapping and hierarchical numbering.

Remapping walks the mapping table in ascending source level. Each mapping
is applied to the output of the previous one, so with cascading on, a
demoted level 2 heading and all its deeper descendants move together
before a level 3 mapping looks at them.
"""
from __future__ import annotations
from typing import Dict, List, Mapping, Optional
import logging
import re

from markdown_master.errors import ConfigError
from markdown_master.rules.base import Rule, RuleOutcome, split_fenced_blocks

logger = logging.getLogger(__name__)

MIN_LEVEL = 1
MAX_LEVEL = 6

# "##A" is a heading too; space_after_headings runs later
_ATX_HEADING = re.compile(r"^(#{1,6})(?!#)", re.MULTILINE)


def clamp_level(level: int) -> int:
    return max(MIN_LEVEL, min(MAX_LEVEL, level))


def validate_heading_map(mapping: Mapping[int, int]) -> Dict[int, int]:
    """Coerce keys/values to int and check them: sources 1-6, targets 0-6 (0 = unchanged)."""
    out: Dict[int, int] = {}
    for src, dst in (mapping or {}).items():
        try:
            s, d = int(src), int(dst)
        except (TypeError, ValueError):
            raise ConfigError(f"Heading mapping must be integers, got {src!r} -> {dst!r}")
        if not MIN_LEVEL <= s <= MAX_LEVEL:
            raise ConfigError(f"Heading source level must be 1-6, got {s}")
        if not 0 <= d <= MAX_LEVEL:
            raise ConfigError(f"Heading target level must be 0-6, got {d}")
        out[s] = d
    return out


class HeadingRemapRule(Rule):
    """
    Re-level ATX headings (``#`` .. ``######``) from a remap table.

    For each ``from -> to`` (ascending ``from``, skipping ``to == 0`` and
    ``to == from``) every heading at exactly ``from``, or at ``from`` and
    deeper when ``cascading`` is on, moves by ``to - from``. Results are
    clamped into 1-6.
    """
    name = "heading_conversion"
    priority = 20

    def __init__(self, mapping: Optional[Mapping[int, int]] = None, cascading: bool = True, **kwargs):
        super().__init__(**kwargs)
        self.mapping = validate_heading_map(mapping or {})
        self.cascading = bool(cascading)

    def _steps(self):
        for src in sorted(self.mapping):
            dst = self.mapping[src]
            if dst == 0 or dst == src:
                continue
            yield src, dst - src

    def transform(self, text: str) -> RuleOutcome:
        changed = 0
        for src, delta in self._steps():

            def _shift(m: re.Match) -> str:
                nonlocal changed
                level = len(m.group(1))
                hit = level >= src if self.cascading else level == src
                if not hit:
                    return m.group(0)
                new_level = clamp_level(level + delta)
                if new_level != level:
                    changed += 1
                return "#" * new_level

            text = _ATX_HEADING.sub(_shift, text)
        return RuleOutcome(text=text, substitutions=changed)


# =============================================================================
# Numbering
# =============================================================================

_HEADING_LINE = re.compile(r"^(#{1,6})[ \t]+(.*?)(?:[ \t]+#+)?[ \t]*$")
# "1." / "1.2" / "1.2.3" optionally followed by " - "
_EXISTING_NUMBER = re.compile(r"^(?:\d+\.)+\d*(?:[ \t]*-)?[ \t]+")


class TitleNumberingRule(Rule):
    """
    Add hierarchical numbers to headings: ``1.``, ``1.1``, ``1.1.1``.

    Numbering starts at the shallowest heading level in the document and
    covers ``max_depth`` levels from there. Existing numbers are stripped
    first so running the rule twice gives the same result.
    """
    name = "title_numbering"
    priority = 120
    dependencies = ("heading_conversion", "space_after_headings")
    skip_code_blocks = False

    def __init__(self, max_depth: int = 3, **kwargs):
        super().__init__(**kwargs)
        if not 1 <= int(max_depth) <= MAX_LEVEL:
            raise ValueError(f"max_depth must be 1-6, got {max_depth!r}")
        self.max_depth = int(max_depth)

    def transform(self, text: str) -> RuleOutcome:
        segments = split_fenced_blocks(text)
        prose_lines: List[List[str]] = [seg.split("\n") if not is_code else [] for is_code, seg in segments]

        levels = [
            len(m.group(1))
            for lines in prose_lines
            for m in map(_HEADING_LINE.match, lines)
            if m and m.group(2)
        ]
        if not levels:
            return RuleOutcome(text=text)
        top = min(levels)

        counters = [0] * MAX_LEVEL
        changed = 0
        out: List[str] = []
        for (is_code, seg), lines in zip(segments, prose_lines):
            if is_code:
                out.append(seg)
                continue
            for i, line in enumerate(lines):
                m = _HEADING_LINE.match(line)
                if not m or not m.group(2):
                    continue
                depth = len(m.group(1)) - top
                if depth >= self.max_depth:
                    continue
                counters[depth] += 1
                for d in range(depth + 1, MAX_LEVEL):
                    counters[d] = 0
                number = ".".join(str(c) for c in counters[:depth + 1])
                if depth == 0:
                    number += "."
                title = _EXISTING_NUMBER.sub("", m.group(2))
                new = f"{m.group(1)} {number} {title}"
                if new != line:
                    lines[i] = new
                    changed += 1
            out.append("\n".join(lines))
        logger.debug(f"Numbered headings from level {top}, {changed} changed")
        return RuleOutcome(text="".join(out), substitutions=changed)
