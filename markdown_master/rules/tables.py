"""
Pipe-table alignment.

Two width policies are supported:

- ``row`` (default): each row is padded to its own widest cell. Delimiter
  rows take the width of the row right above them (the header), so the
  header/delimiter pair always lines up.
- ``column``: each column is padded to its widest cell across one
  contiguous table block, so every row of a table lines up.

Cell content and cell count never change. Delimiter rows are rewritten as
dashes spanning the padded cell, keeping any alignment colons.
"""
from __future__ import annotations
from typing import List
import re

from markdown_master.rules.base import Rule, RuleOutcome

WIDTH_POLICIES = ("row", "column")

_CELL_SPLIT = re.compile(r"(?<!\\)\|")
_DELIMITER_CELL = re.compile(r"^:?-+:?$")


def is_table_row(line: str) -> bool:
    s = line.strip()
    return len(s) >= 2 and s.startswith("|") and s.endswith("|") and not s.endswith("\\|")


def split_cells(line: str) -> List[str]:
    inner = line.strip()[1:-1]
    return [c.strip() for c in _CELL_SPLIT.split(inner)]


def is_delimiter_row(cells: List[str]) -> bool:
    return bool(cells) and all(_DELIMITER_CELL.match(c) for c in cells)


def _delimiter_cell(cell: str, width: int) -> str:
    # padded cell is "| " + width + " ", so dashes span width + 2
    span = width + 2
    left, right = cell.startswith(":"), cell.endswith(":")
    dashes = span - int(left) - int(right)
    return (":" if left else "") + "-" * max(1, dashes) + (":" if right else "")


def render_row(cells: List[str], widths: List[int]) -> str:
    return "".join(f"| {cell.ljust(w)} " for cell, w in zip(cells, widths)) + "|"


def render_delimiter(cells: List[str], widths: List[int]) -> str:
    return "|" + "|".join(_delimiter_cell(c, w) for c, w in zip(cells, widths)) + "|"


class TableAlignRule(Rule):
    name = "table_format"
    priority = 90

    def __init__(self, policy: str = "row", **kwargs):
        super().__init__(**kwargs)
        if policy not in WIDTH_POLICIES:
            raise ValueError(f"policy must be one of {WIDTH_POLICIES}, got {policy!r}")
        self.policy = policy

    def _align_block(self, rows: List[str]) -> List[str]:
        parsed = [split_cells(r) for r in rows]
        indents = [r[:len(r) - len(r.lstrip())] for r in rows]
        # only the second row of a block is a delimiter row; "| - |" elsewhere is data
        delim = 1 if len(parsed) > 1 and is_delimiter_row(parsed[1]) else None
        out: List[str] = []

        if self.policy == "column":
            ncols = max(len(c) for c in parsed)
            widths = [1] * ncols
            for i, cells in enumerate(parsed):
                if i == delim:
                    continue
                for col, cell in enumerate(cells):
                    widths[col] = max(widths[col], len(cell))
            for i, (indent, cells) in enumerate(zip(indents, parsed)):
                w = widths[:len(cells)]
                line = render_delimiter(cells, w) if i == delim else render_row(cells, w)
                out.append(indent + line)
            return out

        for i, (indent, cells) in enumerate(zip(indents, parsed)):
            if i == delim:
                width = max(1, max(len(c) for c in parsed[0]))
                line = render_delimiter(cells, [width] * len(cells))
            else:
                width = max(len(c) for c in cells)
                line = render_row(cells, [width] * len(cells))
            out.append(indent + line)
        return out

    def transform(self, text: str) -> RuleOutcome:
        lines = text.split("\n")
        out: List[str] = []
        block: List[str] = []
        changed = 0

        def _flush():
            nonlocal changed
            if not block:
                return
            aligned = self._align_block(block)
            changed += sum(1 for a, b in zip(block, aligned) if a != b)
            out.extend(aligned)
            block.clear()

        for line in lines:
            if is_table_row(line):
                block.append(line)
            else:
                _flush()
                out.append(line)
        _flush()
        return RuleOutcome(text="\n".join(out), substitutions=changed)
