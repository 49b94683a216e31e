from __future__ import annotations
from typing import Dict, Any, List
import difflib
import json


def render_diff(before: str, after: str, name: str = "document") -> str:
    """Unified diff of one formatting run; empty when nothing changed."""
    lines = difflib.unified_diff(
        before.splitlines(keepends=True),
        after.splitlines(keepends=True),
        fromfile=f"{name} (original)",
        tofile=f"{name} (formatted)",
    )
    out: List[str] = []
    for line in lines:
        out.append(line if line.endswith("\n") else line + "\n")
    return "".join(out)


def write_json(path: str, payload: Dict[str, Any]) -> None:
    with open(path, "w", encoding="utf-8") as f:
        json.dump(payload, f, ensure_ascii=False, indent=2)


def write_txt(path: str, payload: Dict[str, Any]) -> None:
    with open(path, "w", encoding="utf-8") as f:
        f.write(render_txt(payload))


def render_txt(payload: Dict[str, Any]) -> str:
    lines: List[str] = []
    lines.append(f"Format Report - {payload.get('timestamp_utc')}")
    lines.append("")
    files = payload.get("files", []) or []
    s = payload.get("summary", {})
    lines.append("Summary")
    lines.append(f"- Files:         {s.get('files', len(files))}")
    lines.append(f"- Changed:       {s.get('changed', 0)}")
    lines.append(f"- Substitutions: {s.get('substitutions', 0)}")
    lines.append(f"- Warnings:      {s.get('warnings', 0)}")
    lines.append("")
    for entry in files:
        lines.append(f"{entry.get('path')}")
        lines.append(f"- Changed: {entry.get('changed')}")
        lines.append(f"- Order:   {', '.join(entry.get('order', [])) or '[none]'}")
        for name, n in (entry.get("per_rule") or {}).items():
            if n:
                lines.append(f"- {name}: {n}")
        stats = entry.get("stats")
        if stats:
            lines.append(f"- Stats: {stats.get('word_count')} words, {stats.get('char_count')} chars, {stats.get('line_count')} lines")
        warnings = entry.get("warnings", []) or []
        for w in warnings[:20]:
            lines.append(f"- [WARNING] {w['rule_id']}: {w['message']}")
        if len(warnings) > 20:
            lines.append(f"... plus {len(warnings)-20} more.")
        lines.append("")
    return "\n".join(lines)
