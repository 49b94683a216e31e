from __future__ import annotations
import argparse
import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from markdown_master.catalog import default_catalog
from markdown_master.config import FormatConfig, load_config
from markdown_master.errors import FormatError
from markdown_master.formatter import Formatter
from markdown_master.report import render_diff, write_json, write_txt
from markdown_master.stats import calculate_text_statistics

logger = logging.getLogger(__name__)


def _collect_inputs(paths: List[str]) -> List[Tuple[Path, Path]]:
    """Expand files and directories into (path, relative output name) pairs."""
    found: List[Tuple[Path, Path]] = []
    for p in paths:
        path = Path(p)
        if path.is_dir():
            for md in sorted(path.rglob("*.md")):
                found.append((md, md.relative_to(path)))
        elif path.is_file():
            found.append((path, Path(path.name)))
        else:
            raise FileNotFoundError(f"No such file or directory: {p}")
    return found


def _list_rules() -> None:
    catalog = default_catalog()
    rows = []
    for name in catalog.list_names():
        factory = catalog.factory(name)
        rows.append({
            "name": name,
            "priority": getattr(factory, "priority", None),
            "dependencies": list(getattr(factory, "dependencies", ())),
        })
    print(json.dumps(rows, indent=2))


def _with_final_newline(text: str) -> str:
    # editors keep one trailing newline on disk
    return text + "\n" if text else ""


def _format_stdin(formatter: Formatter, config: FormatConfig, args) -> int:
    text = sys.stdin.read()
    result = formatter.format(text, config)
    formatted = _with_final_newline(result.text)
    if args.check:
        return 1 if formatted != text else 0
    if args.diff:
        sys.stdout.write(render_diff(text, formatted, "<stdin>"))
        return 0
    sys.stdout.write(formatted)
    if args.stats:
        stats = calculate_text_statistics(result.text)
        print(json.dumps(stats.to_dict()), file=sys.stderr)
    return 0


def _format_files(formatter: Formatter, config: FormatConfig, args) -> int:
    inputs = _collect_inputs(args.paths)
    logger.info(f"Formatting {len(inputs)} file(s)")

    entries: List[Dict[str, Any]] = []
    changed = 0
    substitutions = 0
    warnings = 0

    for path, rel in inputs:
        text = path.read_text(encoding="utf-8")
        result = formatter.format(text, config)
        formatted = _with_final_newline(result.text)
        is_changed = formatted != text

        entry: Dict[str, Any] = {"path": str(path), "changed": is_changed}
        entry.update(result.to_dict())
        entry.pop("summary", None)
        if args.stats:
            entry["stats"] = calculate_text_statistics(result.text).to_dict()

        if args.diff and is_changed:
            sys.stdout.write(render_diff(text, formatted, str(path)))

        if not args.check:
            if args.in_place and is_changed:
                path.write_text(formatted, encoding="utf-8")
                entry["written"] = str(path)
            elif args.out:
                dest = Path(args.out) / rel
                dest.parent.mkdir(parents=True, exist_ok=True)
                dest.write_text(formatted, encoding="utf-8")
                entry["written"] = str(dest)

        entries.append(entry)
        changed += int(is_changed)
        substitutions += result.substitutions
        warnings += len(result.warnings)

    summary = {
        "files": len(entries),
        "changed": changed,
        "substitutions": substitutions,
        "warnings": warnings,
    }

    if args.report:
        payload = {
            "timestamp_utc": datetime.now(timezone.utc).isoformat(),
            "summary": summary,
            "config": config.to_dict(),
            "files": entries,
        }
        if args.report.endswith(".txt"):
            write_txt(args.report, payload)
        else:
            write_json(args.report, payload)
        summary["report"] = args.report

    if not args.diff:
        output = dict(summary)
        output["changed_files"] = [e["path"] for e in entries if e["changed"]]
        if args.stats:
            output["stats"] = {e["path"]: e["stats"] for e in entries}
        print(json.dumps(output, indent=2))

    if args.check and changed:
        return 1
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    ap = argparse.ArgumentParser(
        prog="mdmaster",
        description="Rule-based Markdown formatter"
    )
    ap.add_argument("paths", nargs="*", help="Markdown files or directories (reads stdin when omitted or '-')")
    ap.add_argument("--config", help="YAML/JSON settings file")

    out_group = ap.add_argument_group("Output")
    out_group.add_argument("--in-place", action="store_true", help="Rewrite changed files in place")
    out_group.add_argument("--out", help="Write formatted files into this directory")
    out_group.add_argument(
        "--check",
        action="store_true",
        help="Write nothing; exit with status 1 when any input would change"
    )
    out_group.add_argument("--diff", action="store_true", help="Print a unified diff instead of the summary")
    out_group.add_argument("--stats", action="store_true", help="Include word, character and line counts")
    out_group.add_argument("--report", help="Write a full report (.json, or .txt for plain text)")

    ap.add_argument("--list-rules", action="store_true", help="List catalog rules and exit")
    ap.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    args = ap.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.list_rules:
        _list_rules()
        return 0

    if args.in_place and args.out:
        ap.error("--in-place and --out are mutually exclusive")

    use_stdin = not args.paths or args.paths == ["-"]
    if use_stdin and (args.in_place or args.out or args.report):
        ap.error("--in-place, --out and --report need file arguments")

    try:
        config = load_config(args.config) if args.config else FormatConfig()
        formatter = Formatter()
        if use_stdin:
            return _format_stdin(formatter, config, args)
        return _format_files(formatter, config, args)
    except (FormatError, OSError) as e:
        ap.exit(2, f"{ap.prog}: error: {e}\n")


if __name__ == "__main__":
    sys.exit(main())
