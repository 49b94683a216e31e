import io
import json

import pytest

from markdown_master.cli import main
from markdown_master.report import render_diff, render_txt
from markdown_master.stats import calculate_text_statistics


def test_stdin_to_stdout(monkeypatch, capsys):
    monkeypatch.setattr("sys.stdin", io.StringIO("#Title\n-item\n"))
    assert main([]) == 0
    assert capsys.readouterr().out == "# Title\n- item\n"


def test_stdin_check(monkeypatch):
    monkeypatch.setattr("sys.stdin", io.StringIO("#Title\n"))
    assert main(["--check"]) == 1
    monkeypatch.setattr("sys.stdin", io.StringIO("# Title\n"))
    assert main(["--check"]) == 0
    # a missing final newline counts as a change, as for files
    monkeypatch.setattr("sys.stdin", io.StringIO("# Title"))
    assert main(["--check"]) == 1


def test_stdin_diff_ignores_final_newline(monkeypatch, capsys):
    monkeypatch.setattr("sys.stdin", io.StringIO("# Title\n"))
    assert main(["--diff"]) == 0
    assert capsys.readouterr().out == ""
    monkeypatch.setattr("sys.stdin", io.StringIO("#Title\n"))
    assert main(["--diff"]) == 0
    out = capsys.readouterr().out
    assert "-#Title\n" in out
    assert "+# Title\n" in out


def test_in_place(tmp_path, capsys):
    doc = tmp_path / "a.md"
    doc.write_text("#Title\n", encoding="utf-8")
    assert main([str(doc), "--in-place"]) == 0
    assert doc.read_text(encoding="utf-8") == "# Title\n"
    summary = json.loads(capsys.readouterr().out)
    assert summary["files"] == 1
    assert summary["changed"] == 1
    assert summary["changed_files"] == [str(doc)]


def test_check_writes_nothing(tmp_path, capsys):
    doc = tmp_path / "a.md"
    doc.write_text("#Title\n", encoding="utf-8")
    assert main([str(doc), "--check"]) == 1
    assert doc.read_text(encoding="utf-8") == "#Title\n"
    doc.write_text("# Title\n", encoding="utf-8")
    assert main([str(doc), "--check"]) == 0


def test_directory_batch_to_out_dir(tmp_path, capsys):
    src = tmp_path / "docs"
    (src / "sub").mkdir(parents=True)
    (src / "one.md").write_text("**x**\n", encoding="utf-8")
    (src / "sub" / "two.md").write_text("|A|B|\n", encoding="utf-8")
    (src / "notes.txt").write_text("#skip\n", encoding="utf-8")
    out = tmp_path / "out"
    assert main([str(src), "--out", str(out)]) == 0
    assert (out / "one.md").read_text(encoding="utf-8") == "**x**\n"
    assert (out / "sub" / "two.md").read_text(encoding="utf-8") == "| A | B |\n"
    assert not (out / "notes.txt").exists()
    assert json.loads(capsys.readouterr().out)["files"] == 2


def test_diff_preview(tmp_path, capsys):
    doc = tmp_path / "a.md"
    doc.write_text("#Title\n", encoding="utf-8")
    assert main([str(doc), "--diff"]) == 0
    out = capsys.readouterr().out
    assert "-#Title" in out
    assert "+# Title" in out
    assert doc.read_text(encoding="utf-8") == "#Title\n"


def test_config_file_and_report(tmp_path, capsys):
    cfg = tmp_path / "settings.yml"
    cfg.write_text("enableBoldRemoval: true\n", encoding="utf-8")
    doc = tmp_path / "a.md"
    doc.write_text("**bold** text\n", encoding="utf-8")
    report = tmp_path / "report.json"
    assert main([str(doc), "--config", str(cfg), "--report", str(report), "--stats"]) == 0
    summary = json.loads(capsys.readouterr().out)
    assert summary["substitutions"] == 2
    assert summary["stats"][str(doc)]["word_count"] == 2
    payload = json.loads(report.read_text(encoding="utf-8"))
    assert payload["files"][0]["per_rule"]["bold_removal"] == 2
    assert payload["config"]["enable_bold_removal"] is True


def test_list_rules(capsys):
    assert main(["--list-rules"]) == 0
    rows = json.loads(capsys.readouterr().out)
    by_name = {r["name"]: r for r in rows}
    assert by_name["link_removal"]["priority"] == 10
    assert by_name["title_numbering"]["dependencies"] == ["heading_conversion", "space_after_headings"]


def test_bad_config_exits_with_status_2(tmp_path):
    cfg = tmp_path / "settings.yml"
    cfg.write_text("special_char_handling: bogus\n", encoding="utf-8")
    doc = tmp_path / "a.md"
    doc.write_text("x\n", encoding="utf-8")
    with pytest.raises(SystemExit) as exc:
        main([str(doc), "--config", str(cfg)])
    assert exc.value.code == 2


def test_missing_input_exits_with_status_2(tmp_path):
    with pytest.raises(SystemExit) as exc:
        main([str(tmp_path / "missing.md")])
    assert exc.value.code == 2


def test_in_place_and_out_conflict(tmp_path):
    with pytest.raises(SystemExit) as exc:
        main(["a.md", "--in-place", "--out", str(tmp_path)])
    assert exc.value.code == 2


def test_statistics():
    stats = calculate_text_statistics("one two\nthree")
    assert (stats.word_count, stats.char_count, stats.line_count) == (3, 13, 2)
    assert calculate_text_statistics("").to_dict() == {"word_count": 0, "char_count": 0, "line_count": 1}


def test_render_diff():
    diff = render_diff("a\nsame\n", "b\nsame\n", "doc.md")
    assert "--- doc.md (original)" in diff
    assert "-a\n" in diff
    assert "+b\n" in diff
    assert render_diff("same\n", "same\n") == ""


def test_render_txt():
    text = render_txt({
        "timestamp_utc": "2026-01-01T00:00:00+00:00",
        "summary": {"files": 1, "changed": 1, "substitutions": 2, "warnings": 1},
        "files": [{
            "path": "a.md",
            "changed": True,
            "order": ["bold_removal"],
            "per_rule": {"bold_removal": 2},
            "warnings": [{"rule_id": "custom_regex[0]", "message": "bad"}],
        }],
    })
    assert "Format Report" in text
    assert "- bold_removal: 2" in text
    assert "[WARNING] custom_regex[0]: bad" in text
