"""End-to-end tests for the command-line front end."""

from __future__ import annotations

import json
import os
import signal
from pathlib import Path

import pytest

from projectexport import cli
from projectexport.formatters import default_output_name


def run(argv) -> int:
    with pytest.raises(SystemExit) as exc:
        cli.main([str(a) for a in argv])
    return exc.value.code


@pytest.fixture
def project(tmp_path: Path) -> Path:
    root = tmp_path / "project"
    (root / "src").mkdir(parents=True)
    (root / "src" / "a.ts").write_text("let a = 1;", encoding="utf-8")
    (root / "node_modules").mkdir()
    (root / "node_modules" / "x.js").write_text("x", encoding="utf-8")
    (root / "image.png").write_bytes(b"\x89P")
    return root


def test_json_export_writes_default_output(project: Path) -> None:
    assert run(["export", "--root", project, "--format", "json"]) == 0

    data = json.loads((project / "project-export.json").read_text(encoding="utf-8"))
    assert [f["path"] for f in data["files"]] == ["src/a.ts"]
    assert data["structure"] == "📁 src\n  📄 a.ts"


def test_repeat_export_skips_previous_output(project: Path) -> None:
    assert run(["export", "--root", project, "--format", "text"]) == 0
    assert run(["export", "--root", project, "--format", "text"]) == 0

    text = (project / "project-export.txt").read_text(encoding="utf-8")
    assert "project-export.txt" not in text
    assert "=== src/a.ts ===" in text


def test_export_with_config_and_out(project: Path, tmp_path: Path) -> None:
    (project / "src" / "secret.ts").write_text("key", encoding="utf-8")
    cfg = tmp_path / "ignores.txt"
    cfg.write_text("secret.ts\n", encoding="utf-8")
    out = tmp_path / "out" / "review.md"

    code = run(["export", "--root", project, "--config", cfg, "--out", out, "-v"])

    assert code == 0
    text = out.read_text(encoding="utf-8")
    assert "### src/a.ts" in text
    assert "secret" not in text


def test_export_missing_root_fails(tmp_path: Path, capsys) -> None:
    assert run(["export", "--root", tmp_path / "missing"]) == 1
    assert "Error:" in capsys.readouterr().err


def test_interrupt_cancels_export_and_writes_nothing(project: Path, monkeypatch, capsys) -> None:
    installed = []
    real_signal = signal.signal

    def recording_signal(signum, handler):
        installed.append(handler)
        return real_signal(signum, handler)

    monkeypatch.setattr(cli.signal, "signal", recording_signal)
    reports = []

    def interrupting_sink(message: str, increment: float) -> None:
        reports.append(message)
        installed[0](signal.SIGINT, None)

    monkeypatch.setattr(cli, "_progress_printer", lambda verbose: interrupting_sink)

    assert run(["export", "--root", project]) == cli.EXIT_CANCELLED

    assert len(reports) == 1
    assert not (project / "project-export.md").exists()
    assert "Export cancelled" in capsys.readouterr().out
    assert signal.getsignal(signal.SIGINT) is not installed[0]


@pytest.mark.parametrize("fmt", ["markdown", "json", "text"])
def test_export_with_undecodable_file_name(project: Path, fmt: str) -> None:
    try:
        with open(os.path.join(os.fsencode(project / "src"), b"caf\xe9.py"), "wb") as fh:
            fh.write(b"print(1)")
    except OSError:
        pytest.skip("filesystem rejects non-UTF-8 names")

    assert run(["export", "--root", project, "--format", fmt]) == 0

    out = project / default_output_name(fmt)
    text = out.read_text(encoding="utf-8")
    if fmt == "json":
        paths = sorted(f["path"] for f in json.loads(text)["files"])
        assert paths == ["src/a.ts", "src/caf�.py"]
    else:
        assert "caf�.py" in text
        assert "print(1)" in text
    assert not any(p.name.endswith(".tmp") for p in project.iterdir())


def test_quick_export_to_stdout(tmp_path: Path, capsys) -> None:
    doc = tmp_path / "f.go"
    doc.write_text("package main\nfunc main() {}\n", encoding="utf-8")

    assert run(["quick", doc, "--format", "text", "--lines", "2:2", "--stdout"]) == 0

    assert capsys.readouterr().out == f"FILE: {doc.resolve()}\n\nfunc main() {{}}\n"


def test_quick_export_copies_markdown(tmp_path: Path, monkeypatch) -> None:
    doc = tmp_path / "f.go"
    doc.write_text("package main", encoding="utf-8")
    copied = []
    monkeypatch.setattr(cli, "copy_to_clipboard", copied.append)

    assert run(["quick", doc]) == 0

    assert copied == [f"# Quick Export\n\n## File: {doc.resolve()}\n\n```go\npackage main\n```"]


def test_quick_export_without_document(tmp_path: Path, capsys) -> None:
    assert run(["quick", tmp_path / "nothing.py", "--stdout"]) == 1
    assert "Error:" in capsys.readouterr().err


def test_bad_line_range_is_usage_error(tmp_path: Path) -> None:
    assert run(["quick", tmp_path / "f.go", "--lines", "5:2"]) == 2
