"""Tests for the save and clipboard sinks."""

from __future__ import annotations

from pathlib import Path

import pyperclip
import pytest

from projectexport import sinks
from projectexport.errors import OutputError


def test_write_document_creates_parent_dirs(tmp_path: Path) -> None:
    target = tmp_path / "exports" / "nested" / "project-export.md"

    written = sinks.write_document(target, "# Project Export\n")

    assert written == target.resolve()
    assert target.read_text(encoding="utf-8") == "# Project Export\n"
    assert list(target.parent.iterdir()) == [target]


def test_write_document_failure_leaves_previous_file(tmp_path: Path, monkeypatch) -> None:
    target = tmp_path / "project-export.txt"
    target.write_text("old", encoding="utf-8")

    def broken_replace(src, dst):
        raise OSError("disk full")

    monkeypatch.setattr(sinks.os, "replace", broken_replace)

    with pytest.raises(OutputError, match="disk full"):
        sinks.write_document(target, "new")

    assert target.read_text(encoding="utf-8") == "old"
    assert sorted(p.name for p in tmp_path.iterdir()) == ["project-export.txt"]


def test_write_document_encoding_failure_removes_temp_file(tmp_path: Path) -> None:
    target = tmp_path / "project-export.md"

    with pytest.raises(OutputError, match="surrogates not allowed"):
        sinks.write_document(target, "### caf\udce9.py\n")

    assert list(tmp_path.iterdir()) == []


def test_copy_to_clipboard(monkeypatch) -> None:
    copied = []
    monkeypatch.setattr(sinks.pyperclip, "copy", copied.append)

    sinks.copy_to_clipboard("FILE: /p/f.go\n\nx")

    assert copied == ["FILE: /p/f.go\n\nx"]


def test_copy_to_clipboard_failure(monkeypatch) -> None:
    def no_clipboard(text):
        raise pyperclip.PyperclipException("no copy mechanism")

    monkeypatch.setattr(sinks.pyperclip, "copy", no_clipboard)

    with pytest.raises(OutputError, match="no copy mechanism"):
        sinks.copy_to_clipboard("x")
