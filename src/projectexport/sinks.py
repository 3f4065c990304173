"""
Destinations for finished documents: an atomic file save and the clipboard.
"""

from __future__ import annotations

import contextlib
import os
from pathlib import Path

import pyperclip

from .errors import OutputError


def _fsync_dir(path: Path) -> None:
    try:
        fd = os.open(path, getattr(os, "O_DIRECTORY", 0))
    except OSError:
        return
    try:
        os.fsync(fd)
    except OSError:
        pass
    finally:
        os.close(fd)


def write_document(out_path: Path, text: str) -> Path:
    """
    Save *text* to *out_path* via a temporary sibling and ``os.replace``.

    Either the complete document lands at *out_path* or nothing changes
    there. Any failure is raised as :class:`OutputError` with the cause.
    """
    try:
        out_path = Path(out_path).resolve()
    except (OSError, RuntimeError) as e:
        raise OutputError(f"Could not resolve output path '{out_path}': {e}")

    if not out_path.parent.exists():
        try:
            out_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise OutputError(f"Could not create directory '{out_path.parent}': {e}")

    tmp = out_path.with_name(out_path.name + ".tmp")
    try:
        with open(tmp, "w", encoding="utf-8", newline="\n") as fh:
            fh.write(text)
            fh.flush()
            with contextlib.suppress(OSError):
                os.fsync(fh.fileno())
        os.replace(tmp, out_path)
    except (OSError, UnicodeError) as e:
        with contextlib.suppress(OSError):
            tmp.unlink()
        raise OutputError(f"Could not write to output file '{out_path}': {e}")

    _fsync_dir(out_path.parent)
    return out_path


def copy_to_clipboard(text: str) -> None:
    try:
        pyperclip.copy(text)
    except pyperclip.PyperclipException as e:
        raise OutputError(f"Could not copy to clipboard: {e}")
