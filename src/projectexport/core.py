"""
Core logic for projectexport: the two-phase directory walker and the
sorted structure view.
"""

from __future__ import annotations

import datetime
import enum
import os
import sys
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional, TextIO

from colorama import Fore, Style, init as colorama_init

from .errors import FileReadError, InvalidRootError, NoDocumentError
from .filters import PathFilter
from .languages import classify

colorama_init()

ProgressSink = Callable[[str, float], None]

DIR_MARKER = "📁 "
FILE_MARKER = "📄 "
INDENT = "  "


def say(
    msg: str,
    colour: str = "",
    verbose: bool = True,
    stream: Optional[TextIO] = None,
) -> None:
    """Print a ``[projectexport]`` console line, coloured when *colour* is set."""
    if not verbose:
        return
    line = f"[projectexport] {msg}"
    if colour:
        line = colour + line + Style.RESET_ALL
    print(line, file=stream or sys.stdout)


# Data model
@dataclass(frozen=True)
class FileRecord:
    path: str
    content: str
    language: str
    size: int
    last_modified: datetime.datetime


@dataclass(frozen=True)
class StructureEntry:
    depth: int
    name: str
    is_dir: bool


def render_structure(entries: List[StructureEntry]) -> str:
    """Indented listing, two spaces per level, folder/file marker per line."""
    return "\n".join(
        f"{INDENT * e.depth}{DIR_MARKER if e.is_dir else FILE_MARKER}{e.name}"
        for e in entries
    )


@dataclass
class ScanResult:
    files: List[FileRecord] = field(default_factory=list)
    cancelled: bool = False
    total_entries: int = 0
    scanned_entries: int = 0
    skipped: List[str] = field(default_factory=list)


class WalkState(enum.Enum):
    IDLE = "idle"
    COUNTING = "counting"
    SCANNING = "scanning"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"


class CancellationToken:
    """Cooperative cancellation flag, safe to set from a signal handler or thread."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


# Helpers
def resolve_root(root: Path) -> Path:
    try:
        root = Path(root).resolve()
    except (OSError, RuntimeError) as e:
        raise InvalidRootError(f"Could not resolve root path '{root}': {e}")
    if not root.exists():
        raise InvalidRootError(f"Root directory '{root}' does not exist")
    if not root.is_dir():
        raise InvalidRootError(f"Root path '{root}' is not a directory")
    return root


def _entry_is_dir(entry: os.DirEntry) -> bool:
    # symlinked directories are never descended into
    try:
        return entry.is_dir(follow_symlinks=False)
    except OSError:
        return False


def _entry_is_linked_dir(entry: os.DirEntry) -> bool:
    try:
        return entry.is_symlink() and entry.is_dir()
    except OSError:
        return False


def display_name(name: str) -> str:
    """Undecodable filename bytes (surrogate-escaped by ``os``) become U+FFFD."""
    return name.encode("utf-8", "surrogateescape").decode("utf-8", "replace")


def _relative(root: Path, entry: os.DirEntry) -> str:
    return display_name(Path(entry.path).relative_to(root).as_posix())


def read_document(path: Path) -> str:
    """Read a single document for quick export."""
    if not path.is_file():
        raise NoDocumentError(f"No document at '{path}'")
    try:
        return path.read_bytes().decode("utf-8", errors="replace")
    except OSError as e:
        raise FileReadError(f"Could not read document '{path}': {e}")


class DirectoryWalker:
    """
    Enumerates a project tree in two passes.

    ``collect_files`` first counts the entries the scan will examine (the
    progress denominator) and then walks again, reading every accepted file
    into a :class:`FileRecord`. Both passes apply the same ignore rules.
    ``build_structure`` is an independent traversal producing the sorted
    directory listing.

    Per-entry I/O errors are reported and skipped; only an unusable root
    aborts the walk.
    """

    def __init__(
        self,
        path_filter: Optional[PathFilter] = None,
        classifier: Callable[[str], str] = classify,
        verbose: bool = False,
    ) -> None:
        self.path_filter = path_filter or PathFilter()
        self.classifier = classifier
        self.verbose = verbose
        self.state = WalkState.IDLE

    # Full scan
    def collect_files(
        self,
        root: Path,
        progress: Optional[ProgressSink] = None,
        cancel: Optional[CancellationToken] = None,
    ) -> ScanResult:
        try:
            root = resolve_root(root)
        except InvalidRootError:
            self.state = WalkState.FAILED
            raise
        cancel = cancel or CancellationToken()
        result = ScanResult()

        self.state = WalkState.COUNTING
        result.total_entries = self._count(root, root, cancel)
        if cancel.cancelled:
            return self._cancelled()

        self.state = WalkState.SCANNING
        self._scan(root, root, result, progress, cancel)
        if cancel.cancelled:
            return self._cancelled()

        self.state = WalkState.COMPLETED
        return result

    def _cancelled(self) -> ScanResult:
        self.state = WalkState.CANCELLED
        say("Scan cancelled, discarding collected files", Fore.YELLOW, self.verbose)
        return ScanResult(cancelled=True)

    def _list(self, directory: str | Path) -> List[os.DirEntry]:
        try:
            with os.scandir(directory) as it:
                return list(it)
        except OSError as e:
            say(f"! Could not list {directory}: {e}", Fore.YELLOW, self.verbose)
            return []

    def _count(self, root: Path, directory: str | Path, cancel: CancellationToken) -> int:
        total = 0
        for entry in self._list(directory):
            if cancel.cancelled:
                return total
            is_dir = _entry_is_dir(entry)
            rel = _relative(root, entry)
            if self.path_filter.is_ignored(rel, is_dir=is_dir):
                continue
            total += 1
            if is_dir:
                total += self._count(root, entry.path, cancel)
        return total

    def _scan(
        self,
        root: Path,
        directory: str | Path,
        result: ScanResult,
        progress: Optional[ProgressSink],
        cancel: CancellationToken,
    ) -> None:
        for entry in self._list(directory):
            if cancel.cancelled:
                return
            is_dir = _entry_is_dir(entry)
            rel = _relative(root, entry)
            if self.path_filter.is_ignored(rel, is_dir=is_dir):
                continue

            result.scanned_entries += 1
            self._report(
                progress,
                f"Scanning: {rel} ({result.scanned_entries}/{result.total_entries})",
                100 / max(result.total_entries, 1),
            )

            if is_dir:
                self._scan(root, entry.path, result, progress, cancel)
                continue
            if _entry_is_linked_dir(entry):
                say(f"- Not following linked directory {rel}", Fore.YELLOW, self.verbose)
                result.skipped.append(rel)
                continue

            record = self._read_record(entry, rel)
            if record is None:
                result.skipped.append(rel)
            else:
                result.files.append(record)

    def _read_record(self, entry: os.DirEntry, rel: str) -> Optional[FileRecord]:
        try:
            st = entry.stat()
        except OSError as e:
            say(f"! Could not stat {rel}: {e}", Fore.YELLOW, self.verbose)
            return None

        if self.path_filter.is_oversized(st.st_size):
            say(f"- Skipping large file {rel}", Fore.YELLOW, self.verbose)
            return None
        if self.path_filter.is_binary(rel):
            say(f"- Skipping binary {rel}", Fore.YELLOW, self.verbose)
            return None

        try:
            with open(entry.path, "rb") as fh:
                raw = fh.read()
        except OSError as e:
            say(f"! Could not read {rel}: {e}", Fore.YELLOW, self.verbose)
            return None

        return FileRecord(
            path=rel,
            content=raw.decode("utf-8", errors="replace"),
            language=self.classifier(rel),
            size=st.st_size,
            last_modified=datetime.datetime.fromtimestamp(
                st.st_mtime, tz=datetime.timezone.utc
            ),
        )

    def _report(self, progress: Optional[ProgressSink], message: str, increment: float) -> None:
        if progress is None:
            return
        try:
            progress(message, increment)
        except Exception as e:
            say(f"! Progress sink failed: {e}", Fore.YELLOW, self.verbose)

    # Structure view
    def build_structure(
        self,
        root: Path,
        cancel: Optional[CancellationToken] = None,
    ) -> List[StructureEntry]:
        """
        Return the sorted directory listing: directories before files at
        every level, names in code-point order, binaries omitted. Oversized
        text files are kept.
        """
        root = resolve_root(root)
        cancel = cancel or CancellationToken()
        entries: List[StructureEntry] = []

        def _walk(directory: str | Path, depth: int) -> None:
            children = []
            for entry in self._list(directory):
                is_dir = _entry_is_dir(entry)
                linked_dir = not is_dir and _entry_is_linked_dir(entry)
                rel = _relative(root, entry)
                if self.path_filter.is_ignored(rel, is_dir=is_dir or linked_dir):
                    continue
                if not (is_dir or linked_dir) and self.path_filter.is_binary(rel):
                    continue
                children.append((display_name(entry.name), entry.path, is_dir, linked_dir))

            children.sort(key=lambda c: (not (c[2] or c[3]), c[0]))  # dirs first
            for name, path, is_dir, linked_dir in children:
                if cancel.cancelled:
                    return
                entries.append(StructureEntry(depth, name, is_dir or linked_dir))
                # linked directories are listed but not descended into
                if is_dir:
                    _walk(path, depth + 1)

        _walk(root, 0)
        return entries
