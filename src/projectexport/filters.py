"""
Path filtering for projectexport.

Decides, from a name or root-relative path alone, whether an entry is
ignored and whether a file is binary. Two tiers are consulted: an exact
basename set (fast path) and a list of wildcard patterns plus optional
gitwildmatch specs loaded from ``.gitignore`` and a user config file.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import FrozenSet, Iterable, List, Optional, Tuple

import pathspec

from .errors import ConfigFileError

MAX_FILE_BYTES = 1024 * 1024

QUICK_IGNORE: FrozenSet[str] = frozenset(
    {
        "node_modules",
        ".git",
        "dist",
        "build",
        ".next",
        "coverage",
        ".vscode",
        ".idea",
    }
)

IGNORE_PATTERNS: Tuple[str, ...] = (
    "**/node_modules/**",
    "**/.git/**",
    "**/dist/**",
    "**/build/**",
    "**/.next/**",
    "**/coverage/**",
    "**/.vscode/**",
    "**/.idea/**",
    "**/out/**",
    "**/bin/**",
    "**/*.lock",
    "**/.DS_Store",
    "**/*.log",
    "**/*.map",
    "**/*.min.js",
    "**/*.min.css",
    "**/vendor/**",
    "**/public/assets/**",
    "**/.cache/**",
)

BINARY_EXTENSIONS: FrozenSet[str] = frozenset(
    {
        ".jpg", ".jpeg", ".png", ".gif", ".ico", ".pdf",
        ".exe", ".dll", ".so", ".dylib", ".bin",
        ".zip", ".tar", ".gz", ".7z", ".rar",
        ".woff", ".woff2", ".ttf", ".eot",
        ".mp3", ".mp4", ".avi", ".mov",
        ".sqlite", ".db", ".dat",
    }
)


def _segment_matches(pattern: str, name: str) -> bool:
    """Match one path segment where ``*`` stands for any run of characters."""
    pieces = pattern.split("*")
    if len(pieces) == 1:
        return pattern == name

    first, *middle, last = pieces
    if len(name) < len(first) + len(last):
        return False
    if not name.startswith(first) or not name.endswith(last):
        return False

    pos, end = len(first), len(name) - len(last)
    for piece in middle:
        found = name.find(piece, pos, end)
        if found < 0:
            return False
        pos = found + len(piece)
    return True


class WildcardPattern:
    """
    A small, explicit path matcher.

    The pattern is split on ``/`` and matched segment by segment against the
    whole root-relative path:

    * a ``**`` segment matches zero or more whole path segments, so a
      trailing ``/**`` covers the directory itself and everything below it;
    * ``*`` inside a segment matches any run of characters except ``/``;
    * every other character is literal (no ``?``, no character classes).
    """

    def __init__(self, text: str) -> None:
        if not text:
            raise ValueError("empty ignore pattern")
        self.text = text
        self.parts: Tuple[str, ...] = tuple(p for p in text.strip("/").split("/") if p)

    def __repr__(self) -> str:
        return f"WildcardPattern({self.text!r})"

    def __eq__(self, other: object) -> bool:
        return isinstance(other, WildcardPattern) and other.text == self.text

    def __hash__(self) -> int:
        return hash(self.text)

    def matches(self, path: str) -> bool:
        parts = tuple(p for p in path.replace("\\", "/").split("/") if p)
        return self._match(0, parts)

    def _match(self, index: int, parts: Tuple[str, ...]) -> bool:
        if index == len(self.parts):
            return not parts

        head = self.parts[index]
        if head == "**":
            if index == len(self.parts) - 1:
                return True
            return any(self._match(index + 1, parts[i:]) for i in range(len(parts) + 1))

        if not parts or not _segment_matches(head, parts[0]):
            return False
        return self._match(index + 1, parts[1:])


@dataclass(frozen=True)
class FilterConfig:
    """Every static table the filter consults, so tests can inject their own."""

    quick_ignore: FrozenSet[str] = QUICK_IGNORE
    ignore_patterns: Tuple[str, ...] = IGNORE_PATTERNS
    binary_extensions: FrozenSet[str] = BINARY_EXTENSIONS
    max_file_bytes: int = MAX_FILE_BYTES

    @classmethod
    def default(cls) -> "FilterConfig":
        return cls()


@dataclass
class PathFilter:
    """Ignore/binary/size decisions for root-relative, forward-slash paths."""

    config: FilterConfig = field(default_factory=FilterConfig.default)
    extra_specs: List["pathspec.PathSpec"] = field(default_factory=list)

    def __post_init__(self) -> None:
        self._patterns = [WildcardPattern(p) for p in self.config.ignore_patterns]
        self._binary = frozenset(ext.lower() for ext in self.config.binary_extensions)

    def is_quick_ignored(self, basename: str) -> bool:
        return basename in self.config.quick_ignore

    def is_pattern_ignored(self, relative_path: str, is_dir: bool = False) -> bool:
        if any(p.matches(relative_path) for p in self._patterns):
            return True
        # gitwildmatch marks directory-only patterns with a trailing slash
        candidate = relative_path + "/" if is_dir else relative_path
        return any(spec.match_file(candidate) for spec in self.extra_specs)

    def is_ignored(self, relative_path: str, is_dir: bool = False) -> bool:
        """Fast path on the basename first, then the pattern tier."""
        basename = PurePosixPath(relative_path).name
        if self.is_quick_ignored(basename):
            return True
        return self.is_pattern_ignored(relative_path, is_dir=is_dir)

    def is_binary(self, path: str) -> bool:
        return PurePosixPath(path).suffix.lower() in self._binary

    def is_oversized(self, size: int) -> bool:
        return size > self.config.max_file_bytes


# Ignore-file utilities
def _compile(lines: Iterable[str]) -> "pathspec.PathSpec":
    return pathspec.PathSpec.from_lines("gitwildmatch", lines)


def load_gitignore(root: Path) -> "pathspec.PathSpec":
    """Compile the project's ``.gitignore`` into a :class:`pathspec.PathSpec`."""
    gitignore_path = root / ".gitignore"
    if not gitignore_path.is_file():
        return _compile([])
    try:
        with gitignore_path.open("r", encoding="utf-8") as fh:
            return _compile(fh)
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigFileError(f"Could not read '{gitignore_path}': {e}")


def load_extra_patterns(config_path: Path) -> "pathspec.PathSpec":
    """Read newline-separated patterns from *config_path* and compile spec."""
    if not config_path.exists():
        raise ConfigFileError(f"Config file '{config_path}' does not exist")
    if not config_path.is_file():
        raise ConfigFileError(f"'{config_path}' is not a file")
    try:
        with config_path.open("r", encoding="utf-8") as fh:
            lines = [
                ln.strip()
                for ln in fh
                if ln.strip() and not ln.lstrip().startswith("#")
            ]
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigFileError(f"Could not read config file '{config_path}': {e}")
    return _compile(lines)


def build_filter(
    root: Path,
    config: Optional[FilterConfig] = None,
    config_file: Optional[Path] = None,
    use_gitignore: bool = True,
) -> PathFilter:
    """Assemble a :class:`PathFilter` from defaults, ``.gitignore`` and *config_file*."""
    specs: List["pathspec.PathSpec"] = []
    if use_gitignore:
        specs.append(load_gitignore(root))
    if config_file is not None:
        specs.append(load_extra_patterns(config_file))
    return PathFilter(config or FilterConfig.default(), specs)
