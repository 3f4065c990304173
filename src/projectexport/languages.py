"""
Extension to display-tag lookup used for fenced code blocks.
"""

from __future__ import annotations

from pathlib import PurePath
from typing import Mapping

LANGUAGE_MAP: Mapping[str, str] = {
    ".js": "javascript",
    ".ts": "typescript",
    ".jsx": "javascript",
    ".tsx": "typescript",
    ".py": "python",
    ".java": "java",
    ".html": "html",
    ".css": "css",
    ".scss": "scss",
    ".json": "json",
    ".md": "markdown",
    ".xml": "xml",
    ".yaml": "yaml",
    ".yml": "yaml",
    ".toml": "toml",
    ".sh": "shell",
    ".bash": "shell",
    ".php": "php",
    ".rb": "ruby",
    ".go": "go",
    ".rs": "rust",
    ".cpp": "cpp",
    ".c": "c",
    ".cs": "csharp",
    ".vue": "vue",
    ".svelte": "svelte",
    ".sql": "sql",
    ".graphql": "graphql",
    ".proto": "protobuf",
}


def classify(path: str | PurePath, table: Mapping[str, str] = LANGUAGE_MAP) -> str:
    return table.get(PurePath(path).suffix.lower(), "")
