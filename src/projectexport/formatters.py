"""
Serialisers for export documents and quick-export snippets.
"""

from __future__ import annotations

import datetime
import enum
import json
import re
from dataclasses import dataclass
from typing import Dict, Iterable, Optional, Sequence, Tuple

from .core import FileRecord


class ExportFormat(str, enum.Enum):
    MARKDOWN = "markdown"
    JSON = "json"
    TEXT = "text"


class QuickFormat(str, enum.Enum):
    MARKDOWN = "markdown"
    TEXT = "text"


EXTENSIONS: Dict[ExportFormat, str] = {
    ExportFormat.MARKDOWN: "md",
    ExportFormat.JSON: "json",
    ExportFormat.TEXT: "txt",
}

TEXT_SEPARATOR = "=" * 40


@dataclass(frozen=True)
class ExportDocument:
    exported_at: datetime.datetime
    structure: str
    files: Tuple[FileRecord, ...]


def default_output_name(fmt: ExportFormat | str) -> str:
    return f"project-export.{EXTENSIONS[ExportFormat(fmt)]}"


def _iso(ts: datetime.datetime) -> str:
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=datetime.timezone.utc)
    return ts.astimezone(datetime.timezone.utc).isoformat().replace("+00:00", "Z")


def _parse_iso(text: str) -> datetime.datetime:
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return datetime.datetime.fromisoformat(text)


def _fence_for(content: str) -> str:
    """Shortest backtick fence (at least three) that *content* cannot close."""
    longest = max((len(run) for run in re.findall(r"`+", content)), default=0)
    return "`" * max(3, longest + 1)


# Full export
def _render_markdown(doc: ExportDocument) -> str:
    fence = _fence_for(doc.structure)
    parts = [
        "# Project Export\n\n",
        f"## Project Structure\n\n{fence}\n{doc.structure}\n{fence}\n\n",
        "## Files\n\n",
    ]
    for f in doc.files:
        fence = _fence_for(f.content)
        parts.append(f"### {f.path}\n")
        parts.append(f"Last modified: {_iso(f.last_modified)}\n")
        parts.append(f"Size: {f.size / 1024:.2f} KB\n\n")
        parts.append(f"{fence}{f.language or ''}\n{f.content}\n{fence}\n\n")
    return "".join(parts)


def _render_json(doc: ExportDocument) -> str:
    payload = {
        "exportDate": _iso(doc.exported_at),
        "structure": doc.structure,
        "files": [
            {
                "path": f.path,
                "content": f.content,
                "language": f.language,
                "size": f.size,
                "lastModified": _iso(f.last_modified),
            }
            for f in doc.files
        ],
    }
    return json.dumps(payload, indent=2, ensure_ascii=False)


def _render_text(doc: ExportDocument) -> str:
    # banner lines inside file content are not escaped
    parts = [
        "PROJECT EXPORT\n\n",
        f"PROJECT STRUCTURE:\n\n{doc.structure}\n\n",
        "FILES:\n\n",
    ]
    for f in doc.files:
        parts.append(f"=== {f.path} ===\n\n")
        parts.append(f"{f.content}\n\n")
        parts.append(f"{TEXT_SEPARATOR}\n\n")
    return "".join(parts)


_RENDERERS = {
    ExportFormat.MARKDOWN: _render_markdown,
    ExportFormat.JSON: _render_json,
    ExportFormat.TEXT: _render_text,
}


def render(
    files: Iterable[FileRecord],
    structure: str,
    fmt: ExportFormat | str,
    exported_at: Optional[datetime.datetime] = None,
) -> str:
    """Render *files* and the pre-rendered *structure* as one export document."""
    doc = ExportDocument(
        exported_at=exported_at or datetime.datetime.now(datetime.timezone.utc),
        structure=structure,
        files=tuple(files),
    )
    return _RENDERERS[ExportFormat(fmt)](doc)


def parse_json_document(text: str) -> ExportDocument:
    """Read back a document produced by the JSON renderer."""
    data = json.loads(text)
    return ExportDocument(
        exported_at=_parse_iso(data["exportDate"]),
        structure=data["structure"],
        files=tuple(
            FileRecord(
                path=f["path"],
                content=f["content"],
                language=f["language"],
                size=f["size"],
                last_modified=_parse_iso(f["lastModified"]),
            )
            for f in data["files"]
        ),
    )


# Quick export
def select_lines(text: str, start: Optional[int] = None, end: Optional[int] = None) -> str:
    """
    Return lines *start*..*end* (1-based, inclusive) of *text*.

    With neither bound given the whole text is returned; an open bound
    extends to the start or end of the document.
    """
    if start is None and end is None:
        return text
    lines: Sequence[str] = text.splitlines(keepends=True)
    lo = max((start or 1) - 1, 0)
    hi = len(lines) if end is None else end
    return "".join(lines[lo:hi]).rstrip("\r\n")


def render_quick(path: str, language: str, content: str, fmt: QuickFormat | str) -> str:
    if QuickFormat(fmt) is QuickFormat.TEXT:
        return f"FILE: {path}\n\n{content}"
    fence = _fence_for(content)
    return f"# Quick Export\n\n## File: {path}\n\n{fence}{language}\n{content}\n{fence}"
