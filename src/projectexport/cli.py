"""
CLI entrypoint for projectexport package.
"""
import argparse
import dataclasses
import signal
import sys
import time
from pathlib import Path
from typing import List, Optional, Tuple

from colorama import Fore

from .core import (
    CancellationToken,
    DirectoryWalker,
    ProgressSink,
    read_document,
    render_structure,
    resolve_root,
    say,
)
from .errors import ExportError
from .filters import MAX_FILE_BYTES, FilterConfig, build_filter
from .formatters import (
    ExportFormat,
    QuickFormat,
    default_output_name,
    render,
    render_quick,
    select_lines,
)
from .languages import classify
from .sinks import copy_to_clipboard, write_document

EXIT_CANCELLED = 130


def _line_range(value: str) -> Tuple[Optional[int], Optional[int]]:
    """Parse ``A:B``, ``A:``, ``:B`` or ``A`` into 1-based line bounds."""
    start_text, sep, end_text = value.partition(":")
    if not sep:
        end_text = start_text
    try:
        start = int(start_text) if start_text else None
        end = int(end_text) if end_text else None
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid line range '{value}'")
    if (start is not None and start < 1) or (start and end and end < start):
        raise argparse.ArgumentTypeError(f"invalid line range '{value}'")
    return start, end


def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="projectexport",
        description="Export a project tree and its sources for external review.",
    )
    sub = p.add_subparsers(dest="command", required=True)

    e = sub.add_parser("export", help="Export the whole project")
    e.add_argument("--root", type=Path, default=Path("."), help="Project root dir")
    e.add_argument(
        "--format",
        choices=[f.value for f in ExportFormat],
        default=ExportFormat.MARKDOWN.value,
        help="Export format (default: markdown)",
    )
    e.add_argument(
        "--out",
        type=Path,
        help="Output file (default: <root>/project-export.<ext>)",
    )
    e.add_argument(
        "--config",
        type=Path,
        help="Path to a file with extra ignore patterns (one per line)",
    )
    e.add_argument(
        "--max-bytes",
        type=int,
        default=MAX_FILE_BYTES,
        help="Largest file whose contents are included (default 1 MiB)",
    )
    e.add_argument("--no-gitignore", action="store_true", help="Do not honour .gitignore")
    e.add_argument("-v", "--verbose", action="store_true", help="Verbose logging")

    q = sub.add_parser("quick", help="Format one file (or a line range) as a snippet")
    q.add_argument("file", type=Path, help="Document to export")
    q.add_argument(
        "--format",
        choices=[f.value for f in QuickFormat],
        default=QuickFormat.MARKDOWN.value,
        help="Snippet format (default: markdown)",
    )
    q.add_argument("--lines", type=_line_range, help="Line selection, e.g. 10:42")
    q.add_argument("--language", help="Code fence tag (default: from extension)")
    q.add_argument("--stdout", action="store_true", help="Print instead of copying")
    q.add_argument("-v", "--verbose", action="store_true", help="Verbose logging")
    return p.parse_args(argv)


def _progress_printer(verbose: bool) -> Optional[ProgressSink]:
    if not verbose:
        return None
    done = 0.0

    def _report(message: str, increment: float) -> None:
        nonlocal done
        done += increment
        say(f"{min(done, 100.0):5.1f}% {message}", Fore.CYAN)

    return _report


def run_export(ns: argparse.Namespace) -> int:
    root = resolve_root(ns.root)
    fmt = ExportFormat(ns.format)
    out_path = (ns.out or root / default_output_name(fmt)).resolve()

    config = dataclasses.replace(FilterConfig.default(), max_file_bytes=ns.max_bytes)
    # never export a previous export
    try:
        own = out_path.relative_to(root).as_posix()
        config = dataclasses.replace(config, ignore_patterns=config.ignore_patterns + (own,))
    except ValueError:
        pass

    path_filter = build_filter(root, config, ns.config, use_gitignore=not ns.no_gitignore)
    if ns.config:
        say(f"Loaded extra patterns from {ns.config}", verbose=ns.verbose)
    walker = DirectoryWalker(path_filter, verbose=ns.verbose)

    cancel = CancellationToken()
    previous = signal.signal(signal.SIGINT, lambda *_: cancel.cancel())
    try:
        started = time.monotonic()
        say(f"Scanning {root} …", verbose=ns.verbose)
        result = walker.collect_files(root, progress=_progress_printer(ns.verbose), cancel=cancel)
        if result.cancelled:
            say("Export cancelled", Fore.CYAN)
            return EXIT_CANCELLED

        say(f"Found {len(result.files)} files. Generating output …", verbose=ns.verbose)
        structure = render_structure(walker.build_structure(root, cancel))
        if cancel.cancelled:
            say("Export cancelled", Fore.CYAN)
            return EXIT_CANCELLED
        text = render(result.files, structure, fmt)
    finally:
        signal.signal(signal.SIGINT, previous)

    written = write_document(out_path, text)
    say(
        f"Done → {written}. Processed {len(result.files)} files in "
        f"{time.monotonic() - started:.1f}s, {len(result.skipped)} skipped.",
        Fore.GREEN,
    )
    return 0


def run_quick(ns: argparse.Namespace) -> int:
    path = ns.file.resolve()
    start, end = ns.lines or (None, None)
    content = select_lines(read_document(path), start, end)
    language = ns.language if ns.language is not None else classify(path)
    snippet = render_quick(str(path), language, content, ns.format)

    if ns.stdout:
        print(snippet)
        return 0
    copy_to_clipboard(snippet)
    say(f"Quick export ({ns.format}) copied to clipboard!", Fore.GREEN)
    return 0


def main(argv: Optional[List[str]] = None) -> None:
    try:
        ns = _parse_args(argv)
        handler = run_quick if ns.command == "quick" else run_export
        try:
            code = handler(ns)
        except ExportError as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(1)
        sys.exit(code)

    except KeyboardInterrupt:
        print("\nCancelled.", file=sys.stderr)
        sys.exit(EXIT_CANCELLED)
    except Exception as e:
        print(f"Unexpected error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
