#!/usr/bin/env python3
# /texscope/main.py
"""
texscope Command-Line Entry Point
=================================

A thin consumer of the texscope core, for use outside the editor UI:

    main.py info <file>                        encoding, line endings, indentation
    main.py find <file> <term> [--regex] [--case-sensitive]
    main.py grep <query> [root]                project-wide search
    main.py fuzzy <pattern> [root]             fuzzy-filter project file paths

Startup sequence:
1) Path Setup: ensures the texscope package is importable from a source checkout.
2) Configuration & Logging: loads config and initializes logging.
3) Command dispatch: runs the requested subcommand and prints its results.
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from typing import Any, Optional, TextIO

# --- Step 1: Set up the Python Path ---
project_root = os.path.dirname(os.path.abspath(__file__))
src_dir = os.path.join(project_root, "src")
if os.path.isdir(src_dir) and src_dir not in sys.path:
    sys.path.insert(0, src_dir)

from texscope.core.FileEncodingDetector import (  # noqa: E402
    FileEncodingDetector,
    format_encoding,
    format_indent,
    format_line_ending,
)
from texscope.core.FuzzyMatcher import filter_items  # noqa: E402
from texscope.core.MultiFileSearchIndex import MultiFileSearchIndex  # noqa: E402
from texscope.core.RegexSearchEngine import RegexSearchEngine, SearchQuery  # noqa: E402
from texscope.integrations.FileSystemBridge import FileSystemBridge  # noqa: E402
from texscope.utils.utils import decode_bytes  # noqa: E402


logger = logging.getLogger("texscope")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="texscope", description="Text search and file introspection."
    )
    sub = parser.add_subparsers(dest="command", required=True)

    p_info = sub.add_parser("info", help="Show encoding, line endings and indentation.")
    p_info.add_argument("file")

    p_find = sub.add_parser("find", help="Find occurrences of a term in one file.")
    p_find.add_argument("file")
    p_find.add_argument("term")
    p_find.add_argument("--regex", action="store_true", help="Treat the term as a regular expression.")
    p_find.add_argument("--case-sensitive", action="store_true")

    p_grep = sub.add_parser("grep", help="Search every text file under a directory.")
    p_grep.add_argument("query")
    p_grep.add_argument("root", nargs="?", default=".")

    p_fuzzy = sub.add_parser("fuzzy", help="Fuzzy-filter file paths under a directory.")
    p_fuzzy.add_argument("pattern")
    p_fuzzy.add_argument("root", nargs="?", default=".")

    return parser


def run(argv: list[str], config: dict[str, Any], out: Optional[TextIO] = None) -> int:
    """Runs one subcommand and returns the process exit code."""
    out = out or sys.stdout
    args = build_parser().parse_args(argv)
    filesystem = FileSystemBridge()

    if args.command == "info":
        info = FileEncodingDetector(filesystem).detect(args.file)
        indent = format_indent(info) or "-"
        print(f"{format_encoding(info)}  {format_line_ending(info)}  {indent}", file=out)
        return 0

    if args.command == "find":
        try:
            document = decode_bytes(filesystem.read_bytes(args.file))
        except OSError as e:
            logger.warning(f"Could not read '{args.file}': {e}")
            print(f"Cannot read {args.file}", file=out)
            return 1
        engine = RegexSearchEngine(config.get("find", {}).get("context_width", 60))
        query = SearchQuery(args.term, case_sensitive=args.case_sensitive, use_regex=args.regex)
        for match in engine.find_all(document, query):
            print(f"{match.line}:{match.column}: {match.context_line}", file=out)
        return 0

    index = MultiFileSearchIndex(filesystem, config)
    candidates = index.enumerate(args.root)

    if args.command == "grep":
        for result in index.search(args.query, candidates, root=args.root):
            print(
                f"{result.relative_path}:{result.line}:{result.column}: {result.context_line}",
                file=out,
            )
        return 0

    relative = [os.path.relpath(path, args.root) for path in candidates]
    for path in filter_items(args.pattern, relative):
        print(path, file=out)
    return 0


def start() -> None:
    # --- Step 2: Immediate Logging and Configuration Setup ---
    try:
        from texscope.utils.logging_config import setup_logging
        from texscope.utils.utils import load_config

        config: dict[str, Any] = load_config()
        setup_logging(config)
    except Exception as e:
        print(f"FATAL: Could not initialize configuration or logging system: {e}", file=sys.stderr)
        import traceback
        traceback.print_exc()
        sys.exit(1)

    logger.info("texscope starting up...")
    # --- Step 3: Command dispatch ---
    try:
        sys.exit(run(sys.argv[1:], config))
    except KeyboardInterrupt:
        sys.exit(130)


if __name__ == "__main__":
    start()
