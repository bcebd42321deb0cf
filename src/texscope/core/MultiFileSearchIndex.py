# texscope/core/MultiFileSearchIndex.py
"""MultiFileSearchIndex Module
============================
This module provides project-wide text search ("search in files").

It works in two phases:

- **Enumeration**: `MultiFileSearchIndex.enumerate` walks the project tree
  through a filesystem collaborator and returns the candidate file list. Hidden
  entries (name starting with ``.``) and excluded directories
  (``node_modules`` by default) are skipped at every depth, and the walk stops at
  `max_depth`.
- **Search**: `MultiFileSearchIndex.search` reads the candidates in order and
  records, for each line, the first case-insensitive occurrence of the query.
  A file contributes at most `max_results_per_file` results and the whole search
  stops at `max_results`.

`SearchSession` puts both phases behind a debounced, last-query-wins interface
for an interactive search box. It owns the candidate cache (filled by an
explicit `refresh()`) and a single pending `asyncio.Task`; every new query
cancels the previous task before scheduling its own.

No operation here raises on I/O problems: unreadable directories and files are
logged and skipped.
"""

import asyncio
import logging
import os
import re
from dataclasses import dataclass
from typing import Any, Callable, Optional

from texscope.integrations.FileSystemBridge import FileSystem, FileSystemBridge
from texscope.utils.logging_config import SEARCH_TRACE_LOGGER
from texscope.utils.utils import decode_bytes, get_search_settings, truncate_to_width


logger = logging.getLogger("texscope")

ResultsCallback = Callable[[str, list["SearchResult"]], None]


@dataclass(frozen=True)
class SearchResult:
    """A single line hit in a project-wide search. `line`/`column` are 1-based."""

    file_path: str
    relative_path: str
    line: int
    column: int
    matched_text: str
    context_line: str


# ==================== MultiFileSearchIndex Class ====================
class MultiFileSearchIndex:
    """Enumerates candidate files and scans them for a query.

    Attributes:
        filesystem (FileSystem): Collaborator providing `read_bytes` and `list_dir`.
        max_depth (int): Deepest directory level visited; the root is level 0.
        max_results (int): Cap on results for a whole search.
        max_results_per_file (int): Cap on results contributed by one file.
        min_query_length (int): Shorter queries return no results.
        context_width (int): Display width of `SearchResult.context_line`.
        excluded_dirs (set[str]): Entry names skipped during enumeration.
        text_extensions (set[str]): Lower-case extensions (with dot) always admitted.
    """

    def __init__(
        self,
        filesystem: Optional[FileSystem] = None,
        config: Optional[dict[str, Any]] = None,
    ) -> None:
        settings = get_search_settings(config)
        self.filesystem: FileSystem = filesystem or FileSystemBridge()
        self.max_depth: int = int(settings["max_depth"])
        self.max_results: int = int(settings["max_results"])
        self.max_results_per_file: int = int(settings["max_results_per_file"])
        self.min_query_length: int = int(settings["min_query_length"])
        self.context_width: int = int(settings["context_width"])
        self.excluded_dirs: set[str] = set(settings["excluded_dirs"])
        self.text_extensions: set[str] = {
            str(ext).lower() for ext in settings["text_extensions"]
        }

    # --- Enumeration ---------------------------------------------------
    def enumerate(self, root: str) -> list[str]:
        """Returns candidate file paths under `root`, depth-first, in listing order."""
        files: list[str] = []
        self._collect(root, 0, files)
        logger.info(f"Enumerated {len(files)} candidate file(s) under '{root}'.")
        return files

    def _collect(self, dir_path: str, depth: int, files: list[str]) -> None:
        if depth > self.max_depth:
            return
        try:
            entries = self.filesystem.list_dir(dir_path)
        except OSError as e:
            logger.debug(f"Skipping unreadable directory '{dir_path}': {e}")
            return

        for entry in entries:
            if entry.name.startswith(".") or entry.name in self.excluded_dirs:
                continue
            full_path = os.path.join(dir_path, entry.name)
            if entry.is_dir:
                self._collect(full_path, depth + 1, files)
            elif self.is_candidate(entry.name):
                files.append(full_path)

    def is_candidate(self, name: str) -> bool:
        """Extension in the allow-list, or any dotted name.

        The dotted-name rule admits files of unknown type. Their bytes are
        decoded leniently, falling back to latin-1.
        """
        extension = os.path.splitext(name)[1].lower()
        return extension in self.text_extensions or "." in name

    # --- Search --------------------------------------------------------
    def is_query_searchable(self, query: str) -> bool:
        return bool(query.strip()) and len(query) >= self.min_query_length

    def search(self, query: str, candidates: list[str], root: Optional[str] = None) -> list[SearchResult]:
        """Scans `candidates` in order for `query`.

        Only the first occurrence on each line is recorded. Scanning a file stops
        after `max_results_per_file` hits and the whole search stops once
        `max_results` hits have been collected.

        Args:
            query: Literal text, matched case-insensitively.
            candidates: File paths, usually from `enumerate`.
            root: Base for `SearchResult.relative_path`. Defaults to the
                common directory of the candidates.

        Returns:
            list[SearchResult]: Hits in file-then-line order.
        """
        if not self.is_query_searchable(query):
            return []
        if root is None:
            root = _common_root(candidates)

        needle = re.compile(re.escape(query), re.IGNORECASE)
        results: list[SearchResult] = []

        for file_path in candidates:
            if len(results) >= self.max_results:
                break
            try:
                content = decode_bytes(self.filesystem.read_bytes(file_path))
            except OSError as e:
                SEARCH_TRACE_LOGGER.debug(f"skip {file_path}: {e}")
                continue
            SEARCH_TRACE_LOGGER.debug(f"scan {file_path}")

            relative_path = os.path.relpath(file_path, root) if root else file_path
            file_hits = 0
            for line_index, line_text in enumerate(content.split("\n")):
                if file_hits >= self.max_results_per_file:
                    break
                found = needle.search(line_text)
                if found is None:
                    continue
                results.append(
                    SearchResult(
                        file_path=file_path,
                        relative_path=relative_path,
                        line=line_index + 1,
                        column=found.start() + 1,
                        matched_text=found.group(0),
                        context_line=truncate_to_width(line_text.strip(), self.context_width),
                    )
                )
                file_hits += 1
                if len(results) >= self.max_results:
                    break

        logger.debug(
            f"Search for '{query}' over {len(candidates)} file(s) produced {len(results)} result(s)."
        )
        return results


def _common_root(paths: list[str]) -> str:
    if not paths:
        return ""
    try:
        return os.path.commonpath([os.path.dirname(p) or "." for p in paths])
    except ValueError:
        return ""


# ==================== SearchSession Class ====================
class SearchSession:
    """Debounced, last-query-wins search over a cached candidate list.

    The session must be driven from a running asyncio event loop. Each call to
    `update_query` cancels the pending search, then either clears the results
    right away (query too short) or schedules a new search after `debounce`
    seconds. A search that has started runs to completion synchronously.

    Attributes:
        index (MultiFileSearchIndex): Enumerates and scans files.
        root (str): Project root being searched.
        debounce (float): Delay in seconds before a query is searched.
        candidates (list[str]): Cached enumeration result, filled by `refresh`.
        results (list[SearchResult]): Results of the latest completed query.
        query (str): The latest query passed to `update_query`.
        on_results (Optional[ResultsCallback]): Called with `(query, results)`
            whenever the result set changes.
    """

    def __init__(
        self,
        index: MultiFileSearchIndex,
        root: str,
        debounce: Optional[float] = None,
        on_results: Optional[ResultsCallback] = None,
        config: Optional[dict[str, Any]] = None,
    ) -> None:
        if debounce is None:
            debounce = get_search_settings(config)["debounce_ms"] / 1000.0
        self.index = index
        self.root = root
        self.debounce: float = debounce
        self.on_results = on_results
        self.candidates: list[str] = []
        self.results: list[SearchResult] = []
        self.query: str = ""
        self.is_searching = False
        self._pending: Optional[asyncio.Task[None]] = None

    @property
    def pending(self) -> Optional["asyncio.Task[None]"]:
        return self._pending

    def refresh(self) -> list[str]:
        """Re-enumerates the root and resets the query state."""
        self.cancel()
        self.candidates = self.index.enumerate(self.root)
        self.query = ""
        self.results = []
        return self.candidates

    def update_query(self, query: str) -> Optional["asyncio.Task[None]"]:
        """Replaces the current query.

        Returns:
            The scheduled search task, or None if the query was too short and the
            results were cleared immediately.
        """
        self.cancel()
        self.query = query

        if not self.index.is_query_searchable(query):
            self._publish(query, [])
            return None

        loop = asyncio.get_running_loop()
        task = loop.create_task(self._run_after_delay(query))
        self._pending = task
        return task

    async def _run_after_delay(self, query: str) -> None:
        await asyncio.sleep(self.debounce)
        if query != self.query:
            return
        self.is_searching = True
        try:
            results = self.index.search(query, self.candidates, root=self.root)
        finally:
            self.is_searching = False
        self._pending = None
        self._publish(query, results)

    def _publish(self, query: str, results: list[SearchResult]) -> None:
        self.results = results
        if self.on_results is not None:
            self.on_results(query, results)

    def cancel(self) -> None:
        """Drops the pending search, if any."""
        if self._pending is not None and not self._pending.done():
            self._pending.cancel()
        self._pending = None

    def close(self) -> None:
        self.cancel()
        self.candidates = []
        self.results = []
        self.query = ""
