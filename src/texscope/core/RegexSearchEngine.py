# texscope/core/RegexSearchEngine.py
"""RegexSearchEngine Module
=========================
Find and replace inside a single open document.

The engine is stateless: every call is a pure function of the document text
and the query. A query term is either taken literally (all regular expression
metacharacters escaped) or compiled as a Python regular expression, and is
matched case-insensitively unless the query asks otherwise.

Key Features:
-------------
- `find_all` produces an ordered list of `Match` objects, one per occurrence,
  top-to-bottom and left-to-right.
- `replace_one` replaces exactly one occurrence, selected from a previous
  `find_all` result, leaving every other occurrence untouched.
- `replace_all` replaces every occurrence in one pass.
- Replacement text is always inserted literally; `\\1` or `\\g<name>` are not
  expanded.
- A malformed regular expression never raises: it yields no matches and leaves
  the document unchanged.

Scanning is done by hand with `Pattern.search(line, pos)` rather than with
`finditer`/`sub`, so that zero-length matches always advance the scan by one
character. `find_all` and `replace_one` scan line by line. `replace_all` scans
the whole document, so a pattern that spans ``\\n`` or relies on ``^``/``$`` can
match there differently than in `find_all`.
"""

import logging
import re
from dataclasses import dataclass
from typing import Iterator, Optional

from texscope.utils.utils import truncate_to_width


logger = logging.getLogger("texscope")

DEFAULT_CONTEXT_WIDTH = 60


@dataclass(frozen=True)
class Match:
    """One occurrence of a search term.

    `line` and `column` are 1-based. `context_line` is the stripped source line,
    cut to a display width, suitable for a results list.
    """

    line: int
    column: int
    matched_text: str
    context_line: str


@dataclass(frozen=True)
class SearchQuery:
    term: str
    case_sensitive: bool = False
    use_regex: bool = False


def compile_pattern(query: SearchQuery) -> Optional[re.Pattern]:
    """Builds the pattern for `query`, or None if the term is not a valid regex."""
    source = query.term if query.use_regex else re.escape(query.term)
    flags = 0 if query.case_sensitive else re.IGNORECASE
    try:
        return re.compile(source, flags)
    except re.error as e:
        logger.warning(f"Invalid search pattern '{query.term}': {e}")
        return None


def iter_spans(pattern: re.Pattern, text: str) -> Iterator[tuple[int, int]]:
    """Yields `(start, end)` of every occurrence of `pattern` in `text`.

    After a zero-length match the scan position moves one character forward,
    so patterns such as ``x*`` terminate.
    """
    pos = 0
    length = len(text)
    while pos <= length:
        found = pattern.search(text, pos)
        if found is None:
            break
        start, end = found.span()
        yield start, end
        pos = end + 1 if end == start else end


# ==================== RegexSearchEngine Class ====================
class RegexSearchEngine:
    """Find, replace-one and replace-all over a document held as a single string."""

    def __init__(self, context_width: int = DEFAULT_CONTEXT_WIDTH) -> None:
        self.context_width = context_width

    def find_all(self, document: str, query: SearchQuery) -> list[Match]:
        """Returns every occurrence of the query term in `document`.

        The document is split on ``\\n`` and each line is scanned on its own,
        so no match ever spans a line break.

        Args:
            document: Full document text.
            query: The search term and its flags.

        Returns:
            list[Match]: Matches in top-to-bottom, left-to-right order. Empty
            when the term is empty or the regular expression does not compile.
        """
        if not query.term or not document:
            return []
        pattern = compile_pattern(query)
        if pattern is None:
            return []

        found: list[Match] = []
        for line_index, line_text in enumerate(document.split("\n")):
            context = None
            for start, end in iter_spans(pattern, line_text):
                if context is None:
                    context = truncate_to_width(line_text.strip(), self.context_width)
                found.append(
                    Match(
                        line=line_index + 1,
                        column=start + 1,
                        matched_text=line_text[start:end],
                        context_line=context,
                    )
                )

        logger.debug(f"Found {len(found)} match(es) for search term '{query.term}'.")
        return found

    def replace_one(
        self,
        document: str,
        matches: list[Match],
        selected_index: int,
        query: SearchQuery,
        replacement: str,
    ) -> str:
        """Replaces only the occurrence `matches[selected_index]`.

        The selected match's ordinal among the matches on its own line is
        computed from `matches`; the line is then re-scanned and only the
        occurrence with that ordinal is replaced. Every other line is returned
        unchanged.

        Returns:
            str: The new document, or `document` itself when there is nothing to
            replace (no matches, empty term, index out of range, invalid regex).
        """
        if not matches or not query.term:
            return document
        if not 0 <= selected_index < len(matches):
            return document

        target = matches[selected_index]
        ordinal = sum(1 for m in matches[:selected_index] if m.line == target.line)

        lines = document.split("\n")
        if not 1 <= target.line <= len(lines):
            return document
        pattern = compile_pattern(query)
        if pattern is None:
            return document

        line_text = lines[target.line - 1]
        for occurrence, (start, end) in enumerate(iter_spans(pattern, line_text)):
            if occurrence == ordinal:
                lines[target.line - 1] = line_text[:start] + replacement + line_text[end:]
                logger.debug(
                    f"Replaced occurrence {ordinal + 1} on line {target.line}."
                )
                return "\n".join(lines)

        logger.debug(
            f"Occurrence {ordinal + 1} no longer exists on line {target.line}; nothing replaced."
        )
        return document

    def replace_all(self, document: str, query: SearchQuery, replacement: str) -> str:
        """Replaces every occurrence of the query term across the whole document."""
        if not query.term:
            return document
        pattern = compile_pattern(query)
        if pattern is None:
            return document

        pieces: list[str] = []
        last_end = 0
        count = 0
        for start, end in iter_spans(pattern, document):
            pieces.append(document[last_end:start])
            pieces.append(replacement)
            last_end = end
            count += 1
        if count == 0:
            return document
        pieces.append(document[last_end:])
        logger.info(f"Replaced {count} occurrence(s) of '{query.term}'.")
        return "".join(pieces)

    def count_matches(self, document: str, query: SearchQuery) -> int:
        return len(self.find_all(document, query))


def next_index(current: int, total: int) -> int:
    """Moves a match-list selection down, clamped to the last match."""
    if total <= 0:
        return 0
    return min(total - 1, current + 1)


def previous_index(current: int, total: int) -> int:
    """Moves a match-list selection up, clamped to the first match."""
    if total <= 0:
        return 0
    return max(0, current - 1)
