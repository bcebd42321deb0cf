# src/texscope/core/__init__.py
"""Public facade for texscope.core: re-export main classes from CamelCase modules.

Keeps Java-like file names (RegexSearchEngine.py, MultiFileSearchIndex.py, ...),
but provides flat imports for convenience and stability.
"""

# Re-export classes/symbols from CamelCase modules
from .AsyncEngine import AsyncEngine  # noqa: F401
from .FileEncodingDetector import FileEncodingDetector, FileInfo  # noqa: F401
from .FuzzyMatcher import Command, filter_commands, filter_items, matches  # noqa: F401
from .MultiFileSearchIndex import (  # noqa: F401
    MultiFileSearchIndex,
    SearchResult,
    SearchSession,
)
from .RegexSearchEngine import Match, RegexSearchEngine, SearchQuery  # noqa: F401


__all__ = [
    "AsyncEngine",
    "Command",
    "FileEncodingDetector",
    "FileInfo",
    "Match",
    "MultiFileSearchIndex",
    "RegexSearchEngine",
    "SearchQuery",
    "SearchResult",
    "SearchSession",
    "filter_commands",
    "filter_items",
    "matches",
]
