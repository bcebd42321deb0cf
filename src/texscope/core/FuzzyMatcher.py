# texscope/core/FuzzyMatcher.py
"""FuzzyMatcher Module
====================
Case-insensitive ordered-subsequence matching for short lists such as the
command palette and the quick-open file list.

A pattern matches a text when every character of the pattern appears in the
text in the same relative order, not necessarily contiguous. No score is
computed; callers that need ranking have to add it themselves.
"""

from dataclasses import dataclass
from typing import Any, Callable, Iterable, Optional, TypeVar


T = TypeVar("T")


@dataclass(frozen=True)
class Command:
    """A command palette entry."""

    id: str
    label: str
    description: str = ""
    category: str = ""
    action: Optional[Callable[[], Any]] = None


def matches(pattern: str, text: str) -> bool:
    """Returns True if `pattern` is a case-insensitive subsequence of `text`."""
    if not pattern:
        return True

    pattern_lower = pattern.lower()
    pattern_idx = 0
    for char in text.lower():
        if char == pattern_lower[pattern_idx]:
            pattern_idx += 1
            if pattern_idx == len(pattern_lower):
                return True
    return False


def filter_items(
    pattern: str, items: Iterable[T], key: Optional[Callable[[T], str]] = None
) -> list[T]:
    """Keeps the items whose `key(item)` fuzzy-matches `pattern`, in input order."""
    key_func = key or str
    return [item for item in items if matches(pattern, key_func(item))]


def filter_commands(pattern: str, commands: Iterable[Command]) -> list[Command]:
    """Keeps the commands whose label, description or category matches."""
    return [
        cmd
        for cmd in commands
        if matches(pattern, cmd.label)
        or matches(pattern, cmd.description)
        or matches(pattern, cmd.category)
    ]
