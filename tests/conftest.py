"""Pytest configuration with shared fixtures for the texscope tests."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest

from tests.stubs import StubFileSystem


@pytest.fixture
def mock_config() -> dict[str, dict[str, Any]]:
    """Provide a baseline configuration with a short debounce for fast tests.

    Returns:
        dict[str, dict[str, Any]]: Application configuration dictionary.
    """
    return {
        "search": {
            "debounce_ms": 20,
            "max_results": 100,
            "max_results_per_file": 10,
            "max_depth": 10,
            "min_query_length": 2,
        },
        "logging": {"log_to_console": False},
    }


@pytest.fixture
def stub_fs() -> StubFileSystem:
    """Provide a small in-memory project.

    Layout::

        /proj/README.md
        /proj/Makefile                  (no dot: not a candidate)
        /proj/.env                      (hidden)
        /proj/node_modules/lib/index.js (excluded dir)
        /proj/src/app.py
        /proj/src/util.ts
        /proj/src/.cache/data.txt       (hidden dir)
    """
    return StubFileSystem(
        {
            "/proj/README.md": b"# Project\nSearch the needle here.\n",
            "/proj/Makefile": b"all:\n\techo needle\n",
            "/proj/.env": b"SECRET=needle\n",
            "/proj/node_modules/lib/index.js": b"const needle = 1;\n",
            "/proj/src/app.py": b"def needle():\n    return 'needle needle'\n",
            "/proj/src/util.ts": b"export const x = 1;\n",
            "/proj/src/.cache/data.txt": b"needle\n",
        }
    )


@pytest.fixture
def project_tree(tmp_path: Path) -> Path:
    """Create a real project tree on disk for integration-style tests.

    Returns:
        Path: Root of the temporary project.
    """
    (tmp_path / "src").mkdir()
    (tmp_path / "src" / "main.py").write_text(
        "import os\n\ndef main():\n    print('hello world')\n", encoding="utf-8"
    )
    (tmp_path / "notes.txt").write_text("Hello again\nnothing here\n", encoding="utf-8")
    (tmp_path / ".git").mkdir()
    (tmp_path / ".git" / "config.txt").write_text("hello hidden\n", encoding="utf-8")
    (tmp_path / "node_modules").mkdir()
    (tmp_path / "node_modules" / "pkg.js").write_text("hello vendored\n", encoding="utf-8")
    return tmp_path
