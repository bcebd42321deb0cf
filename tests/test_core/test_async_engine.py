"""`tests/test_core/test_async_engine.py`
=========================================

Unit tests for the AsyncEngine class.

This test suite validates the following aspects of AsyncEngine:

1. **Initialization**
   - Proper setup of internal queues and configuration.

2. **Thread and event loop management**
   - Starting the engine launches a background thread with an active event loop.
   - Stopping the engine shuts down the thread cleanly.

3. **Task processing**
   - `search_open` enumerates the project and reports the file count.
   - `search_query` delivers debounced results; superseded queries never publish.
   - `file_info` reports the detected `FileInfo`.
   - Invalid or out-of-order task data results in `task_error` messages.

4. **Testing methodology**
   - Uses the in-memory `StubFileSystem` instead of the real disk.
   - Reads replies from the UI queue with a timeout.
"""

import queue
import time
from typing import Any, Generator

import pytest

from texscope.core.AsyncEngine import AsyncEngine
from texscope.core.FileEncodingDetector import FileInfo
from tests.stubs import StubFileSystem


QueueItem = dict[str, Any]


@pytest.fixture
def engine_instance(
    stub_fs: StubFileSystem, mock_config: dict[str, Any]
) -> Generator[tuple[AsyncEngine, queue.Queue[QueueItem]], None, None]:
    """Create and provide an AsyncEngine instance over the stub filesystem.

    Yields:
        tuple[AsyncEngine, queue.Queue[QueueItem]]:
            - The AsyncEngine instance.
            - The UI queue capturing engine output messages.
    """
    to_ui_queue: queue.Queue[QueueItem] = queue.Queue()
    engine = AsyncEngine(to_ui_queue=to_ui_queue, config=mock_config, filesystem=stub_fs)
    yield engine, to_ui_queue

    # Ensure proper cleanup after each test
    if engine.thread and engine.thread.is_alive():
        engine.stop()


class TestAsyncEngine:
    """Group of tests for the AsyncEngine class."""

    EngineFixture = tuple[AsyncEngine, queue.Queue[QueueItem]]

    def test_initialization(self, engine_instance: EngineFixture) -> None:
        """Test: Verify that AsyncEngine initializes correctly."""
        engine, to_ui_queue = engine_instance
        assert engine.to_ui_queue is to_ui_queue
        assert isinstance(engine.from_ui_queue, queue.Queue)
        assert engine.session is None

    def test_start_and_stop(self, engine_instance: EngineFixture) -> None:
        """Test: Verify starting and stopping of the background thread."""
        engine, _ = engine_instance
        engine.start()
        time.sleep(0.1)

        assert engine.thread is not None and engine.thread.is_alive()
        assert engine.loop is not None and engine.loop.is_running()

        engine.stop()
        assert not engine.thread.is_alive()

    def test_search_open_and_query(self, engine_instance: EngineFixture) -> None:
        """Test: Opening a session and searching delivers results to the UI queue."""
        engine, to_ui_queue = engine_instance
        engine.start()

        engine.submit_task({"type": "search_open", "root": "/proj"})
        ready = to_ui_queue.get(timeout=2)
        assert ready == {"type": "search_index_ready", "root": "/proj", "file_count": 3}

        engine.submit_task({"type": "search_query", "query": "needle"})
        reply = to_ui_queue.get(timeout=2)
        assert reply["type"] == "search_results"
        assert reply["query"] == "needle"
        assert len(reply["results"]) == 3

    def test_only_latest_query_publishes(self, engine_instance: EngineFixture) -> None:
        """Test: Rapid queries are debounced down to the last one."""
        engine, to_ui_queue = engine_instance
        engine.config["search"]["debounce_ms"] = 200
        engine.start()

        engine.submit_task({"type": "search_open", "root": "/proj"})
        to_ui_queue.get(timeout=2)

        for partial in ("ne", "nee", "needl", "Project"):
            engine.submit_task({"type": "search_query", "query": partial})

        reply = to_ui_queue.get(timeout=2)
        assert reply["query"] == "Project"
        assert [r.line for r in reply["results"]] == [1]
        with pytest.raises(queue.Empty):
            to_ui_queue.get(timeout=0.4)

    def test_file_info_task(self, engine_instance: EngineFixture) -> None:
        """Test: `file_info` replies with the detected FileInfo."""
        engine, to_ui_queue = engine_instance
        engine.start()

        engine.submit_task({"type": "file_info", "path": "/proj/src/app.py"})
        reply = to_ui_queue.get(timeout=2)

        assert reply["type"] == "file_info"
        assert reply["path"] == "/proj/src/app.py"
        assert reply["info"] == FileInfo("ascii", "LF", False, "spaces", 4)

    def test_query_before_open_is_an_error(self, engine_instance: EngineFixture) -> None:
        """Test: A query without an open session is reported, not raised."""
        engine, to_ui_queue = engine_instance
        engine.start()

        engine.submit_task({"type": "search_query", "query": "needle"})
        result = to_ui_queue.get(timeout=2)

        assert result["type"] == "task_error"
        assert result["task_type"] == "search_query"
        assert "before search_open" in result["error"]

    def test_dispatch_invalid_task_data(self, engine_instance: EngineFixture) -> None:
        """Test: Submitting incomplete task data produces an error."""
        engine, to_ui_queue = engine_instance
        engine.start()

        engine.submit_task({"type": "search_open"})
        result = to_ui_queue.get(timeout=2)

        assert result["type"] == "task_error"
        assert "Missing or invalid 'root' for search_open task." in result["error"]

    def test_search_close_drops_session(self, engine_instance: EngineFixture) -> None:
        """Test: Closing the session leaves no session behind."""
        engine, to_ui_queue = engine_instance
        engine.start()

        engine.submit_task({"type": "search_open", "root": "/proj"})
        to_ui_queue.get(timeout=2)
        engine.submit_task({"type": "search_close"})
        engine.submit_task({"type": "search_query", "query": "needle"})

        result = to_ui_queue.get(timeout=2)
        assert result["type"] == "task_error"
        assert engine.session is None
