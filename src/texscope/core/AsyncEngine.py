# texscope/core/AsyncEngine.py
"""AsyncEngine Module
==================
This module provides the `AsyncEngine` class, which runs texscope's debounced
project search and file inspection on an `asyncio` event loop in a dedicated
background thread. A synchronous, curses-style UI thread submits plain task
dictionaries and polls a queue for results, so typing in the search box never
blocks on disk I/O.

Key Features:
-------------
- Runs an asyncio event loop in a separate thread.
- Thread-safe communication through `queue.Queue` in both directions.
- Owns a single `SearchSession`; all search work happens on the loop thread,
  so debouncing and cancellation need no locks.
- Failures are reported back to the UI as ``task_error`` messages.

Task types:
-----------
- ``search_open`` (``root``): enumerate the project, reply ``search_index_ready``.
- ``search_query`` (``query``): debounced search, reply ``search_results``.
- ``search_close``: cancel any pending search and drop the file cache.
- ``file_info`` (``path``): detect encoding/line endings/indent, reply ``file_info``.
"""

import asyncio
import logging
import queue
import threading
from typing import Any, Optional

from texscope.core.FileEncodingDetector import FileEncodingDetector
from texscope.core.MultiFileSearchIndex import (
    MultiFileSearchIndex,
    SearchResult,
    SearchSession,
)
from texscope.integrations.FileSystemBridge import FileSystem, FileSystemBridge


# The queue can receive tasks (dictionaries) or None to stop.
QueueItem = Optional[dict[str, Any]]


# ==================== AsyncEngine Class ====================
class AsyncEngine:
    """Class AsyncEngine
    ===================
    Runs an asyncio event loop in a background thread and serves search and
    file-inspection tasks submitted from the UI thread.

    Attributes:
        loop (Optional[asyncio.AbstractEventLoop]): The event loop running in the background thread.
        thread (Optional[threading.Thread]): The background thread running the event loop.
        from_ui_queue (queue.Queue): Receives tasks (or the None stop signal) from the UI thread.
        to_ui_queue (queue.Queue): Sends results back to the UI thread.
        config (dict): Application configuration.
        filesystem (FileSystem): Collaborator shared by the index and the detector.
        session (Optional[SearchSession]): The open project search, if any.
    """

    def __init__(
        self,
        to_ui_queue: queue.Queue[dict[str, Any]],
        config: dict[str, Any],
        filesystem: Optional[FileSystem] = None,
    ) -> None:
        self.loop: Optional[asyncio.AbstractEventLoop] = None
        self.thread: Optional[threading.Thread] = None
        self.from_ui_queue: queue.Queue[QueueItem] = queue.Queue()
        self.to_ui_queue: queue.Queue[dict[str, Any]] = to_ui_queue
        self._tasks: set[asyncio.Task[Any]] = set()
        self.config: dict[str, Any] = config
        self.filesystem: FileSystem = filesystem or FileSystemBridge()
        self.detector = FileEncodingDetector(self.filesystem)
        self.session: Optional[SearchSession] = None

    def _start_loop_in_thread(self) -> None:
        """Internal method to set up and run the event loop."""
        try:
            self.loop = asyncio.new_event_loop()
            asyncio.set_event_loop(self.loop)
            self.loop.run_until_complete(self.main_loop())
        finally:
            if self.loop:
                if self.loop.is_running():
                    self.loop.stop()
                self.loop.close()
            logging.info("AsyncEngine event loop has shut down.")

    def start(self) -> None:
        """Starts the asyncio event loop in a background thread."""
        if self.thread is not None:
            logging.warning("AsyncEngine already started.")
            return
        logging.info("Starting AsyncEngine background thread...")
        self.thread = threading.Thread(
            target=self._start_loop_in_thread, daemon=True, name="AsyncEngineThread"
        )
        self.thread.start()

    async def main_loop(self) -> None:
        """The main async loop that listens for tasks from the UI thread.
        It runs until a stop signal (None) is received.
        """
        if not self.loop:
            logging.error("Event loop not initialized before starting main_loop.")
            return

        logging.info("AsyncEngine main_loop is running and waiting for tasks.")

        while True:
            try:
                task_data = await self.loop.run_in_executor(
                    None, self.from_ui_queue.get
                )

                if task_data is None:
                    logging.info(
                        "AsyncEngine received stop signal. Breaking main_loop."
                    )
                    break

                task = self.loop.create_task(self.dispatch_task(task_data))
                self._tasks.add(task)
                task.add_done_callback(self._tasks.discard)

            except Exception as e:
                if self.loop and self.loop.is_running():
                    logging.error(
                        f"Critical error in AsyncEngine main_loop: {e}", exc_info=True
                    )
                    await asyncio.sleep(1)
                else:
                    logging.info(
                        "Exception in main_loop during shutdown, likely normal"
                    )
                    break

        await self._shutdown_tasks()

    async def dispatch_task(self, task_data: dict[str, Any]) -> None:
        """Dispatches a task to the correct handler based on its type."""
        task_type = task_data.get("type")
        logging.debug(f"AsyncEngine dispatching task of type: {task_type}")

        try:
            if task_type == "search_open":
                root = task_data.get("root")
                if not isinstance(root, str) or not root:
                    raise ValueError("Missing or invalid 'root' for search_open task.")
                self._open_session(root)

            elif task_type == "search_query":
                query = task_data.get("query")
                if not isinstance(query, str):
                    raise ValueError("Missing or invalid 'query' for search_query task.")
                if self.session is None:
                    raise RuntimeError("search_query received before search_open.")
                self.session.update_query(query)

            elif task_type == "search_close":
                if self.session is not None:
                    self.session.close()
                    self.session = None

            elif task_type == "file_info":
                path = task_data.get("path")
                if not isinstance(path, str) or not path:
                    raise ValueError("Missing or invalid 'path' for file_info task.")
                info = self.detector.detect(path)
                self.to_ui_queue.put({"type": "file_info", "path": path, "info": info})

            else:
                logging.warning(f"AsyncEngine received unknown task type: {task_type}")

        except Exception as e:
            error_message = f"Error executing async task '{task_type}': {e}"
            logging.error(error_message, exc_info=True)
            self.to_ui_queue.put(
                {"type": "task_error", "task_type": task_type, "error": str(e)}
            )

    def _open_session(self, root: str) -> None:
        if self.session is not None:
            self.session.close()
        index = MultiFileSearchIndex(self.filesystem, self.config)
        self.session = SearchSession(
            index, root, on_results=self._post_results, config=self.config
        )
        candidates = self.session.refresh()
        self.to_ui_queue.put(
            {"type": "search_index_ready", "root": root, "file_count": len(candidates)}
        )

    def _post_results(self, query: str, results: list[SearchResult]) -> None:
        self.to_ui_queue.put({"type": "search_results", "query": query, "results": results})

    def submit_task(self, task_data: dict[str, Any]) -> None:
        """Thread-safe method for the UI thread to submit a task."""
        self.from_ui_queue.put(task_data)

    async def _shutdown_tasks(self) -> None:
        """Internal coroutine to cancel all running async tasks."""
        if self.session is not None:
            self.session.close()
            self.session = None
        if not self._tasks:
            return
        logging.info(f"Cancelling {len(self._tasks)} outstanding async tasks...")
        tasks_to_cancel = list(self._tasks)
        for task in tasks_to_cancel:
            task.cancel()

        await asyncio.gather(*tasks_to_cancel, return_exceptions=True)
        logging.info("All async tasks cancelled.")

    def stop(self) -> None:
        """Gracefully and thread-safely stops the asyncio event loop and its tasks."""
        if not self.thread or not self.loop or not self.thread.is_alive():
            logging.debug(
                "AsyncEngine.stop() called, but no active loop or thread to stop."
            )
            return

        logging.info("Stopping AsyncEngine...")

        try:
            self.from_ui_queue.put(None)
            logging.info("Sent stop signal to AsyncEngine main_loop.")

            self.thread.join(timeout=2.0)

            if self.thread.is_alive():
                logging.error(
                    "AsyncEngine thread did not stop gracefully within the timeout."
                )
                self.loop.call_soon_threadsafe(self.loop.stop)
            else:
                logging.info(
                    "AsyncEngine thread has been successfully stopped and joined."
                )

        except Exception as e:
            logging.error(
                f"An exception occurred while stopping AsyncEngine thread: {e}",
                exc_info=True,
            )
