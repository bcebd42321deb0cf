# texscope/utils/logging_config.py
"""texscope.utils.logging_config
===============================

Logging setup for texscope.

`setup_logging` attaches handlers to the root logger from the ``[logging]``
section of the configuration:

    - texscope.log: rotating file, threshold `file_level` (default DEBUG).
    - stderr: optional, threshold `console_level` (default WARNING).
    - error.log: optional rotating file for ERROR and CRITICAL records.
    - searchtrace.log: per-file decisions of the multi-file search, written by
      the ``texscope.searchtrace`` logger when ``TEXSCOPE_SEARCHTRACE`` is set.

Log files go to `log_dir` (default: the working directory). If that directory
cannot be created the system temp directory is used. Setup problems are
reported to stderr and never raised.

Usage:
    >>> from texscope.utils import logging_config
    >>> logging_config.setup_logging({"logging": {"console_level": "ERROR"}})
"""

import logging
import logging.handlers
import os
import sys
import tempfile
from typing import Any, Optional


logger = logging.getLogger("texscope")
SEARCH_TRACE_LOGGER = logging.getLogger("texscope.searchtrace")

SEARCH_TRACE_ENV = "TEXSCOPE_SEARCHTRACE"

FILE_FORMAT = "%(asctime)s - %(levelname)-8s - %(name)-15s - %(message)s (%(filename)s:%(lineno)d)"
CONSOLE_FORMAT = "%(levelname)-8s - %(name)-12s - %(message)s"
TRACE_FORMAT = "%(asctime)s - %(message)s"


def _level(name: Any, default: int) -> int:
    return getattr(logging, str(name).upper(), default)


def _resolve_log_dir(log_dir: str) -> str:
    if not log_dir or os.path.isdir(log_dir):
        return log_dir
    try:
        os.makedirs(log_dir)
        return log_dir
    except OSError as e:
        fallback = tempfile.gettempdir()
        print(f"Error creating log directory '{log_dir}': {e}. Using '{fallback}'.", file=sys.stderr)
        return fallback


def _rotating_handler(
    path: str, max_bytes: int, backups: int, level: int, fmt: str
) -> Optional[logging.Handler]:
    """Builds a rotating file handler, or returns None if the file cannot be opened."""
    try:
        handler = logging.handlers.RotatingFileHandler(
            path, maxBytes=max_bytes, backupCount=backups, encoding="utf-8"
        )
    except OSError as e:
        print(f"Error setting up log file '{path}': {e}.", file=sys.stderr)
        return None
    handler.setFormatter(logging.Formatter(fmt))
    handler.setLevel(level)
    return handler


def setup_logging(config: Optional[dict[str, Any]] = None) -> None:
    """Configures root and search-trace logging from `config["logging"]`.

    Existing root handlers are replaced, so calling this more than once (as the
    tests do) does not duplicate records.

    Args:
        config (dict | None): Application configuration. Recognised keys of the
            ``logging`` section are ``file_level``, ``console_level``,
            ``log_to_console``, ``separate_error_log`` and ``log_dir``.
    """
    settings = (config or {}).get("logging", {})
    log_dir = _resolve_log_dir(str(settings.get("log_dir", "")))
    file_level = _level(settings.get("file_level", "DEBUG"), logging.DEBUG)

    handlers: list[logging.Handler] = []
    main_handler = _rotating_handler(
        os.path.join(log_dir, "texscope.log"), 2 * 1024 * 1024, 5, file_level, FILE_FORMAT
    )
    if main_handler:
        handlers.append(main_handler)

    if settings.get("log_to_console", True):
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
        console_handler.setLevel(_level(settings.get("console_level", "WARNING"), logging.WARNING))
        handlers.append(console_handler)

    if settings.get("separate_error_log", False):
        error_handler = _rotating_handler(
            os.path.join(log_dir, "error.log"), 1024 * 1024, 3, logging.ERROR, FILE_FORMAT
        )
        if error_handler:
            handlers.append(error_handler)

    root_logger = logging.getLogger()
    root_logger.handlers = handlers
    root_logger.setLevel(file_level)

    # The trace logger never propagates: its records only reach searchtrace.log.
    SEARCH_TRACE_LOGGER.propagate = False
    SEARCH_TRACE_LOGGER.setLevel(logging.DEBUG)
    SEARCH_TRACE_LOGGER.handlers = []
    trace_handler = None
    if os.environ.get(SEARCH_TRACE_ENV, "").lower() in {"1", "true", "yes"}:
        trace_handler = _rotating_handler(
            os.path.join(log_dir, "searchtrace.log"), 1024 * 1024, 3, logging.DEBUG, TRACE_FORMAT
        )

    if trace_handler:
        SEARCH_TRACE_LOGGER.addHandler(trace_handler)
        SEARCH_TRACE_LOGGER.disabled = False
        logger.info("Search tracing enabled, logging to 'searchtrace.log'.")
    else:
        SEARCH_TRACE_LOGGER.addHandler(logging.NullHandler())
        SEARCH_TRACE_LOGGER.disabled = True

    logger.info(
        f"Logging setup complete. Root level: {logging.getLevelName(file_level)}, "
        f"{len(handlers)} handler(s), log dir: '{log_dir or os.getcwd()}'."
    )
