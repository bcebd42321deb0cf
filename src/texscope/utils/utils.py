# texscope/utils/utils.py
"""
texscope.utils.utils.py
=======================

This module provides a collection of core utility functions for texscope.

Key functionalities include:
- Automatic User Configuration: Manages the creation and loading of the user-specific
  configuration file (`config.toml`) in `~/.config/texscope`, ensuring a
  seamless first-run experience.
- Robust Configuration Loading: Loads a hardcoded, built-in default configuration,
  then recursively merges it with user-defined settings from
  `~/.config/texscope/config.toml`.
- Byte Decoding: Turns raw file bytes into text for the multi-file search,
  trying strict UTF-8, then a `chardet` guess, then latin-1.
- Display Helpers: Truncates context lines to a terminal display width using `wcwidth`.

The application is always runnable, even if user configuration files are
missing or corrupted, by falling back to the embedded defaults.
"""

import logging
import shutil
import sys
from pathlib import Path
from typing import Any, Dict, Optional

import chardet
import toml
from wcwidth import wcwidth

logger = logging.getLogger("texscope")

# --- Constants ---
CHARDET_MIN_CONFIDENCE = 0.75
CHARDET_SAMPLE_SIZE = 1024 * 20

DEFAULT_TEXT_EXTENSIONS = [
    ".js", ".jsx", ".ts", ".tsx", ".mjs", ".cjs", ".mts", ".cts",
    ".json", ".jsonc", ".yaml", ".yml", ".toml", ".xml",
    ".html", ".htm", ".css", ".scss", ".sass", ".less",
    ".md", ".markdown", ".txt", ".rst",
    ".py", ".rs", ".go", ".rb", ".php", ".java", ".kt", ".swift",
    ".c", ".cpp", ".h", ".hpp", ".cs", ".lua", ".zig",
    ".sh", ".bash", ".zsh", ".fish",
    ".sql", ".graphql", ".gql",
    ".env", ".gitignore", ".dockerignore",
]

# This dictionary is a direct, hardcoded representation of `config.toml`.
# It serves as the ultimate fallback, ensuring the application can ALWAYS start.
DEFAULT_CONFIG: Dict[str, Any] = {
    "search": {
        "debounce_ms": 200,
        "max_results": 100,
        "max_results_per_file": 10,
        "max_depth": 10,
        "min_query_length": 2,
        "context_width": 100,
        "excluded_dirs": ["node_modules"],
        "text_extensions": DEFAULT_TEXT_EXTENSIONS,
    },
    "find": {"context_width": 60},
    "logging": {
        "file_level": "DEBUG",
        "console_level": "WARNING",
        "log_to_console": True,
        "separate_error_log": False,
        "log_dir": "",
    },
}


# --- Helper Functions ---

def get_project_root() -> Path:
    """Determines the project's root directory for finding template files."""
    if getattr(sys, 'frozen', False) and hasattr(sys, '_MEIPASS'):
        return Path(sys._MEIPASS)
    else:
        return Path(__file__).resolve().parents[3]


def get_user_config_dir() -> Path:
    return Path.home() / ".config" / "texscope"


def ensure_user_config_exists() -> None:
    """Checks for the user config file in `~/.config/texscope` and creates it if missing."""
    try:
        config_dir = get_user_config_dir()
        user_config_path = config_dir / "config.toml"

        config_dir.mkdir(parents=True, exist_ok=True)

        if not user_config_path.exists():
            source_config_path = get_project_root() / "config.toml"
            if source_config_path.exists():
                shutil.copy(source_config_path, user_config_path)
                logger.info(f"Created user config template at: {user_config_path}")

    except Exception as e:
        logger.critical(f"Could not create user configuration files: {e}", exc_info=True)


def load_config() -> Dict[str, Any]:
    """
    Loads and merges configurations, ensuring the application can always run.
    """
    final_config = deep_merge({}, DEFAULT_CONFIG)
    logger.debug("Loaded embedded default configuration.")

    ensure_user_config_exists()

    user_config_path = get_user_config_dir() / "config.toml"
    if user_config_path.is_file():
        try:
            user_config = toml.load(user_config_path)
            final_config = deep_merge(final_config, user_config)
            logger.info(f"Successfully loaded and merged user config from {user_config_path}")
        except Exception as e:
            logger.error(f"Could not parse user config '{user_config_path}': {e}. Using defaults.")

    return final_config


def get_search_settings(config: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Returns the `[search]` section of `config` with every default filled in."""
    if not isinstance(config, dict):
        config = {}
    section = config.get("search", {})
    if not isinstance(section, dict):
        section = {}
    return deep_merge(DEFAULT_CONFIG["search"], section)


def deep_merge(base: Dict, override: Dict) -> Dict:
    """
    Recursively merges the `override` dictionary into the `base` dictionary.
    """
    result = base.copy()
    for key, value in override.items():
        if isinstance(result.get(key), dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def decode_bytes(raw: bytes) -> str:
    """
    Decodes file content for text scanning.

    Strict UTF-8 is tried first. If that fails, `chardet` inspects the first
    `CHARDET_SAMPLE_SIZE` bytes and its guess is used when the confidence
    reaches `CHARDET_MIN_CONFIDENCE` and the guess decodes the whole buffer.
    Latin-1 is the last step, so every byte sequence yields text.
    """
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError:
        pass

    chardet_result = chardet.detect(raw[:CHARDET_SAMPLE_SIZE])
    encoding_guess = chardet_result.get("encoding")
    confidence = chardet_result.get("confidence") or 0.0
    logger.debug(
        f"Chardet detected encoding '{encoding_guess}' with confidence {confidence:.2f}."
    )
    if encoding_guess and confidence >= CHARDET_MIN_CONFIDENCE:
        try:
            return raw.decode(encoding_guess)
        except (UnicodeDecodeError, LookupError) as e:
            logger.debug(f"Decoding with '{encoding_guess}' failed: {e}. Falling back to latin-1.")
    return raw.decode("latin-1")


def truncate_to_width(text: str, max_width: int) -> str:
    """
    Cuts `text` so that it occupies at most `max_width` terminal columns.

    Wide characters (CJK, emoji) count as two columns. Non-printable characters
    are counted as zero-width.
    """
    if max_width <= 0:
        return ""
    width = 0
    for index, char in enumerate(text):
        char_width = max(wcwidth(char), 0)
        if width + char_width > max_width:
            return text[:index]
        width += char_width
    return text
