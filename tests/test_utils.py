"""Unit tests for utility functions in the `texscope.utils` module."""

from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from texscope.utils import utils


def test_deep_merge() -> None:
    """Verify that `deep_merge` correctly merges nested dictionaries.

    This test ensures:
    - Existing values are preserved if not overridden.
    - Nested dictionaries are merged recursively.
    - Conflicting keys are overridden by values from the second dictionary.
    """
    base = {"a": 1, "b": {"x": 10, "y": 20}}
    override = {"b": {"y": 99, "z": 100}, "c": 3}
    result = utils.deep_merge(base, override)
    expected = {"a": 1, "b": {"x": 10, "y": 99, "z": 100}, "c": 3}
    assert result == expected


def test_get_search_settings_fills_defaults() -> None:
    settings = utils.get_search_settings({"search": {"max_results": 5}})
    assert settings["max_results"] == 5
    assert settings["max_results_per_file"] == 10
    assert settings["excluded_dirs"] == ["node_modules"]
    assert ".py" in settings["text_extensions"]


def test_get_search_settings_tolerates_bad_config() -> None:
    assert utils.get_search_settings(None)["debounce_ms"] == 200
    assert utils.get_search_settings({"search": "oops"})["max_depth"] == 10


def test_load_config_merges_user_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """A user config overrides defaults key by key."""
    monkeypatch.setattr(utils.Path, "home", lambda: tmp_path)
    config_dir = tmp_path / ".config" / "texscope"
    config_dir.mkdir(parents=True)
    (config_dir / "config.toml").write_text(
        "[search]\nmax_results = 7\n\n[logging]\nconsole_level = \"ERROR\"\n",
        encoding="utf-8",
    )

    config = utils.load_config()

    assert config["search"]["max_results"] == 7
    assert config["search"]["max_depth"] == 10
    assert config["logging"]["console_level"] == "ERROR"
    assert config["find"]["context_width"] == 60


def test_load_config_survives_broken_toml(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(utils.Path, "home", lambda: tmp_path)
    config_dir = tmp_path / ".config" / "texscope"
    config_dir.mkdir(parents=True)
    (config_dir / "config.toml").write_text("[search\nmax_results = ", encoding="utf-8")

    assert utils.load_config() == utils.DEFAULT_CONFIG


def test_ensure_user_config_copies_template(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(utils.Path, "home", lambda: tmp_path / "home")
    project = tmp_path / "project"
    project.mkdir()
    (project / "config.toml").write_text("[search]\nmax_depth = 3\n", encoding="utf-8")
    monkeypatch.setattr(utils, "get_project_root", lambda: project)

    utils.ensure_user_config_exists()

    copied = tmp_path / "home" / ".config" / "texscope" / "config.toml"
    assert copied.read_text(encoding="utf-8") == "[search]\nmax_depth = 3\n"


def test_decode_bytes_utf8() -> None:
    assert utils.decode_bytes("héllo".encode("utf-8")) == "héllo"


@patch("texscope.utils.utils.chardet.detect")
def test_decode_bytes_low_confidence_uses_latin1(mock_detect: MagicMock) -> None:
    mock_detect.return_value = {"encoding": "utf-16", "confidence": 0.4}
    assert utils.decode_bytes(b"\xe9t\xe9") == "\u00e9t\u00e9"


@patch("texscope.utils.utils.chardet.detect")
def test_decode_bytes_unknown_codec_uses_latin1(mock_detect: MagicMock) -> None:
    mock_detect.return_value = {"encoding": "no-such-codec", "confidence": 0.99}
    assert utils.decode_bytes(b"\xe9t\xe9") == "\u00e9t\u00e9"


@patch("texscope.utils.utils.chardet.detect")
def test_decode_bytes_guess_that_fails_uses_latin1(mock_detect: MagicMock) -> None:
    mock_detect.return_value = {"encoding": "ascii", "confidence": 0.99}
    assert utils.decode_bytes(b"caf\xe9") == "caf\u00e9"


@patch("texscope.utils.utils.chardet.detect")
def test_decode_bytes_samples_large_buffers(mock_detect: MagicMock) -> None:
    mock_detect.return_value = {"encoding": "latin-1", "confidence": 0.9}
    raw = b"\xe9" * (utils.CHARDET_SAMPLE_SIZE * 2)
    utils.decode_bytes(raw)
    assert mock_detect.call_args.args[0] == raw[: utils.CHARDET_SAMPLE_SIZE]


@patch("texscope.utils.utils.chardet.detect")
def test_decode_bytes_uses_confident_guess(mock_detect: MagicMock) -> None:
    mock_detect.return_value = {"encoding": "latin-1", "confidence": 0.8}
    assert utils.decode_bytes(b"\xe9t\xe9") == "été"


def test_truncate_to_width() -> None:
    assert utils.truncate_to_width("hello world", 5) == "hello"
    assert utils.truncate_to_width("short", 50) == "short"
    assert utils.truncate_to_width("anything", 0) == ""


def test_truncate_to_width_counts_wide_characters() -> None:
    # Each CJK character occupies two terminal columns.
    assert utils.truncate_to_width("漢字漢字", 5) == "漢字"
