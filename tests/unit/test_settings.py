import os

import sys
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..', '..')))

from core.settings import DEFAULT_EXTENSIONS, ensure_complete_settings, get_default_settings


def test_defaults_cover_code_markup_and_style_files():
    defaults = get_default_settings()
    assert defaults["extensions"] == {".cs", ".uxml", ".uss"}
    assert set(DEFAULT_EXTENSIONS) == defaults["extensions"]
    assert defaults["ignore_folders"] == set()


def test_missing_or_invalid_settings_fall_back_to_defaults():
    assert ensure_complete_settings(None) == get_default_settings()
    assert ensure_complete_settings("bogus") == get_default_settings()


def test_lists_are_converted_and_bad_values_repaired():
    settings = ensure_complete_settings({
        "extensions": [".py"],
        "ignore_folders": ("build",),
        "poll_interval_ms": -5,
        "live_watcher": False,
    })
    assert settings["extensions"] == {".py"}
    assert settings["ignore_folders"] == {"build"}
    assert settings["poll_interval_ms"] == get_default_settings()["poll_interval_ms"]
    assert settings["live_watcher"] is False
    assert settings["count_tokens"] is True
