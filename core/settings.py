# --- File: settings.py ---
"""Configuration defaults for the code combiner."""

# Default allow-list: code files, UI markup files and UI style files
DEFAULT_EXTENSIONS = [".cs", ".uxml", ".uss"]

STATE_FILE = "code_combiner_state.json"
POLL_INTERVAL_MS = 150

# Global variable to hold the base path for testing
_TESTING_BASE_PATH = None


def get_default_settings():
    """Get complete default settings structure."""
    return {
        "extensions": set(DEFAULT_EXTENSIONS),
        "ignore_folders": set(),
        "poll_interval_ms": POLL_INTERVAL_MS,
        "live_watcher": True,
        "count_tokens": True,
        "state_file": STATE_FILE,
    }


def _as_set(value, default):
    if value is None:
        return default
    if isinstance(value, set):
        return value
    if isinstance(value, (list, tuple, frozenset)):
        return set(value)
    return default


def ensure_complete_settings(settings):
    """Ensure settings has all required fields with proper defaults."""
    if not settings or not isinstance(settings, dict):
        return get_default_settings()

    defaults = get_default_settings()
    complete_settings = {}

    complete_settings["extensions"] = _as_set(settings.get("extensions"), defaults["extensions"])
    complete_settings["ignore_folders"] = _as_set(settings.get("ignore_folders"), defaults["ignore_folders"])

    interval = settings.get("poll_interval_ms", defaults["poll_interval_ms"])
    if not isinstance(interval, int) or isinstance(interval, bool) or interval <= 0:
        interval = defaults["poll_interval_ms"]
    complete_settings["poll_interval_ms"] = interval

    complete_settings["live_watcher"] = bool(settings.get("live_watcher", defaults["live_watcher"]))
    complete_settings["count_tokens"] = bool(settings.get("count_tokens", defaults["count_tokens"]))
    complete_settings["state_file"] = settings.get("state_file") or defaults["state_file"]

    return complete_settings


def set_testing_mode(temp_dir):
    """Sets the base path for testing purposes."""
    global _TESTING_BASE_PATH
    _TESTING_BASE_PATH = temp_dir


def get_testing_base_path():
    return _TESTING_BASE_PATH
