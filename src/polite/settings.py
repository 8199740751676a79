"""Static configuration for polite.

All user-editable settings (storage, calendar export, polling, mute sink,
logging) live in a single JSON file for quick edits without touching Python.
"""

import json
import os

from dotenv import load_dotenv

from polite.core.config import PollConfig, SinkConfig

load_dotenv()

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", ".."))


def _default_config_path() -> str:
    """Prefer config.json in the working directory, then the project checkout."""

    local = os.path.join(os.getcwd(), "config.json")
    if os.path.exists(local):
        return local
    return os.path.join(PROJECT_ROOT, "config.json")


# POLITE_CONFIG points at another config file, e.g. from a .env next to it.
CONFIG_PATH = os.getenv("POLITE_CONFIG") or _default_config_path()


def resolve_path(path: str) -> str:
    """Resolve a config-relative path against the config file directory."""

    if os.path.isabs(path):
        return path
    return os.path.join(os.path.dirname(os.path.abspath(CONFIG_PATH)), path)


def _load_json_config() -> dict:
    """Load config.json with a flat, user-friendly schema."""

    if not os.path.exists(CONFIG_PATH):
        raise FileNotFoundError(f"Config file not found: {CONFIG_PATH}")

    with open(CONFIG_PATH, "r", encoding="utf-8") as handle:
        return json.load(handle)


_CONFIG = _load_json_config()

# Expose the raw config for modules that need structured access.
CONFIG = _CONFIG

# Where to store the SQLite rules database, relative to the config file.
DB_PATH = resolve_path(_CONFIG.get("db_path", "polite.db"))

# Calendar events exported by an external tool, re-read on every poll.
_calendar = _CONFIG.get("calendar", {})
CALENDAR_EVENTS_PATH = resolve_path(_calendar.get("events_path", "calendar_events.json"))

# Polling controls how often rules are re-evaluated.
# - interval_seconds: delay between evaluations
# - timezone: IANA zone for schedule windows; empty means the local zone
_poll = _CONFIG.get("poll", {})
POLL_CONFIG = PollConfig(
    interval_seconds=float(_poll.get("interval_seconds", 60)),
    timezone=_poll.get("timezone") or None,
)

# Sink method switches adapters without changing core logic.
_sink = _CONFIG.get("sink", {})
SINK_CONFIG = SinkConfig(
    method=_sink.get("method", "log"),
    silent_command=list(_sink.get("silent_command", [])),
    vibrate_command=list(_sink.get("vibrate_command", [])),
    unmute_command=list(_sink.get("unmute_command", [])),
)

# Logging configuration (optional).
LOGGING = _CONFIG.get("logging", {})
