"""
Config loader for swapunits.

config.yaml holds the server, storage, notification and logging settings.
It is read once at startup; ${VAR} references (RESEND_API_KEY) are filled
from the environment or a .env file.

runtime_config.yaml holds the user's preferences under a `runtime:` block:
the result number format and the last selected category. It is re-read
whenever its mtime changes, so a saved preference applies without a restart.
"""

import logging
import os
import re
from pathlib import Path

import yaml
from dotenv import load_dotenv

from swapunits.units.catalog import get_category
from swapunits.units.formatter import NumberFormat

load_dotenv()

logger = logging.getLogger(__name__)

_CONFIG_PATH = Path(__file__).parent.parent / "config.yaml"
_RUNTIME_CONFIG_PATH = Path(__file__).parent.parent / "runtime_config.yaml"

_config: dict | None = None

# Runtime config hot-reload state
_runtime_config: dict = {}
_runtime_mtime: float = 0.0

DEFAULTS = {
    "server": {"host": "0.0.0.0", "port": 8000},
    "storage": {"sqlite_path": "./data/swapunits.db", "max_history": 15, "max_favorites": 15},
    "notifications": {
        "api_url": "https://api.resend.com/emails",
        "api_key": "",
        "from_email": "notifications@swapunits.com",
        "recipient": "swapunits@gmail.com",
        "timeout": 10,
    },
    "logging": {"level": "INFO"},
}

# Preferences kept in runtime_config.yaml, with the value used when unset
RUNTIME_DEFAULTS = {
    "number_format": NumberFormat.NORMAL.value,
    "category": "Mass",
}


def _resolve_env_vars(value: str) -> str:
    """Fill ${VAR} from the environment; unset variables become '' (mock notifier)."""
    def replacer(match):
        return os.environ.get(match.group(1), "")
    return re.sub(r"\$\{(\w+)\}", replacer, value)


def _walk_and_resolve(obj):
    """Resolve ${VAR} in every string of the parsed YAML tree."""
    if isinstance(obj, dict):
        return {k: _walk_and_resolve(v) for k, v in obj.items()}
    elif isinstance(obj, list):
        return [_walk_and_resolve(v) for v in obj]
    elif isinstance(obj, str):
        return _resolve_env_vars(obj)
    return obj


def _merge_defaults(raw: dict) -> dict:
    """Fill each DEFAULTS section key by key; unknown sections pass through."""
    merged = {}
    for section, defaults in DEFAULTS.items():
        merged[section] = {**defaults, **(raw.get(section) or {})}
    for key, value in raw.items():
        if key not in merged:
            merged[key] = value
    return merged


def load_config(path: Path | None = None) -> dict:
    """Load config.yaml (or path) once, resolve env vars and apply DEFAULTS."""
    global _config
    if _config is not None:
        return _config

    config_path = path or _CONFIG_PATH
    if not config_path.exists():
        raise FileNotFoundError(f"Config not found: {config_path}")

    with open(config_path) as f:
        raw = yaml.safe_load(f) or {}

    _config = _merge_defaults(_walk_and_resolve(raw))
    return _config


def get_config() -> dict:
    """Return cached base config, loading if necessary."""
    if _config is None:
        return load_config()
    return _config


def get_runtime_config() -> dict:
    """
    Raw `runtime:` block of runtime_config.yaml, re-read when its mtime changes.
    {} if the file is missing or empty. Values are not validated here; use
    get_preferences() for the effective preferences.
    """
    global _runtime_config, _runtime_mtime

    if not _RUNTIME_CONFIG_PATH.exists():
        return {}

    try:
        mtime = _RUNTIME_CONFIG_PATH.stat().st_mtime
    except OSError:
        return _runtime_config

    if mtime == _runtime_mtime:
        return _runtime_config

    try:
        with open(_RUNTIME_CONFIG_PATH) as f:
            data = yaml.safe_load(f) or {}
        _runtime_config = data.get("runtime", {}) or {}
        _runtime_mtime = mtime
    except (OSError, yaml.YAMLError) as e:
        # Keep last good config on parse error
        logger.warning("runtime_config.yaml unreadable, keeping previous values: %s", e)

    return _runtime_config


def update_runtime_config(key: str, value) -> bool:
    """
    Persist one preference into the runtime: block, keeping the other keys.
    Returns False (and logs) for a key outside RUNTIME_DEFAULTS or when the
    file cannot be read or written.
    """
    global _runtime_mtime
    if key not in RUNTIME_DEFAULTS:
        logger.warning("update_runtime_config: unknown preference %r", key)
        return False
    try:
        if _RUNTIME_CONFIG_PATH.exists():
            with open(_RUNTIME_CONFIG_PATH) as f:
                data = yaml.safe_load(f) or {}
        else:
            data = {}

        if "runtime" not in data or not isinstance(data["runtime"], dict):
            data["runtime"] = {}

        data["runtime"][key] = value

        with open(_RUNTIME_CONFIG_PATH, "w") as f:
            yaml.dump(data, f, default_flow_style=False, allow_unicode=True)

        # Bust the mtime cache so next get_runtime_config() picks it up
        _runtime_mtime = 0.0
        logger.info("Preference saved: %s=%r", key, value)
        return True
    except (OSError, yaml.YAMLError) as e:
        logger.error(
            "update_runtime_config(%s) failed: %s (path=%s, writable=%s)",
            key, e, _RUNTIME_CONFIG_PATH,
            os.access(_RUNTIME_CONFIG_PATH.parent, os.W_OK),
        )
        return False


def is_valid_preference(key: str, value) -> bool:
    """number_format must be a NumberFormat value; category must be in the catalog."""
    if key == "number_format":
        return isinstance(value, str) and value in {f.value for f in NumberFormat}
    if key == "category":
        return isinstance(value, str) and get_category(value) is not None
    return False


def get_preferences() -> dict:
    """Effective preferences: saved values that are still valid, else RUNTIME_DEFAULTS."""
    saved = get_runtime_config()
    prefs = {}
    for key, default in RUNTIME_DEFAULTS.items():
        value = saved.get(key)
        if value is not None and not is_valid_preference(key, value):
            logger.warning("Ignoring saved %s=%r, using %r", key, value, default)
            value = None
        prefs[key] = default if value is None else value
    return prefs
