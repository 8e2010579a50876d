"""Configuration persistence: load and save."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

from platformdirs import user_config_dir

from clipboard_panel.models import CONFIG_APP_NAME, DEFAULT_MAX_PREVIEW_LENGTH, PanelConfig

logger = logging.getLogger(__name__)

# ============================================================================
# Configuration Persistence
# ============================================================================
#
# Validation contract: _dict_to_config() returns a valid PanelConfig for any input.
#
#   Field                    Rule                 Handler
#   -----------------------  -------------------  -----------------
#   max_preview_length       10 <= x <= 1000      _clamp
#   request_timeout_seconds  1 <= x <= 120        _clamp
#   scalar fields            type-checked         _safe_get
#
CONFIG_FILENAME = "config.json"

MIN_PREVIEW_LENGTH = 10
MAX_PREVIEW_LENGTH = 1000
MIN_TIMEOUT_SECONDS = 1
MAX_TIMEOUT_SECONDS = 120


def get_config_dir() -> Path:
    return Path(user_config_dir(CONFIG_APP_NAME))


def get_config_path() -> Path:
    """Get the path to the configuration file.

    Uses platformdirs for cross-platform config directory:
    - Linux: ~/.config/clipboard-panel/config.json
    - macOS: ~/Library/Application Support/clipboard-panel/config.json
    - Windows: %APPDATA%/clipboard-panel/config.json
    """
    return get_config_dir() / CONFIG_FILENAME


def _safe_get(data: dict, key: str, default: Any, expected_type: type) -> Any:
    """Safely get a value from dict with type validation.

    Returns the default if key is missing or value has wrong type.
    """
    value = data.get(key, default)
    if not isinstance(value, expected_type):
        return default
    return value


def _clamp(value: int, low: int, high: int) -> int:
    return max(low, min(value, high))


def _config_to_dict(config: PanelConfig) -> dict[str, Any]:
    return {
        "version": config.version,
        "store_url": config.store_url,
        "rpc_url": config.rpc_url,
        "request_timeout_seconds": _clamp(
            config.request_timeout_seconds, MIN_TIMEOUT_SECONDS, MAX_TIMEOUT_SECONDS
        ),
        "max_preview_length": _clamp(
            config.max_preview_length, MIN_PREVIEW_LENGTH, MAX_PREVIEW_LENGTH
        ),
        "ascii_icons": config.ascii_icons,
        "hide_after_paste": config.hide_after_paste,
        "apply_to_active_app": config.apply_to_active_app,
    }


def _dict_to_config(data: dict[str, Any]) -> PanelConfig:
    if not isinstance(data, dict):
        raise TypeError(f"config root must be an object, got {type(data).__name__}")
    return PanelConfig(
        store_url=_safe_get(data, "store_url", "", str).strip(),
        rpc_url=_safe_get(data, "rpc_url", "", str).strip(),
        request_timeout_seconds=_clamp(
            _safe_get(data, "request_timeout_seconds", 10, int),
            MIN_TIMEOUT_SECONDS,
            MAX_TIMEOUT_SECONDS,
        ),
        max_preview_length=_clamp(
            _safe_get(data, "max_preview_length", DEFAULT_MAX_PREVIEW_LENGTH, int),
            MIN_PREVIEW_LENGTH,
            MAX_PREVIEW_LENGTH,
        ),
        ascii_icons=_safe_get(data, "ascii_icons", False, bool),
        hide_after_paste=_safe_get(data, "hide_after_paste", True, bool),
        apply_to_active_app=_safe_get(data, "apply_to_active_app", False, bool),
        version=_safe_get(data, "version", 1, int),
    )


def load_config() -> PanelConfig:
    """Load configuration from disk.

    Returns default config if file doesn't exist or is corrupted.
    """
    config_path = get_config_path()

    if not config_path.exists():
        return PanelConfig()

    try:
        data = json.loads(config_path.read_text(encoding="utf-8"))
        return _dict_to_config(data)
    except json.JSONDecodeError as e:
        logger.warning("Config file has invalid JSON, using defaults: %s", e)
        return PanelConfig()
    except (KeyError, TypeError) as e:
        logger.warning("Config file has invalid structure, using defaults: %s", e)
        return PanelConfig()
    except OSError as e:
        logger.warning("Could not read config file, using defaults: %s", e)
        return PanelConfig()


def save_config(config: PanelConfig) -> bool:
    """Save configuration to disk atomically (temp file + ``os.replace``).

    Returns True on success, False on failure.
    """
    config_path = get_config_path()

    try:
        config_path.parent.mkdir(parents=True, exist_ok=True)
        json_str = json.dumps(_config_to_dict(config), indent=2, ensure_ascii=False)
        fd, tmp_path = tempfile.mkstemp(dir=config_path.parent, suffix=".tmp", prefix=".config-")
        closed = False
        try:
            os.write(fd, json_str.encode("utf-8"))
            os.close(fd)
            closed = True
            os.replace(tmp_path, config_path)
        except BaseException:
            if not closed:
                os.close(fd)
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
            raise
        return True
    except OSError as e:
        logger.error("Failed to save config: %s", e)
        return False


__all__ = [
    "CONFIG_FILENAME",
    "get_config_dir",
    "get_config_path",
    "load_config",
    "save_config",
]
