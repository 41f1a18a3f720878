"""Runtime configuration helpers for rack engines."""
from __future__ import annotations

import logging
import os
from typing import Optional

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_MAX_DEPTH = 50
DEFAULT_RACK_HEIGHT = 42
DEFAULT_RACK_WIDTH = 19
DEFAULT_LOG_LEVEL = "INFO"

# Mirrors the bounds on Rack.height.
MAX_RACK_HEIGHT = 100

_VALID_RACK_WIDTHS = {10, 19}


def _get_env(name: str, default: Optional[str] = None) -> Optional[str]:
    return os.getenv(name, default)


def _get_int(name: str, default: int, minimum: int = 1, maximum: Optional[int] = None) -> int:
    raw = _get_env(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning("Ignoring non-integer %s=%r, using %s", name, raw, default)
        return default
    if value < minimum:
        logger.warning("Ignoring %s=%s below minimum %s, using %s", name, value, minimum, default)
        return default
    if maximum is not None and value > maximum:
        logger.warning("Ignoring %s=%s above maximum %s, using %s", name, value, maximum, default)
        return default
    return value


def get_env() -> Optional[str]:
    return _get_env("ENV") or _get_env("APP_ENV")


def get_history_max_depth() -> int:
    """Undo depth for newly created editors."""
    return _get_int("RACK_HISTORY_MAX_DEPTH", DEFAULT_HISTORY_MAX_DEPTH)


def get_log_level() -> str:
    level = (_get_env("RACK_LOG_LEVEL") or DEFAULT_LOG_LEVEL).upper()
    if not isinstance(logging.getLevelName(level), int):
        return DEFAULT_LOG_LEVEL
    return level


def get_default_rack_height() -> int:
    return _get_int("RACK_DEFAULT_HEIGHT", DEFAULT_RACK_HEIGHT, maximum=MAX_RACK_HEIGHT)


def get_default_rack_width() -> int:
    width = _get_int("RACK_DEFAULT_WIDTH", DEFAULT_RACK_WIDTH)
    if width not in _VALID_RACK_WIDTHS:
        logger.warning("Ignoring RACK_DEFAULT_WIDTH=%s, using %s", width, DEFAULT_RACK_WIDTH)
        return DEFAULT_RACK_WIDTH
    return width


def config_snapshot() -> dict:
    """Return a snapshot of relevant env-driven config."""
    return {
        "env": get_env(),
        "history_max_depth": get_history_max_depth(),
        "log_level": get_log_level(),
        "default_rack_height": get_default_rack_height(),
        "default_rack_width": get_default_rack_width(),
    }
