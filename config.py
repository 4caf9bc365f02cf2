"""
Runtime settings for Safer Observer Events.

Values come from the add-on preferences when running inside Blender with the
add-on enabled, and fall back to the module defaults everywhere else.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from . import __package__

try:
    import bpy
except ImportError:
    # Allow importing outside of Blender for testing
    bpy = None

DEFAULT_OPERATION_NAME = "Observer Event Change"
DEFAULT_FIRST_INTERVAL = 0.0
LOG_PREFIX = "Safer Observer Events"


@dataclass(frozen=True)
class Settings:
    operation_name: str = DEFAULT_OPERATION_NAME
    first_interval: float = DEFAULT_FIRST_INTERVAL
    debug_logging: bool = False


def _get_addon_name() -> str:
    """Get the addon name safely."""
    if __package__:
        return __package__
    return "safer_observer_events"


def get_preferences():
    """Return the add-on preferences, or None when they are unavailable."""
    if not bpy:
        return None
    addon = bpy.context.preferences.addons.get(_get_addon_name())
    if addon is None:
        return None
    return addon.preferences


def get_settings() -> Settings:
    """Get the current settings."""
    prefs = get_preferences()
    if prefs is None:
        return Settings()
    return Settings(
        operation_name=prefs.operation_name or DEFAULT_OPERATION_NAME,
        first_interval=max(0.0, float(prefs.first_interval)),
        debug_logging=bool(prefs.debug_logging),
    )


def configure_logging(debug: bool = False) -> logging.Logger:
    """Set the package logger level and attach a console handler once."""
    logger = logging.getLogger(_get_addon_name())
    logger.setLevel(logging.DEBUG if debug else logging.INFO)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(f"{LOG_PREFIX}: %(levelname)s %(message)s"))
        logger.addHandler(handler)
    return logger
