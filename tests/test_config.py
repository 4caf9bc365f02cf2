"""Tests for settings lookup."""

import logging
from types import SimpleNamespace

from safer_observer_events import config


class FakeAddons(dict):
    pass


def fake_bpy_with_prefs(prefs):
    addons = FakeAddons()
    if prefs is not None:
        addons[config._get_addon_name()] = SimpleNamespace(preferences=prefs)
    return SimpleNamespace(context=SimpleNamespace(preferences=SimpleNamespace(addons=addons)))


def test_defaults_outside_blender():
    settings = config.get_settings()
    assert settings.operation_name == "Observer Event Change"
    assert settings.first_interval == 0.0
    assert settings.debug_logging is False


def test_reads_addon_preferences(monkeypatch):
    prefs = SimpleNamespace(operation_name="Cleanup", first_interval=0.25, debug_logging=True)
    monkeypatch.setattr(config, "bpy", fake_bpy_with_prefs(prefs))
    assert config.get_settings() == config.Settings("Cleanup", 0.25, True)


def test_empty_operation_name_falls_back(monkeypatch):
    prefs = SimpleNamespace(operation_name="", first_interval=-1.0, debug_logging=False)
    monkeypatch.setattr(config, "bpy", fake_bpy_with_prefs(prefs))
    settings = config.get_settings()
    assert settings.operation_name == config.DEFAULT_OPERATION_NAME
    assert settings.first_interval == 0.0


def test_addon_not_enabled(monkeypatch):
    monkeypatch.setattr(config, "bpy", fake_bpy_with_prefs(None))
    assert config.get_settings() == config.Settings()


def test_configure_logging_levels():
    logger = config.configure_logging(debug=True)
    assert logger.level == logging.DEBUG
    assert len(logger.handlers) == 1
    config.configure_logging(debug=False)
    assert logger.level == logging.INFO
    assert len(logger.handlers) == 1
