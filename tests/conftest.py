# tests/conftest.py

from __future__ import annotations

import pytest

from safer_observer_events import deferred

from fakes import FakeModel, FakeTimer


@pytest.fixture(autouse=True)
def reset_default_scheduler():
    """Every test starts without a default scheduler."""
    deferred.set_default_scheduler(None)
    yield
    deferred.set_default_scheduler(None)


@pytest.fixture()
def model() -> FakeModel:
    return FakeModel()


@pytest.fixture()
def timer() -> FakeTimer:
    return FakeTimer()
