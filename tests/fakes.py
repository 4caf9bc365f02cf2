# tests/fakes.py

from __future__ import annotations

from contextlib import contextmanager
from types import SimpleNamespace
from typing import Callable


class FakeModel:
    """
    In-memory root handle that records every operation call.

    Stands in for a BlenderModel so the deferral logic can be tested
    without Blender.
    """

    def __init__(self, valid: bool = True) -> None:
        self.valid = valid
        self.calls: list[tuple] = []

    def is_valid(self) -> bool:
        return self.valid

    def start_operation(self, name, undoable=True, repeatable=False, transparent=False):
        self.calls.append(("start", name, undoable, repeatable, transparent))

    def commit_operation(self):
        self.calls.append(("commit",))

    def abort_operation(self):
        self.calls.append(("abort",))


class FakeTimer:
    """
    Scheduler that only runs callbacks when the test ticks the loop.

    ``tick(times=2)`` fires every pending callback twice, which is what a
    "non-repeating" host timer does when a modal window opens.
    """

    def __init__(self) -> None:
        self.pending: list[Callable[[], object]] = []

    def __call__(self, callback: Callable[[], object]) -> None:
        self.pending.append(callback)

    def tick(self, times: int = 1) -> None:
        callbacks, self.pending = self.pending, []
        for callback in callbacks:
            for _ in range(times):
                callback()


class FakeTimers:
    """bpy.app.timers replacement that records registrations."""

    def __init__(self) -> None:
        self.registered: list[tuple[Callable[[], object], float]] = []

    def register(self, function, first_interval=0.0, persistent=False):
        self.registered.append((function, first_interval))

    def run_all(self) -> list[object]:
        """Call each registered function once, like one idle iteration."""
        registered, self.registered = self.registered, []
        return [function() for function, _ in registered]


class FakeMain:
    """bpy.data replacement; ``removed`` mimics a freed struct."""

    def __init__(self, filepath: str = "") -> None:
        self.filepath = filepath
        self.removed = False

    def as_pointer(self) -> int:
        if self.removed:
            raise ReferenceError("StructRNA of type BlendData has been removed")
        return id(self)


def make_fake_bpy(version=(4, 2, 0), window=None, windows=()) -> SimpleNamespace:
    """Build the small slice of bpy that blender_host touches.

    With the default ``window=None`` the context looks like the one a
    ``bpy.app.timers`` callback gets; operator calls are then recorded
    together with the ``temp_override`` they ran under.
    """
    ops_calls: list[tuple] = []
    overrides: list[dict] = []

    @contextmanager
    def temp_override(**kwargs):
        overrides.append(kwargs)
        yield
        overrides.pop()

    def undo_push(message=""):
        ops_calls.append(("undo_push", message, *overrides))

    def undo():
        ops_calls.append(("undo", *overrides))

    return SimpleNamespace(
        app=SimpleNamespace(
            version=version,
            timers=FakeTimers(),
            handlers=SimpleNamespace(
                load_pre=[],
                load_post=[],
                depsgraph_update_post=[],
            ),
        ),
        context=SimpleNamespace(
            window=window,
            window_manager=SimpleNamespace(windows=list(windows)),
            temp_override=temp_override,
        ),
        ops=SimpleNamespace(ed=SimpleNamespace(undo_push=undo_push, undo=undo)),
        data=FakeMain(),
        ops_calls=ops_calls,
    )
