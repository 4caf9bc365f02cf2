"""
Blender side of Safer Observer Events.

Anything that touches Blender data MUST run on the main thread, outside of
the operation that triggered an observer. Timers registered through
``bpy.app.timers`` run on the main thread once Blender is idle again.
"""
from __future__ import annotations

import logging
import weakref
from typing import Any, Callable

from . import config
from .exceptions import OperationStateError, TransparentAbortError

try:
    import bpy
    import bpy.app.timers
    from bpy.app.handlers import persistent as _persistent
except ImportError:
    # Allow importing outside of Blender for testing
    bpy = None
    _persistent = None

logger = logging.getLogger(__name__)

_MODELS: weakref.WeakSet[BlenderModel] = weakref.WeakSet()
_active_model: BlenderModel | None = None


def start_timer(callback: Callable[[], object], first_interval: float | None = None) -> Callable[[], None]:
    """Run *callback* once on Blender's main thread as soon as it is idle."""
    if first_interval is None:
        first_interval = config.get_settings().first_interval

    def _fire() -> None:  # called by bpy.app.timers on main thread
        callback()
        # returning None unregisters the timer
        return None

    bpy.app.timers.register(_fire, first_interval=first_interval)
    return _fire


def _window_override() -> dict[str, Any]:
    """Pick a window for operators called from a timer, where context.window is None."""
    wm = bpy.context.window_manager
    if bpy.context.window is None and wm is not None and wm.windows:
        return {"window": wm.windows[0]}
    return {}


def _call_undo_operator(operator: Callable[..., object], **kwargs: Any) -> None:
    override = _window_override()
    if override:
        with bpy.context.temp_override(**override):
            operator(**kwargs)
    else:
        operator(**kwargs)


class BlenderModel:
    """Root handle over a BlendData, with undo-step based operations."""

    def __init__(self, main=None):
        self._main = main if main is not None else bpy.data
        self._invalidated = False
        self._operations: list[tuple[str, bool, bool]] = []
        _MODELS.add(self)

    def __repr__(self) -> str:
        state = "valid" if self.is_valid() else "invalid"
        return f"<BlenderModel {self.filepath or '(unsaved)'} {state}>"

    @property
    def main(self):
        return self._main

    @property
    def filepath(self) -> str:
        try:
            return self._main.filepath
        except ReferenceError:
            return ""

    def invalidate(self) -> None:
        self._invalidated = True

    def is_valid(self) -> bool:
        if self._invalidated:
            return False
        try:
            self._main.as_pointer()
        except ReferenceError:
            return False
        return True

    @property
    def operation_depth(self) -> int:
        return len(self._operations)

    def start_operation(
        self,
        name: str,
        undoable: bool = True,
        repeatable: bool = False,
        transparent: bool = False,
    ) -> None:
        # Blender has no repeat-last for script changes; the flag is accepted for parity.
        if undoable and not transparent:
            # Boundary step, so an abort only rolls back this operation's changes.
            _call_undo_operator(bpy.ops.ed.undo_push, message=f"Before {name}")
        self._operations.append((name, undoable, transparent))
        logger.debug("Started operation %r (transparent=%s)", name, transparent)

    def commit_operation(self) -> None:
        if not self._operations:
            raise OperationStateError("No operation to commit")
        name, undoable, transparent = self._operations.pop()
        if undoable and not transparent:
            _call_undo_operator(bpy.ops.ed.undo_push, message=name)
        logger.debug("Committed operation %r", name)

    def abort_operation(self) -> None:
        if not self._operations:
            raise OperationStateError("No operation to abort")
        name, undoable, transparent = self._operations[-1]
        if transparent:
            raise TransparentAbortError(
                f"Refusing to abort transparent operation {name!r}: it would abort the previous one as well"
            )
        self._operations.pop()
        if not undoable:
            logger.warning("Operation %r is not undoable, its changes stay", name)
            return
        # Step back to the boundary pushed by start_operation.
        _call_undo_operator(bpy.ops.ed.undo_push, message=name)
        _call_undo_operator(bpy.ops.ed.undo)
        logger.debug("Aborted operation %r", name)


def active_model() -> BlenderModel:
    """Return the model of the currently open blend-file."""
    global _active_model
    if _active_model is None or not _active_model.is_valid():
        _active_model = BlenderModel(bpy.data)
    return _active_model


def _on_load_pre(*_args) -> None:
    global _active_model
    for model in list(_MODELS):
        model.invalidate()
    _active_model = None
    logger.debug("Blend-file loading, models invalidated")


_load_pre_handler: Callable[..., None] | None = None


def attach(observer, persistent: bool = False) -> list[tuple[Any, Callable[..., None]]]:
    """Append *observer*'s forwarders to the matching ``bpy.app.handlers`` lists.

    Persistent handlers outlive file loads, which invalidate every
    BlenderModel, so an observer bound to one is rebound to
    :func:`active_model` instead.
    """
    if persistent and isinstance(observer.model, BlenderModel):
        observer.model = active_model
    attached = []
    for event in type(observer).safer_events():
        if not event.startswith("on_"):
            continue
        handler_list = getattr(bpy.app.handlers, event[len("on_"):], None)
        if not isinstance(handler_list, list):
            logger.debug("%s has no app handler list, not attached", event)
            continue

        # Bound methods can't carry the persistent flag, so wrap them.
        def _handler(*args, _forward=getattr(observer, event)) -> None:
            _forward(*args)

        if persistent:
            _handler = _persistent(_handler)
        handler_list.append(_handler)
        attached.append((handler_list, _handler))
    observer._safer_attached = getattr(observer, "_safer_attached", []) + attached
    logger.debug("Attached %d handlers for %r", len(attached), observer)
    return attached


def detach(observer) -> None:
    """Remove everything :func:`attach` added for *observer*."""
    for handler_list, func in getattr(observer, "_safer_attached", []):
        if func in handler_list:
            handler_list.remove(func)
    observer._safer_attached = []


def check_version(minimum: tuple[int, ...]) -> None:
    """Raise RuntimeError when the running Blender is older than *minimum*."""
    if tuple(bpy.app.version) < tuple(minimum):
        required = ".".join(str(part) for part in minimum[:2])
        raise RuntimeError(f"{config.LOG_PREFIX} requires Blender {required} or higher")


def register() -> None:
    global _load_pre_handler
    _load_pre_handler = _persistent(_on_load_pre)
    if _load_pre_handler not in bpy.app.handlers.load_pre:
        bpy.app.handlers.load_pre.append(_load_pre_handler)


def unregister() -> None:
    global _load_pre_handler, _active_model
    if _load_pre_handler in bpy.app.handlers.load_pre:
        bpy.app.handlers.load_pre.remove(_load_pre_handler)
    _load_pre_handler = None
    _active_model = None
