"""
Deferred, transparent model changes.

Observer callbacks fire inside the host's own operations. Anything that
changes the model from there must run later, once the current operation has
unwound, and inside a transparent operation so the undo stack isn't cluttered.
"""
from __future__ import annotations

import logging
import weakref
from dataclasses import dataclass
from typing import Callable, Protocol, TypeAlias, runtime_checkable

from . import config
from .exceptions import InvalidTarget

logger = logging.getLogger(__name__)


@runtime_checkable
class RootHandle(Protocol):
    """The mutable model an observer event belongs to."""

    def is_valid(self) -> bool: ...

    def start_operation(
        self,
        name: str,
        undoable: bool = True,
        repeatable: bool = False,
        transparent: bool = False,
    ) -> None: ...

    def commit_operation(self) -> None: ...

    def abort_operation(self) -> None: ...


Work: TypeAlias = Callable[[], object]
Scheduler: TypeAlias = Callable[[Callable[[], None]], object]

_default_scheduler: Scheduler | None = None
_PENDING: weakref.WeakSet[DeferredTask] = weakref.WeakSet()


@dataclass(eq=False)
class DeferredTask:
    """A unit of work waiting for the host loop to go idle."""

    model: RootHandle
    work: Work
    operation_name: str = config.DEFAULT_OPERATION_NAME
    executed: bool = False

    def __call__(self) -> None:
        # Opening a modal window can make a non-repeating timer fire again,
        # and stopping the timer from inside itself is not reliable either.
        if self.executed:
            logger.debug("Ignoring repeated trigger of %r", self.operation_name)
            return None
        self.executed = True
        _PENDING.discard(self)

        if not self.model.is_valid():
            logger.warning("Model became invalid before %r could run; skipping", self.operation_name)
            return None

        self.model.start_operation(
            self.operation_name, undoable=True, repeatable=False, transparent=True
        )
        try:
            self.work()
        finally:
            # Never abort here: aborting a transparent operation aborts the
            # previous one as well.
            self.model.commit_operation()
        return None


def resolve_model(target: object) -> RootHandle:
    """Return the valid model for *target*, which may also be anything with a ``model``."""
    model = target
    if not isinstance(model, RootHandle):
        accessor = getattr(model, "model", None)
        model = accessor() if callable(accessor) else accessor
    if model is None or not isinstance(model, RootHandle) or not model.is_valid():
        raise InvalidTarget(target)
    return model


def set_default_scheduler(scheduler: Scheduler | None) -> None:
    """Use *scheduler* whenever no scheduler is passed explicitly."""
    global _default_scheduler
    _default_scheduler = scheduler


def default_scheduler() -> Scheduler:
    """Return the scheduler used when none is passed explicitly."""
    if _default_scheduler is not None:
        return _default_scheduler
    from . import blender_host
    if not blender_host.bpy:
        raise RuntimeError("No scheduler available: not running inside Blender")
    return blender_host.start_timer


def pending_count() -> int:
    """Number of deferred changes that have been scheduled but have not fired."""
    return len(_PENDING)


def defer_model_change(
    target: object,
    work: Work,
    *,
    scheduler: Scheduler | None = None,
    operation_name: str | None = None,
) -> None:
    """Safely defer *work* and wrap it in a transparent operation on the model.

    *target* is the model itself or an object with a ``model`` accessor. It is
    validated immediately; :class:`InvalidTarget` is raised before anything
    is scheduled.
    """
    model = resolve_model(target)
    task = DeferredTask(
        model,
        work,
        operation_name or config.get_settings().operation_name,
    )
    schedule = scheduler or default_scheduler()
    _PENDING.add(task)
    try:
        schedule(task)
    except Exception:
        _PENDING.discard(task)
        raise
    logger.debug("Deferred %r on %r", task.operation_name, model)
    return None
