"""
Mix-in that makes observer events safe for model changes.

Example::

    class MyObserver(SaferObserverEvents):

        def safer_on_depsgraph_update_post(self, scene, depsgraph):
            # Runs later, inside a transparent operation.
            scene.frame_current += 1

    observer = MyObserver().bind_model(blender_host.active_model)
    blender_host.attach(observer, persistent=True)

Every ``safer_on_*`` method gets an ``on_*`` forwarder when the class is
created. The forwarder calls any plain ``on_*`` implementation right away and
defers the ``safer_`` one. A sub-class overriding a forwarded ``on_*`` should
call ``super()``, which does the deferring.
"""
from __future__ import annotations

import functools
import logging
from typing import Any, Callable, ClassVar, Mapping

from . import deferred
from .exceptions import InvalidTarget

logger = logging.getLogger(__name__)

SAFER_PREFIX = "safer_"
EVENT_PREFIX = "on_"


def _is_forwarder(func: object) -> bool:
    return getattr(func, "__safer_forwarder__", False)


def _inherited(cls: type, name: str) -> object:
    """Look *name* up in the bases of *cls* only."""
    for base in cls.__mro__[1:]:
        if name in base.__dict__:
            return base.__dict__[name]
    return None


def _make_forwarder(event: str, unsafe: Callable[..., object] | None) -> Callable[..., None]:
    def forward(self, *args: Any, **kwargs: Any) -> None:
        # Original callback first, in case a sub-class reacts without changing the model.
        if unsafe is not None:
            unsafe(self, *args, **kwargs)
        handler = getattr(self, type(self)._safer_events[event])
        self.defer_model_change(self.safer_model(), functools.partial(handler, *args, **kwargs))

    forward.__name__ = event
    forward.__qualname__ = event
    forward.__doc__ = f"Forward {event} to its safer handler."
    forward.__safer_forwarder__ = True
    return forward


class SaferObserverEvents:
    """Defer ``safer_on_*`` observer callbacks and wrap them in a transparent operation."""

    # Extra event -> handler method name entries, for handlers not named safer_on_*.
    safer_handlers: ClassVar[Mapping[str, str]] = {}
    _safer_events: ClassVar[dict[str, str]] = {}

    model: deferred.RootHandle | None = None
    scheduler: deferred.Scheduler | None = None

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        table = dict(cls._safer_events)
        for name in dir(cls):
            if name.startswith(SAFER_PREFIX + EVENT_PREFIX) and callable(getattr(cls, name)):
                table[name[len(SAFER_PREFIX):]] = name
        table.update(cls.safer_handlers)
        cls._safer_events = table

        for event in table:
            current = getattr(cls, event, None)
            if _is_forwarder(current):
                continue
            if event in cls.__dict__ and _is_forwarder(_inherited(cls, event)):
                # An override of a forwarded event defers through super().
                continue
            setattr(cls, event, _make_forwarder(event, current))
            logger.debug("%s: forwarding %s to %s", cls.__name__, event, table[event])

    @classmethod
    def safer_events(cls) -> dict[str, str]:
        """Return the event -> safer handler name table of this class."""
        return dict(cls._safer_events)

    def bind_model(
        self,
        model: deferred.RootHandle | Callable[[], deferred.RootHandle],
        scheduler: deferred.Scheduler | None = None,
    ):
        """Set the model (and optionally the scheduler) events are deferred on.

        *model* may also be a zero-argument provider such as
        ``blender_host.active_model``; it is called for every event, so the
        observer follows the model across file loads.
        """
        self.model = model
        if scheduler is not None:
            self.scheduler = scheduler
        return self

    def safer_model(self) -> deferred.RootHandle:
        """Return the bound model, raising InvalidTarget when there is none."""
        model = self.model
        if model is not None and not isinstance(model, deferred.RootHandle) and callable(model):
            model = model()
        if model is None:
            raise InvalidTarget(self)
        return model

    def defer_model_change(self, target: object, work: deferred.Work) -> None:
        """Safely defer *work* and wrap it in an operation on *target*'s model."""
        deferred.defer_model_change(target, work, scheduler=self.scheduler)
