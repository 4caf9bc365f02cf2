"""
Safer Observer Events - make observer callbacks safe for changing the model.

Observer callbacks fire inside Blender's own operations. Changing data from
there can corrupt the undo stack or crash Blender. This add-on defers such
changes until Blender is idle again and runs them in a transparent operation,
so they don't show up as a separate undo step.
"""

from . import config, deferred
from .deferred import (
    DeferredTask,
    RootHandle,
    defer_model_change,
    default_scheduler,
    pending_count,
    resolve_model,
    set_default_scheduler,
)
from .exceptions import (
    InvalidTarget,
    OperationStateError,
    SaferObserverError,
    TransparentAbortError,
)
from .observer import SaferObserverEvents

VERSION = "1.0.2"

bl_info = {
    "name": "Safer Observer Events",
    "description": "Defer observer event model changes into transparent operations",
    "author": "Safer Observer Events Team",
    "version": (1, 0, 2),
    "blender": (4, 2, 0),
    "location": "System > Preferences > Add-ons",
    "category": "Development",
}

__all__ = [
    "VERSION",
    "DeferredTask",
    "InvalidTarget",
    "OperationStateError",
    "RootHandle",
    "SaferObserverError",
    "SaferObserverEvents",
    "TransparentAbortError",
    "defer_model_change",
    "default_scheduler",
    "pending_count",
    "resolve_model",
    "set_default_scheduler",
]


def register():
    """Register the preferences and the Blender handlers."""
    from . import blender_host, preferences

    blender_host.check_version(bl_info["blender"])
    preferences.register()
    blender_host.register()
    config.configure_logging(config.get_settings().debug_logging)

    print(f"{config.LOG_PREFIX} {VERSION} registered")


def unregister():
    """Unregister the Blender handlers and the preferences."""
    from . import blender_host, preferences

    pending = deferred.pending_count()
    if pending:
        print(f"{config.LOG_PREFIX}: {pending} deferred change(s) did not run before unregister")

    try:
        blender_host.unregister()
    except Exception as e:
        print(f"{config.LOG_PREFIX}: Error removing handlers during unregister: {e}")

    preferences.unregister()

    print(f"{config.LOG_PREFIX} extension unregistered")


if __name__ == "__main__":
    register()
