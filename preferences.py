"""Add-on preferences for Safer Observer Events."""

import bpy
from bpy.types import AddonPreferences
from bpy.props import BoolProperty, FloatProperty, StringProperty

from . import config, deferred, __package__


def _update_debug_logging(self, context):
    config.configure_logging(self.debug_logging)


class SaferObserverEventsPreferences(AddonPreferences):
    """Preferences for Safer Observer Events."""

    bl_idname = __package__

    operation_name: StringProperty(
        name="Operation Name",
        description="Name of the transparent operation deferred changes run in",
        default=config.DEFAULT_OPERATION_NAME,
        maxlen=255,
    )

    first_interval: FloatProperty(
        name="Delay",
        description="Seconds to wait before running a deferred change (0 runs it as soon as Blender is idle)",
        default=config.DEFAULT_FIRST_INTERVAL,
        min=0.0,
        soft_max=1.0,
        unit='TIME_ABSOLUTE',
    )

    debug_logging: BoolProperty(
        name="Debug Logging",
        description="Log every deferred change to the console",
        default=False,
        update=_update_debug_logging,
    )

    def draw(self, context):
        """Draw the preferences UI."""
        layout = self.layout

        # Status
        box = layout.box()
        row = box.row()
        row.label(text="Pending Changes:", icon='INFO')
        row.label(text=str(deferred.pending_count()))

        # Operation settings
        box = layout.box()
        box.label(text="Deferred Changes", icon='TIME')
        box.prop(self, "operation_name")
        box.prop(self, "first_interval")

        box = layout.box()
        box.label(text="Diagnostics", icon='CONSOLE')
        box.prop(self, "debug_logging")


classes = (
    SaferObserverEventsPreferences,
)


def register():
    for cls in classes:
        bpy.utils.register_class(cls)


def unregister():
    for cls in reversed(classes):
        bpy.utils.unregister_class(cls)
