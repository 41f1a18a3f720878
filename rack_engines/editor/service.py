"""
Layout Editor Service.

The action layer between the UI and the history: each action reads the
before-state from the layout, checks that the change is legal, builds a
command and executes it through the editor's own history. Nothing is pushed
when validation fails.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence

from pydantic import ValidationError

from rack_engines.config import runtime_config
from rack_engines.history.commands import (
    BatchCommand,
    Command,
    create_add_device_type_command,
    create_clear_rack_command,
    create_delete_device_type_command,
    create_move_device_command,
    create_place_device_command,
    create_remove_device_command,
    create_replace_rack_command,
    create_update_device_face_command,
    create_update_device_name_command,
    create_update_device_type_command,
    create_update_rack_command,
)
from rack_engines.history.models import HistoryState
from rack_engines.history.service import HistoryStack
from rack_engines.layout_core.collision import can_place_device, can_resize_rack_to
from rack_engines.layout_core.models import (
    DEVICE_TYPE_UPDATE_FIELDS,
    RACK_SETTINGS_FIELDS,
    DeviceFace,
    DeviceType,
    Layout,
    PlacedDevice,
    Rack,
)
from rack_engines.layout_core.service import LayoutService

logger = logging.getLogger(__name__)


class EditorError(ValueError):
    """An editor action was rejected before anything changed."""

    def __init__(self, code: str, message: str, status_code: int = 400, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}


_FLIPPED = {
    DeviceFace.FRONT: DeviceFace.REAR,
    DeviceFace.REAR: DeviceFace.FRONT,
    DeviceFace.BOTH: DeviceFace.BOTH,
}


def _default_layout() -> Layout:
    rack = Rack(
        height=runtime_config.get_default_rack_height(),
        width=runtime_config.get_default_rack_width(),
    )
    return Layout(rack=rack)


class LayoutEditor:
    """One layout document and the history that edits it."""

    def __init__(self, layout: Optional[Layout] = None, max_depth: Optional[int] = None):
        self.layout = LayoutService(layout or _default_layout())
        self.history = HistoryStack(max_depth or runtime_config.get_history_max_depth())

    # --- Document ---

    def get_layout(self) -> Layout:
        return self.layout.get_layout()

    def load_layout(self, layout: Layout) -> None:
        """Swap in a new document. History never spans two documents."""
        self.layout.load_layout(layout)
        self.history.clear()
        logger.info("Loaded layout %s, history cleared", layout.id)

    def history_state(self) -> HistoryState:
        return self.history.state()

    def undo(self) -> bool:
        return self.history.undo()

    def redo(self) -> bool:
        return self.history.redo()

    def clear_history(self) -> None:
        self.history.clear()

    def run(self, command: Command) -> HistoryState:
        self.history.execute(command)
        return self.history.state()

    def run_batch(self, description: str, commands: Sequence[Command]) -> HistoryState:
        """Execute several prepared commands as a single undo step."""
        return self.run(BatchCommand(description, commands))

    # --- Device types ---

    def add_device_type(self, device_type: DeviceType) -> HistoryState:
        if self.layout.get_device_type(device_type.slug):
            raise EditorError(
                "device_type.duplicate",
                f"Device type {device_type.slug} already exists",
                status_code=409,
                details={"slug": device_type.slug},
            )
        return self.run(create_add_device_type_command(device_type, self.layout))

    def update_device_type(self, slug: str, updates: Mapping[str, Any]) -> HistoryState:
        existing = self._require_type(slug)
        unknown = set(updates) - DEVICE_TYPE_UPDATE_FIELDS
        if unknown:
            raise EditorError("device_type.invalid_field", f"Unknown device type fields: {sorted(unknown)}")
        if not updates:
            raise EditorError("device_type.empty_update", "No device type fields given")
        current = existing.model_dump()
        try:
            validated = DeviceType.model_validate({**current, **updates}).model_dump()
        except ValidationError as exc:
            raise EditorError("device_type.invalid_value", str(exc), status_code=422) from exc
        after = {key: validated[key] for key in updates}
        if "u_height" in after:
            self._check_type_height(existing, after["u_height"])
        before = {key: current[key] for key in updates}
        if before == after:
            return self.history_state()
        return self.run(create_update_device_type_command(slug, before, after, self.layout))

    def delete_device_type(self, slug: str) -> HistoryState:
        existing = self._require_type(slug)
        placed = self.layout.get_placed_devices_for_type(slug)
        return self.run(create_delete_device_type_command(existing, placed, self.layout))

    # --- Placed devices ---

    def place_device(
        self,
        device_type: str,
        position: float,
        face: DeviceFace = DeviceFace.FRONT,
        name: Optional[str] = None,
    ) -> HistoryState:
        dt = self._require_type(device_type)
        face = DeviceFace(face)
        rack = self.layout.get_rack()
        if not can_place_device(rack, self.layout.list_device_types(), dt.u_height, position,
                                face=face, is_full_depth=dt.is_full_depth):
            raise EditorError(
                "device.collision",
                f"{dt.display_name} does not fit at U{position}",
                status_code=409,
                details={"device_type": device_type, "position": position, "face": face.value},
            )
        device = PlacedDevice(device_type=device_type, position=position, face=face, name=name)
        return self.run(create_place_device_command(device, self.layout, dt.display_name))

    def move_device(self, index: int, new_position: float) -> HistoryState:
        device, dt = self._require_device(index)
        if new_position == device.position:
            return self.history_state()
        rack = self.layout.get_rack()
        if not can_place_device(rack, self.layout.list_device_types(), dt.u_height, new_position,
                                exclude_index=index, face=device.face, is_full_depth=dt.is_full_depth):
            raise EditorError(
                "device.collision",
                f"{dt.display_name} does not fit at U{new_position}",
                status_code=409,
                details={"index": index, "position": new_position},
            )
        return self.run(create_move_device_command(
            index, device.position, new_position, self.layout, self._label(device, dt)
        ))

    def remove_device(self, index: int) -> HistoryState:
        device, dt = self._require_device(index)
        return self.run(create_remove_device_command(index, device, self.layout, self._label(device, dt)))

    def set_device_face(self, index: int, face: DeviceFace) -> HistoryState:
        device, dt = self._require_device(index)
        face = DeviceFace(face)
        if face == device.face:
            return self.history_state()
        rack = self.layout.get_rack()
        # Re-check against the other face's occupants.
        if not can_place_device(rack, self.layout.list_device_types(), dt.u_height, device.position,
                                exclude_index=index, face=face, is_full_depth=dt.is_full_depth):
            raise EditorError(
                "device.collision",
                f"{dt.display_name} collides on the {face.value} face",
                status_code=409,
                details={"index": index, "face": face.value},
            )
        return self.run(create_update_device_face_command(
            index, device.face, face, self.layout, self._label(device, dt)
        ))

    def flip_device(self, index: int) -> HistoryState:
        device, _ = self._require_device(index)
        return self.set_device_face(index, _FLIPPED[device.face])

    def rename_device(self, index: int, name: Optional[str]) -> HistoryState:
        device, dt = self._require_device(index)
        new_name = name.strip() if name and name.strip() else None
        if new_name == device.name:
            return self.history_state()
        return self.run(create_update_device_name_command(
            index, device.name, new_name, self.layout, dt.display_name
        ))

    # --- Rack ---

    def update_rack(self, settings: Mapping[str, Any]) -> HistoryState:
        unknown = set(settings) - RACK_SETTINGS_FIELDS
        if unknown:
            raise EditorError("rack.invalid_field", f"Unknown rack settings: {sorted(unknown)}")
        if not settings:
            raise EditorError("rack.empty_update", "No rack settings given")
        rack = self.layout.get_rack()
        current = rack.model_dump()
        try:
            validated = Rack.model_validate({**current, **settings}).model_dump()
        except ValidationError as exc:
            raise EditorError("rack.invalid_value", str(exc), status_code=422) from exc
        after = {key: validated[key] for key in settings}
        if "height" in after:
            check = can_resize_rack_to(rack, after["height"], self.layout.list_device_types())
            if not check.allowed:
                raise EditorError(
                    "rack.resize_conflict",
                    f"{len(check.conflicts)} device(s) would not fit in {after['height']}U",
                    status_code=409,
                    details={"conflicts": [d.id for d in check.conflicts]},
                )
        before = {key: current[key] for key in settings}
        if before == after:
            return self.history_state()
        return self.run(create_update_rack_command(before, after, self.layout))

    def replace_rack(self, rack: Rack) -> HistoryState:
        known = {dt.slug for dt in self.layout.list_device_types()}
        missing = sorted({d.device_type for d in rack.devices} - known)
        if missing:
            raise EditorError(
                "rack.unknown_device_types",
                f"Rack references unknown device types: {missing}",
                details={"slugs": missing},
            )
        return self.run(create_replace_rack_command(self.layout.get_rack(), rack, self.layout))

    def clear_rack(self) -> HistoryState:
        devices = self.layout.get_rack().devices
        if not devices:
            raise EditorError("rack.empty", "Rack has no devices to clear")
        return self.run(create_clear_rack_command(devices, self.layout))

    # --- Helpers ---

    def _require_type(self, slug: str) -> DeviceType:
        dt = self.layout.get_device_type(slug)
        if not dt:
            raise EditorError("device_type.not_found", f"Device type {slug} not found",
                              status_code=404, details={"slug": slug})
        return dt

    def _require_device(self, index: int) -> tuple[PlacedDevice, DeviceType]:
        device = self.layout.get_device_at_index(index)
        if not device:
            raise EditorError("device.not_found", f"No device at index {index}",
                              status_code=404, details={"index": index})
        dt = self.layout.get_device_type(device.device_type)
        if not dt:
            # Orphaned instance; treat it as a generic 1U device.
            dt = DeviceType(slug=device.device_type)
        return device, dt

    def _check_type_height(self, existing: DeviceType, new_height: float) -> None:
        rack = self.layout.get_rack()
        resized = [
            dt if dt.slug != existing.slug else dt.model_copy(update={"u_height": new_height})
            for dt in self.layout.list_device_types()
        ]
        for i, placed in enumerate(rack.devices):
            if placed.device_type != existing.slug:
                continue
            if not can_place_device(rack, resized, new_height, placed.position, exclude_index=i,
                                    face=placed.face, is_full_depth=existing.is_full_depth):
                raise EditorError(
                    "device_type.resize_conflict",
                    f"{existing.display_name} at U{placed.position} would not fit at {new_height}U",
                    status_code=409,
                    details={"slug": existing.slug, "index": i},
                )

    @staticmethod
    def _label(device: PlacedDevice, dt: DeviceType) -> str:
        return device.name or dt.display_name


class EditorRegistry:
    """In-memory editors keyed by layout id."""

    def __init__(self, max_depth: Optional[int] = None):
        self._editors: Dict[str, LayoutEditor] = {}
        self._max_depth = max_depth

    def _new_editor(self, layout_id: str) -> LayoutEditor:
        layout = _default_layout()
        layout.id = layout_id
        return LayoutEditor(layout, max_depth=self._max_depth)

    def get(self, layout_id: str) -> LayoutEditor:
        """Editor for `layout_id`, created and kept on first use."""
        if layout_id not in self._editors:
            self._editors[layout_id] = self._new_editor(layout_id)
            logger.info("Created editor for layout %s", layout_id)
        return self._editors[layout_id]

    def view(self, layout_id: str) -> LayoutEditor:
        """
        Editor for read-only access.

        Unknown ids get a blank editor that is not kept, so lookups never
        grow the registry.
        """
        return self._editors.get(layout_id) or self._new_editor(layout_id)

    def drop(self, layout_id: str) -> None:
        # Editors live until dropped or the process exits.
        self._editors.pop(layout_id, None)

    def list_ids(self) -> List[str]:
        return sorted(self._editors)
