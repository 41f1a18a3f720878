"""
Layout Service.

Holds the live layout document and exposes raw, history-unaware mutators.
Commands drive these; nothing here knows about undo.

Every raw operation checks its arguments before touching state, so a call
either applies completely or raises without side effects. Values are cloned
on the way in and on the way out.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional

from rack_engines.layout_core.models import (
    DEVICE_TYPE_UPDATE_FIELDS,
    RACK_SETTINGS_FIELDS,
    DeviceFace,
    DeviceType,
    Layout,
    PlacedDevice,
    Rack,
)

logger = logging.getLogger(__name__)


class LayoutService:
    """
    The mutation surface for one layout.
    In-memory only.
    """

    def __init__(self, layout: Optional[Layout] = None):
        self._layout = layout.model_copy(deep=True) if layout else Layout()

    # --- Document ---

    def get_layout(self) -> Layout:
        return self._layout.model_copy(deep=True)

    def load_layout(self, layout: Layout) -> None:
        self._layout = layout.model_copy(deep=True)
        logger.debug("Loaded layout %s", layout.id)

    # --- Device types ---

    def get_device_type(self, slug: str) -> Optional[DeviceType]:
        dt = self._find_type(slug)
        return dt.model_copy(deep=True) if dt else None

    def list_device_types(self) -> List[DeviceType]:
        return [dt.model_copy(deep=True) for dt in self._layout.device_types]

    def get_placed_devices_for_type(self, slug: str) -> List[PlacedDevice]:
        return [d.model_copy(deep=True) for d in self._layout.rack.devices if d.device_type == slug]

    def add_device_type_raw(self, device_type: DeviceType, index: Optional[int] = None) -> None:
        """Add a device type, appending unless `index` names a library slot."""
        if self._find_type(device_type.slug):
            raise ValueError(f"Device type {device_type.slug} already exists")
        entry = device_type.model_copy(deep=True)
        if index is None:
            self._layout.device_types.append(entry)
        else:
            self._layout.device_types.insert(index, entry)
        logger.debug("Added device type %s", device_type.slug)

    def remove_device_type_raw(self, slug: str) -> None:
        """Remove a device type together with all of its placed instances."""
        self._layout.device_types = [dt for dt in self._layout.device_types if dt.slug != slug]
        self._layout.rack.devices = [d for d in self._layout.rack.devices if d.device_type != slug]
        logger.debug("Removed device type %s", slug)

    def update_device_type_raw(self, slug: str, updates: Mapping[str, Any]) -> None:
        unknown = set(updates) - DEVICE_TYPE_UPDATE_FIELDS
        if unknown:
            raise ValueError(f"Unknown device type fields: {sorted(unknown)}")
        for i, dt in enumerate(self._layout.device_types):
            if dt.slug == slug:
                merged = {**dt.model_dump(), **dict(updates)}
                self._layout.device_types[i] = DeviceType.model_validate(merged)
                logger.debug("Updated device type %s: %s", slug, sorted(updates))
                return
        raise ValueError(f"Device type {slug} not found")

    # --- Placed devices ---

    def get_device_at_index(self, index: int) -> Optional[PlacedDevice]:
        if not self._valid_index(index):
            return None
        return self._layout.rack.devices[index].model_copy(deep=True)

    def place_device_raw(self, device: PlacedDevice, index: Optional[int] = None) -> int:
        """
        Add a device and return the index it was assigned.

        Appends by default; `index` re-inserts at a known slot so that
        restoring a removed device keeps every other index stable.
        """
        devices = self._layout.rack.devices
        if index is None or index >= len(devices):
            devices.append(device.model_copy(deep=True))
            index = len(devices) - 1
        else:
            if index < 0:
                raise ValueError(f"Invalid device index {index}")
            devices.insert(index, device.model_copy(deep=True))
        logger.debug("Placed %s at U%s (index %s)", device.device_type, device.position, index)
        return index

    def remove_device_at_index_raw(self, index: int) -> Optional[PlacedDevice]:
        if not self._valid_index(index):
            return None
        removed = self._layout.rack.devices.pop(index)
        logger.debug("Removed device at index %s", index)
        return removed.model_copy(deep=True)

    def move_device_raw(self, index: int, new_position: float) -> bool:
        if not self._valid_index(index) or new_position < 1:
            return False
        self._layout.rack.devices[index].position = new_position
        logger.debug("Moved device %s to U%s", index, new_position)
        return True

    def update_device_face_raw(self, index: int, face: DeviceFace) -> None:
        if self._valid_index(index):
            self._layout.rack.devices[index].face = DeviceFace(face)

    def update_device_name_raw(self, index: int, name: Optional[str]) -> None:
        if self._valid_index(index):
            self._layout.rack.devices[index].name = name or None

    # --- Rack ---

    def get_rack(self) -> Rack:
        return self._layout.rack.model_copy(deep=True)

    def update_rack_raw(self, updates: Mapping[str, Any]) -> None:
        unknown = set(updates) - RACK_SETTINGS_FIELDS
        if unknown:
            raise ValueError(f"Unknown rack settings: {sorted(unknown)}")
        merged = {**self._layout.rack.model_dump(), **dict(updates)}
        self._layout.rack = Rack.model_validate(merged)
        logger.debug("Updated rack settings: %s", sorted(updates))

    def replace_rack_raw(self, rack: Rack) -> None:
        self._layout.rack = rack.model_copy(deep=True)
        logger.debug("Replaced rack with %s", rack.name)

    def clear_rack_devices_raw(self) -> List[PlacedDevice]:
        removed = self._layout.rack.devices
        self._layout.rack.devices = []
        logger.debug("Cleared %s devices", len(removed))
        return removed

    def restore_rack_devices_raw(self, devices: List[PlacedDevice]) -> None:
        self._layout.rack.devices = [d.model_copy(deep=True) for d in devices]

    # --- Helpers ---

    def _find_type(self, slug: str) -> Optional[DeviceType]:
        for dt in self._layout.device_types:
            if dt.slug == slug:
                return dt
        return None

    def _valid_index(self, index: int) -> bool:
        return 0 <= index < len(self._layout.rack.devices)

    def snapshot(self) -> Dict[str, Any]:
        """Plain-data view of the document, handy for equality checks."""
        return self._layout.model_dump(mode="json")
