"""Placed-device commands."""
from __future__ import annotations

from typing import Optional, Protocol

from rack_engines.history.commands.base import Command, CommandContractError, CommandKind
from rack_engines.layout_core.models import DeviceFace, PlacedDevice


class DeviceCommandSurface(Protocol):
    def place_device_raw(self, device: PlacedDevice, index: Optional[int] = None) -> int: ...
    def remove_device_at_index_raw(self, index: int) -> Optional[PlacedDevice]: ...
    def move_device_raw(self, index: int, new_position: float) -> bool: ...
    def update_device_face_raw(self, index: int, face: DeviceFace) -> None: ...
    def update_device_name_raw(self, index: int, name: Optional[str]) -> None: ...
    def get_device_at_index(self, index: int) -> Optional[PlacedDevice]: ...


def _require_index(index: Optional[int]) -> int:
    if index is None or index < 0:
        raise CommandContractError(f"Device command requires a device index, got {index!r}")
    return index


class PlaceDeviceCommand(Command):
    kind = CommandKind.PLACE_DEVICE

    def __init__(self, device: PlacedDevice, surface: DeviceCommandSurface, device_name: str):
        super().__init__(f"Place {device_name}")
        self.device = device.model_copy(deep=True)
        self.surface = surface
        # Assigned by the surface on each forward().
        self.placed_index: Optional[int] = None

    def forward(self) -> None:
        self.placed_index = self.surface.place_device_raw(self.device)

    def reverse(self) -> None:
        if self.placed_index is not None:
            self.surface.remove_device_at_index_raw(self.placed_index)
            self.placed_index = None


class MoveDeviceCommand(Command):
    kind = CommandKind.MOVE_DEVICE

    def __init__(self, index: int, old_position: float, new_position: float,
                 surface: DeviceCommandSurface, device_name: str):
        super().__init__(f"Move {device_name}")
        self.index = _require_index(index)
        self.old_position = old_position
        self.new_position = new_position
        self.surface = surface

    def forward(self) -> None:
        self.surface.move_device_raw(self.index, self.new_position)

    def reverse(self) -> None:
        self.surface.move_device_raw(self.index, self.old_position)


class RemoveDeviceCommand(Command):
    kind = CommandKind.REMOVE_DEVICE

    def __init__(self, index: int, device: PlacedDevice, surface: DeviceCommandSurface, device_name: str):
        super().__init__(f"Remove {device_name}")
        self.index = _require_index(index)
        self.device = device.model_copy(deep=True)
        self.surface = surface

    def forward(self) -> None:
        self.surface.remove_device_at_index_raw(self.index)

    def reverse(self) -> None:
        # Back into the same slot so later commands still address the right devices.
        self.surface.place_device_raw(self.device, self.index)


class UpdateDeviceFaceCommand(Command):
    kind = CommandKind.UPDATE_DEVICE_FACE

    def __init__(self, index: int, old_face: DeviceFace, new_face: DeviceFace,
                 surface: DeviceCommandSurface, device_name: str):
        super().__init__(f"Flip {device_name}")
        self.index = _require_index(index)
        self.old_face = DeviceFace(old_face)
        self.new_face = DeviceFace(new_face)
        self.surface = surface

    def forward(self) -> None:
        self.surface.update_device_face_raw(self.index, self.new_face)

    def reverse(self) -> None:
        self.surface.update_device_face_raw(self.index, self.old_face)


class UpdateDeviceNameCommand(Command):
    kind = CommandKind.UPDATE_DEVICE_NAME

    def __init__(self, index: int, old_name: Optional[str], new_name: Optional[str],
                 surface: DeviceCommandSurface, device_type_name: str):
        super().__init__(f"Rename {new_name or device_type_name}")
        self.index = _require_index(index)
        self.old_name = old_name
        self.new_name = new_name
        self.surface = surface

    def forward(self) -> None:
        self.surface.update_device_name_raw(self.index, self.new_name)

    def reverse(self) -> None:
        self.surface.update_device_name_raw(self.index, self.old_name)


def create_place_device_command(
    device: PlacedDevice,
    surface: DeviceCommandSurface,
    device_name: str = "device",
) -> Command:
    if device is None:
        raise CommandContractError("Place command requires a device")
    return PlaceDeviceCommand(device, surface, device_name)


def create_move_device_command(
    index: int,
    old_position: float,
    new_position: float,
    surface: DeviceCommandSurface,
    device_name: str = "device",
) -> Command:
    return MoveDeviceCommand(index, old_position, new_position, surface, device_name)


def create_remove_device_command(
    index: int,
    device: PlacedDevice,
    surface: DeviceCommandSurface,
    device_name: str = "device",
) -> Command:
    if device is None:
        raise CommandContractError("Remove command requires the device being removed")
    return RemoveDeviceCommand(index, device, surface, device_name)


def create_update_device_face_command(
    index: int,
    old_face: DeviceFace,
    new_face: DeviceFace,
    surface: DeviceCommandSurface,
    device_name: str = "device",
) -> Command:
    return UpdateDeviceFaceCommand(index, old_face, new_face, surface, device_name)


def create_update_device_name_command(
    index: int,
    old_name: Optional[str],
    new_name: Optional[str],
    surface: DeviceCommandSurface,
    device_type_name: str = "device",
) -> Command:
    return UpdateDeviceNameCommand(index, old_name, new_name, surface, device_type_name)
