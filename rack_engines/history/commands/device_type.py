"""Device-type library commands."""
from __future__ import annotations

import copy
from typing import Any, Dict, List, Mapping, Optional, Protocol, Sequence, Tuple

from rack_engines.history.commands.base import Command, CommandContractError, CommandKind
from rack_engines.layout_core.models import DeviceType, PlacedDevice, Rack


class DeviceTypeCommandSurface(Protocol):
    def add_device_type_raw(self, device_type: DeviceType, index: Optional[int] = None) -> None: ...
    def remove_device_type_raw(self, slug: str) -> None: ...
    def update_device_type_raw(self, slug: str, updates: Mapping[str, Any]) -> None: ...
    def place_device_raw(self, device: PlacedDevice, index: Optional[int] = None) -> int: ...
    def remove_device_at_index_raw(self, index: int) -> Optional[PlacedDevice]: ...
    def get_placed_devices_for_type(self, slug: str) -> List[PlacedDevice]: ...
    def list_device_types(self) -> List[DeviceType]: ...
    def get_rack(self) -> Rack: ...


def _require_slug(slug: Optional[str]) -> str:
    if not slug:
        raise CommandContractError("Device type command requires a slug")
    return slug


class AddDeviceTypeCommand(Command):
    kind = CommandKind.ADD_DEVICE_TYPE

    def __init__(self, device_type: DeviceType, surface: DeviceTypeCommandSurface):
        _require_slug(device_type.slug)
        super().__init__(f"Add {device_type.display_name}")
        self.device_type = device_type.model_copy(deep=True)
        self.surface = surface

    def forward(self) -> None:
        self.surface.add_device_type_raw(self.device_type)

    def reverse(self) -> None:
        self.surface.remove_device_type_raw(self.device_type.slug)


class UpdateDeviceTypeCommand(Command):
    kind = CommandKind.UPDATE_DEVICE_TYPE

    def __init__(self, slug: str, before: Mapping[str, Any], after: Mapping[str, Any],
                 surface: DeviceTypeCommandSurface):
        super().__init__(f"Update {_require_slug(slug)}")
        self.slug = slug
        self.before: Dict[str, Any] = copy.deepcopy(dict(before))
        self.after: Dict[str, Any] = copy.deepcopy(dict(after))
        self.surface = surface

    def forward(self) -> None:
        self.surface.update_device_type_raw(self.slug, copy.deepcopy(self.after))

    def reverse(self) -> None:
        self.surface.update_device_type_raw(self.slug, copy.deepcopy(self.before))


class DeleteDeviceTypeCommand(Command):
    """
    Removes a device type and every placed instance of it.

    Undo puts the type back first, then its instances, each at the index it
    had when the command was built.
    """

    kind = CommandKind.DELETE_DEVICE_TYPE

    def __init__(self, device_type: DeviceType, placed_devices: Sequence[PlacedDevice],
                 surface: DeviceTypeCommandSurface):
        _require_slug(device_type.slug)
        super().__init__(f"Delete {device_type.display_name}")
        self.device_type = device_type.model_copy(deep=True)
        self.surface = surface

        slugs = [dt.slug for dt in surface.list_device_types()]
        self.type_index: Optional[int] = slugs.index(device_type.slug) if device_type.slug in slugs else None

        rack_ids = [d.id for d in surface.get_rack().devices]
        restore: List[Tuple[Optional[int], PlacedDevice]] = []
        for device in placed_devices:
            index = rack_ids.index(device.id) if device.id in rack_ids else None
            restore.append((index, device.model_copy(deep=True)))
        # Ascending index order rebuilds the list as it was; unknown slots go last.
        restore.sort(key=lambda item: (item[0] is None, item[0] or 0))
        self.placed_devices = restore

    def forward(self) -> None:
        self.surface.remove_device_type_raw(self.device_type.slug)

    def reverse(self) -> None:
        self.surface.add_device_type_raw(self.device_type, self.type_index)
        for index, device in self.placed_devices:
            self.surface.place_device_raw(device, index)


def create_add_device_type_command(device_type: DeviceType, surface: DeviceTypeCommandSurface) -> Command:
    if device_type is None:
        raise CommandContractError("Add command requires a device type")
    return AddDeviceTypeCommand(device_type, surface)


def create_update_device_type_command(
    slug: str,
    before: Mapping[str, Any],
    after: Mapping[str, Any],
    surface: DeviceTypeCommandSurface,
) -> Command:
    return UpdateDeviceTypeCommand(slug, before, after, surface)


def create_delete_device_type_command(
    device_type: DeviceType,
    placed_devices: Sequence[PlacedDevice],
    surface: DeviceTypeCommandSurface,
) -> Command:
    if device_type is None:
        raise CommandContractError("Delete command requires a device type")
    return DeleteDeviceTypeCommand(device_type, placed_devices, surface)
