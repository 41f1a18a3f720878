"""Rack commands."""
from __future__ import annotations

import copy
from typing import Any, Dict, List, Mapping, Protocol, Sequence

from rack_engines.history.commands.base import Command, CommandContractError, CommandKind
from rack_engines.layout_core.models import PlacedDevice, Rack


class RackCommandSurface(Protocol):
    def update_rack_raw(self, updates: Mapping[str, Any]) -> None: ...
    def replace_rack_raw(self, rack: Rack) -> None: ...
    def clear_rack_devices_raw(self) -> List[PlacedDevice]: ...
    def restore_rack_devices_raw(self, devices: List[PlacedDevice]) -> None: ...
    def get_rack(self) -> Rack: ...


class UpdateRackCommand(Command):
    kind = CommandKind.UPDATE_RACK

    def __init__(self, before: Mapping[str, Any], after: Mapping[str, Any], surface: RackCommandSurface):
        super().__init__("Update rack settings")
        if not after:
            raise CommandContractError("Rack update requires at least one setting")
        self.before: Dict[str, Any] = copy.deepcopy(dict(before))
        self.after: Dict[str, Any] = copy.deepcopy(dict(after))
        self.surface = surface

    def forward(self) -> None:
        self.surface.update_rack_raw(copy.deepcopy(self.after))

    def reverse(self) -> None:
        self.surface.update_rack_raw(copy.deepcopy(self.before))


class ReplaceRackCommand(Command):
    kind = CommandKind.REPLACE_RACK

    def __init__(self, old_rack: Rack, new_rack: Rack, surface: RackCommandSurface):
        super().__init__("Replace rack")
        if old_rack is None or new_rack is None:
            raise CommandContractError("Rack replace requires both racks")
        # Cloned now, not at execute time.
        self.old_rack = old_rack.model_copy(deep=True)
        self.new_rack = new_rack.model_copy(deep=True)
        self.surface = surface

    def forward(self) -> None:
        self.surface.replace_rack_raw(self.new_rack)

    def reverse(self) -> None:
        self.surface.replace_rack_raw(self.old_rack)


class ClearRackCommand(Command):
    kind = CommandKind.CLEAR_RACK

    def __init__(self, devices: Sequence[PlacedDevice], surface: RackCommandSurface):
        count = len(devices)
        super().__init__(f"Clear rack ({count} device{'' if count == 1 else 's'})")
        self.devices = [d.model_copy(deep=True) for d in devices]
        self.surface = surface

    def forward(self) -> None:
        self.surface.clear_rack_devices_raw()

    def reverse(self) -> None:
        self.surface.restore_rack_devices_raw(self.devices)


def create_update_rack_command(
    before: Mapping[str, Any],
    after: Mapping[str, Any],
    surface: RackCommandSurface,
) -> Command:
    return UpdateRackCommand(before, after, surface)


def create_replace_rack_command(old_rack: Rack, new_rack: Rack, surface: RackCommandSurface) -> Command:
    return ReplaceRackCommand(old_rack, new_rack, surface)


def create_clear_rack_command(devices: Sequence[PlacedDevice], surface: RackCommandSurface) -> Command:
    if devices is None:
        raise CommandContractError("Clear command requires the devices being cleared")
    return ClearRackCommand(devices, surface)
