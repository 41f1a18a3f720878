"""
Tests for command factories against a live LayoutService.
"""

import pytest
from unittest.mock import MagicMock

from rack_engines.history.commands import (
    BatchCommand,
    Command,
    CommandContractError,
    CommandKind,
    command_timestamp,
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
from rack_engines.layout_core.models import DeviceFace, DeviceType, Layout, PlacedDevice, Rack
from rack_engines.layout_core.service import LayoutService


@pytest.fixture
def surface():
    layout = Layout(
        rack=Rack(height=42, devices=[
            PlacedDevice(id="d0", device_type="switch", position=1),
            PlacedDevice(id="d1", device_type="server", position=3),
            PlacedDevice(id="d2", device_type="switch", position=10),
        ]),
        device_types=[
            DeviceType(slug="switch", u_height=1, model="Switch 24p"),
            DeviceType(slug="server", u_height=2),
        ],
    )
    return LayoutService(layout)


def assert_round_trip(surface, cmd):
    before = surface.snapshot()
    cmd.forward()
    after = surface.snapshot()
    assert after != before
    cmd.reverse()
    assert surface.snapshot() == before
    cmd.forward()
    assert surface.snapshot() == after
    cmd.reverse()
    assert surface.snapshot() == before


def test_command_fields(surface):
    cmd = create_move_device_command(0, 1, 20, surface, "Switch 24p")
    assert cmd.kind == CommandKind.MOVE_DEVICE
    assert cmd.description == "Move Switch 24p"
    assert isinstance(cmd, Command)
    assert cmd.created_at <= command_timestamp()


def test_timestamps_never_decrease(surface):
    stamps = [create_move_device_command(0, 1, 2, surface).created_at for _ in range(20)]
    assert stamps == sorted(stamps)


# --- Device ---

def test_place_device_records_index(surface):
    cmd = create_place_device_command(PlacedDevice(id="new", device_type="server", position=20), surface, "server")

    cmd.forward()
    assert cmd.placed_index == 3
    assert surface.get_device_at_index(3).id == "new"

    cmd.reverse()
    assert [d.id for d in surface.get_rack().devices] == ["d0", "d1", "d2"]

    assert_round_trip(surface, cmd)


def test_place_reverse_without_forward_is_noop(surface):
    before = surface.snapshot()
    create_place_device_command(PlacedDevice(device_type="server", position=20), surface).reverse()
    assert surface.snapshot() == before


def test_move_device(surface):
    cmd = create_move_device_command(1, 3, 30, surface, "server")
    cmd.forward()
    assert surface.get_device_at_index(1).position == 30
    cmd.reverse()
    assert surface.get_device_at_index(1).position == 3
    assert_round_trip(surface, cmd)


def test_remove_device_restores_same_slot(surface):
    device = surface.get_device_at_index(1)
    cmd = create_remove_device_command(1, device, surface, "server")

    cmd.forward()
    assert [d.id for d in surface.get_rack().devices] == ["d0", "d2"]
    cmd.reverse()
    assert [d.id for d in surface.get_rack().devices] == ["d0", "d1", "d2"]


def test_face_and_name(surface):
    flip = create_update_device_face_command(0, DeviceFace.FRONT, DeviceFace.REAR, surface, "Switch 24p")
    assert flip.description == "Flip Switch 24p"
    assert_round_trip(surface, flip)

    rename = create_update_device_name_command(0, None, "core", surface, "Switch 24p")
    assert rename.description == "Rename core"
    assert_round_trip(surface, rename)

    unname = create_update_device_name_command(0, "core", None, surface, "Switch 24p")
    assert unname.description == "Rename Switch 24p"


def test_device_commands_require_index(surface):
    with pytest.raises(CommandContractError):
        create_move_device_command(None, 1, 2, surface)
    with pytest.raises(CommandContractError):
        create_update_device_face_command(-1, DeviceFace.FRONT, DeviceFace.REAR, surface)
    with pytest.raises(CommandContractError):
        create_remove_device_command(0, None, surface)


def test_place_snapshot_isolation(surface):
    device = PlacedDevice(id="new", device_type="server", position=20)
    cmd = create_place_device_command(device, surface)
    device.position = 40
    device.name = "mutated"

    cmd.forward()

    placed = surface.get_device_at_index(cmd.placed_index)
    assert placed.position == 20
    assert placed.name is None


# --- Device types ---

def test_add_device_type(surface):
    dt = DeviceType(slug="pdu", model="PDU 1U")
    cmd = create_add_device_type_command(dt, surface)
    assert cmd.description == "Add PDU 1U"
    dt.model = "changed"

    cmd.forward()
    assert surface.get_device_type("pdu").model == "PDU 1U"
    cmd.reverse()
    assert surface.get_device_type("pdu") is None


def test_update_device_type(surface):
    before = {"model": None}
    after = {"model": "R740"}
    cmd = create_update_device_type_command("server", before, after, surface)
    after["model"] = "mutated"

    cmd.forward()
    assert surface.get_device_type("server").model == "R740"
    cmd.reverse()
    assert surface.get_device_type("server").model is None

    with pytest.raises(CommandContractError):
        create_update_device_type_command("", {}, {}, surface)


def test_delete_device_type_restores_parent_then_children(surface):
    dt = surface.get_device_type("switch")
    placed = surface.get_placed_devices_for_type("switch")
    before = surface.snapshot()
    cmd = create_delete_device_type_command(dt, placed, surface)
    assert cmd.description == "Delete Switch 24p"

    cmd.forward()
    assert surface.get_device_type("switch") is None
    assert [d.id for d in surface.get_rack().devices] == ["d1"]

    cmd.reverse()
    assert surface.snapshot() == before


def test_delete_device_type_call_order():
    surface = MagicMock()
    surface.list_device_types.return_value = [DeviceType(slug="switch")]
    surface.get_rack.return_value = Rack(devices=[PlacedDevice(id="d0", device_type="switch", position=1)])
    dt = DeviceType(slug="switch")
    cmd = create_delete_device_type_command(dt, surface.get_rack.return_value.devices, surface)

    cmd.reverse()

    names = [call[0] for call in surface.method_calls if call[0].endswith("_raw")]
    assert names == ["add_device_type_raw", "place_device_raw"]


# --- Rack ---

def test_update_rack(surface):
    cmd = create_update_rack_command({"height": 42}, {"height": 20}, surface)
    assert cmd.description == "Update rack settings"
    assert_round_trip(surface, cmd)

    with pytest.raises(CommandContractError):
        create_update_rack_command({}, {}, surface)


def test_replace_rack_snapshots_both_racks(surface):
    old = surface.get_rack()
    new = Rack(name="Replacement", height=12)
    cmd = create_replace_rack_command(old, new, surface)
    old.name = "mutated old"
    new.name = "mutated new"
    new.devices.append(PlacedDevice(device_type="server", position=1))

    cmd.forward()
    assert surface.get_rack().name == "Replacement"
    assert surface.get_rack().devices == []
    cmd.reverse()
    assert surface.get_rack().name == "Racky McRackface"
    assert len(surface.get_rack().devices) == 3


def test_clear_rack(surface):
    devices = surface.get_rack().devices
    cmd = create_clear_rack_command(devices, surface)
    assert cmd.description == "Clear rack (3 devices)"
    devices.clear()
    assert_round_trip(surface, cmd)

    single = create_clear_rack_command([PlacedDevice(device_type="server", position=1)], surface)
    assert single.description == "Clear rack (1 device)"


# --- Batch ---

class Recorder(Command):
    kind = CommandKind.PLACE_DEVICE

    def __init__(self, name, log, fail_forward=False, fail_reverse=False):
        super().__init__(name)
        self.log = log
        self.fail_forward = fail_forward
        self.fail_reverse = fail_reverse

    def forward(self):
        if self.fail_forward:
            raise RuntimeError(f"{self.description} failed")
        self.log.append(f"+{self.description}")

    def reverse(self):
        if self.fail_reverse:
            raise RuntimeError(f"{self.description} failed")
        self.log.append(f"-{self.description}")


def test_batch_order():
    log = []
    batch = BatchCommand("Three", [Recorder("C1", log), Recorder("C2", log), Recorder("C3", log)])
    assert batch.kind == CommandKind.BATCH

    batch.forward()
    assert log == ["+C1", "+C2", "+C3"]

    log.clear()
    batch.reverse()
    assert log == ["-C3", "-C2", "-C1"]


def test_batch_rolls_back_on_failure():
    log = []
    batch = BatchCommand("Partial", [Recorder("C1", log), Recorder("C2", log), Recorder("C3", log, fail_forward=True)])

    with pytest.raises(RuntimeError):
        batch.forward()

    assert log == ["+C1", "+C2", "-C2", "-C1"]


def test_batch_reverse_failure_reapplies():
    log = []
    batch = BatchCommand("Partial", [Recorder("C1", log, fail_reverse=True), Recorder("C2", log), Recorder("C3", log)])
    batch.forward()
    log.clear()

    with pytest.raises(RuntimeError):
        batch.reverse()

    assert log == ["-C3", "-C2", "+C2", "+C3"]


def test_batch_requires_children():
    with pytest.raises(CommandContractError):
        BatchCommand("Empty", [])


def test_batch_over_surface(surface):
    before = surface.snapshot()
    batch = BatchCommand("Rearrange", [
        create_move_device_command(0, 1, 20, surface),
        create_update_rack_command({"name": "Racky McRackface"}, {"name": "Lab"}, surface),
        create_place_device_command(PlacedDevice(device_type="switch", position=5), surface),
    ])

    batch.forward()
    assert surface.get_rack().name == "Lab"
    batch.reverse()
    assert surface.snapshot() == before
