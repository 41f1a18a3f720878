"""
Tests for the Layout Service mutation surface.
"""

import pytest
from pydantic import ValidationError

from rack_engines.layout_core.models import DeviceFace, DeviceType, Layout, PlacedDevice, Rack
from rack_engines.layout_core.service import LayoutService


class TestLayoutService:

    @pytest.fixture
    def service(self):
        layout = Layout(
            device_types=[
                DeviceType(slug="switch-1u", u_height=1, model="Switch"),
                DeviceType(slug="server-2u", u_height=2),
            ]
        )
        return LayoutService(layout)

    def test_place_returns_assigned_index(self, service):
        assert service.place_device_raw(PlacedDevice(device_type="switch-1u", position=1)) == 0
        assert service.place_device_raw(PlacedDevice(device_type="server-2u", position=3)) == 1
        assert service.get_device_at_index(1).position == 3

    def test_place_at_index_inserts(self, service):
        service.place_device_raw(PlacedDevice(id="a", device_type="switch-1u", position=1))
        service.place_device_raw(PlacedDevice(id="c", device_type="switch-1u", position=5))

        index = service.place_device_raw(PlacedDevice(id="b", device_type="switch-1u", position=3), 1)

        assert index == 1
        assert [d.id for d in service.get_rack().devices] == ["a", "b", "c"]

    def test_remove_at_index(self, service):
        service.place_device_raw(PlacedDevice(id="a", device_type="switch-1u", position=1))

        removed = service.remove_device_at_index_raw(0)

        assert removed.id == "a"
        assert service.get_rack().devices == []
        assert service.remove_device_at_index_raw(0) is None

    def test_move_rejects_bad_index_and_position(self, service):
        service.place_device_raw(PlacedDevice(device_type="switch-1u", position=1))

        assert service.move_device_raw(0, 10) is True
        assert service.move_device_raw(5, 10) is False
        assert service.move_device_raw(0, 0) is False
        assert service.get_device_at_index(0).position == 10

    def test_face_and_name(self, service):
        service.place_device_raw(PlacedDevice(device_type="switch-1u", position=1))

        service.update_device_face_raw(0, DeviceFace.REAR)
        service.update_device_name_raw(0, "core-sw")
        device = service.get_device_at_index(0)
        assert device.face == DeviceFace.REAR
        assert device.name == "core-sw"

        service.update_device_name_raw(0, None)
        assert service.get_device_at_index(0).name is None

    def test_getters_return_copies(self, service):
        service.place_device_raw(PlacedDevice(device_type="switch-1u", position=1))

        device = service.get_device_at_index(0)
        device.position = 30
        rack = service.get_rack()
        rack.devices.clear()

        assert service.get_device_at_index(0).position == 1

    def test_stored_values_are_copies(self, service):
        device = PlacedDevice(device_type="switch-1u", position=1)
        service.place_device_raw(device)
        device.position = 20

        assert service.get_device_at_index(0).position == 1

    def test_remove_device_type_removes_instances(self, service):
        service.place_device_raw(PlacedDevice(device_type="switch-1u", position=1))
        service.place_device_raw(PlacedDevice(device_type="server-2u", position=3))

        service.remove_device_type_raw("switch-1u")

        assert service.get_device_type("switch-1u") is None
        assert [d.device_type for d in service.get_rack().devices] == ["server-2u"]

    def test_add_duplicate_device_type_fails(self, service):
        with pytest.raises(ValueError):
            service.add_device_type_raw(DeviceType(slug="switch-1u"))

    def test_add_device_type_at_index(self, service):
        service.add_device_type_raw(DeviceType(slug="pdu"), 0)
        assert [dt.slug for dt in service.list_device_types()] == ["pdu", "switch-1u", "server-2u"]

    def test_update_device_type(self, service):
        service.update_device_type_raw("server-2u", {"model": "R740", "u_height": 2})
        assert service.get_device_type("server-2u").model == "R740"

        with pytest.raises(ValueError):
            service.update_device_type_raw("server-2u", {"slug": "other"})
        with pytest.raises(ValueError):
            service.update_device_type_raw("missing", {"model": "x"})

    def test_update_rack_is_atomic(self, service):
        service.update_rack_raw({"height": 20, "name": "Lab"})
        assert service.get_rack().height == 20

        with pytest.raises(ValidationError):
            service.update_rack_raw({"name": "Broken", "height": 0})
        rack = service.get_rack()
        assert rack.name == "Lab"
        assert rack.height == 20

        with pytest.raises(ValueError):
            service.update_rack_raw({"devices": []})

    def test_clear_and_restore(self, service):
        service.place_device_raw(PlacedDevice(id="a", device_type="switch-1u", position=1))
        service.place_device_raw(PlacedDevice(id="b", device_type="server-2u", position=3))

        removed = service.clear_rack_devices_raw()
        assert [d.id for d in removed] == ["a", "b"]
        assert service.get_rack().devices == []

        service.restore_rack_devices_raw(removed)
        assert [d.id for d in service.get_rack().devices] == ["a", "b"]

    def test_replace_rack(self, service):
        service.replace_rack_raw(Rack(name="Other", height=12, width=10))
        rack = service.get_rack()
        assert rack.name == "Other"
        assert rack.width == 10

    def test_load_layout(self, service):
        service.load_layout(Layout(id="fresh", name="Fresh"))
        layout = service.get_layout()
        assert layout.id == "fresh"
        assert layout.device_types == []
