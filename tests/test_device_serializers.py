"""
Tests for DeviceSerializer and the DeviceEntity helpers.
"""

import pytest

from casa_sync.common.results import DevicesErrorCodes
from casa_sync.core.domain.entities.device_entity import (
    DeviceEntity,
    is_device_state,
    next_state,
)
from casa_sync.infrastructure.supabase.adapters.devices.devices_serializers import (
    DeviceSerializer,
)


def _raw(**overrides):
    row = {
        "id": "1",
        "name": "Lamp",
        "type": "light",
        "state": "off",
        "ip_address": "http://lamp.local/api",
        "location_id": None,
    }
    row.update(overrides)
    return row


class TestDeviceEntity:
    def test_next_state(self):
        assert next_state("on") == "off"
        assert next_state("off") == "on"

    def test_is_device_state(self):
        assert is_device_state("on")
        assert is_device_state("off")
        assert not is_device_state("ON")
        assert not is_device_state(None)

    def test_with_state_returns_copy(self):
        device = DeviceEntity(id="1", name="Lamp", type="light", state="off")
        updated = device.with_state("on")
        assert updated.state == "on"
        assert device.state == "off"
        assert updated.id == device.id

    def test_with_state_rejects_unknown_state(self):
        device = DeviceEntity(id="1", name="Lamp", type="light", state="off")
        with pytest.raises(ValueError):
            device.with_state("dim")  # type: ignore[arg-type]


class TestFromRaw:
    def test_valid_row(self):
        result = DeviceSerializer.from_raw(_raw())
        assert result.success == True
        assert result.value == DeviceEntity(
            id="1",
            name="Lamp",
            type="light",
            state="off",
            ip_address="http://lamp.local/api",
            location_id=None,
        )

    def test_numeric_ids_become_strings(self):
        result = DeviceSerializer.from_raw(_raw(id=7, location_id=3))
        assert result.success == True
        assert result.value.id == "7"
        assert result.value.location_id == "3"

    def test_missing_type_defaults_to_empty(self):
        row = _raw()
        del row["type"]
        result = DeviceSerializer.from_raw(row)
        assert result.success == True
        assert result.value.type == ""

    @pytest.mark.parametrize("field", ["id", "name", "state"])
    def test_missing_required_field(self, field):
        row = _raw()
        del row[field]
        result = DeviceSerializer.from_raw(row)
        assert result.success == False
        assert result.error.code == DevicesErrorCodes.INVALID_DEVICE_RAW_ENTITY

    def test_unknown_state_rejected(self):
        result = DeviceSerializer.from_raw(_raw(state="dim"))
        assert result.success == False
        assert "unknown state" in result.error.details


class TestFromRawList:
    def test_keeps_order(self):
        result = DeviceSerializer.from_raw_list(
            [_raw(id="1", name="Fan"), _raw(id="2", name="Lamp")]
        )
        assert result.success == True
        assert isinstance(result.value, tuple)
        assert [d.name for d in result.value] == ["Fan", "Lamp"]

    def test_fails_on_first_invalid_row(self):
        result = DeviceSerializer.from_raw_list([_raw(), _raw(state="broken")])
        assert result.success == False
