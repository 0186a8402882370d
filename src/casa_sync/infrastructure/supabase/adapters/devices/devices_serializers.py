"""
Serializers for converting raw device rows from the Supabase REST API into domain entities.
"""

from typing import Any, Dict, List, Optional, Tuple

from casa_sync.common.results import Result, ResultHandler
from casa_sync.core.domain.entities.device_entity import DeviceEntity, is_device_state
from casa_sync.infrastructure.supabase.adapters.devices.devices_errors import (
    InvalidDeviceRawEntityError,
)

DEVICE_COLUMNS: Tuple[str, ...] = (
    "id",
    "name",
    "type",
    "state",
    "ip_address",
    "location_id",
)


def _optional_str(value: Any) -> Optional[str]:
    return None if value is None else str(value)


class DeviceSerializer:
    """
    Serializer class for converting raw device rows into DeviceEntity objects.
    """

    @staticmethod
    def from_raw(
        raw_device: Dict[str, Any],
    ) -> Result[DeviceEntity, InvalidDeviceRawEntityError]:
        """
        Converts a raw device row to a DeviceEntity object.
        Validates required fields and the state value.

        Args:
            raw_device (Dict[str, Any]): The raw device row.
        Returns:
            Result[DeviceEntity, InvalidDeviceRawEntityError]:
                Success with DeviceEntity or failure with InvalidDeviceRawEntityError.
        """
        if not isinstance(raw_device, dict):
            return ResultHandler.fail(
                InvalidDeviceRawEntityError(raw_device, "not an object")
            )

        for field in ("id", "name", "state"):
            if raw_device.get(field) is None:
                return ResultHandler.fail(
                    InvalidDeviceRawEntityError(raw_device, f"missing {field}")
                )

        state = raw_device["state"]
        if not is_device_state(state):
            return ResultHandler.fail(
                InvalidDeviceRawEntityError(raw_device, f"unknown state {state!r}")
            )

        return ResultHandler.ok(
            DeviceEntity(
                id=str(raw_device["id"]),
                name=str(raw_device["name"]),
                type=str(raw_device.get("type") or ""),
                state=state,
                ip_address=_optional_str(raw_device.get("ip_address")),
                location_id=_optional_str(raw_device.get("location_id")),
            )
        )

    @staticmethod
    def from_raw_list(
        raw_devices: List[Dict[str, Any]],
    ) -> Result[Tuple[DeviceEntity, ...], InvalidDeviceRawEntityError]:
        """
        Converts a list of raw device rows to a tuple of DeviceEntity objects.
        Fails on the first invalid row.
        """
        entities: List[DeviceEntity] = []

        for raw_device in raw_devices:
            result = DeviceSerializer.from_raw(raw_device)
            if result.success == False:
                return result
            entities.append(result.value)

        return ResultHandler.ok(tuple(entities))

    @staticmethod
    def to_state_patch(state: str) -> Dict[str, str]:
        """Body of a single-field state update."""
        return {"state": state}
