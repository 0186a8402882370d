"""
Adapter module for Supabase REST API device operations.

This module provides an implementation of the DevicesRepository interface backed by the PostgREST endpoint of a Supabase project: listing the device table and persisting single-field state updates.
"""

import logging
from typing import Any, Tuple

import httpx

from casa_sync.common.results import Result, ResultHandler
from casa_sync.common.utility import LoggerMixin
from casa_sync.core.application.errors.application_errors import (
    ApplicationDevicesErrors,
)
from casa_sync.core.domain.entities.device_entity import DeviceEntity, DeviceState
from casa_sync.core.domain.repositories.devices_repository import (
    DevicesRepository,
)
from casa_sync.infrastructure.supabase.adapters.devices.devices_serializers import (
    DEVICE_COLUMNS,
    DeviceSerializer,
)
from casa_sync.infrastructure.supabase.http.http_connection import (
    SupabaseHttpConnection,
)


def _describe_response(response: httpx.Response) -> str:
    try:
        body: Any = response.json()
    except ValueError:
        body = response.text
    if isinstance(body, dict) and body.get("message"):
        return f"{response.status_code} {body['message']}"
    return f"{response.status_code} {body}"


class SupabaseHttpDevicesAdapter(DevicesRepository, LoggerMixin):
    """
    Adapter for interacting with the Supabase REST API for device-related operations.
    Implements the DevicesRepository interface.
    """

    _connection: SupabaseHttpConnection
    _table: str

    def __init__(
        self,
        *,
        connection: SupabaseHttpConnection,
        logger: logging.Logger,
        table: str = "devices",
    ) -> None:
        """
        Initialize the SupabaseHttpDevicesAdapter.

        Args:
            connection (SupabaseHttpConnection): HTTP connection to the Supabase REST API.
            logger (logging.Logger): Logger instance for logging.
            table (str): Name of the devices table.
        """
        self._connection = connection
        self._table = table
        self._build_logger(logger=logger)

    @property
    def connection(self) -> SupabaseHttpConnection:
        return self._connection

    @property
    def table(self) -> str:
        return self._table

    async def get_devices(
        self,
    ) -> Result[Tuple[DeviceEntity, ...], ApplicationDevicesErrors.DeviceLoadError]:
        """
        Retrieve all devices ordered ascending by name.

        Returns:
            Result[Tuple[DeviceEntity, ...], DeviceLoadError]:
                The devices, or a DeviceLoadError for transport errors, non-2xx
                responses and malformed rows.
        """
        params = {"select": ",".join(DEVICE_COLUMNS), "order": "name.asc"}

        try:
            response = await self._connection.client.get(f"/{self._table}", params=params)
        except httpx.HTTPError as e:
            self._logger.error(f"Error requesting devices: {e}")
            return ResultHandler.fail(ApplicationDevicesErrors.DeviceLoadError(str(e)))

        if not response.is_success:
            reason = _describe_response(response)
            self._logger.error(f"Devices request rejected: {reason}")
            return ResultHandler.fail(ApplicationDevicesErrors.DeviceLoadError(reason))

        try:
            raw_devices = response.json()
        except ValueError as e:
            return ResultHandler.fail(
                ApplicationDevicesErrors.DeviceLoadError(f"invalid JSON body: {e}")
            )

        if not isinstance(raw_devices, list):
            return ResultHandler.fail(
                ApplicationDevicesErrors.DeviceLoadError(
                    f"expected a list of rows, got {type(raw_devices).__name__}"
                )
            )

        serialized = DeviceSerializer.from_raw_list(raw_devices)

        if serialized.success == False:
            self._logger.error(serialized.error.details)
            return ResultHandler.fail(
                ApplicationDevicesErrors.DeviceLoadError(serialized.error.details)
            )

        self._logger.debug(f"Fetched {len(serialized.value)} devices.")
        return ResultHandler.ok(serialized.value)

    async def update_device_state(
        self, device_id: str, state: DeviceState
    ) -> Result[None, ApplicationDevicesErrors.DeviceUpdateError]:
        """
        Persist the state of a single device, filtered by its id.

        Args:
            device_id (str): The ID of the device to update.
            state (DeviceState): The new state.

        Returns:
            Result[None, DeviceUpdateError]: None on success, the rejection otherwise.
        """
        try:
            response = await self._connection.client.patch(
                f"/{self._table}",
                params={"id": f"eq.{device_id}"},
                json=DeviceSerializer.to_state_patch(state),
                headers={"Prefer": "return=minimal"},
            )
        except httpx.HTTPError as e:
            self._logger.error(f"Error updating device {device_id}: {e}")
            return ResultHandler.fail(
                ApplicationDevicesErrors.DeviceUpdateError(device_id, str(e))
            )

        if not response.is_success:
            reason = _describe_response(response)
            self._logger.error(f"Update of device {device_id} rejected: {reason}")
            return ResultHandler.fail(
                ApplicationDevicesErrors.DeviceUpdateError(device_id, reason)
            )

        self._logger.debug(f"Device {device_id} state set to {state}.")
        return ResultHandler.ok(None)
