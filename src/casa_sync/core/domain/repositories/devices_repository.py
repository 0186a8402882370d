"""
devices_repository.py

Defines the DevicesRepository abstract base class, specifying the contract for repository operations related to DeviceEntity objects. Includes methods for listing devices and persisting a state change, with error handling using Result types.
"""

from abc import ABC, abstractmethod
from typing import Tuple

from casa_sync.common.results import Result
from casa_sync.core.application.errors.application_errors import (
    ApplicationDevicesErrors,
)
from casa_sync.core.domain.entities.device_entity import DeviceEntity, DeviceState


class DevicesRepository(ABC):
    """
    Abstract base class for devices repository operations.

    This class defines the contract for interacting with device-related data sources.
    All methods are asynchronous and return a Result type to encapsulate success or error states.
    """

    @abstractmethod
    async def get_devices(
        self,
    ) -> Result[Tuple[DeviceEntity, ...], ApplicationDevicesErrors.DeviceLoadError]:
        """
        Retrieve all devices, sorted ascending by name.

        Returns:
            Result[Tuple[DeviceEntity, ...], DeviceLoadError]:
                On success, an immutable tuple of DeviceEntity objects.
                On failure, a DeviceLoadError describing the backend error.
        """
        ...

    @abstractmethod
    async def update_device_state(
        self, device_id: str, state: DeviceState
    ) -> Result[None, ApplicationDevicesErrors.DeviceUpdateError]:
        """
        Persist a new state for the device with the given identifier.

        Args:
            device_id (str): The unique identifier of the device.
            state (DeviceState): The state to store.

        Returns:
            Result[None, DeviceUpdateError]:
                On success, None.
                On failure, a DeviceUpdateError describing the rejection.
        """
        ...
