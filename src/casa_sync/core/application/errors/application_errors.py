"""
Application Errors for Device Operations
========================================

This module defines application-level error classes for handling errors related to device operations. It provides specific error types for load failures and rejected state updates, enabling clear and structured error handling throughout the application.
"""

from abc import ABC
from typing import Generic, TypeVar

from casa_sync.common.results import BaseError, DevicesErrorCodes

DevicesErrorCode = TypeVar("DevicesErrorCode", bound=DevicesErrorCodes)


class ApplicationDevicesErrors:
    class DeviceRetrievalError(
        Generic[DevicesErrorCode], BaseError[str, DevicesErrorCode], ABC
    ):
        """Base class for errors related to device retrieval and persistence."""

    class DeviceLoadError(DeviceRetrievalError[DevicesErrorCodes.DEVICE_LOAD_FAILED]):
        """Error raised when the device list could not be fetched."""

        code = DevicesErrorCodes.DEVICE_LOAD_FAILED
        details: str

        def __init__(self, reason: str) -> None:
            self.details = f"Failed to load devices: {reason}"

    class DeviceUpdateError(
        DeviceRetrievalError[DevicesErrorCodes.DEVICE_UPDATE_FAILED]
    ):
        """Error raised when the backend rejects a device state update."""

        code = DevicesErrorCodes.DEVICE_UPDATE_FAILED
        details: str
        device_id: str

        def __init__(self, device_id: str, reason: str) -> None:
            self.device_id = device_id
            self.details = f"Failed to update device {device_id}: {reason}"
