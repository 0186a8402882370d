"""
Defines custom error classes for handling device-related errors in the Supabase adapter infrastructure.
These errors represent raw rows that cannot be turned into device entities.
"""

from typing import Any

from casa_sync.common.results import DevicesErrorCodes
from casa_sync.core.application.errors.application_errors import (
    ApplicationDevicesErrors,
)


class InvalidDeviceRawEntityError(
    ApplicationDevicesErrors.DeviceRetrievalError[
        DevicesErrorCodes.INVALID_DEVICE_RAW_ENTITY
    ],
):
    """
    Error raised when a raw device row is missing fields or carries an unknown state.

    Attributes:
        code (DevicesErrorCodes): The error code for invalid device raw entity.
        details (str): Detailed error message about the invalid entity.
    """

    code = DevicesErrorCodes.INVALID_DEVICE_RAW_ENTITY
    details: str

    def __init__(self, entity: Any, reason: str = "invalid format") -> None:
        self.details = f"Invalid device raw entity ({reason}): {entity}"
