"""
Defines the DeviceEntity class, representing a home-automation device with a binary on/off state in the domain layer.
"""

from dataclasses import dataclass, replace
from typing import Literal, Optional, get_args

DeviceState = Literal["on", "off"]

DEVICE_STATES: tuple[str, ...] = get_args(DeviceState)


def is_device_state(value: object) -> bool:
    """Return True if value is one of the two valid device states."""
    return isinstance(value, str) and value in DEVICE_STATES


def next_state(state: DeviceState) -> DeviceState:
    """Return the opposite of the given state."""
    return "off" if state == "on" else "on"


@dataclass(frozen=True, kw_only=True)
class DeviceEntity:
    """
    Represents a controllable device stored in the backend.

    Attributes:
        id (str): Unique, stable identifier for the device.
        name (str): Display name of the device.
        type (str): Category label (e.g. "light", "plug").
        state (DeviceState): Current state, "on" or "off".
        ip_address (Optional[str]): Network address used as the webhook endpoint.
        location_id (Optional[str]): Reference to the device location, if any.
    """

    id: str
    name: str
    type: str
    state: DeviceState
    ip_address: Optional[str] = None
    location_id: Optional[str] = None

    @property
    def is_on(self) -> bool:
        return self.state == "on"

    def with_state(self, state: DeviceState) -> "DeviceEntity":
        """
        Return a copy of the device with the given state.

        Raises:
            ValueError: If state is not "on" or "off".
        """
        if not is_device_state(state):
            raise ValueError(f"Invalid device state: {state!r}")
        return replace(self, state=state)
