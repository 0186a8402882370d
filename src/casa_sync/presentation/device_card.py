"""
Device card: the rendering unit for one device.
"""

from dataclasses import dataclass
from typing import Any, Awaitable, Callable

from casa_sync.core.domain.entities.device_entity import (
    DeviceEntity,
    DeviceState,
    next_state,
)

ToggleCallback = Callable[[DeviceEntity, DeviceState], Awaitable[Any]]


@dataclass(frozen=True)
class DeviceCard:
    """
    Stateless view of a device with a binary switch.

    The card only translates switch input into a requested state and hands it to
    ``on_toggle``.
    """

    device: DeviceEntity
    on_toggle: ToggleCallback

    @property
    def title(self) -> str:
        return self.device.name

    @property
    def badge(self) -> str:
        return self.device.type.upper()

    @property
    def state_label(self) -> str:
        return f"State: {self.device.state}"

    @property
    def checked(self) -> bool:
        return self.device.state == "on"

    @property
    def aria_label(self) -> str:
        return f"Toggle {self.device.name}"

    async def set_checked(self, value: bool) -> Any:
        """Switch moved to ``value``."""
        return await self.on_toggle(self.device, "on" if value else "off")

    async def toggle(self) -> Any:
        """Request the opposite of the current state."""
        return await self.on_toggle(self.device, next_state(self.device.state))

    def render(self) -> str:
        switch = "[x]" if self.checked else "[ ]"
        return f"{switch} {self.title} [{self.badge}] {self.state_label}"
