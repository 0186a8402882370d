from dataclasses import dataclass
from typing import Literal, Optional

from casa_sync.core.application.events.base_event import BaseEvent
from casa_sync.core.domain.entities.device_entity import DeviceEntity, DeviceState
from casa_sync.core.domain.entities.webhook_entity import WebhookResult

ChangeType = Literal["INSERT", "UPDATE", "DELETE", "UNKNOWN"]


@dataclass(init=True, kw_only=True, frozen=True)
class DevicesChangedEvent(BaseEvent):
    """
    Event triggered when the backend reports a change in the devices table.

    Note:
        The row payload is deliberately not carried. Subscribers treat this
        event as an invalidation trigger and re-fetch the whole list.

    Attributes:
        change_type (ChangeType): The database operation that produced the change.
        schema (str): Schema of the changed table.
        table (str): Name of the changed table.
    """

    change_type: ChangeType
    schema: str
    table: str


@dataclass(init=True, kw_only=True, frozen=True)
class DeviceToggleSucceededEvent(BaseEvent):
    """
    Event triggered when a toggle was persisted and the device webhook accepted it.

    Attributes:
        device (DeviceEntity): The device as it was before the toggle.
        state (DeviceState): The state that was applied.
    """

    device: DeviceEntity
    state: DeviceState

    @property
    def message(self) -> str:
        return f"{self.device.name} turned {self.state}"


@dataclass(init=True, kw_only=True, frozen=True)
class DeviceToggleWebhookPendingEvent(BaseEvent):
    """
    Event triggered when a toggle was persisted but the webhook was skipped or failed.

    Attributes:
        device (DeviceEntity): The device as it was before the toggle.
        state (DeviceState): The state that was applied.
        webhook (WebhookResult): The webhook outcome.
    """

    device: DeviceEntity
    state: DeviceState
    webhook: WebhookResult

    @property
    def message(self) -> str:
        return f"{self.device.name} set to {self.state}"

    @property
    def description(self) -> str:
        return "Webhook not configured or failed."


@dataclass(init=True, kw_only=True, frozen=True)
class DeviceToggleFailedEvent(BaseEvent):
    """
    Event triggered when the backend rejected a toggle and the cache was rolled back.

    Attributes:
        device (DeviceEntity): The device as it was before the toggle.
        state (DeviceState): The state that was requested.
        reason (Optional[str]): Error details reported by the repository.
    """

    device: DeviceEntity
    state: DeviceState
    reason: Optional[str] = None

    @property
    def message(self) -> str:
        return f"Failed to toggle {self.device.name}"
