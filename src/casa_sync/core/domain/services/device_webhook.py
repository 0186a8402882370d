"""
device_webhook.py

Defines the DeviceWebhookNotifier abstract base class, the contract for forwarding a persisted state change to a device's own HTTP endpoint.
"""

from abc import ABC, abstractmethod
from typing import Optional

from casa_sync.core.domain.entities.device_entity import DeviceState
from casa_sync.core.domain.entities.webhook_entity import WebhookResult


class DeviceWebhookNotifier(ABC):
    """
    Abstract base class for device webhook notifications.

    Implementations never raise for endpoint problems: missing or invalid
    addresses and failed requests are reported through the WebhookResult.
    """

    @abstractmethod
    async def notify(
        self,
        url: Optional[str],
        state: DeviceState,
        *,
        device_name: Optional[str] = None,
    ) -> WebhookResult:
        """
        Notify the endpoint at url of the new state.

        Args:
            url (Optional[str]): The device endpoint address.
            state (DeviceState): The state that was persisted.
            device_name (Optional[str]): Device name to include in the payload.

        Returns:
            WebhookResult: ok/skipped outcome of the notification.
        """
        ...
