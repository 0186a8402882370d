"""
Use cases for handling device-related operations in the application layer.

This module defines classes that encapsulate the business logic for interacting with device entities: listing devices and toggling a device with an optimistic cache update. Each use case class follows the Command pattern and leverages dependency injection for repositories, the cache, the event bus and logging.
"""

import logging
from dataclasses import dataclass

from casa_sync.common.results import Result, ResultHandler
from casa_sync.common.utility import LoggerMixin
from casa_sync.core.application.cache.device_list_cache import (
    DeviceList,
    DeviceListCache,
)
from casa_sync.core.application.errors.application_errors import (
    ApplicationDevicesErrors,
)
from casa_sync.core.application.events.device_events import (
    DeviceToggleFailedEvent,
    DeviceToggleSucceededEvent,
    DeviceToggleWebhookPendingEvent,
)
from casa_sync.core.application.events.event_bus import EventBus
from casa_sync.core.domain.entities.device_entity import (
    DeviceEntity,
    DeviceState,
    is_device_state,
)
from casa_sync.core.domain.entities.webhook_entity import WebhookResult
from casa_sync.core.domain.repositories.devices_repository import (
    DevicesRepository,
)
from casa_sync.core.domain.services.device_webhook import DeviceWebhookNotifier


@dataclass(frozen=True, kw_only=True)
class ToggleOutcome:
    """
    Result value of a persisted toggle.

    Attributes:
        device (DeviceEntity): The device with its new state applied.
        webhook (WebhookResult): Outcome of the webhook notification.
    """

    device: DeviceEntity
    webhook: WebhookResult


class GetDevicesUseCase(LoggerMixin):
    """
    Use case for retrieving a list of all devices.

    Args:
        devices_repository (DevicesRepository): Repository for device data access.
        logger (logging.Logger): Logger instance for logging operations.
    """

    _devices_repository: DevicesRepository

    def __init__(
        self,
        *,
        devices_repository: DevicesRepository,
        logger: logging.Logger,
    ) -> None:
        self._devices_repository = devices_repository
        self._build_logger(logger=logger)

    async def execute(
        self,
    ) -> Result[DeviceList, ApplicationDevicesErrors.DeviceLoadError]:
        """
        Execute the use case to retrieve all devices.

        Returns:
            Result[DeviceList, DeviceLoadError]: The devices sorted by name, or the load error.
        """
        self._logger.debug("Executing GetDevicesUseCase.")
        return await self._devices_repository.get_devices()


class ToggleDeviceUseCase(LoggerMixin):
    """
    Use case for switching a device on or off.

    The new state is written to the cache before the backend is asked to persist
    it. A rejected update restores the captured snapshot as a whole. A persisted
    update is forwarded to the device webhook; webhook problems never undo the
    persisted state.

    Args:
        devices_repository (DevicesRepository): Repository used to persist the state.
        cache (DeviceListCache): The device list cache to update.
        webhook_notifier (DeviceWebhookNotifier): Notifier for the device endpoint.
        event_bus (EventBus): Bus receiving the user-facing notification events.
        logger (logging.Logger): Logger instance for logging operations.
    """

    _devices_repository: DevicesRepository
    _cache: DeviceListCache
    _webhook_notifier: DeviceWebhookNotifier
    _event_bus: EventBus

    def __init__(
        self,
        *,
        devices_repository: DevicesRepository,
        cache: DeviceListCache,
        webhook_notifier: DeviceWebhookNotifier,
        event_bus: EventBus,
        logger: logging.Logger,
    ) -> None:
        self._devices_repository = devices_repository
        self._cache = cache
        self._webhook_notifier = webhook_notifier
        self._event_bus = event_bus
        self._build_logger(logger=logger)

    async def execute(
        self, device: DeviceEntity, next_state: DeviceState
    ) -> Result[ToggleOutcome, ApplicationDevicesErrors.DeviceUpdateError]:
        """
        Execute the toggle.

        Args:
            device (DeviceEntity): The device to toggle.
            next_state (DeviceState): The requested state.

        Returns:
            Result[ToggleOutcome, DeviceUpdateError]: The outcome of a persisted toggle,
                or the persistence error after the cache was rolled back.

        Raises:
            ValueError: If next_state is not "on" or "off".
        """
        if not is_device_state(next_state):
            raise ValueError(f"Invalid device state: {next_state!r}")

        self._logger.debug(
            f"Executing ToggleDeviceUseCase for {device.id} ({device.name}) -> {next_state}"
        )

        previous = self._cache.get_data()

        self._cache.set_data(
            lambda old: tuple(
                d.with_state(next_state) if d.id == device.id else d
                for d in (old or ())
            )
        )

        response = await self._devices_repository.update_device_state(
            device.id, next_state
        )

        if response.success == False:
            self._cache.set_data(previous)
            self._logger.error(
                f"Toggle of {device.name} rejected, cache rolled back: {response.error.details}"
            )
            self._event_bus.publish(
                DeviceToggleFailedEvent(
                    device=device, state=next_state, reason=response.error.details
                )
            )
            return response

        webhook = await self._webhook_notifier.notify(
            device.ip_address, next_state, device_name=device.name
        )

        if webhook.ok:
            self._event_bus.publish(
                DeviceToggleSucceededEvent(device=device, state=next_state)
            )
        else:
            self._logger.info(
                f"{device.name} set to {next_state}, webhook "
                f"{'skipped' if webhook.skipped else 'failed'}."
            )
            self._event_bus.publish(
                DeviceToggleWebhookPendingEvent(
                    device=device, state=next_state, webhook=webhook
                )
            )

        return ResultHandler.ok(
            ToggleOutcome(device=device.with_state(next_state), webhook=webhook)
        )
