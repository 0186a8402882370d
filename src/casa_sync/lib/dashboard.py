"""
Casa Control Sync Library
=========================

This module provides the main entry point for listing and toggling home-automation devices stored in a Supabase project. It wires the HTTP and Realtime connections, the device list cache, the event bus and the webhook client, and exposes high-level services on top of them.

Classes:
--------
- CasaDashboard: Main entry point for the library, owning connections, cache and event bus.
- CasaDevicesService: Service for device operations (load, refresh, toggle, event hooks).

Usage:
------
- Instantiate `CasaDashboard` using the async `create` or `from_settings` methods.
- Use the `devices` property to load and toggle devices.
- Open a realtime subscription with `devices_channel()`, or mount a `DashboardView`.
"""

import logging
from types import TracebackType
from typing import Any, Callable, Optional, Type

import httpx

from casa_sync.common.results import Result
from casa_sync.common.settings import CasaSettings
from casa_sync.common.utility import ColorFormatter, LoggerMixin
from casa_sync.core.application.cache.device_list_cache import (
    DeviceList,
    DeviceListCache,
)
from casa_sync.core.application.errors.application_errors import (
    ApplicationDevicesErrors,
)
from casa_sync.core.application.events.device_events import (
    DevicesChangedEvent,
    DeviceToggleFailedEvent,
    DeviceToggleSucceededEvent,
    DeviceToggleWebhookPendingEvent,
)
from casa_sync.core.application.events.event_bus import EventBus
from casa_sync.core.application.use_cases.devices_use_cases import (
    GetDevicesUseCase,
    ToggleDeviceUseCase,
    ToggleOutcome,
)
from casa_sync.core.domain.entities.device_entity import DeviceEntity, DeviceState
from casa_sync.core.domain.repositories.devices_repository import (
    DevicesRepository,
)
from casa_sync.core.domain.services.device_webhook import DeviceWebhookNotifier
from casa_sync.infrastructure.scheduler.scheduler_service import SchedulerService
from casa_sync.infrastructure.supabase.adapters.devices.devices_adapter import (
    SupabaseHttpDevicesAdapter,
)
from casa_sync.infrastructure.supabase.http.http_connection import (
    SupabaseHttpConnection,
)
from casa_sync.infrastructure.supabase.realtime.realtime_channel import (
    ConnectionFactory,
    DevicesChannelSubscription,
)
from casa_sync.infrastructure.webhook.webhook_client import DeviceWebhookClient
from casa_sync.presentation.toasts import ToastCenter

LOGGER_NAME = "CasaControlSync"


class CasaDashboard(LoggerMixin):
    """
    Main entry point for the Casa Control Sync library.

    Owns the HTTP connection, webhook client, scheduler, event bus and device list
    cache of one dashboard. Nothing is shared between instances.

    Args:
        http_connection (SupabaseHttpConnection): HTTP connection to the Supabase REST API.
        webhook_client (DeviceWebhookClient): Client used for device webhooks.
        logger (logging.Logger): Logger instance for logging.
        schema (str): Schema holding the devices table.
        table (str): Devices table name.
        heartbeat_interval (float): Seconds between realtime heartbeats.
        connection_factory (Optional[ConnectionFactory]): Opens realtime connections.
        devices_repository (Optional[DevicesRepository]): Overrides the Supabase adapter.
    """

    _http_connection: SupabaseHttpConnection
    _webhook_client: DeviceWebhookClient
    _event_bus: EventBus
    _scheduler_service: SchedulerService
    _devices_adapter: DevicesRepository
    _cache: DeviceListCache
    _devices: "CasaDevicesService"
    _toasts: ToastCenter

    def __init__(
        self,
        *,
        http_connection: SupabaseHttpConnection,
        webhook_client: DeviceWebhookClient,
        logger: logging.Logger,
        schema: str = "public",
        table: str = "devices",
        heartbeat_interval: float = 30.0,
        connection_factory: Optional[ConnectionFactory] = None,
        devices_repository: Optional[DevicesRepository] = None,
    ) -> None:
        self._logger = logger
        self._schema = schema
        self._table = table
        self._heartbeat_interval = heartbeat_interval
        self._connection_factory = connection_factory
        self._event_bus = EventBus(logger=logger)
        self._scheduler_service = SchedulerService(logger=logger)
        self._http_connection = http_connection
        self._webhook_client = webhook_client
        self._devices_adapter = devices_repository or SupabaseHttpDevicesAdapter(
            connection=http_connection, logger=logger, table=table
        )
        self._cache = DeviceListCache(
            fetcher=GetDevicesUseCase(
                devices_repository=self._devices_adapter, logger=logger
            ).execute,
            logger=logger,
        )
        self._devices = CasaDevicesService(
            devices_adapter=self._devices_adapter,
            cache=self._cache,
            webhook_notifier=self._webhook_client,
            logger=logger,
            event_bus=self._event_bus,
        )
        self._toasts = ToastCenter(event_bus=self._event_bus, logger=logger)

    @property
    def devices(self) -> "CasaDevicesService":
        """
        Access the devices service for loading and toggling devices.
        """
        return self._devices

    @property
    def cache(self) -> DeviceListCache:
        return self._cache

    @property
    def event_bus(self) -> EventBus:
        return self._event_bus

    @property
    def toasts(self) -> ToastCenter:
        return self._toasts

    def devices_channel(self) -> DevicesChannelSubscription:
        """
        Create a new, unopened realtime subscription to the devices table.

        Returns:
            DevicesChannelSubscription: A handle to open on mount and close on unmount.
        """
        return DevicesChannelSubscription(
            supabase_url=self._http_connection.supabase_url,
            api_key=self._http_connection.api_key,
            schema=self._schema,
            table=self._table,
            event_bus=self._event_bus,
            scheduler=self._scheduler_service,
            logger=self._logger,
            heartbeat_interval=self._heartbeat_interval,
            connection_factory=self._connection_factory,
        )

    @classmethod
    async def create(
        cls,
        *,
        supabase_url: str,
        supabase_key: str,
        schema: str = "public",
        table: str = "devices",
        log_level: int = logging.INFO,
        http_timeout: Optional[float] = None,
        webhook_timeout: Optional[float] = None,
        heartbeat_interval: float = 30.0,
        http_transport: Optional[httpx.AsyncBaseTransport] = None,
        webhook_transport: Optional[httpx.AsyncBaseTransport] = None,
        connection_factory: Optional[ConnectionFactory] = None,
    ) -> "CasaDashboard":
        """
        Asynchronously create and initialize a CasaDashboard instance.

        Args:
            supabase_url (str): Project URL.
            supabase_key (str): Project API key.
            schema (str, optional): Schema of the devices table. Defaults to "public".
            table (str, optional): Devices table name. Defaults to "devices".
            log_level (int, optional): Logging level. Defaults to logging.INFO.
            http_timeout (Optional[float]): Backend request timeout, None disables it.
            webhook_timeout (Optional[float]): Webhook request timeout, None disables it.
            heartbeat_interval (float): Seconds between realtime heartbeats.

        Returns:
            CasaDashboard: Initialized dashboard instance.
        """
        logger = cls.build_logger(log_level=log_level)

        http_connection = SupabaseHttpConnection(
            supabase_url=supabase_url,
            api_key=supabase_key,
            schema=schema,
            logger=logger,
            timeout=http_timeout,
            transport=http_transport,
        )
        webhook_client = DeviceWebhookClient(
            logger=logger, timeout=webhook_timeout, transport=webhook_transport
        )

        logger.info(f"Casa dashboard ready for {http_connection.supabase_url}")

        return cls(
            http_connection=http_connection,
            webhook_client=webhook_client,
            logger=logger,
            schema=schema,
            table=table,
            heartbeat_interval=heartbeat_interval,
            connection_factory=connection_factory,
        )

    @classmethod
    async def from_settings(
        cls, settings: Optional[CasaSettings] = None, **kwargs: Any
    ) -> "CasaDashboard":
        """
        Create a dashboard from CasaSettings (read from the environment when omitted).

        Extra keyword arguments are passed to `create`.
        """
        settings = settings or CasaSettings()  # type: ignore[call-arg]
        return await cls.create(
            supabase_url=settings.supabase_url,
            supabase_key=settings.supabase_key,
            schema=settings.db_schema,
            table=settings.devices_table,
            log_level=settings.log_level_value,
            http_timeout=settings.http_timeout,
            webhook_timeout=settings.webhook_timeout,
            heartbeat_interval=settings.realtime_heartbeat_interval,
            **kwargs,
        )

    @staticmethod
    def build_logger(log_level: int = logging.INFO) -> logging.Logger:
        """
        Build and configure a logger for the dashboard.

        Args:
            log_level (int, optional): Logging level. Defaults to logging.INFO.

        Returns:
            logging.Logger: Configured logger instance.
        """
        logger = logging.getLogger(LOGGER_NAME)
        handler = logging.StreamHandler()
        formatter = ColorFormatter(
            "[%(asctime)s] [%(name)s] [%(levelname)s] %(message)s",
            stream=handler.stream,
        )
        handler.setFormatter(formatter)

        if not logger.hasHandlers():
            logger.addHandler(handler)

        logger.setLevel(log_level)

        return logger

    def get_logger(self) -> logging.Logger:
        return self._logger

    async def close(self) -> None:
        """
        Cancel pending re-fetches, stop the scheduler and close the HTTP clients.
        """
        self._toasts.close()
        await self._cache.aclose()
        await self._scheduler_service.shutdown()
        await self._webhook_client.aclose()
        if not self._http_connection.is_closed:
            await self._http_connection.aclose()

        self._logger.info("CasaDashboard connections closed.")

    async def __aenter__(self: "CasaDashboard") -> "CasaDashboard":
        return self

    async def __aexit__(
        self: "CasaDashboard",
        exc_type: Optional[Type[BaseException]],
        exc_val: Optional[BaseException],
        exc_tb: Optional[TracebackType],
    ) -> None:
        await self.close()


class CasaDevicesService:
    """
    Service for device-related operations.

    Provides methods to load and refresh the cached device list, toggle devices,
    and register callbacks for change and toggle events.
    """

    def __init__(
        self,
        *,
        devices_adapter: DevicesRepository,
        cache: DeviceListCache,
        webhook_notifier: DeviceWebhookNotifier,
        logger: logging.Logger,
        event_bus: EventBus,
    ) -> None:
        self._devices_adapter = devices_adapter
        self._cache = cache
        self._webhook_notifier = webhook_notifier
        self._logger = logger
        self._event_bus = event_bus

    async def get_devices(
        self,
    ) -> Result[DeviceList, ApplicationDevicesErrors.DeviceLoadError]:
        """
        Fetch the device list from the backend without touching the cache.

        Returns:
            Result[DeviceList, DeviceLoadError]: Devices sorted by name or the load error.
        """
        use_case = GetDevicesUseCase(
            devices_repository=self._devices_adapter, logger=self._logger
        )

        response = await use_case.execute()

        if response.success == False:
            self._logger.error(f"Error retrieving devices: {response.error.details}")

        return response

    async def load(
        self,
    ) -> Result[DeviceList, ApplicationDevicesErrors.DeviceLoadError]:
        """
        Fetch the device list into the cache.
        """
        return await self._cache.fetch()

    async def refresh(self) -> None:
        """
        Invalidate the cache and wait for the re-fetch to finish.
        """
        await self._cache.invalidate()

    async def toggle_device(
        self, device: DeviceEntity, next_state: DeviceState
    ) -> Result[ToggleOutcome, ApplicationDevicesErrors.DeviceUpdateError]:
        """
        Switch a device to next_state with an optimistic cache update.

        Args:
            device (DeviceEntity): The device to toggle.
            next_state (DeviceState): The requested state.

        Returns:
            Result[ToggleOutcome, DeviceUpdateError]: Outcome of the toggle.
        """
        use_case = ToggleDeviceUseCase(
            devices_repository=self._devices_adapter,
            cache=self._cache,
            webhook_notifier=self._webhook_notifier,
            event_bus=self._event_bus,
            logger=self._logger,
        )
        return await use_case.execute(device, next_state)

    def invalidate_on_change(self) -> Callable[[], None]:
        """
        Invalidate the cache on every DevicesChangedEvent.

        Returns:
            Callable[[], None]: A function removing the subscription.
        """

        def handler(event: DevicesChangedEvent) -> None:
            self._logger.debug(f"Devices changed ({event.change_type}), invalidating cache")
            self._cache.invalidate()

        self._event_bus.subscribe(DevicesChangedEvent, handler)

        return lambda: self._event_bus.unsubscribe(DevicesChangedEvent, handler)

    def on_devices_changed(
        self, callback: Callable[[DevicesChangedEvent], None]
    ) -> None:
        """
        Register a callback for realtime change events on the devices table.
        """
        self._event_bus.subscribe(DevicesChangedEvent, callback)

    def on_toggle_succeeded(
        self, callback: Callable[[DeviceToggleSucceededEvent], None]
    ) -> None:
        """
        Register a callback for toggles that were persisted and accepted by the webhook.
        """
        self._event_bus.subscribe(DeviceToggleSucceededEvent, callback)

    def on_toggle_failed(
        self, callback: Callable[[DeviceToggleFailedEvent], None]
    ) -> None:
        """
        Register a callback for toggles rejected by the backend.
        """
        self._event_bus.subscribe(DeviceToggleFailedEvent, callback)

    def on_toggle_webhook_pending(
        self, callback: Callable[[DeviceToggleWebhookPendingEvent], None]
    ) -> None:
        """
        Register a callback for persisted toggles whose webhook was skipped or failed.
        """
        self._event_bus.subscribe(DeviceToggleWebhookPendingEvent, callback)
