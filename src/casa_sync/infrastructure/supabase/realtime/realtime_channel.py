"""
Scoped subscription to change events of the devices table.

A DevicesChannelSubscription owns one Realtime connection, the channel join and
the heartbeat job for as long as it is open. It is opened when a dashboard view
mounts and closed when it unmounts.
"""

import logging
from types import TracebackType
from typing import Any, Awaitable, Callable, Dict, Optional, Type

import websockets

from casa_sync.common.utility import LoggerMixin
from casa_sync.core.application.events.event_bus import EventBus
from casa_sync.infrastructure.scheduler.scheduler_service import SchedulerService
from casa_sync.infrastructure.supabase.realtime.realtime_connection import (
    RealtimeConnection,
)
from casa_sync.infrastructure.supabase.realtime.realtime_handlers import (
    PHOENIX_TOPIC,
    ChannelManager,
)

ConnectionFactory = Callable[..., Awaitable[RealtimeConnection]]


def build_join_payload(schema: str, table: str, api_key: str) -> Dict[str, Any]:
    """Join payload subscribing to every change event on schema.table."""
    return {
        "config": {
            "broadcast": {"ack": False, "self": False},
            "presence": {"key": ""},
            "postgres_changes": [{"event": "*", "schema": schema, "table": table}],
        },
        "access_token": api_key,
    }


class DevicesChannelSubscription(LoggerMixin):
    """
    Subscription handle for ``realtime:<schema>:<table>``.

    Args:
        supabase_url (str): Project URL.
        api_key (str): Project API key.
        schema (str): Schema of the devices table.
        table (str): Devices table name.
        event_bus (EventBus): Bus receiving DevicesChangedEvent instances.
        scheduler (SchedulerService): Scheduler running the heartbeat job.
        logger (logging.Logger): Logger instance.
        heartbeat_interval (float): Seconds between heartbeats.
        connection_factory (ConnectionFactory): Coroutine function opening the connection.
    """

    _connection: Optional[RealtimeConnection]
    _manager: Optional[ChannelManager]
    _heartbeat_job_id: Optional[str]
    _join_ref: Optional[str]

    def __init__(
        self,
        *,
        supabase_url: str,
        api_key: str,
        schema: str,
        table: str,
        event_bus: EventBus,
        scheduler: SchedulerService,
        logger: logging.Logger,
        heartbeat_interval: float = 30.0,
        connection_factory: Optional[ConnectionFactory] = None,
    ) -> None:
        self._supabase_url = supabase_url
        self._api_key = api_key
        self._schema = schema
        self._table = table
        self._event_bus = event_bus
        self._scheduler = scheduler
        self._root_logger = logger
        self._heartbeat_interval = heartbeat_interval
        self._connection_factory = connection_factory or RealtimeConnection.create
        self._connection = None
        self._manager = None
        self._heartbeat_job_id = None
        self._join_ref = None
        self._build_logger(logger=logger, scope=f"{schema}.{table}")

    @property
    def topic(self) -> str:
        return f"realtime:{self._schema}:{self._table}"

    @property
    def is_open(self) -> bool:
        return self._connection is not None

    async def open(self) -> None:
        """
        Connect, join the channel and start the heartbeat.
        """
        if self._connection is not None:
            self._logger.warning(f"Subscription to {self.topic} is already open")
            return

        connection = await self._connection_factory(
            supabase_url=self._supabase_url,
            api_key=self._api_key,
            logger=self._root_logger,
        )
        self._connection = connection
        self._manager = ChannelManager(
            topic=self.topic,
            logger=self._root_logger,
            connection=connection,
            event_bus=self._event_bus,
        )

        self._join_ref = connection.next_ref()
        await connection.send(
            topic=self.topic,
            event="phx_join",
            payload=build_join_payload(self._schema, self._table, self._api_key),
            ref=self._join_ref,
            join_ref=self._join_ref,
        )

        await self._scheduler.start()
        self._heartbeat_job_id = self._scheduler.schedule_interval_task(
            self._send_heartbeat,
            seconds=self._heartbeat_interval,
            job_id=f"heartbeat:{self.topic}:{id(self)}",
        )

        self._logger.info(f"Subscribed to {self.topic}")

    async def close(self) -> None:
        """
        Leave the channel, stop the heartbeat and close the connection. Safe to call twice.
        """
        connection = self._connection
        if connection is None:
            return

        self._connection = None

        if self._heartbeat_job_id is not None:
            self._scheduler.cancel_task(self._heartbeat_job_id)
            self._heartbeat_job_id = None

        if self._manager is not None:
            self._manager.detach()
            self._manager = None

        try:
            await connection.send(
                topic=self.topic,
                event="phx_leave",
                payload={},
                join_ref=self._join_ref,
            )
        except websockets.ConnectionClosed:
            self._logger.debug("Connection already closed, skipping phx_leave")

        await connection.aclose()
        self._join_ref = None
        self._logger.info(f"Unsubscribed from {self.topic}")

    async def _send_heartbeat(self) -> None:
        connection = self._connection
        if connection is None:
            return
        await connection.send(topic=PHOENIX_TOPIC, event="heartbeat", payload={})

    async def __aenter__(self) -> "DevicesChannelSubscription":
        await self.open()
        return self

    async def __aexit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> None:
        await self.close()
