"""
Realtime Handlers for Casa Control Sync

This module defines classes and logic for dispatching Supabase Realtime frames. It provides:

- A registry for frame handlers (`HandlerRegistry`), scoped to one channel topic.
- A manager attaching the registry to a Realtime connection (`ChannelManager`).
- Abstract and concrete handler classes for the frame types a device channel receives (`RealtimeHandler`, `PostgresChangesHandler`, `ReplyHandler`, `ChannelErrorHandler`, `IgnoredHandler`).

Change frames are turned into `DevicesChangedEvent` instances on the event bus; every other frame is only logged.
"""

import logging
from abc import ABC
from typing import Any, Dict, List, Optional

from casa_sync.common.utility import LoggerMixin, StringUtils
from casa_sync.core.application.events.device_events import (
    ChangeType,
    DevicesChangedEvent,
)
from casa_sync.core.application.events.event_bus import EventBus
from casa_sync.infrastructure.supabase.realtime.realtime_connection import (
    RealtimeConnection,
)

PHOENIX_TOPIC = "phoenix"

_CHANGE_TYPES = ("INSERT", "UPDATE", "DELETE")


class ChannelManager(LoggerMixin):
    """
    Attaches a handler registry for one channel topic to a Realtime connection.

    Attributes:
        _registry (HandlerRegistry): Registry for frame handlers.
        _connection (RealtimeConnection): Realtime connection instance.
        _event_bus (EventBus): Event bus receiving change events.
    """

    _registry: "HandlerRegistry"
    _connection: RealtimeConnection
    _event_bus: EventBus

    def __init__(
        self,
        *,
        topic: str,
        logger: logging.Logger,
        connection: RealtimeConnection,
        event_bus: EventBus,
    ) -> None:
        self._build_logger(logger=logger)
        self._connection = connection
        self._registry = HandlerRegistry(topic=topic, logger=logger)
        self._event_bus = event_bus

        self._registry.register_handler(
            PostgresChangesHandler(event_bus=self._event_bus, logger=logger)
        )
        self._registry.register_handler(
            ReplyHandler(event_bus=self._event_bus, logger=logger)
        )
        self._registry.register_handler(
            ChannelErrorHandler(event_bus=self._event_bus, logger=logger)
        )
        self._registry.register_handler(
            IgnoredHandler(event_bus=self._event_bus, logger=logger)
        )

        self._connection.add_message_handler(self._registry.handle_event)

    def detach(self) -> None:
        """Stop receiving frames from the connection."""
        self._connection.remove_message_handler(self._registry.handle_event)

    @property
    def connection(self) -> RealtimeConnection:
        return self._connection

    @property
    def registry(self) -> "HandlerRegistry":
        return self._registry


class HandlerRegistry(LoggerMixin):
    """
    Registry for managing and dispatching frame handlers of a single channel.

    Frames for other topics are dropped; heartbeat replies on the ``phoenix`` topic
    are accepted so they can be logged.

    Attributes:
        _topic (str): The channel topic, e.g. ``realtime:public:devices``.
        _handlers (List[RealtimeHandler]): List of registered handlers.
    """

    _topic: str
    _handlers: List["RealtimeHandler"]

    def __init__(self, *, topic: str, logger: logging.Logger) -> None:
        self._topic = topic
        self._handlers = []
        self._build_logger(logger=logger)

    def register_handler(self, handler: "RealtimeHandler") -> None:
        self._handlers.append(handler)

    def get_handlers(self) -> List["RealtimeHandler"]:
        return self._handlers

    def handle_event(self, event: Dict[str, Any]) -> None:
        """
        Dispatch the frame to the first handler that can handle it.
        Logs a warning if no handler is found.
        """
        topic = event.get("topic")
        if topic not in (self._topic, PHOENIX_TOPIC):
            return

        for handler in self._handlers:
            if handler.can_handle(event):
                handler.handle(event)
                return
        self._logger.warning(
            f"No handler found for frame: {StringUtils.pretty_json(event)}"
        )


class RealtimeHandler(ABC, LoggerMixin):
    """
    Abstract base class for Realtime frame handlers.

    Attributes:
        _event_bus (EventBus): Event bus for event handling.
    """

    _event_bus: EventBus

    def __init__(self, *, event_bus: EventBus, logger: logging.Logger) -> None:
        self._event_bus = event_bus
        self._build_logger(logger=logger)

    def can_handle(self, event: Dict[str, Any]) -> bool:
        """
        Determine if this handler can process the given frame.
        Must be implemented by subclasses.
        """
        raise NotImplementedError("Subclasses must implement this method.")

    def handle(self, event: Dict[str, Any]) -> None:
        """
        Handle the given frame.
        Must be implemented by subclasses.
        """
        raise NotImplementedError("Subclasses must implement this method.")


class PostgresChangesHandler(RealtimeHandler):
    """
    Handles database change frames for the channel.

    Accepts both the ``postgres_changes`` frame and the older per-operation
    frames (``INSERT``, ``UPDATE``, ``DELETE``). The row data is not used.
    """

    def can_handle(self, event: Dict[str, Any]) -> bool:
        return event.get("event") in ("postgres_changes", *_CHANGE_TYPES)

    def handle(self, event: Dict[str, Any]) -> None:
        payload = event.get("payload")
        if not isinstance(payload, dict):
            payload = {}
        data = payload.get("data")
        if not isinstance(data, dict):
            data = payload

        change_type = self._change_type(data.get("type") or event.get("event"))
        schema = str(data.get("schema", ""))
        table = str(data.get("table", ""))

        self._logger.debug(f"Received {change_type} on {schema}.{table}")
        self._event_bus.publish(
            DevicesChangedEvent(change_type=change_type, schema=schema, table=table)
        )

    @staticmethod
    def _change_type(value: Optional[str]) -> ChangeType:
        if value in _CHANGE_TYPES:
            return value  # type: ignore[return-value]
        return "UNKNOWN"


class ReplyHandler(RealtimeHandler):
    """
    Handles ``phx_reply`` frames (join and heartbeat acknowledgements).
    """

    def can_handle(self, event: Dict[str, Any]) -> bool:
        return event.get("event") == "phx_reply"

    def handle(self, event: Dict[str, Any]) -> None:
        payload = event.get("payload")
        if not isinstance(payload, dict):
            payload = {}
        status = payload.get("status")

        if status == "ok":
            self._logger.debug(f"Reply ok for ref {event.get('ref')} on {event.get('topic')}")
        else:
            self._logger.warning(
                f"Reply {status} for ref {event.get('ref')}: {payload.get('response')}"
            )


class ChannelErrorHandler(RealtimeHandler):
    """
    Handles channel error and close frames.
    """

    def can_handle(self, event: Dict[str, Any]) -> bool:
        return event.get("event") in ("phx_error", "phx_close")

    def handle(self, event: Dict[str, Any]) -> None:
        self._logger.warning(
            f"Channel {event.get('topic')} reported {event.get('event')}: {event.get('payload')}"
        )


class IgnoredHandler(RealtimeHandler):
    """
    Handles frames the device channel does not act on.
    """

    def can_handle(self, event: Dict[str, Any]) -> bool:
        return event.get("event") in (
            "system",
            "presence_state",
            "presence_diff",
            "broadcast",
        )

    def handle(self, event: Dict[str, Any]) -> None:
        self._logger.debug(f"Ignoring frame type: {event.get('event')}")
