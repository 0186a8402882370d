"""
User-facing notifications for toggle outcomes.
"""

import logging
from dataclasses import dataclass
from typing import Callable, List, Literal, Optional

from casa_sync.common.utility import LoggerMixin
from casa_sync.core.application.events.device_events import (
    DeviceToggleFailedEvent,
    DeviceToggleSucceededEvent,
    DeviceToggleWebhookPendingEvent,
)
from casa_sync.core.application.events.event_bus import EventBus

ToastKind = Literal["success", "error", "info"]


@dataclass(frozen=True, kw_only=True)
class Toast:
    kind: ToastKind
    title: str
    description: Optional[str] = None


class ToastCenter(LoggerMixin):
    """
    Collects toasts from toggle events published on the event bus.

    Attributes:
        _toasts (List[Toast]): Toasts in the order they were emitted.
        _listeners (List[Callable[[Toast], None]]): Callbacks receiving each new toast.
    """

    _toasts: List[Toast]
    _listeners: List[Callable[[Toast], None]]

    def __init__(self, *, event_bus: EventBus, logger: logging.Logger) -> None:
        self._event_bus = event_bus
        self._toasts = []
        self._listeners = []
        self._build_logger(logger=logger)

        event_bus.subscribe(DeviceToggleSucceededEvent, self._on_succeeded)
        event_bus.subscribe(DeviceToggleFailedEvent, self._on_failed)
        event_bus.subscribe(DeviceToggleWebhookPendingEvent, self._on_pending)

    @property
    def toasts(self) -> List[Toast]:
        return list(self._toasts)

    def on_toast(self, callback: Callable[[Toast], None]) -> None:
        self._listeners.append(callback)

    def clear(self) -> None:
        self._toasts.clear()

    def close(self) -> None:
        """Stop listening to the event bus."""
        self._event_bus.unsubscribe(DeviceToggleSucceededEvent, self._on_succeeded)
        self._event_bus.unsubscribe(DeviceToggleFailedEvent, self._on_failed)
        self._event_bus.unsubscribe(DeviceToggleWebhookPendingEvent, self._on_pending)

    def _on_succeeded(self, event: DeviceToggleSucceededEvent) -> None:
        self._emit(Toast(kind="success", title=event.message))

    def _on_failed(self, event: DeviceToggleFailedEvent) -> None:
        self._emit(Toast(kind="error", title=event.message))

    def _on_pending(self, event: DeviceToggleWebhookPendingEvent) -> None:
        self._emit(
            Toast(kind="info", title=event.message, description=event.description)
        )

    def _emit(self, toast: Toast) -> None:
        level = logging.ERROR if toast.kind == "error" else logging.INFO
        self._log(level, f"[{toast.kind}] {toast.title}")
        self._toasts.append(toast)
        for listener in list(self._listeners):
            listener(toast)
