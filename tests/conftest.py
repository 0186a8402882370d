"""
Shared fixtures and fakes for the Casa Control Sync tests.

Provides:
- An in-memory devices repository with controllable failures
- A recording webhook notifier
- A fake realtime connection that can be fed frames
"""

import logging
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

import pytest

from casa_sync.common.results import Result, ResultHandler
from casa_sync.core.application.cache.device_list_cache import DeviceListCache
from casa_sync.core.application.errors.application_errors import (
    ApplicationDevicesErrors,
)
from casa_sync.core.application.events.event_bus import EventBus
from casa_sync.core.domain.entities.device_entity import DeviceEntity, DeviceState
from casa_sync.core.domain.entities.webhook_entity import WebhookResult
from casa_sync.core.domain.repositories.devices_repository import (
    DevicesRepository,
)
from casa_sync.core.domain.services.device_webhook import DeviceWebhookNotifier


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def make_device(
    id: str = "1",
    name: str = "Lamp",
    state: DeviceState = "off",
    type: str = "light",
    ip_address: Optional[str] = "http://lamp.local/api",
    location_id: Optional[str] = None,
) -> DeviceEntity:
    return DeviceEntity(
        id=id,
        name=name,
        type=type,
        state=state,
        ip_address=ip_address,
        location_id=location_id,
    )


class FakeDevicesRepository(DevicesRepository):
    """In-memory repository recording every call."""

    def __init__(
        self,
        devices: Iterable[DeviceEntity] = (),
        *,
        fail_load: bool = False,
        fail_update: bool = False,
    ) -> None:
        self.devices: List[DeviceEntity] = list(devices)
        self.fail_load = fail_load
        self.fail_update = fail_update
        self.get_calls = 0
        self.update_calls: List[Tuple[str, str]] = []
        self.on_update: Optional[Callable[[str, str], None]] = None

    async def get_devices(
        self,
    ) -> Result[Tuple[DeviceEntity, ...], ApplicationDevicesErrors.DeviceLoadError]:
        self.get_calls += 1
        if self.fail_load:
            return ResultHandler.fail(ApplicationDevicesErrors.DeviceLoadError("boom"))
        return ResultHandler.ok(tuple(sorted(self.devices, key=lambda d: d.name)))

    async def update_device_state(
        self, device_id: str, state: DeviceState
    ) -> Result[None, ApplicationDevicesErrors.DeviceUpdateError]:
        self.update_calls.append((device_id, state))
        if self.on_update is not None:
            self.on_update(device_id, state)
        if self.fail_update:
            return ResultHandler.fail(
                ApplicationDevicesErrors.DeviceUpdateError(device_id, "rejected")
            )
        self.devices = [
            d.with_state(state) if d.id == device_id else d for d in self.devices
        ]
        return ResultHandler.ok(None)


class RecordingNotifier(DeviceWebhookNotifier):
    """Webhook notifier returning a fixed result."""

    def __init__(self, result: WebhookResult = WebhookResult(ok=True, skipped=False)) -> None:
        self.result = result
        self.calls: List[Tuple[Optional[str], str, Optional[str]]] = []

    async def notify(
        self,
        url: Optional[str],
        state: DeviceState,
        *,
        device_name: Optional[str] = None,
    ) -> WebhookResult:
        self.calls.append((url, state, device_name))
        return self.result


class FakeRealtimeConnection:
    """Stands in for RealtimeConnection; frames are fed with `feed`."""

    def __init__(self) -> None:
        self.sent: List[Dict[str, Any]] = []
        self.handlers: List[Callable[[Dict[str, Any]], None]] = []
        self.closed = False
        self._ref = 0

    def next_ref(self) -> str:
        self._ref += 1
        return str(self._ref)

    async def send(
        self,
        *,
        topic: str,
        event: str,
        payload: Dict[str, Any],
        ref: Optional[str] = None,
        join_ref: Optional[str] = None,
    ) -> str:
        ref = ref or self.next_ref()
        self.sent.append(
            {"topic": topic, "event": event, "payload": payload, "ref": ref, "join_ref": join_ref}
        )
        return ref

    def add_message_handler(self, callback: Callable[[Dict[str, Any]], None]) -> None:
        self.handlers.append(callback)

    def remove_message_handler(self, callback: Callable[[Dict[str, Any]], None]) -> None:
        if callback in self.handlers:
            self.handlers.remove(callback)

    async def aclose(self) -> None:
        self.closed = True

    def feed(self, frame: Dict[str, Any]) -> None:
        for handler in list(self.handlers):
            handler(frame)


def change_frame(
    change_type: str = "UPDATE",
    record: Optional[Dict[str, Any]] = None,
    topic: str = "realtime:public:devices",
) -> Dict[str, Any]:
    return {
        "topic": topic,
        "event": "postgres_changes",
        "payload": {
            "ids": [1],
            "data": {
                "type": change_type,
                "schema": "public",
                "table": "devices",
                "record": record or {"id": "99", "name": "Fan", "state": "on"},
                "commit_timestamp": "2024-01-01T00:00:00Z",
            },
        },
        "ref": None,
    }


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def logger() -> logging.Logger:
    return logging.getLogger("tests.casa_sync")


@pytest.fixture
def event_bus(logger: logging.Logger) -> EventBus:
    return EventBus(logger=logger)


@pytest.fixture
def lamp() -> DeviceEntity:
    return make_device()


@pytest.fixture
def repository(lamp: DeviceEntity) -> FakeDevicesRepository:
    return FakeDevicesRepository(
        [
            lamp,
            make_device(id="2", name="Heater", state="on", type="climate", ip_address=None),
        ]
    )


@pytest.fixture
def cache(repository: FakeDevicesRepository, logger: logging.Logger) -> DeviceListCache:
    return DeviceListCache(fetcher=repository.get_devices, logger=logger)


@pytest.fixture
def fake_connection() -> FakeRealtimeConnection:
    return FakeRealtimeConnection()


@pytest.fixture
def connection_factory(fake_connection: FakeRealtimeConnection):
    calls: List[Dict[str, Any]] = []

    async def factory(**kwargs: Any) -> FakeRealtimeConnection:
        calls.append(kwargs)
        return fake_connection

    factory.calls = calls  # type: ignore[attr-defined]
    return factory
