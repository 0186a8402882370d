"""
Tests for DeviceCard, ToastCenter and DashboardView.
"""

from unittest.mock import AsyncMock

import httpx
import pytest

from casa_sync.core.application.events.device_events import (
    DeviceToggleFailedEvent,
    DeviceToggleSucceededEvent,
    DeviceToggleWebhookPendingEvent,
)
from casa_sync.core.domain.entities.webhook_entity import WebhookResult
from casa_sync.infrastructure.supabase.http.http_connection import (
    SupabaseHttpConnection,
)
from casa_sync.infrastructure.webhook.webhook_client import DeviceWebhookClient
from casa_sync.lib.dashboard import CasaDashboard
from casa_sync.presentation.dashboard_view import (
    EMPTY_MESSAGE,
    LOAD_ERROR_MESSAGE,
    SKELETON_COUNT,
    SKELETON_LINE,
    TITLE,
    DashboardView,
)
from casa_sync.presentation.device_card import DeviceCard
from casa_sync.presentation.toasts import Toast, ToastCenter

from conftest import FakeDevicesRepository, change_frame, make_device


@pytest.fixture
async def dashboard(logger, repository, connection_factory):
    webhook_requests = []

    def webhook_handler(request: httpx.Request) -> httpx.Response:
        webhook_requests.append(request)
        return httpx.Response(200)

    http_connection = SupabaseHttpConnection(
        supabase_url="https://proj.supabase.co",
        api_key="anon-key",
        logger=logger,
        transport=httpx.MockTransport(lambda request: httpx.Response(500)),
    )
    webhook_client = DeviceWebhookClient(
        logger=logger, transport=httpx.MockTransport(webhook_handler)
    )
    instance = CasaDashboard(
        http_connection=http_connection,
        webhook_client=webhook_client,
        logger=logger,
        connection_factory=connection_factory,
        devices_repository=repository,
    )
    instance.webhook_requests = webhook_requests  # type: ignore[attr-defined]
    yield instance
    await instance.close()


class TestDeviceCard:
    def test_properties(self, lamp):
        card = DeviceCard(device=lamp, on_toggle=AsyncMock())

        assert card.title == "Lamp"
        assert card.badge == "LIGHT"
        assert card.state_label == "State: off"
        assert card.checked is False
        assert card.aria_label == "Toggle Lamp"
        assert card.render() == "[ ] Lamp [LIGHT] State: off"

    def test_checked_when_on(self):
        card = DeviceCard(device=make_device(state="on"), on_toggle=AsyncMock())
        assert card.checked is True
        assert card.render().startswith("[x]")

    async def test_toggle_requests_opposite_state(self, lamp):
        on_toggle = AsyncMock()
        card = DeviceCard(device=lamp, on_toggle=on_toggle)

        await card.toggle()

        on_toggle.assert_awaited_once_with(lamp, "on")

    @pytest.mark.parametrize("value, expected", [(True, "on"), (False, "off")])
    async def test_set_checked(self, lamp, value, expected):
        on_toggle = AsyncMock()
        card = DeviceCard(device=lamp, on_toggle=on_toggle)

        await card.set_checked(value)

        on_toggle.assert_awaited_once_with(lamp, expected)


class TestToastCenter:
    def test_toasts_from_events(self, event_bus, logger, lamp):
        toasts = ToastCenter(event_bus=event_bus, logger=logger)
        received = []
        toasts.on_toast(received.append)

        event_bus.publish(DeviceToggleSucceededEvent(device=lamp, state="on"))
        event_bus.publish(DeviceToggleFailedEvent(device=lamp, state="on"))
        event_bus.publish(
            DeviceToggleWebhookPendingEvent(
                device=lamp, state="off", webhook=WebhookResult(ok=False, skipped=True)
            )
        )

        assert toasts.toasts == [
            Toast(kind="success", title="Lamp turned on"),
            Toast(kind="error", title="Failed to toggle Lamp"),
            Toast(
                kind="info",
                title="Lamp set to off",
                description="Webhook not configured or failed.",
            ),
        ]
        assert received == toasts.toasts

    def test_close_stops_collecting(self, event_bus, logger, lamp):
        toasts = ToastCenter(event_bus=event_bus, logger=logger)
        toasts.close()

        event_bus.publish(DeviceToggleSucceededEvent(device=lamp, state="on"))

        assert toasts.toasts == []


class TestDashboardView:
    async def test_loading_before_first_fetch(self, dashboard):
        view = DashboardView(dashboard=dashboard)

        assert view.state.status == "loading"
        lines = view.render()
        assert lines[0] == TITLE
        assert lines.count(SKELETON_LINE) == SKELETON_COUNT

    async def test_ready_after_mount(self, dashboard, fake_connection):
        async with DashboardView(dashboard=dashboard) as view:
            assert view.is_mounted
            state = view.state
            assert state.status == "ready"
            assert [card.title for card in state.cards] == ["Heater", "Lamp"]
            assert "[ ] Lamp [LIGHT] State: off" in view.render()

        assert not view.is_mounted
        assert fake_connection.closed

    async def test_error_banner(self, logger, connection_factory):
        repository = FakeDevicesRepository(fail_load=True)
        instance = CasaDashboard(
            http_connection=SupabaseHttpConnection(
                supabase_url="https://proj.supabase.co", api_key="k", logger=logger
            ),
            webhook_client=DeviceWebhookClient(logger=logger),
            logger=logger,
            connection_factory=connection_factory,
            devices_repository=repository,
        )
        view = DashboardView(dashboard=instance)

        await view.mount()
        state = view.state
        lines = view.render()
        await view.unmount()
        await instance.close()

        assert state.status == "error"
        assert LOAD_ERROR_MESSAGE in lines
        assert SKELETON_LINE not in lines
        assert repository.get_calls == 1

    async def test_empty_message(self, dashboard, repository):
        repository.devices.clear()

        async with DashboardView(dashboard=dashboard) as view:
            assert view.state.status == "empty"
            assert EMPTY_MESSAGE in view.render()

    async def test_toggle_through_card(self, dashboard):
        async with DashboardView(dashboard=dashboard) as view:
            await view.card_for("1").toggle()

            assert view.card_for("1").checked is True
            assert dashboard.toasts.toasts[-1] == Toast(
                kind="success", title="Lamp turned on"
            )
            assert len(dashboard.webhook_requests) == 1

    async def test_realtime_change_triggers_full_refetch(
        self, dashboard, repository, fake_connection
    ):
        async with DashboardView(dashboard=dashboard) as view:
            assert repository.get_calls == 1
            repository.devices.append(make_device(id="3", name="Fan", state="on"))

            fake_connection.feed(change_frame("UPDATE", {"id": "99"}))
            await dashboard.cache._refetch_task

            assert repository.get_calls == 2
            assert [card.title for card in view.state.cards] == ["Fan", "Heater", "Lamp"]

    async def test_malformed_change_frame_keeps_view_live(
        self, dashboard, repository, fake_connection
    ):
        async with DashboardView(dashboard=dashboard) as view:
            fake_connection.feed(
                {
                    "topic": "realtime:public:devices",
                    "event": "postgres_changes",
                    "payload": {"data": "oops"},
                }
            )
            await dashboard.cache._refetch_task

            repository.devices.append(make_device(id="3", name="Fan", state="on"))
            fake_connection.feed(change_frame("INSERT"))
            await dashboard.cache._refetch_task

            assert repository.get_calls == 3
            assert "Fan" in [card.title for card in view.state.cards]

    async def test_unmount_stops_invalidation(self, dashboard, repository, fake_connection):
        view = DashboardView(dashboard=dashboard)
        await view.mount()
        await view.unmount()

        fake_connection.feed(change_frame())

        assert dashboard.cache._refetch_task is None
        assert repository.get_calls == 1

    async def test_failed_mount_releases_invalidation(self, dashboard, repository):
        async def broken_factory(**kwargs):
            raise OSError("connection refused")

        dashboard._connection_factory = broken_factory
        view = DashboardView(dashboard=dashboard)

        with pytest.raises(OSError):
            await view.mount()

        assert not view.is_mounted
        assert repository.get_calls == 0
