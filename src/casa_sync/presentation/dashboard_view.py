"""
Headless dashboard view.

The view ties the realtime subscription to its own lifetime: ``mount`` opens the
channel and loads the device list, ``unmount`` closes the channel. Rendering
produces plain text lines from the cached list.
"""

from dataclasses import dataclass, field
from types import TracebackType
from typing import Callable, List, Literal, Optional, Tuple, Type

from casa_sync.common.utility import LoggerMixin
from casa_sync.core.domain.entities.device_entity import DeviceEntity, DeviceState
from casa_sync.infrastructure.supabase.realtime.realtime_channel import (
    DevicesChannelSubscription,
)
from casa_sync.lib.dashboard import CasaDashboard
from casa_sync.presentation.device_card import DeviceCard

ViewStatus = Literal["loading", "error", "empty", "ready"]

TITLE = "Casa Control Sync"
SUBTITLE = (
    "Real-time home automation dashboard powered by Supabase. "
    "Manage devices, monitor states, and react instantly."
)
LOAD_ERROR_MESSAGE = "Failed to load devices."
EMPTY_MESSAGE = "No devices found. Add devices in Supabase to get started."
SKELETON_COUNT = 6
SKELETON_LINE = "[ ] ........"


@dataclass(frozen=True)
class DashboardViewState:
    status: ViewStatus
    cards: Tuple[DeviceCard, ...] = field(default_factory=tuple)
    show_error: bool = False


class DashboardView(LoggerMixin):
    """
    Device dashboard bound to one CasaDashboard.

    Args:
        dashboard (CasaDashboard): The dashboard providing cache, services and channels.
    """

    _dashboard: CasaDashboard
    _subscription: Optional[DevicesChannelSubscription]
    _remove_invalidation: Optional[Callable[[], None]]

    def __init__(self, *, dashboard: CasaDashboard) -> None:
        self._dashboard = dashboard
        self._subscription = None
        self._remove_invalidation = None
        self._build_logger(logger=dashboard.get_logger())

    @property
    def is_mounted(self) -> bool:
        return self._subscription is not None

    async def mount(self) -> None:
        """
        Open the realtime subscription and load the device list.
        """
        if self._subscription is not None:
            self._logger.warning("Dashboard view is already mounted")
            return

        devices = self._dashboard.devices
        self._remove_invalidation = devices.invalidate_on_change()
        subscription = self._dashboard.devices_channel()

        try:
            await subscription.open()
        except Exception:
            self._remove_invalidation()
            self._remove_invalidation = None
            raise

        self._subscription = subscription
        self._logger.info("Dashboard view mounted")
        await devices.load()

    async def unmount(self) -> None:
        """
        Close the realtime subscription. Safe to call when not mounted.
        """
        subscription = self._subscription
        if subscription is None:
            return

        self._subscription = None
        if self._remove_invalidation is not None:
            self._remove_invalidation()
            self._remove_invalidation = None

        await subscription.close()
        self._logger.info("Dashboard view unmounted")

    async def handle_toggle(self, device: DeviceEntity, next_state: DeviceState) -> None:
        await self._dashboard.devices.toggle_device(device, next_state)

    @property
    def state(self) -> DashboardViewState:
        cache = self._dashboard.cache
        data = cache.data
        show_error = cache.status == "error"
        cards = tuple(
            DeviceCard(device=device, on_toggle=self.handle_toggle)
            for device in (data or ())
        )

        status: ViewStatus
        if data is None and not show_error:
            status = "loading"
        elif show_error:
            status = "error"
        elif not data:
            status = "empty"
        else:
            status = "ready"

        return DashboardViewState(status=status, cards=cards, show_error=show_error)

    def card_for(self, device_id: str) -> Optional[DeviceCard]:
        for card in self.state.cards:
            if card.device.id == device_id:
                return card
        return None

    def render(self) -> List[str]:
        state = self.state
        data = self._dashboard.cache.data
        lines = [TITLE, SUBTITLE, ""]

        if state.status == "loading":
            lines.extend([SKELETON_LINE] * SKELETON_COUNT)

        if state.show_error:
            lines.append(LOAD_ERROR_MESSAGE)

        if data:
            lines.extend(card.render() for card in state.cards)
        elif data is not None:
            lines.append(EMPTY_MESSAGE)

        return lines

    async def __aenter__(self) -> "DashboardView":
        await self.mount()
        return self

    async def __aexit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> None:
        await self.unmount()
