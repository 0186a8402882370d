"""
Client-side cache for the device list.

The DeviceListCache holds the last fetched device list as an immutable tuple and tracks
the load status. Callers read it, replace it wholesale with ``set_data`` (optimistic
writes and rollbacks), or invalidate it, which schedules a full re-fetch on the
running event loop.
"""

import asyncio
import logging
from typing import (
    Awaitable,
    Callable,
    List,
    Literal,
    Optional,
    Tuple,
    Union,
)

from casa_sync.common.results import Result
from casa_sync.common.utility import LoggerMixin
from casa_sync.core.application.errors.application_errors import (
    ApplicationDevicesErrors,
)
from casa_sync.core.domain.entities.device_entity import DeviceEntity

DeviceList = Tuple[DeviceEntity, ...]
CacheStatus = Literal["idle", "loading", "success", "error"]
Fetcher = Callable[
    [], Awaitable[Result[DeviceList, ApplicationDevicesErrors.DeviceLoadError]]
]
Updater = Callable[[Optional[DeviceList]], Optional[DeviceList]]


class DeviceListCache(LoggerMixin):
    """
    Cache for the device list, owned by a single dashboard instance.

    Attributes:
        _fetcher (Fetcher): Coroutine function returning the current device list.
        _data (Optional[DeviceList]): Last known device list, None before the first load.
        _status (CacheStatus): Load status of the cache.
        _error (Optional[DeviceLoadError]): Last load error, cleared on success.
    """

    _fetcher: Fetcher
    _data: Optional[DeviceList]
    _status: CacheStatus
    _error: Optional[ApplicationDevicesErrors.DeviceLoadError]
    _stale: bool
    _is_fetching: bool
    _refetch_task: Optional["asyncio.Task[None]"]
    _listeners: List[Callable[[], None]]

    def __init__(self, *, fetcher: Fetcher, logger: logging.Logger) -> None:
        self._fetcher = fetcher
        self._data = None
        self._status = "idle"
        self._error = None
        self._stale = False
        self._is_fetching = False
        self._refetch_task = None
        self._listeners = []
        self._build_logger(logger=logger)

    @property
    def data(self) -> Optional[DeviceList]:
        return self._data

    @property
    def status(self) -> CacheStatus:
        return self._status

    @property
    def error(self) -> Optional[ApplicationDevicesErrors.DeviceLoadError]:
        return self._error

    @property
    def is_fetching(self) -> bool:
        return self._is_fetching

    def get_data(self) -> Optional[DeviceList]:
        """Return the cached device list (None if nothing was loaded yet)."""
        return self._data

    def set_data(self, value: Union[Optional[DeviceList], Updater]) -> None:
        """
        Replace the cached list.

        Args:
            value: Either the new list (or None) or a function receiving the
                current list and returning the new one.
        """
        new_data = value(self._data) if callable(value) else value
        self._data = tuple(new_data) if new_data is not None else None
        self._notify()

    def on_change(self, callback: Callable[[], None]) -> Callable[[], None]:
        """
        Register a callback invoked whenever data or status changes.

        Returns:
            Callable[[], None]: A function removing the callback.
        """
        self._listeners.append(callback)

        def remove() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return remove

    async def fetch(
        self,
    ) -> Result[DeviceList, ApplicationDevicesErrors.DeviceLoadError]:
        """
        Fetch the device list and store the outcome. Never retries.
        """
        if self._data is None:
            self._status = "loading"
        self._is_fetching = True
        self._notify()

        try:
            result = await self._fetcher()
        finally:
            self._is_fetching = False

        if result.success == True:
            self._data = result.value
            self._error = None
            self._status = "success"
            self._logger.debug(f"Device list loaded ({len(result.value)} devices).")
        else:
            self._error = result.error
            self._status = "error"
            self._logger.error(f"Device list load failed: {result.error.details}")

        self._notify()
        return result

    def invalidate(self) -> "asyncio.Task[None]":
        """
        Mark the cached list stale and schedule a full re-fetch.

        Invalidations arriving while a re-fetch is running are coalesced into one
        follow-up fetch. Must be called from the running event loop.

        Returns:
            asyncio.Task[None]: The task performing the re-fetch.
        """
        self._stale = True
        if self._refetch_task is None or self._refetch_task.done():
            self._logger.debug("Device list invalidated, scheduling re-fetch.")
            self._refetch_task = asyncio.get_running_loop().create_task(
                self._refetch_loop()
            )
        return self._refetch_task

    async def _refetch_loop(self) -> None:
        while self._stale:
            self._stale = False
            await self.fetch()

    async def aclose(self) -> None:
        """
        Cancel any pending re-fetch.
        """
        task = self._refetch_task
        self._refetch_task = None
        self._stale = False
        if task and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._listeners.clear()

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener()
