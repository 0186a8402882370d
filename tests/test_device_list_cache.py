"""
Tests for DeviceListCache: loading, replacement and invalidation.
"""

import asyncio

from casa_sync.common.results import ResultHandler
from casa_sync.core.application.cache.device_list_cache import DeviceListCache

from conftest import FakeDevicesRepository, make_device


class TestFetch:
    async def test_initial_state(self, cache):
        assert cache.status == "idle"
        assert cache.data is None
        assert cache.error is None

    async def test_fetch_success(self, cache, repository):
        result = await cache.fetch()

        assert result.success == True
        assert cache.status == "success"
        assert [d.name for d in cache.data] == ["Heater", "Lamp"]
        assert isinstance(cache.data, tuple)
        assert repository.get_calls == 1

    async def test_fetch_error(self, logger):
        repository = FakeDevicesRepository(fail_load=True)
        cache = DeviceListCache(fetcher=repository.get_devices, logger=logger)

        result = await cache.fetch()

        assert result.success == False
        assert cache.status == "error"
        assert cache.data is None
        assert "boom" in cache.error.details

    async def test_fetch_error_keeps_previous_data(self, cache, repository):
        await cache.fetch()
        repository.fail_load = True

        await cache.fetch()

        assert cache.status == "error"
        assert len(cache.data) == 2

    async def test_loading_status_only_without_data(self, logger):
        statuses = []
        gate = asyncio.Event()

        async def fetcher():
            statuses.append(cache.status)
            await gate.wait()
            return ResultHandler.ok((make_device(),))

        cache = DeviceListCache(fetcher=fetcher, logger=logger)
        gate.set()
        await cache.fetch()
        await cache.fetch()

        assert statuses == ["loading", "success"]


class TestSetData:
    async def test_replace_value(self, cache):
        device = make_device()
        cache.set_data((device,))
        assert cache.get_data() == (device,)

    async def test_updater_function(self, cache):
        await cache.fetch()
        cache.set_data(lambda old: tuple(d for d in old if d.name != "Heater"))
        assert [d.name for d in cache.data] == ["Lamp"]

    async def test_listeners_notified(self, cache):
        calls = []
        remove = cache.on_change(lambda: calls.append(1))

        cache.set_data(())
        remove()
        cache.set_data(None)

        assert calls == [1]


class TestInvalidate:
    async def test_invalidate_refetches_whole_list(self, cache, repository):
        await cache.fetch()
        repository.devices.append(make_device(id="3", name="Fan"))

        await cache.invalidate()

        assert repository.get_calls == 2
        assert [d.name for d in cache.data] == ["Fan", "Heater", "Lamp"]

    async def test_invalidations_during_fetch_are_coalesced(self, logger):
        calls = []
        gate = asyncio.Event()

        async def fetcher():
            calls.append(1)
            await gate.wait()
            return ResultHandler.ok(())

        cache = DeviceListCache(fetcher=fetcher, logger=logger)
        task = cache.invalidate()
        await asyncio.sleep(0)
        assert len(calls) == 1

        assert cache.invalidate() is task
        assert cache.invalidate() is task
        gate.set()
        await task

        assert len(calls) == 2

    async def test_aclose_cancels_pending_refetch(self, logger):
        gate = asyncio.Event()

        async def fetcher():
            await gate.wait()
            return ResultHandler.ok(())

        cache = DeviceListCache(fetcher=fetcher, logger=logger)
        task = cache.invalidate()
        await asyncio.sleep(0)

        await cache.aclose()

        assert task.cancelled()
        assert not cache.is_fetching
