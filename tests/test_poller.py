"""
Goal: The playlist poller ticks, survives a failing tick, and never doubles up.
"""
import asyncio

from soundbridge.services.poller import PlaylistPoller


def test_poller_ticks_until_stopped():
    ticks = []

    async def tick():
        ticks.append(1)

    async def scenario():
        poller = PlaylistPoller(tick, interval=0.01)
        poller.start()
        assert poller.running
        await asyncio.sleep(0.05)
        await poller.stop()
        count = len(ticks)
        await asyncio.sleep(0.03)
        return poller.running, count

    running, count = asyncio.run(scenario())
    assert running is False
    assert count >= 1
    assert len(ticks) == count


def test_start_is_idempotent():
    async def tick():
        return None

    async def scenario():
        poller = PlaylistPoller(tick, interval=10)
        poller.start()
        first = poller._task
        poller.start()
        same = poller._task is first
        await poller.stop()
        return same

    assert asyncio.run(scenario()) is True


def test_failing_tick_does_not_kill_the_loop():
    calls = []

    async def tick():
        calls.append(1)
        if len(calls) == 1:
            raise RuntimeError("upstream hiccup")

    async def scenario():
        poller = PlaylistPoller(tick, interval=0.01)
        poller.start()
        await asyncio.sleep(0.06)
        alive = poller.running
        await poller.stop()
        return alive

    assert asyncio.run(scenario()) is True
    assert len(calls) >= 2


def test_stop_without_start_is_fine():
    async def tick():
        return None

    asyncio.run(PlaylistPoller(tick, interval=1).stop())
