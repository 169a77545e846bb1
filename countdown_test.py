"""
Countdown tests - tick delivery, single expiry and cancellation.
"""
import asyncio

import pytest

from core.ui_logic import Countdown


def test_ticks_down_and_expires_once():
    async def scenario():
        ticks, expiries = [], []
        countdown = Countdown(3, interval=0.001, on_tick=ticks.append, on_expire=lambda: expiries.append(True))
        countdown.start()
        await asyncio.sleep(0.05)

        assert ticks == [2, 1, 0]
        assert expiries == [True]
        assert countdown.expired
        assert not countdown.running

    asyncio.run(scenario())


def test_cancel_stops_further_ticks():
    async def scenario():
        ticks, expiries = [], []
        countdown = Countdown(1000, interval=0.002, on_tick=ticks.append, on_expire=lambda: expiries.append(True))
        countdown.start()
        await asyncio.sleep(0.02)
        countdown.cancel()
        seen = len(ticks)
        await asyncio.sleep(0.02)

        assert len(ticks) == seen
        assert expiries == []
        assert not countdown.running
        countdown.cancel()

    asyncio.run(scenario())


def test_cancel_from_last_tick_suppresses_expiry():
    async def scenario():
        expiries = []
        countdown = None

        def on_tick(remaining):
            if remaining == 0:
                countdown.cancel()

        countdown = Countdown(2, interval=0.001, on_tick=on_tick, on_expire=lambda: expiries.append(True))
        countdown.start()
        await asyncio.sleep(0.03)

        assert countdown.remaining == 0
        assert expiries == []
        assert not countdown.expired

    asyncio.run(scenario())


def test_zero_units_expires_without_ticks():
    async def scenario():
        ticks, expiries = [], []
        countdown = Countdown(0, on_tick=ticks.append, on_expire=lambda: expiries.append(True))
        countdown.start()
        await asyncio.sleep(0)
        await asyncio.sleep(0)

        assert ticks == []
        assert expiries == [True]

    asyncio.run(scenario())


def test_invalid_use():
    with pytest.raises(ValueError):
        Countdown(-1)

    async def scenario():
        countdown = Countdown(5, interval=0.01)
        countdown.start()
        with pytest.raises(RuntimeError):
            countdown.start()
        countdown.cancel()

    asyncio.run(scenario())
