"""
Reveal power-up tests - reveal window, cooldown and interaction with selection.
"""
import asyncio

import pytest

from core.data_models import Difficulty, FlipState, GameTimings, RoundState
from core.exceptions import PowerUpNotReady
from core.ui_logic import RoundController


def test_reveal_then_cooldown(provider, timings, wait_for):
    async def scenario():
        controller = RoundController(provider, timings)
        events = []
        controller.add_listener(lambda event: events.append(event.event_type))
        round_obj = await controller.start(Difficulty.EASY)

        assert controller.activate_power_up()
        assert all(card.flip_state is FlipState.FACE_UP for card in round_obj.cards)
        assert not controller.power_up.available
        assert controller.snapshot().power_up_revealing

        with pytest.raises(PowerUpNotReady):
            controller.activate_power_up()

        assert await wait_for(lambda: not controller.power_up.revealing)
        assert all(card.flip_state is FlipState.FACE_DOWN for card in round_obj.cards)
        assert not controller.power_up.available

        assert await wait_for(lambda: controller.power_up.available)
        assert controller.snapshot().cooldown_remaining == 0
        assert events.index("power_up_revealed") < events.index("power_up_hidden") < events.index("power_up_ready")
        assert "power_up_cooldown" in events
        controller.reset()

    asyncio.run(scenario())


def test_not_ready_reports_cooldown(provider, wait_for):
    timings = GameTimings(mismatch_delay=0.02, reveal_seconds=0.01, cooldown_seconds=50, tick_seconds=0.01)

    async def scenario():
        controller = RoundController(provider, timings)
        await controller.start("easy")
        controller.activate_power_up()
        assert await wait_for(lambda: controller.power_up.cooldown_remaining > 0)
        with pytest.raises(PowerUpNotReady) as excinfo:
            controller.activate_power_up()
        assert 0 < excinfo.value.cooldown_remaining <= 50
        controller.reset()

    asyncio.run(scenario())


def test_cards_matched_during_reveal_stay_matched(provider, timings, pair_of, wait_for):
    async def scenario():
        controller = RoundController(provider, timings)
        round_obj = await controller.start("easy")
        controller.activate_power_up()

        a, b = pair_of(round_obj, 1)
        assert controller.select_card(a)
        assert controller.select_card(b)

        assert await wait_for(lambda: not controller.power_up.revealing)
        assert round_obj.get_card(a).flip_state is FlipState.MATCHED
        assert round_obj.get_card(b).flip_state is FlipState.MATCHED
        others = [card for card in round_obj.cards if card.card_id not in (a, b)]
        assert all(card.flip_state is FlipState.FACE_DOWN for card in others)
        controller.reset()

    asyncio.run(scenario())


def test_pending_card_stays_up_after_reveal(provider, timings, pair_of, wait_for):
    async def scenario():
        controller = RoundController(provider, timings)
        round_obj = await controller.start("easy")
        pending = pair_of(round_obj, 0)[0]
        controller.select_card(pending)
        controller.activate_power_up()

        assert await wait_for(lambda: not controller.power_up.revealing)
        assert round_obj.get_card(pending).flip_state is FlipState.FACE_UP
        assert round_obj.pending_card_id == pending
        assert sum(card.is_face_up for card in round_obj.cards) == 1
        controller.reset()

    asyncio.run(scenario())


def test_mismatch_during_reveal_waits_for_window(provider, pair_of, wait_for):
    timings = GameTimings(mismatch_delay=0.01, reveal_seconds=0.3, cooldown_seconds=3, tick_seconds=0.01)

    async def scenario():
        controller = RoundController(provider, timings)
        round_obj = await controller.start("easy")
        controller.activate_power_up()
        a = pair_of(round_obj, 0)[0]
        b = pair_of(round_obj, 1)[0]
        controller.select_card(a)
        controller.select_card(b)

        assert await wait_for(lambda: controller.state is RoundState.PLAYING)
        assert controller.power_up.revealing
        assert round_obj.get_card(a).flip_state is FlipState.FACE_UP
        assert round_obj.get_card(b).flip_state is FlipState.FACE_UP

        assert await wait_for(lambda: not controller.power_up.revealing)
        assert round_obj.get_card(a).flip_state is FlipState.FACE_DOWN
        assert round_obj.get_card(b).flip_state is FlipState.FACE_DOWN
        controller.reset()

    asyncio.run(scenario())


def test_power_up_ignored_without_round(provider, timings):
    async def scenario():
        controller = RoundController(provider, timings)
        assert not controller.activate_power_up()
        assert not controller.power_up.available

    asyncio.run(scenario())


def test_reset_cancels_reveal(provider, timings, wait_for):
    async def scenario():
        controller = RoundController(provider, timings)
        await controller.start("easy")
        controller.activate_power_up()
        controller.reset()
        assert not controller.power_up.revealing

        new_round = await controller.start("easy")
        assert controller.power_up.available
        await asyncio.sleep(timings.reveal_seconds * 2)
        assert all(card.flip_state is FlipState.FACE_DOWN for card in new_round.cards)
        assert controller.power_up.available
        controller.reset()

    asyncio.run(scenario())
