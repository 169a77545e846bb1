"""
Round state machine for the memory match game.

Owns the current round: deck setup, two-card selection, match
evaluation, the round countdown and the reveal power-up. All state
changes happen on the asyncio event loop; deferred work (mismatch
hide, timer ticks, reveal end) runs as tasks tagged with the round
generation so nothing scheduled for an old round can touch a new one.
No UI framework dependencies - presentation code registers listeners
and reads snapshots.
"""
import asyncio
import logging
import random
from typing import Callable, List, Optional, Set, Tuple

from ..api_client import CardAssetProvider
from ..data_models import (
    Card,
    CardView,
    Difficulty,
    FlipState,
    GameEvent,
    GameTimings,
    Round,
    RoundSnapshot,
    RoundState,
)
from ..deck_builder import build_deck
from ..exceptions import DataUnavailable, InvalidStateTransition
from .countdown import Countdown
from .power_up import PowerUp

logger = logging.getLogger(__name__)

# Type alias for round event callbacks
GameEventCallback = Callable[[GameEvent], None]


class RoundController:
    """
    Drives one round at a time from ``start`` to won, lost or reset.

    Intents (``select_card``, ``activate_power_up``) that do not apply
    to the current state are ignored and return False.
    """

    def __init__(
        self,
        provider: CardAssetProvider,
        timings: Optional[GameTimings] = None,
        *,
        rng: Optional[random.Random] = None,
    ) -> None:
        """
        Args:
            provider: Source of card faces and the card back
            timings: Delay and countdown settings, defaults if omitted
            rng: Random source for deck shuffling
        """
        self.provider = provider
        self.timings = timings or GameTimings()
        self._rng = rng
        self._round: Optional[Round] = None
        self._setting_up = False
        self._generation = 0
        self._timer: Optional[Countdown] = None
        self._deferred: Set[asyncio.Task] = set()
        self._callbacks: List[GameEventCallback] = []
        self.power_up = PowerUp(self.timings, self._on_power_up_change)

    # ------------------------------------------------------------------
    def add_listener(self, callback: GameEventCallback) -> None:
        if callback not in self._callbacks:
            self._callbacks.append(callback)

    def remove_listener(self, callback: GameEventCallback) -> None:
        if callback in self._callbacks:
            self._callbacks.remove(callback)

    def _emit(self, event_type: str, card_ids: Tuple[str, ...] = ()) -> None:
        event = GameEvent(event_type=event_type, snapshot=self.snapshot(), card_ids=card_ids)
        for callback in list(self._callbacks):
            try:
                callback(event)
            except Exception as exc:  # pragma: no cover - best effort
                logger.error("Listener error on %s: %s", event_type, exc)

    # ------------------------------------------------------------------
    @property
    def state(self) -> RoundState:
        if self._setting_up:
            return RoundState.SETUP
        if self._round is None:
            return RoundState.IDLE
        if self._round.finished is not None:
            return self._round.finished
        if self._round.locked:
            return RoundState.LOCKED
        return RoundState.PLAYING

    @property
    def round(self) -> Optional[Round]:
        return self._round

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def has_pending_tasks(self) -> bool:
        timer_running = self._timer is not None and self._timer.running
        return timer_running or bool(self._deferred) or self.power_up.revealing or self.power_up.cooldown_remaining > 0

    def snapshot(self) -> RoundSnapshot:
        """Build a read-only view of the current round."""
        round_obj = self._round
        if round_obj is None:
            return RoundSnapshot(state=self.state)

        cards = tuple(
            CardView(
                card_id=card.card_id,
                display_name=card.display_name,
                image_ref=card.back_image_ref if card.flip_state is FlipState.FACE_DOWN else card.face_image_ref,
                flip_state=card.flip_state,
            )
            for card in round_obj.cards
        )
        return RoundSnapshot(
            state=self.state,
            difficulty=round_obj.difficulty,
            pair_total=round_obj.pair_total,
            pairs_matched=round_obj.pairs_matched,
            pairs_remaining=round_obj.pairs_remaining,
            click_count=round_obj.click_count,
            time_remaining=round_obj.time_remaining,
            locked=round_obj.locked,
            cards=cards,
            power_up_available=self.power_up.available,
            power_up_revealing=self.power_up.revealing,
            cooldown_remaining=self.power_up.cooldown_remaining,
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    async def start(self, difficulty: "Difficulty | str") -> Optional[Round]:
        """
        Fetch a deck and begin a new round.

        Args:
            difficulty: Difficulty enum or its name

        Returns:
            The new Round, or None if ``reset()`` was called during setup

        Raises:
            InvalidStateTransition: If a round is already set up or running
            DataUnavailable: If card assets could not be obtained
        """
        difficulty = Difficulty.parse(difficulty)
        if self.state is not RoundState.IDLE:
            raise InvalidStateTransition(f"Cannot start a round while {self.state.value}")

        self._generation += 1
        generation = self._generation
        self._setting_up = True
        logger.info("Setting up %s round (generation %d)", difficulty.value, generation)
        self._emit("setup_started")

        try:
            back_image_ref, cards = await self._fetch_deck(difficulty)
        except DataUnavailable as e:
            if generation != self._generation:
                logger.debug("Setup failure for superseded round %d ignored: %s", generation, e)
                return None
            self._setting_up = False
            logger.warning("Round setup failed: %s", e)
            self._emit("setup_failed")
            raise
        finally:
            # also covers cancellation of the setup task
            if generation == self._generation:
                self._setting_up = False

        if generation != self._generation:
            logger.info("Round %d was reset during setup; discarding deck", generation)
            return None

        self._round = Round(
            generation=generation,
            difficulty=difficulty,
            pair_total=difficulty.pair_total,
            time_remaining=difficulty.time_budget,
            back_image_ref=back_image_ref,
            cards=cards,
        )
        self.power_up.reset(available=True)
        self._timer = Countdown(
            difficulty.time_budget,
            interval=self.timings.tick_seconds,
            on_tick=lambda remaining: self._on_timer_tick(generation, remaining),
            on_expire=lambda: self._on_timer_expired(generation),
            name=f"round-{generation}-timer",
        )
        self._timer.start()

        logger.info("Round %d started: %d pairs, %ds", generation, difficulty.pair_total, difficulty.time_budget)
        self._emit("round_started")
        return self._round

    async def _fetch_deck(self, difficulty: Difficulty) -> Tuple[str, List[Card]]:
        try:
            back_image_ref = await asyncio.to_thread(self.provider.fetch_back_image)
            templates = await asyncio.to_thread(self.provider.fetch_card_templates, difficulty.pair_total)
            cards = build_deck(difficulty.pair_total, templates, back_image_ref, self._rng)
        except DataUnavailable:
            raise
        except Exception as exc:
            raise DataUnavailable(f"Card asset provider failed: {exc}") from exc
        return back_image_ref, cards

    def reset(self) -> None:
        """Cancel all timers and pending callbacks and return to idle."""
        previous = self.state
        self._generation += 1
        self._setting_up = False
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        self.power_up.reset(available=False)
        for task in list(self._deferred):
            task.cancel()
        self._deferred.clear()
        self._round = None
        logger.info("Round reset (was %s)", previous.value)
        self._emit("round_reset")

    def cleanup(self) -> None:
        """Reset and release the asset provider."""
        self.reset()
        self.provider.close()

    # ------------------------------------------------------------------
    # Intents
    # ------------------------------------------------------------------
    def select_card(self, card_id: str) -> bool:
        """
        Flip a card as part of a two-card selection.

        Args:
            card_id: ID of the clicked card

        Returns:
            True if the selection was accepted, False if ignored
        """
        round_obj = self._round
        if self.state is not RoundState.PLAYING or round_obj is None:
            logger.debug("Ignoring selection of %s while %s", card_id, self.state.value)
            return False

        card = round_obj.get_card(card_id)
        if card is None or card.is_matched or card_id == round_obj.pending_card_id:
            logger.debug("Ignoring selection of %s", card_id)
            return False

        card.flip_state = FlipState.FACE_UP
        if round_obj.pending_card_id is None:
            round_obj.pending_card_id = card_id
            self._emit("card_flipped", (card_id,))
            return True

        first = round_obj.get_card(round_obj.pending_card_id)
        round_obj.second_card_id = card_id
        round_obj.locked = True
        round_obj.click_count += 1
        self._emit("card_flipped", (card_id,))
        # a listener may have reset the round
        if self._round is round_obj:
            self._evaluate_pair(round_obj, first, card)
        return True

    def _evaluate_pair(self, round_obj: Round, first: Card, second: Card) -> None:
        pair = (first.card_id, second.card_id)
        if first.matches(second):
            first.flip_state = FlipState.MATCHED
            second.flip_state = FlipState.MATCHED
            round_obj.pairs_matched += 1
            self._clear_selection(round_obj)
            logger.debug("Matched %s (%d/%d)", first.display_name, round_obj.pairs_matched, round_obj.pair_total)
            self._emit("pair_matched", pair)
            if self._round is round_obj and round_obj.pairs_matched == round_obj.pair_total:
                self._finish(round_obj, RoundState.WON)
            return

        self._emit("pair_mismatched", pair)
        self._defer(self.timings.mismatch_delay, lambda: self._hide_mismatch(round_obj, pair))

    def _hide_mismatch(self, round_obj: Round, pair: Tuple[str, str]) -> None:
        if self._round is not round_obj or round_obj.finished is not None:
            return
        for card_id in pair:
            card = round_obj.get_card(card_id)
            if card is None or card.is_matched:
                continue
            if self.power_up.holds_face_up(card_id):
                card.flip_state = FlipState.FACE_UP
            else:
                card.flip_state = FlipState.FACE_DOWN
        self._clear_selection(round_obj)
        self._emit("cards_hidden", pair)

    @staticmethod
    def _clear_selection(round_obj: Round) -> None:
        round_obj.pending_card_id = None
        round_obj.second_card_id = None
        round_obj.locked = False

    def activate_power_up(self) -> bool:
        """
        Reveal every unmatched card for the reveal window.

        Returns:
            True if activated, False if no round is being played

        Raises:
            PowerUpNotReady: If the power-up is revealing or cooling down
        """
        round_obj = self._round
        if round_obj is None or self.state not in (RoundState.PLAYING, RoundState.LOCKED):
            logger.debug("Ignoring power-up while %s", self.state.value)
            return False
        revealed = self.power_up.activate(round_obj)
        self._emit("power_up_revealed", revealed)
        return True

    # ------------------------------------------------------------------
    # Timers and deferred work
    # ------------------------------------------------------------------
    def _defer(self, delay: float, action: Callable[[], None]) -> None:
        generation = self._generation

        async def run() -> None:
            await asyncio.sleep(delay)
            if generation != self._generation:
                logger.debug("Dropping stale callback for round %d", generation)
                return
            action()

        task = asyncio.get_running_loop().create_task(run())
        self._deferred.add(task)
        task.add_done_callback(self._deferred.discard)

    def _on_timer_tick(self, generation: int, remaining: int) -> None:
        if generation != self._generation or self._round is None:
            return
        self._round.time_remaining = remaining
        self._emit("timer_tick")

    def _on_timer_expired(self, generation: int) -> None:
        round_obj = self._round
        if generation != self._generation or round_obj is None or round_obj.finished is not None:
            return
        self._finish(round_obj, RoundState.LOST)

    def _on_power_up_change(self, event_type: str, card_ids: Tuple[str, ...]) -> None:
        if self._round is not None:
            self._emit(event_type, card_ids)

    def _finish(self, round_obj: Round, outcome: RoundState) -> None:
        round_obj.finished = outcome
        round_obj.locked = True
        if self._timer is not None:
            self._timer.cancel()
        self.power_up.reset(available=False)
        logger.info(
            "Round %d %s: %d/%d pairs, %d clicks, %ds left",
            round_obj.generation,
            outcome.value,
            round_obj.pairs_matched,
            round_obj.pair_total,
            round_obj.click_count,
            round_obj.time_remaining,
        )
        self._emit("round_won" if outcome is RoundState.WON else "round_lost")
