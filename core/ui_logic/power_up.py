"""
Reveal-all power-up with cooldown.

Activation shows every unmatched card for a fixed window, then hides
them again and starts a cooldown countdown before the power-up can be
used again. Works directly on the round's cards; the round controller
decides whether activation is allowed at all.
"""
import asyncio
import logging
from typing import Callable, Optional, Set, Tuple

from ..data_models import FlipState, GameTimings, Round
from ..exceptions import PowerUpNotReady
from .countdown import Countdown

logger = logging.getLogger(__name__)

# (event_type, card_ids)
PowerUpCallback = Callable[[str, Tuple[str, ...]], None]


class PowerUp:
    """
    State and timers of the reveal power-up for the current round.

    Cards matched while the reveal window is open are left matched;
    cards still in the pending selection when it closes stay face up.
    """

    def __init__(self, timings: GameTimings, on_change: Optional[PowerUpCallback] = None) -> None:
        self.timings = timings
        self.available = False
        self.revealing = False
        self._on_change = on_change
        self._round: Optional[Round] = None
        self._revealed: Set[str] = set()
        self._reveal_task: Optional[asyncio.Task] = None
        self._cooldown: Optional[Countdown] = None
        self._activation = 0

    @property
    def cooldown_remaining(self) -> int:
        if self._cooldown is None or not self._cooldown.running:
            return 0
        return self._cooldown.remaining

    def reset(self, available: bool = False) -> None:
        """Cancel reveal and cooldown, then set availability."""
        self._activation += 1
        if self._reveal_task is not None and not self._reveal_task.done():
            self._reveal_task.cancel()
        self._reveal_task = None
        if self._cooldown is not None:
            self._cooldown.cancel()
        self._cooldown = None
        self._revealed.clear()
        self._round = None
        self.revealing = False
        self.available = available

    def holds_face_up(self, card_id: str) -> bool:
        """True if the card is being shown by an open reveal window."""
        return self.revealing and card_id in self._revealed

    def activate(self, round_obj: Round) -> Tuple[str, ...]:
        """
        Reveal all unmatched cards of ``round_obj``.

        Args:
            round_obj: Round currently being played

        Returns:
            IDs of the revealed cards

        Raises:
            PowerUpNotReady: If revealing or cooling down
        """
        if not self.available:
            raise PowerUpNotReady(self.cooldown_remaining)

        self._activation += 1
        activation = self._activation
        self._round = round_obj
        self.available = False
        self.revealing = True
        revealed = tuple(card.card_id for card in round_obj.cards if not card.is_matched)
        self._revealed = set(revealed)
        for card in round_obj.cards:
            if card.card_id in self._revealed:
                card.flip_state = FlipState.FACE_UP

        logger.info("Power-up revealing %d cards for %.1fs", len(revealed), self.timings.reveal_seconds)
        self._reveal_task = asyncio.get_running_loop().create_task(self._end_reveal(activation))
        return revealed

    async def _end_reveal(self, activation: int) -> None:
        await asyncio.sleep(self.timings.reveal_seconds)
        if activation != self._activation or self._round is None:
            return

        selection = self._round.selection
        hidden = []
        for card in self._round.cards:
            if card.card_id not in self._revealed or card.card_id in selection:
                continue
            if card.flip_state is FlipState.FACE_UP:
                card.flip_state = FlipState.FACE_DOWN
                hidden.append(card.card_id)

        self.revealing = False
        self._revealed.clear()
        self._notify("power_up_hidden", tuple(hidden))
        if activation != self._activation:
            # reset by a listener
            return

        self._cooldown = Countdown(
            self.timings.cooldown_seconds,
            interval=self.timings.tick_seconds,
            on_tick=lambda remaining: self._on_cooldown_tick(activation, remaining),
            on_expire=lambda: self._on_cooldown_done(activation),
            name="power-up-cooldown",
        )
        self._cooldown.start()

    def _on_cooldown_tick(self, activation: int, remaining: int) -> None:
        if activation == self._activation:
            self._notify("power_up_cooldown")

    def _on_cooldown_done(self, activation: int) -> None:
        if activation != self._activation:
            return
        self.available = True
        logger.info("Power-up ready")
        self._notify("power_up_ready")

    def _notify(self, event_type: str, card_ids: Tuple[str, ...] = ()) -> None:
        if self._on_change:
            self._on_change(event_type, card_ids)
