"""Core data structures for the memory match game.

Contains the fundamental data models shared by the state machine,
the asset provider and any presentation layer.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple


class Difficulty(Enum):
    """Round difficulty: (pair count, time budget in seconds)."""
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"

    @property
    def pair_total(self) -> int:
        return DIFFICULTY_SETTINGS[self][0]

    @property
    def time_budget(self) -> int:
        return DIFFICULTY_SETTINGS[self][1]

    @classmethod
    def parse(cls, value: "Difficulty | str") -> "Difficulty":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValueError(f"Unknown difficulty: {value!r}") from None


DIFFICULTY_SETTINGS = {
    Difficulty.EASY: (4, 60),
    Difficulty.MEDIUM: (8, 120),
    Difficulty.HARD: (12, 180),
}


class FlipState(Enum):
    FACE_DOWN = "face_down"
    FACE_UP = "face_up"
    MATCHED = "matched"


class RoundState(Enum):
    """Externally visible round state."""
    IDLE = "idle"
    SETUP = "setup"
    PLAYING = "playing"
    LOCKED = "locked"
    WON = "won"
    LOST = "lost"


@dataclass(frozen=True)
class CardTemplate:
    """One distinct card face as returned by an asset provider."""
    display_name: str
    face_image_ref: str


@dataclass
class Card:
    """A single card on the board. Two cards share each ``pair_id``."""
    card_id: str
    pair_id: int
    display_name: str
    face_image_ref: str
    back_image_ref: str
    flip_state: FlipState = FlipState.FACE_DOWN

    @property
    def is_matched(self) -> bool:
        return self.flip_state is FlipState.MATCHED

    @property
    def is_face_up(self) -> bool:
        return self.flip_state is FlipState.FACE_UP

    def matches(self, other: "Card") -> bool:
        return self.display_name == other.display_name


@dataclass(slots=True)
class GameTimings:
    """Presentation timings; all values in seconds except ``cooldown_seconds`` (countdown units)."""
    mismatch_delay: float = 0.8
    reveal_seconds: float = 5.0
    cooldown_seconds: int = 30
    tick_seconds: float = 1.0


@dataclass
class Round:
    """Mutable state of one play-through, owned by the round controller."""
    generation: int
    difficulty: Difficulty
    pair_total: int
    time_remaining: int
    back_image_ref: str = ""
    cards: List[Card] = field(default_factory=list)
    pairs_matched: int = 0
    click_count: int = 0
    locked: bool = False
    pending_card_id: Optional[str] = None
    second_card_id: Optional[str] = None
    finished: Optional[RoundState] = None

    @property
    def pairs_remaining(self) -> int:
        return self.pair_total - self.pairs_matched

    def get_card(self, card_id: str) -> Optional[Card]:
        for card in self.cards:
            if card.card_id == card_id:
                return card
        return None

    @property
    def selection(self) -> Tuple[str, ...]:
        return tuple(cid for cid in (self.pending_card_id, self.second_card_id) if cid)


@dataclass(frozen=True)
class CardView:
    card_id: str
    display_name: str
    image_ref: str
    flip_state: FlipState


@dataclass(frozen=True)
class RoundSnapshot:
    """Read-only view of the game handed to presentation code."""
    state: RoundState
    difficulty: Optional[Difficulty] = None
    pair_total: int = 0
    pairs_matched: int = 0
    pairs_remaining: int = 0
    click_count: int = 0
    time_remaining: int = 0
    locked: bool = False
    cards: Tuple[CardView, ...] = ()
    power_up_available: bool = False
    power_up_revealing: bool = False
    cooldown_remaining: int = 0

    @property
    def is_finished(self) -> bool:
        return self.state in (RoundState.WON, RoundState.LOST)


@dataclass(frozen=True)
class GameEvent:
    """Represents a state change emitted by the round controller."""
    event_type: str
    snapshot: RoundSnapshot
    card_ids: Tuple[str, ...] = ()

    def __str__(self) -> str:
        return f"GameEvent(type={self.event_type}, state={self.snapshot.state.value})"
