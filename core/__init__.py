"""
Memory match core - game rules, card assets and caching.

Platform independent; presentation layers build on top of this package.
"""
from .data_models import (
    Card,
    CardTemplate,
    CardView,
    Difficulty,
    FlipState,
    GameEvent,
    GameTimings,
    Round,
    RoundSnapshot,
    RoundState,
)
from .exceptions import (
    CacheError,
    DataUnavailable,
    InvalidIntent,
    InvalidStateTransition,
    MemoryMatchError,
    PowerUpNotReady,
)

__all__ = [
    'Card',
    'CardTemplate',
    'CardView',
    'Difficulty',
    'FlipState',
    'GameEvent',
    'GameTimings',
    'Round',
    'RoundSnapshot',
    'RoundState',
    'CacheError',
    'DataUnavailable',
    'InvalidIntent',
    'InvalidStateTransition',
    'MemoryMatchError',
    'PowerUpNotReady'
]
