"""
Exception types for the memory match core.

Kept in one place so the presentation layer can handle every game
failure through a single base class.
"""
from typing import Optional


class MemoryMatchError(Exception):
    """Base class for all game errors."""
    pass


class DataUnavailable(MemoryMatchError):
    """Card assets could not be fetched or too few usable templates exist."""

    def __init__(self, message: str, *, requested: Optional[int] = None, received: Optional[int] = None) -> None:
        self.requested = requested
        self.received = received
        super().__init__(message)


class InvalidIntent(MemoryMatchError):
    """A user intent that does not apply to the current round state."""
    pass


class PowerUpNotReady(MemoryMatchError):
    """Reveal power-up requested while it is revealing or cooling down."""

    def __init__(self, cooldown_remaining: int = 0) -> None:
        self.cooldown_remaining = cooldown_remaining
        super().__init__(f"Power-up not ready ({cooldown_remaining}s cooldown remaining)")


class InvalidStateTransition(MemoryMatchError):
    """Operation not permitted from the current round state."""
    pass


class CacheError(MemoryMatchError):
    """Art cache or preference file could not be read or written."""
    pass
