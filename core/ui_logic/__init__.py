"""
UI logic package - portable across presentation layers.

Round state machine, countdowns and the reveal power-up.
No UI framework dependencies.
"""
from .countdown import Countdown
from .power_up import PowerUp
from .round_controller import RoundController, GameEventCallback

__all__ = [
    'Countdown',
    'PowerUp',
    'RoundController',
    'GameEventCallback'
]
