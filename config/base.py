"""
Abstract configuration interface.

Defines the settings every platform has to provide. Concrete
configurations decide where values come from (environment, files).
"""
import logging
from abc import ABC, abstractmethod
from pathlib import Path

from core.data_models import GameTimings


class ConfigurationError(Exception):
    """Raised when a configuration value is missing or invalid."""
    pass


class BaseConfiguration(ABC):
    """
    Platform-neutral configuration.

    Subclasses provide values; shared derived settings live here.
    """

    @property
    @abstractmethod
    def api_base_url(self) -> str:
        """Root URL of the creature data API."""

    @property
    @abstractmethod
    def cache_root(self) -> Path:
        """Directory for cached artwork and preferences."""

    @property
    @abstractmethod
    def cache_art(self) -> bool:
        """Download artwork into the cache instead of using remote URLs."""

    @property
    @abstractmethod
    def request_timeout(self) -> float:
        """HTTP timeout in seconds."""

    @property
    @abstractmethod
    def max_creature_id(self) -> int:
        """Highest creature id to draw cards from."""

    @property
    @abstractmethod
    def fetch_workers(self) -> int:
        """Parallel worker threads for card fetching."""

    @property
    @abstractmethod
    def mismatch_delay(self) -> float:
        """Seconds a mismatched pair stays visible."""

    @property
    @abstractmethod
    def reveal_seconds(self) -> float:
        """Seconds the power-up keeps the board revealed."""

    @property
    @abstractmethod
    def cooldown_seconds(self) -> int:
        """Power-up cooldown length in countdown units."""

    @property
    @abstractmethod
    def tick_seconds(self) -> float:
        """Wall-clock length of one countdown unit."""

    @property
    @abstractmethod
    def log_level(self) -> str:
        """Logging level name."""

    def game_timings(self) -> GameTimings:
        return GameTimings(
            mismatch_delay=self.mismatch_delay,
            reveal_seconds=self.reveal_seconds,
            cooldown_seconds=self.cooldown_seconds,
            tick_seconds=self.tick_seconds,
        )

    def validate(self) -> None:
        """
        Check value ranges.

        Raises:
            ConfigurationError: If any value is out of range
        """
        if not self.api_base_url.startswith(("http://", "https://")):
            raise ConfigurationError(f"API base URL must be http(s): {self.api_base_url}")
        if self.request_timeout <= 0:
            raise ConfigurationError("Request timeout must be positive")
        if self.max_creature_id < 12:
            raise ConfigurationError("Max creature id must allow at least 12 distinct cards")
        if self.fetch_workers < 1:
            raise ConfigurationError("Fetch workers must be at least 1")
        if self.mismatch_delay < 0 or self.reveal_seconds < 0:
            raise ConfigurationError("Delays must not be negative")
        if self.cooldown_seconds < 0:
            raise ConfigurationError("Cooldown must not be negative")
        if self.tick_seconds <= 0:
            raise ConfigurationError("Tick length must be positive")
        if not isinstance(logging.getLevelName(self.log_level.upper()), int):
            raise ConfigurationError(f"Unknown log level: {self.log_level}")
