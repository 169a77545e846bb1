"""
Desktop configuration loaded from environment variables.

Reads an optional ``.env`` file first (python-dotenv), then the
``MEMORY_MATCH_*`` variables. Unset variables fall back to defaults.
"""
import os
from pathlib import Path
from typing import Callable, Optional, TypeVar

from dotenv import load_dotenv

from core.api_client import DEFAULT_BASE_URL, DEFAULT_MAX_CREATURE_ID
from .base import BaseConfiguration, ConfigurationError

T = TypeVar("T")

ENV_PREFIX = "MEMORY_MATCH_"


def _parse_bool(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in ("1", "true", "yes", "on"):
        return True
    if lowered in ("0", "false", "no", "off"):
        return False
    raise ValueError(f"not a boolean: {value!r}")


class DesktopConfiguration(BaseConfiguration):
    """Configuration for running the game on a desktop terminal."""

    def __init__(self, env_file: Optional[Path] = None, load_env: bool = True) -> None:
        if load_env:
            load_dotenv(env_file)

        self._api_base_url = self._read("API_BASE_URL", str, DEFAULT_BASE_URL)
        self._cache_root = Path(self._read("CACHE_DIR", str, "cache")).expanduser()
        self._cache_art = self._read("CACHE_ART", _parse_bool, True)
        self._request_timeout = self._read("REQUEST_TIMEOUT", float, 15.0)
        self._max_creature_id = self._read("MAX_CREATURE_ID", int, DEFAULT_MAX_CREATURE_ID)
        self._fetch_workers = self._read("FETCH_WORKERS", int, 8)
        self._mismatch_delay = self._read("MISMATCH_DELAY", float, 0.8)
        self._reveal_seconds = self._read("REVEAL_SECONDS", float, 5.0)
        self._cooldown_seconds = self._read("COOLDOWN_SECONDS", int, 30)
        self._tick_seconds = self._read("TICK_SECONDS", float, 1.0)
        self._log_level = self._read("LOG_LEVEL", str, "INFO").upper()

        self.validate()

    @staticmethod
    def _read(name: str, parse: Callable[[str], T], default: T) -> T:
        key = ENV_PREFIX + name
        raw = os.getenv(key)
        if raw is None or raw.strip() == "":
            return default
        try:
            return parse(raw.strip())
        except ValueError as e:
            raise ConfigurationError(f"Invalid value for {key}: {raw!r} ({e})") from e

    @property
    def api_base_url(self) -> str:
        return self._api_base_url

    @property
    def cache_root(self) -> Path:
        return self._cache_root

    @property
    def cache_art(self) -> bool:
        return self._cache_art

    @property
    def request_timeout(self) -> float:
        return self._request_timeout

    @property
    def max_creature_id(self) -> int:
        return self._max_creature_id

    @property
    def fetch_workers(self) -> int:
        return self._fetch_workers

    @property
    def mismatch_delay(self) -> float:
        return self._mismatch_delay

    @property
    def reveal_seconds(self) -> float:
        return self._reveal_seconds

    @property
    def cooldown_seconds(self) -> int:
        return self._cooldown_seconds

    @property
    def tick_seconds(self) -> float:
        return self._tick_seconds

    @property
    def log_level(self) -> str:
        return self._log_level
