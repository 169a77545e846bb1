"""
Card asset provider backed by the public PokéAPI.

Fetches random creatures to use as card faces plus a poké ball sprite
for the shared card back. Every failure (network, HTTP status, malformed
payload) is reported as ``DataUnavailable`` so round setup can abort
cleanly. Calls are blocking; the round controller runs them in a worker
thread.
"""
import logging
import random
import threading
from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, List, Optional

import requests

from .cache_manager import CacheManager
from .data_models import CardTemplate
from .exceptions import CacheError, DataUnavailable

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://pokeapi.co/api/v2"
DEFAULT_MAX_CREATURE_ID = 898
# "standard-balls" item category; its first item is the classic poké ball
CARD_BACK_CATEGORY_ID = 34


class CardAssetProvider(ABC):
    """Source of card faces and the shared card back."""

    @abstractmethod
    def fetch_card_templates(self, count: int) -> List[CardTemplate]:
        """Return ``count`` distinct card templates or raise DataUnavailable."""

    @abstractmethod
    def fetch_back_image(self) -> str:
        """Return the shared card back reference or raise DataUnavailable."""

    def close(self) -> None:
        """Release any held resources."""


class PokeAPIClient(CardAssetProvider):

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        *,
        cache_manager: Optional[CacheManager] = None,
        timeout: float = 15,
        max_creature_id: int = DEFAULT_MAX_CREATURE_ID,
        max_workers: int = 8,
        session: Optional[requests.Session] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.cache_manager = cache_manager
        self.timeout = timeout
        self.max_creature_id = max_creature_id
        self.max_workers = max(1, max_workers)
        # an injected session is shared by all fetch workers
        self.session = session
        self._rng = rng or random.Random()
        self._local = threading.local()
        self._sessions: Dict[threading.Thread, requests.Session] = {}
        self._sessions_lock = threading.Lock()

    def _thread_session(self) -> requests.Session:
        """Return the session for the calling thread, one per fetch worker."""
        if self.session is not None:
            return self.session
        session = getattr(self._local, "session", None)
        if session is None:
            session = requests.Session()
            self._local.session = session
            with self._sessions_lock:
                self._sessions[threading.current_thread()] = session
        return session

    def _get_json(self, url: str) -> Dict[str, Any]:
        try:
            response = self._thread_session().get(url, timeout=self.timeout)
        except requests.RequestException as e:
            logger.error(f"Request to {url} failed: {e}")
            raise DataUnavailable(f"Request to {url} failed: {e}") from e

        if response.status_code != 200:
            logger.error(f"GET {url} failed: {response.status_code}")
            raise DataUnavailable(f"GET {url} returned {response.status_code}")

        try:
            data = response.json()
        except ValueError as e:
            raise DataUnavailable(f"Malformed JSON from {url}") from e
        if not isinstance(data, dict):
            raise DataUnavailable(f"Unexpected payload from {url}")
        return data

    def random_creature_ids(self, count: int) -> List[int]:
        """Pick ``count`` distinct ids in ``1..max_creature_id``."""
        if count > self.max_creature_id:
            raise DataUnavailable(
                f"Cannot pick {count} distinct creatures from {self.max_creature_id}",
                requested=count,
                received=self.max_creature_id,
            )
        return self._rng.sample(range(1, self.max_creature_id + 1), count)

    def fetch_creature(self, creature_id: int) -> CardTemplate:
        """
        Fetch one creature as a card template.

        Official artwork is preferred, the default front sprite is the
        fallback. A creature with neither yields an empty image reference,
        which the deck builder treats as unusable.
        """
        data = self._get_json(f"{self.base_url}/pokemon/{creature_id}")
        try:
            name = data["name"]
            sprites = data.get("sprites") or {}
            artwork = (sprites.get("other") or {}).get("official-artwork") or {}
            image_url = artwork.get("front_default") or sprites.get("front_default")
        except (KeyError, AttributeError, TypeError) as e:
            raise DataUnavailable(f"Malformed creature payload for id {creature_id}") from e

        if not image_url:
            logger.warning(f"No artwork found for creature {creature_id} ({name})")
            return CardTemplate(display_name=name, face_image_ref="")

        return CardTemplate(
            display_name=name,
            face_image_ref=self._localize(f"pokemon-{creature_id}", image_url),
        )

    def fetch_card_templates(self, count: int) -> List[CardTemplate]:
        ids = self.random_creature_ids(count)
        logger.info("Fetching %d creatures from %s", count, self.base_url)
        try:
            with ThreadPoolExecutor(max_workers=min(self.max_workers, max(1, count))) as pool:
                templates = list(pool.map(self.fetch_creature, ids))
        finally:
            self._close_finished_sessions()
        logger.info("Fetched %d card templates", len(templates))
        return templates

    def fetch_back_image(self) -> str:
        category = self._get_json(f"{self.base_url}/item-category/{CARD_BACK_CATEGORY_ID}/")
        try:
            item_url = category["items"][0]["url"]
        except (KeyError, IndexError, TypeError) as e:
            raise DataUnavailable("Card back category has no items") from e

        item = self._get_json(item_url)
        try:
            sprite_url = item["sprites"]["default"]
            item_name = item.get("name", "card-back")
        except (KeyError, TypeError) as e:
            raise DataUnavailable("Card back item has no sprite") from e
        if not sprite_url:
            raise DataUnavailable("Card back item has no sprite")

        return self._localize(f"item-{item_name}", sprite_url)

    def _localize(self, key: str, url: str) -> str:
        """Return a local cached path for ``url`` when caching is enabled, else the URL."""
        if self.cache_manager is None:
            return url

        cached = self.cache_manager.get_cached_art(key)
        if cached:
            return str(cached)

        try:
            logger.info(f"Downloading artwork {key}")
            response = self._thread_session().get(url, timeout=self.timeout)
            response.raise_for_status()
            content_type = response.headers.get("content-type", "")
            return str(self.cache_manager.store_art(key, response.content, content_type))
        except (requests.RequestException, CacheError) as e:
            logger.warning(f"Failed to cache artwork for {key}, using remote URL: {e}")
            return url

    def close(self) -> None:
        if self.session is not None:
            self.session.close()
        with self._sessions_lock:
            sessions, self._sessions = list(self._sessions.values()), {}
        for session in sessions:
            session.close()

    def _close_finished_sessions(self) -> None:
        """Close sessions owned by worker threads that have exited."""
        with self._sessions_lock:
            finished = [thread for thread in self._sessions if not thread.is_alive()]
            sessions = [self._sessions.pop(thread) for thread in finished]
        for session in sessions:
            session.close()
