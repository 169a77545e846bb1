"""
Local cache for card artwork and user preferences.

Stores downloaded creature artwork under ``<cache_root>/art`` so a board
can be rendered from local files, and keeps the single persisted user
preference (display theme) in ``<cache_root>/preferences.json``.
Game state is never written here.
"""
import json
import logging
import re
import shutil
from pathlib import Path
from typing import Any, Dict, Optional

from .exceptions import CacheError

logger = logging.getLogger(__name__)

THEMES = ("light", "dark")
DEFAULT_THEME = "light"

_CONTENT_TYPE_EXTENSIONS = {
    "png": ".png",
    "jpeg": ".jpg",
    "jpg": ".jpg",
    "webp": ".webp",
    "gif": ".gif",
}


class CacheManager:
    """
    Manages the on-disk art cache and preferences file.

    Art entries are keyed by a caller-chosen string (e.g. ``pokemon-25``);
    the file extension is picked from the HTTP Content-Type.
    """

    def __init__(self, cache_root: Path) -> None:
        """
        Initialize cache directories.

        Args:
            cache_root: Directory that holds the art cache and preferences

        Raises:
            CacheError: If the directories cannot be created
        """
        self.cache_root = Path(cache_root)
        self.art_dir = self.cache_root / "art"
        self.preferences_path = self.cache_root / "preferences.json"
        try:
            self.art_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise CacheError(f"Cannot create cache directory {self.art_dir}: {e}") from e

    # ------------------------------------------------------------------
    # Artwork
    # ------------------------------------------------------------------
    @staticmethod
    def _safe_key(key: str) -> str:
        return re.sub(r"[^A-Za-z0-9_.-]", "_", key)

    def get_cached_art(self, key: str) -> Optional[Path]:
        """
        Look up cached artwork with any extension.

        Args:
            key: Cache key

        Returns:
            Path to the cached file or None on a miss
        """
        existing = sorted(self.art_dir.glob(f"{self._safe_key(key)}.*"))
        if existing:
            return existing[0]
        return None

    def store_art(self, key: str, content: bytes, content_type: str = "") -> Path:
        """
        Write artwork bytes to the cache.

        Args:
            key: Cache key
            content: Raw image bytes
            content_type: HTTP Content-Type used to choose the extension

        Returns:
            Path of the written file

        Raises:
            CacheError: If the file cannot be written
        """
        content_type = content_type.lower()
        ext = ".png"
        for marker, candidate in _CONTENT_TYPE_EXTENSIONS.items():
            if marker in content_type:
                ext = candidate
                break

        art_path = self.art_dir / f"{self._safe_key(key)}{ext}"
        try:
            art_path.write_bytes(content)
        except OSError as e:
            raise CacheError(f"Cannot write artwork {art_path}: {e}") from e
        logger.debug("Cached artwork %s (%d bytes)", art_path.name, len(content))
        return art_path

    def art_count(self) -> int:
        return sum(1 for path in self.art_dir.iterdir() if path.is_file())

    def clear_cache(self, keep_preferences: bool = True) -> None:
        """
        Remove cached artwork.

        Args:
            keep_preferences: If False, also delete the preferences file
        """
        try:
            shutil.rmtree(self.art_dir, ignore_errors=True)
            self.art_dir.mkdir(parents=True, exist_ok=True)
            if not keep_preferences and self.preferences_path.exists():
                self.preferences_path.unlink()
        except OSError as e:
            raise CacheError(f"Cannot clear cache: {e}") from e
        logger.info("Cache cleared (keep_preferences=%s)", keep_preferences)

    # ------------------------------------------------------------------
    # Preferences
    # ------------------------------------------------------------------
    def load_preferences(self) -> Dict[str, Any]:
        if not self.preferences_path.exists():
            return {}
        try:
            data = json.loads(self.preferences_path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Ignoring unreadable preferences file %s: %s", self.preferences_path, e)
            return {}
        return data if isinstance(data, dict) else {}

    def save_preferences(self, preferences: Dict[str, Any]) -> None:
        try:
            self.preferences_path.write_text(json.dumps(preferences, indent=2), encoding="utf-8")
        except OSError as e:
            raise CacheError(f"Cannot write preferences: {e}") from e

    def get_theme(self) -> str:
        """Saved display theme, ``light`` when nothing valid is stored."""
        theme = self.load_preferences().get("theme")
        return theme if theme in THEMES else DEFAULT_THEME

    def set_theme(self, theme: str) -> str:
        """
        Persist the display theme.

        Args:
            theme: ``light`` or ``dark``

        Returns:
            The stored theme

        Raises:
            ValueError: If the theme is unknown
        """
        theme = theme.strip().lower()
        if theme not in THEMES:
            raise ValueError(f"Unknown theme {theme!r}; expected one of {', '.join(THEMES)}")
        preferences = self.load_preferences()
        preferences["theme"] = theme
        self.save_preferences(preferences)
        logger.info("Theme set to %s", theme)
        return theme
