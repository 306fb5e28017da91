"""Durable per-user preferences stored as JSON-serialized entries."""

import json
import logging
import os
from pathlib import Path
from typing import Optional, Union
from pydantic import BaseModel, Field, TypeAdapter, ValidationError

logger = logging.getLogger(__name__)

WATCHED_KEY = "watchedMovies"
RATINGS_KEY = "ratings"

DEFAULT_STATE_PATH = Path.home() / ".moviedeck" / "storage.json"

_watched_adapter = TypeAdapter(list[int])
_ratings_adapter = TypeAdapter(dict[int, float])


class UserPreferences(BaseModel):
    """Per-user state. Only watched_movies and ratings are persisted."""
    favorite_genres: list[str] = Field(default_factory=list)
    watched_movies: list[int] = Field(default_factory=list)
    ratings: dict[int, float] = Field(default_factory=dict)

    def has_watched(self, movie_id: int) -> bool:
        return movie_id in self.watched_movies


class PreferenceStore:
    """Key-value storage backed by one JSON file.

    Each value is itself a JSON string, the same shape browser local
    storage keeps. Absent or corrupt data reads back as the default.
    """

    def __init__(self, path: Optional[Union[str, Path]] = None):
        self.path = Path(path or os.getenv("MOVIEDECK_STATE_PATH") or DEFAULT_STATE_PATH).expanduser()

    def _read_all(self) -> dict:
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return {}
        except (OSError, ValueError) as e:
            logger.warning(f"Ignoring unreadable preference file {self.path}: {e}")
            return {}
        if not isinstance(data, dict):
            logger.warning(f"Ignoring preference file {self.path}: not an object")
            return {}
        return data

    def get_item(self, key: str) -> Optional[str]:
        value = self._read_all().get(key)
        return value if isinstance(value, str) else None

    def set_item(self, key: str, value: str):
        data = self._read_all()
        data[key] = value
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data), encoding="utf-8")

    def _decode(self, key: str, adapter: TypeAdapter, default):
        raw = self.get_item(key)
        if raw is None:
            return default
        try:
            return adapter.validate_json(raw)
        except ValidationError:
            logger.warning(f"Stored value for {key} is corrupt, using default")
            return default

    def load(self) -> UserPreferences:
        """Read preferences, defaulting missing or corrupt entries."""
        watched = self._decode(WATCHED_KEY, _watched_adapter, [])
        return UserPreferences(
            # drop duplicates, keep order
            watched_movies=list(dict.fromkeys(watched)),
            ratings=self._decode(RATINGS_KEY, _ratings_adapter, {}),
        )

    def save_watched(self, preferences: UserPreferences):
        self.set_item(WATCHED_KEY, _watched_adapter.dump_json(preferences.watched_movies).decode())

    def add_to_watchlist(self, preferences: UserPreferences, movie_id: int) -> bool:
        """Add a movie to the watched list and persist it.

        Returns False when the movie was already present.
        """
        if preferences.has_watched(movie_id):
            return False
        preferences.watched_movies.append(movie_id)
        self.save_watched(preferences)
        return True
