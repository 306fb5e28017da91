"""Category cache, refresh cycle, recommendations, search and details."""

import asyncio
import logging
from typing import Callable, Optional
from pydantic import BaseModel, Field, ValidationError

from ..models.tmdb import (
    Category,
    MovieDetails,
    NormalizedMovie,
    RawCatalogEntry,
    RawMovieDetails,
    merge_details,
    summary_from_details,
    transform_movie,
)
from .preferences import UserPreferences
from .tmdb_client import TMDBClient

logger = logging.getLogger(__name__)

LOAD_ERROR_MESSAGE = "Failed to load movies. Please check your internet connection."
RECOMMENDATION_LIMIT = 6


class RefreshResult(BaseModel):
    """Outcome of one refresh cycle."""
    loaded: list[Category] = Field(default_factory=list)
    failed: list[Category] = Field(default_factory=list)
    counts: dict[str, int] = Field(default_factory=dict)
    error: Optional[str] = None


class CategoryCache:
    """Movies per category, each slot replaced wholesale under its own lock."""

    def __init__(self):
        self._slots: dict[Category, list[NormalizedMovie]] = {c: [] for c in Category}
        self._locks = {c: asyncio.Lock() for c in Category}

    def get(self, category: Category) -> list[NormalizedMovie]:
        return self._slots[category]

    async def replace(self, category: Category, movies: list[NormalizedMovie]):
        async with self._locks[category]:
            self._slots[category] = movies

    def as_dict(self) -> dict[Category, list[NormalizedMovie]]:
        return dict(self._slots)


def parse_results(data: Optional[dict]) -> Optional[list[NormalizedMovie]]:
    """Transform a list response, or None if it has no results array.

    Entries that are not valid catalog entries are skipped.
    """
    if not isinstance(data, dict) or not isinstance(data.get("results"), list):
        return None

    movies = []
    for item in data["results"]:
        try:
            movies.append(transform_movie(RawCatalogEntry(**item)))
        except (ValidationError, TypeError):
            continue
    return movies


def recommend(
    popular: list[NormalizedMovie],
    top_rated: list[NormalizedMovie],
    watched: list[int],
    limit: int = RECOMMENDATION_LIMIT,
) -> list[NormalizedMovie]:
    """Pick the highest rated unwatched movies from popular and top rated.

    The first occurrence of an id wins; ties keep their merged order.
    """
    unique: dict[int, NormalizedMovie] = {}
    for movie in [*popular, *top_rated]:
        unique.setdefault(movie.id, movie)

    watched_ids = set(watched)
    candidates = [m for m in unique.values() if m.id not in watched_ids]
    candidates.sort(key=lambda m: m.rating_value, reverse=True)
    return candidates[:limit]


class CatalogService:
    """Owns the category cache and the derived recommendation list."""

    def __init__(
        self,
        client: TMDBClient,
        preferences: Optional[UserPreferences] = None,
        on_error: Optional[Callable[[str], None]] = None,
    ):
        self.client = client
        self.preferences = preferences or UserPreferences()
        self.on_error = on_error
        self.cache = CategoryCache()
        self.recommendations: list[NormalizedMovie] = []

    async def _fetch(self, category: Category) -> Optional[list[NormalizedMovie]]:
        try:
            data = await self.client.get_category(category)
        except Exception as e:
            logger.warning(f"Fetching {category.value} raised: {e}")
            return None
        return parse_results(data)

    async def refresh(self) -> RefreshResult:
        """Run one refresh cycle over every category.

        Categories that fail keep their previous movies. When every
        category fails a single error notice is reported.
        """
        categories = list(Category)
        results = await asyncio.gather(*(self._fetch(c) for c in categories))

        outcome = RefreshResult()
        for category, movies in zip(categories, results):
            if movies is None:
                logger.warning(f"Category {category.value} not updated this cycle")
                outcome.failed.append(category)
                continue
            await self.cache.replace(category, movies)
            outcome.loaded.append(category)
            outcome.counts[category.value] = len(movies)

        self.update_recommendations()

        if not outcome.loaded:
            outcome.error = LOAD_ERROR_MESSAGE
            logger.error(LOAD_ERROR_MESSAGE)
            if self.on_error:
                self.on_error(LOAD_ERROR_MESSAGE)

        logger.info(f"Refresh complete: {len(outcome.loaded)} loaded, {len(outcome.failed)} failed")
        return outcome

    def update_recommendations(self) -> list[NormalizedMovie]:
        """Recompute the next-watch list from the cache."""
        self.recommendations = recommend(
            self.cache.get(Category.POPULAR),
            self.cache.get(Category.TOP_RATED),
            self.preferences.watched_movies,
        )
        return self.recommendations

    def featured(self) -> Optional[NormalizedMovie]:
        """The movie shown in the hero slot."""
        popular = self.cache.get(Category.POPULAR)
        return popular[0] if popular else None

    def find(self, movie_id: int) -> Optional[NormalizedMovie]:
        """Look a movie up across cached categories and recommendations."""
        for movies in [*self.cache.as_dict().values(), self.recommendations]:
            for movie in movies:
                if movie.id == movie_id:
                    return movie
        return None

    async def search(self, query: str) -> list[NormalizedMovie]:
        """Search movies by title.

        Blank queries return nothing without a request. A failed search
        and a search without matches both return an empty list.
        """
        if not query or not query.strip():
            return []

        data = await self.client.search(query)
        if data is None:
            logger.warning(f"Search for {query!r} failed")
            return []
        return parse_results(data) or []

    async def get_details(self, movie: NormalizedMovie) -> MovieDetails:
        """Fetch detail fields for a movie, falling back to the summary."""
        data = await self.client.get_movie(movie.id)

        details = None
        if data is not None:
            try:
                details = RawMovieDetails(**data)
            except (ValidationError, TypeError):
                logger.warning(f"Details for movie {movie.id} were malformed")

        if details is None:
            logger.info(f"Showing summary for movie {movie.id}")
        return merge_details(movie, details)

    async def get_details_by_id(self, movie_id: int) -> Optional[MovieDetails]:
        """Details for any movie id.

        Cached movies fall back to their summary; uncached movies have no
        summary to fall back to and return None on failure.
        """
        movie = self.find(movie_id)
        if movie is not None:
            return await self.get_details(movie)

        data = await self.client.get_movie(movie_id)
        if data is None:
            return None
        if not isinstance(data, dict):
            logger.warning(f"Details for movie {movie_id} were not an object")
            return None
        try:
            return merge_details(summary_from_details(data), RawMovieDetails(**data))
        except (ValidationError, TypeError):
            logger.warning(f"Details for movie {movie_id} were malformed")
            return None
