"""TMDB API client for the moviedeck MCP server."""

import asyncio
import logging
import os
from typing import Optional
import aiohttp

from ..models.tmdb import Category

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.themoviedb.org/3"

# Page 1 only for every listing.
CATEGORY_ENDPOINTS = {
    Category.POPULAR: ("/movie/popular", {"language": "en-US", "page": 1}),
    Category.TOP_RATED: ("/movie/top_rated", {"language": "en-US", "page": 1}),
    Category.ACTION: ("/discover/movie", {"with_genres": 28, "sort_by": "popularity.desc", "page": 1}),
    Category.COMEDY: ("/discover/movie", {"with_genres": 35, "sort_by": "popularity.desc", "page": 1}),
    Category.DRAMA: ("/discover/movie", {"with_genres": 18, "sort_by": "popularity.desc", "page": 1}),
}


class TMDBError(Exception):
    """Base exception for TMDB configuration errors."""
    pass


class TMDBClient:
    """Async client for the TMDB v3 API.

    Request failures never raise: they are logged and reported as ``None``.
    """

    def __init__(self, api_key: Optional[str] = None, base_url: Optional[str] = None):
        self.base_url = (base_url or os.getenv("TMDB_BASE_URL") or DEFAULT_BASE_URL).rstrip("/")
        self.api_key = api_key or os.getenv("TMDB_API_KEY", "")
        self._session: Optional[aiohttp.ClientSession] = None

        if not self.api_key:
            raise TMDBError("TMDB_API_KEY not configured")

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create aiohttp session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                headers={"Accept": "application/json"}
            )
        return self._session

    async def close(self):
        """Close the session."""
        if self._session and not self._session.closed:
            await self._session.close()

    async def get(self, endpoint: str, **params) -> Optional[dict]:
        """GET an endpoint and return its parsed JSON body, or None on failure."""
        session = await self._get_session()
        url = f"{self.base_url}{endpoint}"
        params["api_key"] = self.api_key

        try:
            async with session.get(url, params=params) as response:
                if response.status >= 400:
                    logger.error(f"TMDB request {endpoint} failed with status {response.status}")
                    return None
                return await response.json()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error(f"TMDB request {endpoint} failed: {e}")
            return None
        except ValueError as e:
            logger.error(f"TMDB request {endpoint} returned malformed JSON: {e}")
            return None

    async def get_status(self) -> Optional[dict]:
        """Get API configuration, used as a connectivity probe."""
        return await self.get("/configuration")

    async def get_category(self, category: Category) -> Optional[dict]:
        """Get page 1 of a home screen category listing."""
        endpoint, params = CATEGORY_ENDPOINTS[category]
        return await self.get(endpoint, **params)

    async def search(self, query: str) -> Optional[dict]:
        """Search movies by title."""
        return await self.get("/search/movie", query=query, language="en-US", page=1)

    async def get_movie(self, movie_id: int) -> Optional[dict]:
        """Get movie details by TMDB ID."""
        return await self.get(f"/movie/{movie_id}", language="en-US")
