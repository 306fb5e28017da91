"""Shared fakes for the TMDB transport."""

import pytest

from moviedeck.models.tmdb import Category


def raw_movie(movie_id, vote_average=7.0, **overrides):
    entry = {
        "id": movie_id,
        "title": f"Movie {movie_id}",
        "genre_ids": [28],
        "vote_average": vote_average,
        "release_date": "2020-05-01",
        "overview": "An overview.",
        "poster_path": f"/poster{movie_id}.jpg",
        "backdrop_path": f"/backdrop{movie_id}.jpg",
        "popularity": 10.5,
        "vote_count": 100,
    }
    entry.update(overrides)
    return entry


class FakeResponse:
    def __init__(self, status=200, body=None, error=None):
        self.status = status
        self._body = body
        self._error = error

    async def json(self):
        if self._error:
            raise self._error
        return self._body

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False


class FakeSession:
    """Stands in for aiohttp.ClientSession.get."""

    def __init__(self, response=None, error=None):
        self.response = response or FakeResponse(body={})
        self.error = error
        self.closed = False
        self.calls = []

    def get(self, url, params=None):
        self.calls.append((url, dict(params or {})))
        if self.error:
            raise self.error
        return self.response

    async def close(self):
        self.closed = True


class FakeClient:
    """Stands in for TMDBClient with canned responses per call."""

    def __init__(self, categories=None, search=None, movies=None):
        self.categories = categories or {}
        self.search_response = search
        self.movies = movies or {}
        self.search_calls = []
        self.movie_calls = []

    async def get_category(self, category):
        value = self.categories.get(category)
        if isinstance(value, Exception):
            raise value
        return value

    async def search(self, query):
        self.search_calls.append(query)
        return self.search_response

    async def get_movie(self, movie_id):
        self.movie_calls.append(movie_id)
        return self.movies.get(movie_id)


@pytest.fixture
def all_categories():
    """A full set of category responses with distinct ids per category."""
    return {
        category: {"results": [raw_movie(index * 100 + n, vote_average=5.0 + n) for n in range(3)]}
        for index, category in enumerate(Category, start=1)
    }
