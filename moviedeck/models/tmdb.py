"""Pydantic models for TMDB API responses and the normalized movie record."""

import re
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Optional, Union
from pydantic import BaseModel, ConfigDict, Field, field_validator

IMAGE_BASE_URL = "https://image.tmdb.org/t/p/w500"
BACKDROP_BASE_URL = "https://image.tmdb.org/t/p/w1280"
HERO_FALLBACK_URL = "https://images.unsplash.com/photo-1489599849927-2ee91cede3ba?w=1920"

NO_DESCRIPTION = "No description available."
UNKNOWN_GENRE = "Unknown"

GENRE_MAP = {
    28: "Action",
    35: "Comedy",
    18: "Drama",
    12: "Adventure",
    16: "Animation",
    80: "Crime",
    99: "Documentary",
    14: "Fantasy",
    36: "History",
    27: "Horror",
    10402: "Music",
    9648: "Mystery",
    10749: "Romance",
    878: "Science Fiction",
    10770: "TV Movie",
    53: "Thriller",
    10752: "War",
    37: "Western",
}


class Category(str, Enum):
    """Home screen catalog partitions."""
    POPULAR = "popular"
    TOP_RATED = "topRated"
    ACTION = "action"
    COMEDY = "comedy"
    DRAMA = "drama"


class RawCatalogEntry(BaseModel):
    """A movie entry as delivered by list and search endpoints."""
    model_config = ConfigDict(extra="ignore")

    id: int
    title: Optional[str] = None
    genre_ids: list[int] = Field(default_factory=list)
    vote_average: Optional[float] = None
    release_date: Optional[str] = None
    overview: Optional[str] = None
    poster_path: Optional[str] = None
    backdrop_path: Optional[str] = None
    popularity: Optional[float] = None
    vote_count: Optional[int] = None

    @field_validator("genre_ids", mode="before")
    @classmethod
    def _null_genres(cls, value):
        return [] if value is None else value


class NormalizedMovie(BaseModel):
    """Internal movie record ready for display."""
    model_config = ConfigDict(frozen=True)

    id: int
    title: str
    genres: list[str] = Field(default_factory=list)
    rating: str = "0.0"
    year: Optional[int] = None
    description: str = NO_DESCRIPTION
    poster: Optional[str] = None
    backdrop: Optional[str] = None
    release_date: Optional[str] = None
    popularity: Optional[float] = None
    vote_count: Optional[int] = None

    @property
    def rating_value(self) -> float:
        """Numeric view of the rating, for ordering."""
        return float(self.rating)

    @property
    def hero_image(self) -> str:
        """Best available wide image for a featured slot."""
        return self.backdrop or self.poster or HERO_FALLBACK_URL


class Genre(BaseModel):
    id: Optional[int] = None
    name: str


class Company(BaseModel):
    id: Optional[int] = None
    name: str


class RawMovieDetails(BaseModel):
    """Subset of the single movie endpoint used for the detail view."""
    model_config = ConfigDict(extra="ignore")

    id: int
    runtime: Optional[int] = None
    budget: Optional[int] = None
    revenue: Optional[int] = None
    genres: list[Genre] = Field(default_factory=list)
    production_companies: list[Company] = Field(default_factory=list)
    tagline: Optional[str] = None
    homepage: Optional[str] = None


class MovieDetails(NormalizedMovie):
    """A normalized movie enriched with detail endpoint fields."""
    runtime: Optional[int] = None
    budget: Optional[int] = None
    revenue: Optional[int] = None
    tagline: str = ""
    homepage: Optional[str] = None
    production_companies: list[str] = Field(default_factory=list)
    detailed: bool = False


def resolve_genres(genre_ids) -> list[str]:
    """Map genre ids to names, keeping order."""
    return [GENRE_MAP.get(genre_id, UNKNOWN_GENRE) for genre_id in genre_ids]


def format_rating(vote_average: Optional[float]) -> str:
    """Format a vote average as a one-decimal rating string."""
    # ties round up on the exact binary value
    rating = Decimal((vote_average or 0) / 10).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)
    return str(rating)


def parse_year(release_date: Optional[str]) -> Optional[int]:
    """Extract the year from a release date, None when unknown."""
    if not release_date:
        return None
    try:
        return date.fromisoformat(release_date[:10]).year
    except (TypeError, ValueError):
        pass
    partial = re.fullmatch(r"(\d{4})(?:-(?:0[1-9]|1[0-2]))?", release_date)
    return int(partial.group(1)) if partial else None


def image_url(base: str, path: Optional[str]) -> Optional[str]:
    if not path:
        return None
    return f"{base}{path}"


def transform_movie(entry: Union[RawCatalogEntry, dict]) -> NormalizedMovie:
    """Map one raw catalog entry into a NormalizedMovie.

    Raw dicts are validated first; missing optional fields fall back to
    documented defaults instead of failing.
    """
    if isinstance(entry, dict):
        entry = RawCatalogEntry(**entry)

    return NormalizedMovie(
        id=entry.id,
        title=entry.title or "",
        genres=resolve_genres(entry.genre_ids),
        rating=format_rating(entry.vote_average),
        year=parse_year(entry.release_date),
        description=entry.overview or NO_DESCRIPTION,
        poster=image_url(IMAGE_BASE_URL, entry.poster_path),
        backdrop=image_url(BACKDROP_BASE_URL, entry.backdrop_path),
        release_date=entry.release_date,
        popularity=entry.popularity,
        vote_count=entry.vote_count,
    )


def summary_from_details(data: dict) -> NormalizedMovie:
    """Build a summary record from a single movie response.

    The detail endpoint nests genres as objects instead of listing ids.
    """
    genre_ids = [g["id"] for g in data.get("genres") or [] if isinstance(g, dict) and "id" in g]
    return transform_movie({**data, "genre_ids": genre_ids})


def merge_details(movie: NormalizedMovie, details: Optional[RawMovieDetails]) -> MovieDetails:
    """Combine a summary record with detail fields.

    When details are unavailable the summary is returned as-is with
    ``detailed`` left False.
    """
    base = movie.model_dump()
    if details is None:
        return MovieDetails(**base)

    if details.genres:
        base["genres"] = [g.name for g in details.genres]

    return MovieDetails(
        **base,
        runtime=details.runtime or None,
        budget=details.budget,
        revenue=details.revenue,
        tagline=details.tagline or "",
        homepage=details.homepage or None,
        production_companies=[c.name for c in details.production_companies],
        detailed=True,
    )
