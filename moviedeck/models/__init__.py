"""Pydantic models for the TMDB catalog."""

from .tmdb import (
    Category,
    RawCatalogEntry,
    NormalizedMovie,
    MovieDetails,
    transform_movie,
)

__all__ = [
    "Category",
    "RawCatalogEntry",
    "NormalizedMovie",
    "MovieDetails",
    "transform_movie",
]
