"""moviedeck MCP Server - TMDB movie discovery via MCP protocol."""

import argparse
import logging
import os
from typing import Optional

from dotenv import load_dotenv
from fastmcp import FastMCP
from fastmcp.exceptions import ToolError

from .models.tmdb import Category, MovieDetails, NormalizedMovie
from .tools.catalog import CatalogService
from .tools.preferences import PreferenceStore, UserPreferences
from .tools.tmdb_client import TMDBClient, TMDBError

load_dotenv()

# Configure logging
logging.basicConfig(
    level=getattr(logging, os.getenv("LOG_LEVEL", "INFO")),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Initialize MCP server
mcp = FastMCP("moviedeck")

# Global service instances
_service: Optional[CatalogService] = None
_store: Optional[PreferenceStore] = None
_preferences: Optional[UserPreferences] = None


def get_store() -> PreferenceStore:
    """Get or create the preference store."""
    global _store
    if _store is None:
        _store = PreferenceStore()
    return _store


def get_preferences() -> UserPreferences:
    """Load preferences once per session."""
    global _preferences
    if _preferences is None:
        _preferences = get_store().load()
    return _preferences


def get_service() -> CatalogService:
    """Get or create the catalog service."""
    global _service
    if _service is None:
        try:
            client = TMDBClient()
        except TMDBError as e:
            raise ToolError(f"Configuration error: {str(e)}")
        _service = CatalogService(client, preferences=get_preferences())
    return _service


def movie_summary(movie: NormalizedMovie) -> dict:
    """Card fields for a movie listing."""
    return {
        "id": movie.id,
        "title": movie.title,
        "rating": movie.rating,
        "year": movie.year,
        "genres": movie.genres,
        "poster": movie.poster,
    }


def movie_detail(movie: MovieDetails) -> dict:
    result = movie.model_dump()
    result["hero_image"] = movie.hero_image
    return result


def parse_category(name: str) -> Category:
    """Accept either the category value or its enum name."""
    for category in Category:
        if name in (category.value, category.name.lower()):
            return category
    raise ValueError(f"Unknown category '{name}'. Use one of: {', '.join(c.value for c in Category)}")


@mcp.tool()
async def load_movies() -> dict:
    """Reload every home screen category from TMDB.

    Fetches popular, top rated, action, comedy and drama movies in parallel,
    then recomputes the "next watch" recommendations.

    Returns:
        Per-category counts, any categories that failed, the featured movie
        and an error notice if nothing could be loaded
    """
    try:
        service = get_service()
        result = await service.refresh()
        featured = service.featured()

        return {
            "loaded": [c.value for c in result.loaded],
            "failed": [c.value for c in result.failed],
            "counts": result.counts,
            "recommendations": len(service.recommendations),
            "featured": {
                **movie_summary(featured),
                "description": featured.description,
                "hero_image": featured.hero_image,
            } if featured else None,
            "error": result.error,
        }
    except ToolError:
        raise
    except Exception as e:
        raise ToolError(f"Unexpected error: {str(e)}")


@mcp.tool()
async def get_category(category: str, limit: int = 20) -> dict:
    """Get cached movies for one category.

    Call load_movies first to populate the cache.

    Args:
        category: "popular", "topRated", "action", "comedy" or "drama"
        limit: Maximum number of movies to return (default 20)

    Returns:
        Movies in the category with ids, titles, ratings and posters
    """
    try:
        service = get_service()
        cat = parse_category(category)
        movies = service.cache.get(cat)

        return {
            "category": cat.value,
            "count": len(movies),
            "movies": [movie_summary(m) for m in movies[:limit]],
        }
    except ValueError as e:
        raise ToolError(f"Invalid input: {str(e)}")
    except ToolError:
        raise
    except Exception as e:
        raise ToolError(f"Unexpected error: {str(e)}")


@mcp.tool()
async def get_recommendations() -> dict:
    """Get the "next watch" list.

    Highest rated popular and top rated movies that are not on the watchlist.

    Returns:
        Up to 6 recommended movies
    """
    try:
        service = get_service()
        movies = service.update_recommendations()
        return {
            "count": len(movies),
            "movies": [movie_summary(m) for m in movies],
        }
    except ToolError:
        raise
    except Exception as e:
        raise ToolError(f"Unexpected error: {str(e)}")


@mcp.tool()
async def search_movies(query: str, limit: int = 20) -> dict:
    """Search TMDB for movies by title.

    Args:
        query: Search term (movie title)
        limit: Maximum number of movies to return (default 20)

    Returns:
        Matching movies, or an empty list when nothing matched
    """
    try:
        service = get_service()
        results = await service.search(query)

        return {
            "query": query,
            "count": len(results),
            "results": [
                {
                    **movie_summary(m),
                    "overview": (m.description[:200] + "...") if len(m.description) > 200 else m.description,
                }
                for m in results[:limit]
            ],
            "message": None if results else "No results found. Try a different search term.",
        }
    except ToolError:
        raise
    except Exception as e:
        raise ToolError(f"Search failed: {str(e)}")


@mcp.tool()
async def get_movie_details(movie_id: int) -> dict:
    """Get full details for a movie.

    Works for any movie id; movies already loaded by load_movies fall back
    to their cached summary if TMDB cannot be reached.

    Args:
        movie_id: TMDB ID of the movie

    Returns:
        Title, tagline, rating, year, runtime, genres, description, budget,
        revenue, production companies and whether full details were loaded
    """
    try:
        service = get_service()
        details = await service.get_details_by_id(movie_id)
        if details is None:
            raise ToolError(f"Movie {movie_id} could not be loaded")
        return movie_detail(details)
    except ToolError:
        raise
    except Exception as e:
        raise ToolError(f"Unexpected error: {str(e)}")


@mcp.tool()
async def add_to_watchlist(movie_id: int) -> dict:
    """Add a movie to the watchlist.

    Watchlisted movies are excluded from recommendations.

    Args:
        movie_id: TMDB ID of the movie

    Returns:
        Whether the movie was added or was already on the list
    """
    try:
        preferences = get_preferences()
        added = get_store().add_to_watchlist(preferences, movie_id)

        if _service is not None:
            _service.update_recommendations()

        return {
            "movie_id": movie_id,
            "added": added,
            "message": "Added to your watchlist!" if added else "Already in your watchlist!",
            "watchlist_size": len(preferences.watched_movies),
        }
    except OSError as e:
        raise ToolError(f"Could not save watchlist: {str(e)}")
    except Exception as e:
        raise ToolError(f"Unexpected error: {str(e)}")


@mcp.tool()
async def get_watchlist() -> dict:
    """Get the ids on the watchlist.

    Returns:
        Watchlisted movie ids, with titles where the movie is cached
    """
    try:
        preferences = get_preferences()
        service = _service

        items = []
        for movie_id in preferences.watched_movies:
            movie = service.find(movie_id) if service else None
            items.append({"id": movie_id, "title": movie.title if movie else None})

        return {"count": len(items), "movies": items}
    except Exception as e:
        raise ToolError(f"Unexpected error: {str(e)}")


@mcp.tool()
async def health_check() -> dict:
    """Check TMDB connectivity.

    Returns:
        Whether the TMDB API answered
    """
    try:
        service = get_service()
        status = await service.client.get_status()

        if status is None:
            return {"status": "unhealthy", "error": "TMDB did not respond"}
        return {
            "status": "healthy",
            "tmdb": {"base_url": service.client.base_url},
        }
    except ToolError as e:
        return {
            "status": "unhealthy",
            "error": str(e),
        }
    except Exception as e:
        return {
            "status": "error",
            "error": str(e),
        }


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(description="moviedeck MCP Server")
    parser.add_argument(
        "--transport",
        choices=["stdio", "sse", "streamable-http"],
        default="stdio",
        help="Transport mode (default: stdio)",
    )
    parser.add_argument(
        "--host",
        default="127.0.0.1",
        help="Host for HTTP transport (default: 127.0.0.1)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=int(os.getenv("PORT", "8080")),
        help="Port for HTTP transport (default: 8080)",
    )

    args = parser.parse_args()

    logger.info(f"Starting moviedeck MCP server with {args.transport} transport")

    if args.transport == "stdio":
        mcp.run()
    elif args.transport == "sse":
        mcp.run(transport="sse", host=args.host, port=args.port, stateless_http=True)
    elif args.transport == "streamable-http":
        mcp.run(transport="streamable-http", host=args.host, port=args.port, stateless_http=True)


if __name__ == "__main__":
    main()
