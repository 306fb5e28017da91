"""moviedeck - TMDB movie discovery served over MCP."""

__version__ = "0.1.0"
