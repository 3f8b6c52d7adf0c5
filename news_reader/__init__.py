"""
News Reader - personal RSS aggregator with reader-mode extraction.

This package aggregates a registry of RSS feeds into an in-memory cache,
derives trending topics and a morning digest from it, and extracts
readable article content from publisher pages, falling back to an
archived snapshot when a page looks paywalled.

Main entry points are the CLI (`news-reader serve`, `news-reader read`)
and the NewsService class.

Example:
    $ news-reader serve --config config.yaml
"""

__all__ = ["__version__"]
__version__ = "0.1.0"
