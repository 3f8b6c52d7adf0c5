"""FastAPI application exposing the news reader over HTTP."""

from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import datetime
import logging
from typing import Any

from fastapi import FastAPI, Query, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from . import __version__
from .config import AppConfig
from .core.errors import InvalidRequestError
from .core.types import Article
from .logging_utils import log_event
from .service import NewsService

logger = logging.getLogger(__name__)


class AddSourceRequest(BaseModel):
    url: str | None = None
    name: str | None = None
    category: str | None = None
    icon: str | None = None
    key: str | None = None
    hidden: bool = False


class MarkReadRequest(BaseModel):
    articleId: str | None = None
    topics: list[str] | None = None


class NotInterestedRequest(BaseModel):
    articleId: str | None = None
    topics: list[str] | None = None


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def _articles(items: list[Article]) -> list[dict[str, Any]]:
    return [item.to_dict() for item in items]


def _topics(pairs: list[tuple[str, int]]) -> list[dict[str, Any]]:
    return [{"word": word, "count": count} for word, count in pairs]


def create_app(cfg: AppConfig | None = None, service: NewsService | None = None) -> FastAPI:
    """Build the application around one NewsService instance."""
    cfg = cfg or (service.cfg if service else AppConfig())
    service = service or NewsService(cfg)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if cfg.server.warm_cache_on_start:
            log_event(logger, "Fetching initial feeds", event="warm_cache")
            try:
                await service.refresh()
            except Exception:  # noqa: BLE001
                logger.exception("Initial feed fetch failed")
        yield

    app = FastAPI(
        title="News Reader",
        description="Personal RSS reader with article extraction and paywall fallback",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.service = service

    @app.exception_handler(InvalidRequestError)
    async def invalid_request_handler(request: Request, exc: InvalidRequestError):
        return JSONResponse(status_code=400, content={"success": False, "error": str(exc)})

    @app.middleware("http")
    async def error_boundary(request: Request, call_next):
        try:
            return await call_next(request)
        except Exception:  # noqa: BLE001
            logger.exception(
                "Request %s %s failed",
                request.method,
                request.url.path,
                extra={"event": "request_failed", "path": request.url.path},
            )
            return JSONResponse(status_code=500, content={"success": False, "error": "Internal server error"})

    @app.get("/health")
    async def health():
        return {"status": "ok", "version": __version__}

    @app.get("/api/articles")
    async def list_articles(
        category: str | None = None,
        source: str | None = None,
        search: str | None = None,
        page: int = Query(1, ge=1),
        limit: int = Query(cfg.cache.default_page_size, ge=1, le=500),
        personalized: bool = False,
    ):
        result = await service.list_articles(
            category=category,
            source=source,
            search=search,
            page=page,
            limit=limit,
            apply_preferences=personalized,
        )
        return {
            "success": True,
            "articles": _articles(result.articles),
            "total": result.total,
            "page": result.page,
            "limit": result.limit,
            "lastFetch": _iso(result.last_fetch),
        }

    @app.get("/api/categories")
    async def list_categories():
        categories, last_fetch = await service.list_categories()
        return {
            "success": True,
            "categories": {
                name: {"count": summary.count, "latest": _articles(summary.latest)}
                for name, summary in categories.items()
            },
            "lastFetch": _iso(last_fetch),
        }

    @app.get("/api/wordcloud")
    async def word_cloud():
        topics, last_fetch = await service.trending_topics()
        return {"success": True, "topics": _topics(topics), "lastFetch": _iso(last_fetch)}

    @app.get("/api/summary")
    async def summary():
        digest, last_fetch = await service.digest()
        return {
            "success": True,
            "summary": {
                "generated": _iso(digest.generated),
                "totalArticles": digest.total_articles,
                "categories": {
                    name: {
                        "count": section.count,
                        "topStories": [
                            {
                                "title": a.title,
                                "source": a.source,
                                "link": a.link,
                                "publishedAt": _iso(a.published_at),
                            }
                            for a in section.top_stories
                        ],
                    }
                    for name, section in digest.categories.items()
                },
            },
            "lastFetch": _iso(last_fetch),
        }

    @app.get("/api/article/read")
    async def read_article(url: str | None = None):
        result = await service.read_article(url)
        return result.to_dict()

    @app.get("/api/article/archive")
    async def archive_link(url: str | None = None):
        link = await service.archive_link(url)
        return link.to_dict()

    @app.post("/api/refresh")
    async def refresh():
        report = await service.refresh()
        return {
            "success": True,
            "articleCount": report.article_count,
            "categories": report.categories,
            "errors": [error.to_dict() for error in report.errors],
            "lastFetch": _iso(report.last_fetch),
        }

    @app.get("/api/sources")
    async def list_sources():
        return {"success": True, "sources": [source.to_dict() for source in service.list_sources()]}

    @app.post("/api/sources")
    async def add_source(body: AddSourceRequest):
        source, report = await service.add_source(body.model_dump())
        return {
            "success": True,
            "source": source.to_dict(),
            "articleCount": report.article_count,
            "errors": [error.to_dict() for error in report.errors],
        }

    @app.delete("/api/sources/{key}")
    async def remove_source(key: str):
        source, report = await service.remove_source(key)
        return {"success": True, "removed": source.to_dict(), "articleCount": report.article_count}

    @app.get("/api/preferences")
    async def get_preferences():
        return {"success": True, "preferences": service.get_preferences().to_dict()}

    @app.put("/api/preferences")
    async def update_preferences(changes: dict[str, Any]):
        prefs = service.update_preferences(changes)
        return {"success": True, "preferences": prefs.to_dict()}

    @app.delete("/api/preferences")
    async def clear_preferences():
        return {"success": True, "preferences": service.clear_preferences().to_dict()}

    @app.post("/api/preferences/read")
    async def mark_read(body: MarkReadRequest):
        prefs = service.mark_read(body.articleId, body.topics)
        return {"success": True, "readCount": len(prefs.read_articles)}

    @app.post("/api/preferences/not-interested")
    async def mark_not_interested(body: NotInterestedRequest):
        prefs = service.mark_not_interested(body.articleId, body.topics)
        return {"success": True, "notInterestedCount": len(prefs.not_interested_topics)}

    @app.get("/api/preferences/stats")
    async def preference_stats():
        stats = service.preference_stats()
        return {
            "success": True,
            "stats": {
                "readCount": stats.read_count,
                "topInterested": _topics(stats.top_interested),
                "topNotInterested": _topics(stats.top_not_interested),
            },
        }

    return app
