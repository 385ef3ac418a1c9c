"""FastAPI application entry point.

Blog Cache API - articles with Redis-cached likes and rankings.
"""

from contextlib import asynccontextmanager
from collections.abc import AsyncGenerator
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from blogcache.routes import api_router
from blogcache.schemas import ErrorResponse
from blogcache.services.article_cache import ArticleCache
from blogcache.settings import Settings, get_settings
from blogcache.stores.postgres import init_db, close_db, ping_db
from blogcache.stores.redis import ConnectionGate

logger = logging.getLogger("uvicorn.error")

_HTTP_ERROR_CODES = {
    400: "BAD_REQUEST",
    404: "NOT_FOUND",
    409: "CONFLICT",
    422: "VALIDATION_ERROR",
}


def build_article_cache(settings: Settings) -> ArticleCache:
    """Article cache with its own Redis gate. Does not connect."""
    gate = ConnectionGate(
        settings.redis_url,
        name="article cache",
        connect_timeout=settings.redis_connect_timeout,
    )
    return ArticleCache(
        gate,
        ttl=settings.cache_ttl,
        top_limit=settings.top_articles_limit,
        latest_limit=settings.latest_articles_limit,
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Handles startup and shutdown events. Redis is never required at
    startup: the article cache connects lazily on first use.
    """
    # Startup
    try:
        await init_db()
        await ping_db()
        logger.info("Postgres connected")
    except Exception:
        logger.exception("Postgres init failed")

    yield

    # Shutdown
    await app.state.article_cache.gate.close()
    await close_db()


def create_app() -> FastAPI:
    """Create and configure FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Articles with resilient Redis caching",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )
    app.state.article_cache = build_article_cache(settings)

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        """HTTP errors in the structured error format."""
        body = ErrorResponse.build(
            code=_HTTP_ERROR_CODES.get(exc.status_code, "HTTP_ERROR"),
            message=str(exc.detail),
        )
        return JSONResponse(status_code=exc.status_code, content=body.model_dump())

    # Exception handler for structured error format
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Global exception handler returning structured error format."""
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        body = ErrorResponse.build(
            code="INTERNAL_ERROR",
            message=str(exc) if settings.debug else "Internal server error",
        )
        return JSONResponse(status_code=500, content=body.model_dump())

    # Health check endpoint
    @app.get("/health", tags=["health"])
    async def health_check() -> dict[str, bool]:
        """Health check endpoint."""
        return {"ok": True}

    # Include API routes
    app.include_router(api_router)

    return app


# Application instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "blogcache.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
