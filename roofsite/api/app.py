"""
Main FastAPI application for the roofing site builder backend

This module creates and configures the FastAPI application with:
- CORS middleware for the site builder frontend
- API routes (chat streaming, blog generation, lead intake, publishing)
- Per-endpoint rate limit policies
- Health check endpoint
- Auto-generated API documentation
"""

from contextlib import asynccontextmanager
from typing import Callable, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

from roofsite import __version__
from roofsite.api.models import HealthResponse
from roofsite.api.routes import blog, chat, leads, publish
from roofsite.config.settings import settings
from roofsite.ratelimit import build_rate_limit_policies
from roofsite.storage import SiteDatabase
from roofsite.utils.errors import (
    LeadValidationError,
    PublishError,
    RateLimitExceededError,
    SiteServiceError,
    UpstreamError,
)
from roofsite.utils.logger import setup_logger


def register_exception_handlers(app: FastAPI) -> None:
    """Map service exceptions to JSON error bodies"""

    @app.exception_handler(RateLimitExceededError)
    async def rate_limited(request: Request, exc: RateLimitExceededError):
        content = {"error": str(exc), "retryAfter": exc.retry_after}
        if exc.code:
            content["code"] = exc.code
        return JSONResponse(
            status_code=429,
            content=content,
            headers={"Retry-After": str(exc.retry_after)},
        )

    @app.exception_handler(UpstreamError)
    async def upstream_failed(request: Request, exc: UpstreamError):
        logger.error(f"Upstream error on {request.url.path}: {exc}")
        return JSONResponse(status_code=exc.status_code or 500, content={"error": str(exc)})

    @app.exception_handler(PublishError)
    async def publish_rejected(request: Request, exc: PublishError):
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": str(exc), "code": exc.code, **exc.extra},
        )

    @app.exception_handler(LeadValidationError)
    async def lead_invalid(request: Request, exc: LeadValidationError):
        logger.info(f"Lead rejected: {exc}")
        return JSONResponse(status_code=400, content={"error": str(exc)})

    @app.exception_handler(SiteServiceError)
    async def service_failed(request: Request, exc: SiteServiceError):
        logger.error(f"Unhandled service error on {request.url.path}: {exc}")
        return JSONResponse(status_code=500, content={"error": str(exc)})


def create_app(
    site_db_path: Optional[str] = None,
    rate_limit_clock: Optional[Callable[[], int]] = None,
) -> FastAPI:
    """
    Build the application.

    Args:
        site_db_path: SQLite file for sites and leads (defaults to settings)
        rate_limit_clock: Millisecond clock for the rate limiters (tests)
    """
    setup_logger()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        Application lifespan events

        - Startup: open the site database
        - Shutdown: close it
        """
        logger.info("🚀 FastAPI application starting...")
        logger.info("📚 API docs available at http://localhost:8000/docs")
        logger.info("🔄 Chat streaming endpoint at http://localhost:8000/functions/v1/chat")

        site_db = SiteDatabase(site_db_path)
        await site_db.async_init()
        app.state.site_db = site_db

        yield

        logger.info("🛑 FastAPI application shutting down...")
        try:
            await site_db.close()
            logger.info("✅ Site database closed")
        except Exception as e:
            logger.warning(f"Error closing site database: {e}")

    app = FastAPI(
        title="Roofing Site Builder API",
        description="""
    Backend for an AI-assisted website builder for roofing contractors.

    ## Features

    * **Conversational site building** streamed as chat-completions events
    * **Onboarding and edit modes** with structured site configuration output
    * **Blog generation** with seasonal topic suggestions
    * **Lead intake** for published sites
    * **Per-endpoint rate limits** (fixed window)

    ## Example

    ```bash
    curl -N -X POST http://localhost:8000/functions/v1/chat \\
         -H "Content-Type: application/json" \\
         -d '{"messages": [{"role": "user", "content": "Hi, I run ABC Roofing"}]}'
    ```
    """,
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # Limiters live for the process; they are not reset by lifespan restarts
    app.state.rate_limits = build_rate_limit_policies(clock=rate_limit_clock)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["Retry-After", "X-RateLimit-Remaining"],
    )

    app.include_router(chat.router)
    app.include_router(blog.router)
    app.include_router(leads.router)
    app.include_router(publish.router)

    register_exception_handlers(app)

    @app.get("/", tags=["root"])
    async def root():
        """
        Root endpoint - API information
        """
        return {
            "service": "Roofing Site Builder API",
            "version": __version__,
            "status": "running",
            "docs": "/docs",
            "endpoints": {
                "health": "/health",
                "chat": "/functions/v1/chat",
                "generate_blog": "/functions/v1/generate-blog",
                "submit_lead": "/functions/v1/submit-lead",
                "publish_site": "/functions/v1/publish-site",
            },
        }

    @app.get("/health", response_model=HealthResponse, tags=["health"])
    async def health_check():
        """
        Health check endpoint

        Returns:
            HealthResponse with service status
        """
        return HealthResponse(status="healthy", service="roofsite-api", version=__version__)

    return app


app = create_app()
