from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Callable, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from storyforge.app.api import credits_router, generate_router, stories_router
from storyforge.app.core.config import settings
from storyforge.app.core.http_client import init_http_client
from storyforge.app.core.logging import get_logger, setup_logging
from storyforge.app.db.async_session import close_async_engine
from storyforge.app.exceptions import StoryForgeException
from storyforge.app.middleware.rate_limit import RateLimiterRegistry
from storyforge.app.middleware.request_id import RequestIdMiddleware
from storyforge.app.providers.base import BaseProvider
from storyforge.app.providers.factory import create_provider


def create_app(
    provider: Optional[BaseProvider] = None,
    clock: Optional[Callable[[], float]] = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        provider: Use this provider instead of building one from settings
        clock: Time source for the rate limiters

    Returns:
        Configured FastAPI application instance
    """
    setup_logging()
    logger = get_logger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[dict, None]:
        """Application lifespan context manager.

        Opens the shared HTTP client and builds the provider on startup;
        disposes the database engine on shutdown.
        """
        async with init_http_client() as http_client:
            app.state.provider = provider or create_provider(http_client, settings)
            logger.info(
                "Application startup complete",
                extra={"provider": app.state.provider.name, "debug_mode": settings.debug},
            )
            yield {"http_client": http_client}

        await close_async_engine()
        logger.info("Application shutdown complete")

    app = FastAPI(
        title="StoryForge AI",
        description="AI story, novel outline and chapter generation with credits and rate limiting",
        version="1.0.0",
        lifespan=lifespan,
    )

    # One set of limiters per application; handlers reach them via app.state
    app.state.rate_limiters = RateLimiterRegistry.from_settings(settings, clock=clock)
    app.state.provider = provider

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
        max_age=600,
    )

    app.include_router(generate_router)
    app.include_router(credits_router)
    app.include_router(stories_router)

    @app.get("/health")
    async def health(request: Request) -> dict[str, Any]:
        """Provider reachability and rate limiter table sizes."""
        health_status: dict[str, Any] = {"status": "ok", "components": {}}

        current_provider: Optional[BaseProvider] = getattr(request.app.state, "provider", None)
        if current_provider is None:
            health_status["status"] = "degraded"
            health_status["components"]["provider"] = {"status": "error", "error": "not initialized"}
        else:
            healthy = await current_provider.health_check()
            if not healthy:
                health_status["status"] = "degraded"
            health_status["components"]["provider"] = {
                "status": "ok" if healthy else "error",
                "name": current_provider.name,
            }

        health_status["components"]["rate_limiters"] = request.app.state.rate_limiters.sizes()
        return health_status

    @app.exception_handler(StoryForgeException)
    async def storyforge_exception_handler(request: Request, exc: StoryForgeException) -> JSONResponse:
        """Render application errors as ``{"error", "message", ...}``."""
        return JSONResponse(status_code=exc.status_code, content=exc.to_response())

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Global exception handler for unhandled exceptions.

        The exception message is returned only in debug mode; the traceback
        only goes to the server log.
        """
        request_id = getattr(request.state, "request_id", "unknown")
        logger.exception(
            f"Unhandled exception [request_id={request_id}]",
            extra={"request_id": request_id, "exception_type": type(exc).__name__},
        )

        content = {
            "error": "internal_error",
            "message": str(exc) if settings.debug else "Internal server error",
            "request_id": request_id,
        }
        return JSONResponse(status_code=500, content=content)

    return app


# Create the application instance
app = create_app()
