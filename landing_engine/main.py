"""
Main FastAPI application for the Landing Engine
"""
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from landing_engine.agents.conversation_orchestrator import ConversationOrchestrator
from landing_engine.agents.page_lifecycle import PageLifecycleController
from landing_engine.config import missing_config, settings, validate_required_config
from landing_engine.dependencies import limiter
from landing_engine.logging_config import logger
from landing_engine.routers import chat, export, pages
from landing_engine.services.completion_gateway import CompletionGateway, get_completion_gateway
from landing_engine.services.persistence_gateway import PersistenceGateway, get_persistence_gateway

VERSION = "1.0.0"


def build_orchestrator(
    completion: Optional[CompletionGateway] = None,
    persistence: Optional[PersistenceGateway] = None
) -> ConversationOrchestrator:
    """Wire gateways, lifecycle controller and orchestrator from settings"""
    completion = completion or get_completion_gateway(settings)
    persistence = persistence or get_persistence_gateway(settings)
    return ConversationOrchestrator(
        completion=completion,
        lifecycle=PageLifecycleController(persistence),
        max_history=settings.CHAT_MAX_HISTORY
    )


def create_app(
    completion: Optional[CompletionGateway] = None,
    persistence: Optional[PersistenceGateway] = None
) -> FastAPI:
    """Application factory; gateways can be injected for tests"""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan events"""
        logger.info("Starting Landing Engine", environment=settings.ENVIRONMENT)

        # Validate required configuration
        validate_required_config()

        # Initialize Sentry if DSN provided
        if settings.SENTRY_DSN:
            sentry_sdk.init(
                dsn=settings.SENTRY_DSN,
                environment=settings.SENTRY_ENVIRONMENT,
                traces_sample_rate=settings.SENTRY_TRACES_SAMPLE_RATE,
                integrations=[FastApiIntegration()],
            )
            logger.info("Sentry initialized")

        app.state.orchestrator = build_orchestrator(completion, persistence)

        logger.info(
            "Landing Engine started",
            completion_provider=app.state.orchestrator.completion.provider,
            persistence_backend=app.state.orchestrator.lifecycle.persistence.backend
        )

        yield

        logger.info("Shutting down Landing Engine")

    app = FastAPI(
        title="Landing Engine",
        description="Conversational landing page generation service",
        version=VERSION,
        lifespan=lifespan
    )

    # Add rate limiter
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    # CORS middleware - Configure from environment
    allowed_origins = [
        origin.strip()
        for origin in settings.CORS_ORIGINS.split(",")
        if origin.strip()
    ]

    # In development, allow all origins for easier testing
    if settings.ENVIRONMENT == "development" or settings.DEBUG:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_credentials=False,  # Cannot use credentials with wildcard origins
            allow_methods=["*"],
            allow_headers=["*"],
        )
    else:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=allowed_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    @app.get("/")
    async def root():
        """Root endpoint"""
        return {
            "service": "Landing Engine",
            "version": VERSION,
            "status": "running",
            "completion_provider": settings.COMPLETION_PROVIDER
        }

    @app.get("/health")
    async def health_check():
        """Configuration health check"""
        problems = missing_config()
        orchestrator = getattr(app.state, "orchestrator", None)

        return {
            "status": "healthy" if not problems else "degraded",
            "version": VERSION,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "checks": {
                "completion": {
                    "provider": orchestrator.completion.provider if orchestrator else None,
                },
                "persistence": {
                    "backend": orchestrator.lifecycle.persistence.backend if orchestrator else None,
                },
                "sessions": len(orchestrator.sessions) if orchestrator else 0,
                "problems": problems
            }
        }

    @app.get("/readiness")
    async def readiness_check():
        """Kubernetes readiness probe"""
        problems = missing_config()
        if not problems and getattr(app.state, "orchestrator", None) is not None:
            return {"status": "ready"}
        return JSONResponse(
            status_code=503,
            content={"status": "not_ready", "problems": problems}
        )

    # Include routers
    app.include_router(chat.router, prefix="/api", tags=["Chat"])
    app.include_router(pages.router, prefix="/api", tags=["Landing Pages"])
    app.include_router(export.router, prefix="/api", tags=["Export"])

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Global exception handler with Sentry integration"""
        logger.error(
            "Unhandled exception",
            error=str(exc),
            path=request.url.path,
            exc_info=True
        )

        if settings.SENTRY_DSN:
            sentry_sdk.capture_exception(exc)

        return JSONResponse(
            status_code=500,
            content={
                "error": "Internal server error",
                "detail": str(exc) if settings.ENVIRONMENT == "development" else None
            }
        )

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    # Only enable reload in development
    reload_enabled = settings.ENVIRONMENT == "development" or settings.DEBUG
    uvicorn.run(
        "landing_engine.main:app",
        host="0.0.0.0",
        port=8001,
        reload=reload_enabled
    )
