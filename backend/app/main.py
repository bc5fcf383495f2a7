"""
FastAPI application entry point.

Run with:
    uvicorn backend.app.main:app --reload --port 5000

Or from the project root:
    python -m uvicorn backend.app.main:app --reload
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

# ── Core infrastructure ──
from backend.app.core.config import settings
from backend.app.core.logging_config import setup_logging, get_logger
from backend.app.core.errors import register_error_handlers
from backend.app.core.middleware import RequestLoggingMiddleware
from backend.app.core.health import HealthStatus, run_health_check

# ── Domain ──
from backend.app.alerts.notifier import NotificationDelivery, build_notifier
from backend.app.safety.storage import MemStorage

# ── API routers ──
from backend.app.api.routes.contacts import router as contacts_router
from backend.app.api.routes.alerts import router as alerts_router
from backend.app.api.routes.app_settings import router as settings_router
from backend.app.api.routes.emergency import router as emergency_router

# ── Initialise logging ──
setup_logging()
logger = get_logger(__name__)


# ── Application lifespan (startup / shutdown) ──

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage startup and shutdown events."""
    logger.info(
        "Starting %s v%s [%s] sms=%s",
        settings.APP_NAME, settings.APP_VERSION, settings.ENVIRONMENT,
        app.state.notifier.mode,
    )
    yield
    await app.state.notifier.aclose()
    logger.info("Shutting down %s", settings.APP_NAME)


# ── Create application ──

def create_app(
    storage: Optional[MemStorage] = None,
    notifier: Optional[NotificationDelivery] = None,
) -> FastAPI:
    """
    Build the API with its store and delivery backend.

    Both default to what the environment configures; tests pass their own.
    """
    app = FastAPI(
        title=settings.APP_NAME,
        description=(
            "Personal-safety backend: emergency contacts, alert records, "
            "app settings, simulated SMS delivery and the one-tap "
            "emergency trigger."
        ),
        version=settings.APP_VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    app.state.storage = storage or MemStorage(
        seed_default_contacts=settings.SEED_DEFAULT_CONTACTS,
    )
    app.state.notifier = notifier or build_notifier(settings)

    # ── Middleware stack ──
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS if not settings.CORS_ALLOW_ALL else ["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestLoggingMiddleware)

    # ── Error handlers ──
    register_error_handlers(app)

    # ── Register routers ──
    app.include_router(contacts_router)
    app.include_router(alerts_router)
    app.include_router(settings_router)
    app.include_router(emergency_router)

    # ── Root & health endpoints ──

    @app.get("/", tags=["root"])
    async def root():
        return {
            "service": settings.APP_NAME,
            "version": settings.APP_VERSION,
            "environment": settings.ENVIRONMENT,
            "modules": [
                "emergency-contacts",
                "emergency-alerts",
                "settings",
                "sms-delivery",
                "emergency-trigger",
            ],
            "docs": "/docs",
        }

    @app.get("/health", tags=["health"])
    async def health_check():
        """Deep health probe — store and delivery backend."""
        report = await run_health_check(app.state.storage, app.state.notifier)
        return report.to_dict()

    @app.get("/health/live", tags=["health"])
    async def liveness():
        return {"status": "alive"}

    @app.get("/health/ready", tags=["health"])
    async def readiness():
        report = await run_health_check(app.state.storage, app.state.notifier)
        if report.status == HealthStatus.UNHEALTHY:
            return JSONResponse(status_code=503, content=report.to_dict())
        return report.to_dict()

    return app


app = create_app()
