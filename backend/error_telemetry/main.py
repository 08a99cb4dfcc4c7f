"""FastAPI application."""
from contextlib import asynccontextmanager

from fastapi import FastAPI

from .config import Settings, settings as default_settings, validate_production_settings
from .interceptor import ExceptionInterceptor, register_exception_interceptor
from .logger import AppLogger, configure_logging, shutdown_logging
from .routers import diagnostics
from .telemetry import SentryTelemetryClient, TelemetryClient, init_telemetry

VERSION = "1.0.0"


def create_app(
    settings: Settings | None = None,
    *,
    logger: AppLogger | None = None,
    telemetry: TelemetryClient | None = None,
) -> FastAPI:
    """Build the app with the exception interceptor bound once for all routes."""
    if settings is None:
        settings = default_settings

    # Production safety checks (fail closed on unsafe telemetry config).
    validate_production_settings(settings)

    logger = logger or AppLogger()
    telemetry = telemetry or init_telemetry(settings, logger)

    @asynccontextmanager
    async def lifespan(_: FastAPI):
        listener = configure_logging(settings)
        logger.log(f"{settings.APP_NAME} started (env={settings.ENV}, log_level={settings.LOG_LEVEL})")
        try:
            yield
        finally:
            if isinstance(telemetry, SentryTelemetryClient):
                telemetry.flush()
            logger.log(f"{settings.APP_NAME} stopping")
            shutdown_logging(listener)

    app = FastAPI(
        title=settings.APP_NAME,
        version=VERSION,
        description="Request error interception with log and telemetry forwarding",
        debug=settings.DEBUG,
        lifespan=lifespan,
    )

    register_exception_interceptor(app, ExceptionInterceptor(logger, telemetry))

    if settings.DIAGNOSTICS_ENABLED:
        app.include_router(diagnostics.router, prefix="/api/v1")

    @app.get("/api/v1/system/health")
    def health_check():
        """Health check endpoint."""
        return {
            "status": "ok",
            "version": VERSION,
            "telemetry": "enabled" if settings.telemetry_active else "disabled",
        }

    @app.get("/")
    def root():
        """Root endpoint."""
        return {
            "message": f"{settings.APP_NAME} API",
            "version": VERSION,
            "docs": "/docs",
        }

    return app


app = create_app()
