# liveshare/main.py

from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.responses import Response

from liveshare import config
from liveshare.config import settings
from liveshare.db.base import async_engine
from liveshare.middleware.error_handler import ErrorHandlerMiddleware, setup_exception_handlers
from liveshare.middleware.rate_limiter import RateLimitMiddleware
from liveshare.observability.logger import configure_logging
from liveshare.observability.metrics import PrometheusMiddleware
from liveshare.observability.metrics import router as prometheus_router
from liveshare.routers.health import router as health_router
from liveshare.routers.sharing import router as sharing_router
from liveshare.routers.tracking import router as tracking_router
from liveshare.services.notification_service import close_notification_emitter
from liveshare.utils.logger import log_info
from liveshare.utils.telemetry import init_otel


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging(config)
    log_info(f"Server started at http://{config.HOST}:{config.PORT}")
    yield
    log_info("Starting graceful shutdown...")
    await close_notification_emitter()
    await async_engine.dispose()
    log_info("Shutdown complete.")


def create_app() -> FastAPI:
    app = FastAPI(
        title="Liveshare API",
        description="Live location sharing: broadcast links and mutual sessions",
        version="1.0.0",
        lifespan=lifespan,
    )

    # Middleware order matters: last added = outermost
    app.add_middleware(PrometheusMiddleware)
    app.add_middleware(
        RateLimitMiddleware,
        api_limit=settings.RATE_LIMIT_API,
        general_limit=settings.RATE_LIMIT_GENERAL,
    )
    app.add_middleware(ErrorHandlerMiddleware, debug=config.DEBUG)

    setup_exception_handlers(app)

    app.include_router(health_router)
    app.include_router(prometheus_router)
    app.include_router(tracking_router, prefix="/api")
    app.include_router(sharing_router, prefix="/api")

    @app.get("/favicon.ico", include_in_schema=False)
    async def favicon():
        """Return empty response for favicon to prevent 404 errors."""
        return Response(status_code=204)

    if settings.OTEL_ENABLED:
        init_otel(app=app, engine=async_engine, service_name=config.SERVICE_NAME)

    return app


app = create_app()


def get_app() -> FastAPI:
    return app


if __name__ == "__main__":
    uvicorn.run("liveshare.main:app", host=config.HOST, port=config.PORT, log_level=config.LOG_LEVEL.lower())
