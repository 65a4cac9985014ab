from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor

from aycl_api.api.routes import router as api_router
from aycl_api.core.config import Settings, get_settings
from aycl_api.core.database import Database
from aycl_api.logging import configure_logging
from aycl_api.middleware.correlation_id import CorrelationIdMiddleware
from aycl_api.middleware.error_handler import install_error_handlers
from aycl_api.middleware.request_logging import RequestLoggingMiddleware
from aycl_api.otel import server_request_hook, setup_otel


logger = logging.getLogger("aycl_api.lifecycle")


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("api.started")
    yield
    app.state.database.dispose()
    logger.info("api.stopped")


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(title=settings.app_name, version="0.1.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.database = Database(
        settings.database_url,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        pool_timeout=settings.db_pool_timeout,
    )

    # Added last runs first: the correlation id is bound before the request is logged.
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(CorrelationIdMiddleware)
    install_error_handlers(app)

    app.include_router(api_router)
    app.mount("/uploads", StaticFiles(directory=settings.uploads_dir, check_dir=False), name="uploads")

    if settings.otel_enabled:
        setup_otel("aycl-api")
    if not getattr(app, "_is_instrumented_by_opentelemetry", False):
        FastAPIInstrumentor().instrument_app(app, server_request_hook=server_request_hook)
    return app


app = create_app()
