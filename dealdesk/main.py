from contextlib import asynccontextmanager
import logging

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pymongo.errors import PyMongoError

from dealdesk.config.env import Settings, load_settings, validate_production_env
from dealdesk.database import connect, get_store

# ROUTES
from dealdesk.routes.auth import router as auth_router
from dealdesk.routes.users import router as users_router
from dealdesk.routes.listings import router as listings_router
from dealdesk.routes.deals import router as deals_router

from dealdesk.utils.errors import register_error_handlers
from dealdesk.utils.indexes import ensure_indexes
from dealdesk.utils.logger import configure_logging, request_logger

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None, store=None) -> FastAPI:
    """
    Build the application.

    ``store`` is normally created at startup from ``MONGODB_URI``; passing
    one in skips the connection (tests hand in an in-memory store).
    """
    settings = settings or load_settings()
    validate_production_env(settings)
    configure_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owns_store = app.state.store is None
        if owns_store:
            app.state.store = connect(settings)
            await ensure_indexes(app.state.store.db)

        logger.info("ENV: %s", settings.env)
        yield

        if owns_store:
            app.state.store.close()
            app.state.store = None

    app = FastAPI(
        title="DealDesk API",
        version="1.0.0",
        docs_url=None if settings.is_production else "/docs",
        redoc_url=None if settings.is_production else "/redoc",
        openapi_url=None if settings.is_production else "/openapi.json",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.store = store

    # -----------------------------
    # CORS
    # -----------------------------

    allowed_origins = settings.cors_allowed_origins or [
        "http://localhost:3000",
        "http://localhost:5173",
        "http://127.0.0.1:5173",
    ]

    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # -----------------------------
    # LOGGING + ERRORS
    # -----------------------------

    app.middleware("http")(request_logger)
    register_error_handlers(app)

    # -----------------------------
    # ROUTES
    # -----------------------------

    app.include_router(auth_router)
    app.include_router(users_router)
    app.include_router(listings_router)
    app.include_router(deals_router)

    # -----------------------------
    # HEALTH CHECKS
    # -----------------------------

    @app.get("/health", tags=["Health"])
    async def health():
        return {"status": "ok"}

    @app.get("/health/db", tags=["Health"])
    async def health_db(store=Depends(get_store)):
        try:
            await store.ping()
        except PyMongoError:
            logger.exception("HEALTH_DB_ERROR")
            return JSONResponse(
                status_code=503,
                content={"status": "error", "database": "unreachable"},
            )
        return {"status": "ok", "database": "connected"}

    return app


app = create_app()


def run() -> None:
    import uvicorn

    settings = app.state.settings
    uvicorn.run(app, host="0.0.0.0", port=settings.port, log_config=None)


if __name__ == "__main__":
    run()
