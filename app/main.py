"""FastAPI application entrypoint. No business logic; only wiring and middleware."""

from dotenv import load_dotenv

load_dotenv()

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.errors import setup_exception_handlers
from app.api.routes import router
from app.core.config import get_settings
from app.core.database import init_db
from app.services.events import EventPublisher, build_publisher

logger = logging.getLogger(__name__)


def create_app(publisher: EventPublisher | None = None) -> FastAPI:
    """
    Assemble the application. The event publisher is created in the lifespan
    unless one is injected (it is then left open for the caller to close).
    """
    settings = get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if settings.DB_SYNCHRONIZE:
            init_db()
        owned = app.state.publisher is None
        if owned:
            app.state.publisher = build_publisher(settings)
        logger.info("Users service started (env=%s)", settings.APP_ENV)
        try:
            yield
        finally:
            if owned:
                app.state.publisher.close()
                app.state.publisher = None

    app = FastAPI(
        title="Users API",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.publisher = publisher

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if settings.APP_ENV == "dev" else [],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    setup_exception_handlers(app)
    app.include_router(router, prefix=settings.API_PREFIX)

    @app.get("/")
    def root() -> dict[str, str]:
        """Root route; minimal payload for discovery."""
        return {"message": "Users API"}

    return app


app = create_app()
