"""FastAPI application factory — entry point for CampusReads.

Run with ``uvicorn campusreads.main:create_app --factory``.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from campusreads.adapters.recommender.collaborative import CollaborativeRecommender
from campusreads.adapters.stores.memory import InMemoryStore
from campusreads.adapters.stores.sql import SqlStore
from campusreads.api.routes.books import router as books_router
from campusreads.api.routes.recommendations import router as recommendations_router
from campusreads.config import Settings, StoreBackend
from campusreads.database import build_engine, build_session_factory
from campusreads.services.lending import LendingService

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan: startup and shutdown events."""
    settings: Settings = app.state.settings
    logger.info("CampusReads starting up...")
    logger.info("Store backend: %s", settings.store_backend.value)
    logger.info("Recommendation limit: %d", settings.recommendation_limit)
    yield
    engine = getattr(app.state, "engine", None)
    if engine is not None:
        await engine.dispose()
    logger.info("CampusReads shutting down...")


def _build_store(application: FastAPI, settings: Settings) -> SqlStore | InMemoryStore:
    if settings.store_backend is StoreBackend.MEMORY:
        if settings.seed_sample_books:
            return InMemoryStore.with_sample_books()
        return InMemoryStore()

    engine = build_engine(settings)
    application.state.engine = engine
    return SqlStore(build_session_factory(engine))


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[SqlStore | InMemoryStore] = None,
) -> FastAPI:
    """Build and configure the FastAPI application."""
    settings = settings or Settings()
    application = FastAPI(
        title="CampusReads",
        description="Campus library borrowing with peer-based book recommendations",
        version="1.0.0",
        lifespan=lifespan,
    )
    application.state.settings = settings

    # ── Collaborators ──────────────────────────────
    store = store or _build_store(application, settings)
    application.state.store = store
    application.state.recommender = CollaborativeRecommender(
        ledger=store,
        catalog=store,
        limit=settings.recommendation_limit,
        read_timeout=settings.read_timeout_seconds,
    )
    application.state.lending = LendingService(
        store, loan_period_days=settings.loan_period_days
    )

    # ── Middleware ──────────────────────────────────
    application.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ── Routes ─────────────────────────────────────
    application.include_router(recommendations_router)
    application.include_router(books_router)

    # ── Health Check ───────────────────────────────
    @application.get("/health", tags=["System"])
    async def health() -> dict[str, str]:
        return {"status": "healthy", "service": "campusreads"}

    return application
