"""FastAPI application factory."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from sqlalchemy.exc import SQLAlchemyError

from finquest.analytics.router import router as analytics_router
from finquest.budgets.router import router as budgets_router
from finquest.coach.router import router as coach_router
from finquest.config import get_settings
from finquest.database import close_db, create_tables, get_session, init_db
from finquest.education.router import router as education_router
from finquest.expenses.router import router as expenses_router
from finquest.gamification.router import router as gamification_router
from finquest.goals.router import router as goals_router
from finquest.health.router import router as health_router
from finquest.middleware import setup_middleware
from finquest.notifications.router import router as notifications_router
from finquest.profiles.router import router as profiles_router
from finquest.quiz.router import router as quiz_router
from finquest.redis_client import close_redis, connect_redis
from finquest.seed import seed_catalogs

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup and shutdown lifecycle."""
    settings = get_settings()
    await init_db(settings.database_url)
    if settings.auto_create_tables:
        await create_tables()
    await connect_redis(settings.redis_url)

    if settings.seed_catalog:
        try:
            async for db in get_session():
                await seed_catalogs(db)
                break
        except SQLAlchemyError:
            logger.warning("Catalog seeding failed (tables may not exist yet)", exc_info=True)

    yield

    await close_db()
    await close_redis()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="FinQuest API",
        description="Backend API for FinQuest, a gamified personal-finance learning app",
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    setup_middleware(app, settings)
    app.include_router(health_router, tags=["Health"])
    app.include_router(profiles_router)
    app.include_router(gamification_router)
    app.include_router(notifications_router)
    app.include_router(expenses_router)
    app.include_router(budgets_router)
    app.include_router(goals_router)
    app.include_router(analytics_router)
    app.include_router(education_router)
    app.include_router(quiz_router)
    app.include_router(coach_router)

    return app


app = create_app()
