"""
Day planner backend application

Run with:
    uvicorn app:app --app-dir backend
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI

from core.db import get_db
from core.logger import get_logger, setup_logging
from handlers import get_registered_handlers, router

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    db = get_db()
    logger.info(f"Database ready at {db.db_path}")
    yield
    logger.info("Day planner API shutting down")


def create_app() -> FastAPI:
    """Build the FastAPI application with every registered handler"""
    setup_logging()

    app = FastAPI(title="Day Planner API", version="0.1.0", lifespan=lifespan)
    app.include_router(router)

    @app.get("/health", tags=["system"])
    async def health():
        return {"status": "ok", "tables": get_db().get_table_counts()}

    logger.info(f"Day planner API created with {len(get_registered_handlers())} handlers")
    return app


app = create_app()
