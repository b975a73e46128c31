from contextlib import asynccontextmanager

from fastapi import FastAPI
from loguru import logger

from backend.app.core.config import settings
from backend.app.core.errors import register_exception_handlers
from backend.app.core.logging import configure_logging
from backend.app.db.session import engine
import backend.app.routers.health as health
import backend.app.routers.reservations as reservations
import backend.app.routers.tables as tables


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging(settings.LOG_LEVEL)
    logger.info("Reservation service starting")
    try:
        yield
    finally:
        await engine.dispose()


app = FastAPI(
    title="Restaurant Reservations API",
    lifespan=lifespan,
)

register_exception_handlers(app)

app.include_router(health.router, prefix=settings.API_PREFIX)
app.include_router(reservations.router, prefix=settings.API_PREFIX)
app.include_router(tables.router, prefix=settings.API_PREFIX)
