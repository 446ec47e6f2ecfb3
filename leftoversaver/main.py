"""
LeftoverSaver — FastAPI entrypoint
"""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_fastapi_instrumentator import Instrumentator

from leftoversaver.core.config import get_settings
from leftoversaver.core.redis_client import close_redis
from leftoversaver.db.database import engine, Base
from leftoversaver.middleware.auth import JWTAuthMiddleware
from leftoversaver.middleware.idempotency import IdempotencyMiddleware
from leftoversaver.models import booking, offer  # noqa: F401  (register tables)
from leftoversaver.api import bookings, health, offers, stores

settings = get_settings()

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: create tables (Alembic handles migrations in production)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    await close_redis()
    await engine.dispose()


app = FastAPI(
    title="LeftoverSaver Offer Service",
    description="Surplus-food offers ranked by distance; bookings with optimistic locking to prevent overselling.",
    version=settings.SERVICE_VERSION,
    lifespan=lifespan,
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url=None,
)

app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_credentials=True,
                   allow_methods=["*"], allow_headers=["*"])

# Added last = runs first: auth sets request.state.user for the idempotency scope
app.add_middleware(IdempotencyMiddleware)
app.add_middleware(JWTAuthMiddleware)

if settings.METRICS_ENABLED:
    Instrumentator().instrument(app).expose(app, endpoint="/metrics")

app.include_router(offers.router)
app.include_router(stores.router)
app.include_router(bookings.router)
app.include_router(health.router)


@app.get("/")
async def root():
    return {"service": settings.SERVICE_NAME, "version": settings.SERVICE_VERSION}
