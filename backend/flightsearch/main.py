import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from flightsearch.api.deps import StoreDep
from flightsearch.api.duffel import router as duffel_router
from flightsearch.api.v1.router import api_router
from flightsearch.config import settings
from flightsearch.db.redis import close_redis
from flightsearch.logging_config import configure_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging(settings.log_level)
    if not (settings.amadeus_client_id and settings.amadeus_client_secret):
        logger.warning("Credenziali Amadeus mancanti: ogni ricerca fallirà senza fallback")
    if not settings.duffel_access_token:
        logger.warning("DUFFEL_ACCESS_TOKEN mancante: fallback e proxy Duffel non disponibili")

    yield

    await close_redis()


app = FastAPI(
    title="Flight Search API",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)

app.include_router(api_router)
app.include_router(duffel_router, prefix="/api/duffel", tags=["duffel"])


@app.get("/api/v1/health")
async def health(store: StoreDep):
    store_ok = await store.ping()
    return {
        "status": "ok" if store_ok else "degraded",
        "env": settings.app_env,
        "store": "ok" if store_ok else "unavailable",
    }
