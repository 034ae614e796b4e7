"""
FastAPI application entry point.
"""
import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from app.api import health, swap
from app.core.config import get_settings
from app.core.redis import close_redis
from app.services.swap import close_shared_components

app_settings = get_settings()

logging.basicConfig(
    level=getattr(logging, str(app_settings.log_level).upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Swap Aggregator API",
    description="Cross-chain swap quotes and trade creation via Trocador",
    version="0.1.0",
)

# CORS middleware (adjust origins for production)
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:3000",      # Frontend dev server (localhost)
        "http://127.0.0.1:3000",      # Frontend dev server (127.0.0.1)
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(health.router, tags=["health"])
app.include_router(swap.router, prefix="/api/swap", tags=["swap"])


@app.on_event("startup")
async def startup_event():
    if not app_settings.trocador_api_key:
        logger.warning("TROCADOR_API_KEY not set: rates and swap creation will fail, reference data is served from the database only")


@app.on_event("shutdown")
async def shutdown_event():
    """Cleanup on shutdown."""
    close_shared_components()
    close_redis()
