"""
Health check endpoint.
"""
from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from app.core.database import get_db
from app.core.redis import get_redis
from app.services.cache.redis_cache import RedisCache

router = APIRouter()


def get_cache() -> RedisCache:
    return RedisCache(get_redis())


@router.get("/health")
def health(db: Session = Depends(get_db), cache: RedisCache = Depends(get_cache)):
    """Liveness plus backing store reachability. The cache being down is degraded, not fatal."""
    try:
        db.execute(text("SELECT 1"))
        database = "ok"
    except SQLAlchemyError:
        database = "error"
    redis_status = "ok" if cache.ping() else "unavailable"
    status = "ok" if database == "ok" else "error"
    return {"status": status, "database": database, "redis": redis_status}
