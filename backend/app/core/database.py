"""
Database connection and session management.
"""
import logging
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from app.core.config import DATABASE_DSN

logger = logging.getLogger(__name__)

if not DATABASE_DSN:
    raise ValueError("DATABASE_DSN not configured. Create app/config_local.py from config_local.example.py")

_engine_kwargs = {"echo": False}  # Set echo to True for SQL debugging
if not DATABASE_DSN.startswith("sqlite"):
    _engine_kwargs.update(
        pool_pre_ping=True,  # Verify connections before using
        pool_recycle=3600,  # Recycle connections after 1 hour
        pool_size=10,
        max_overflow=20,
        pool_timeout=60,
    )
if "pymysql" in DATABASE_DSN:
    _engine_kwargs["connect_args"] = {
        "connect_timeout": 30,
        "read_timeout": 60,
        "write_timeout": 60,
    }

engine = create_engine(DATABASE_DSN, **_engine_kwargs)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """Dependency for FastAPI to get database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        try:
            db.close()
        except Exception as e:
            # Connection may already be gone; the pool discards it either way
            logger.warning(f"Error closing database session (connection may be lost): {str(e)}")
