"""Database engine and session factory."""
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from tunebridge.config.settings import settings
from tunebridge.models.base import BaseModel as Base

DEFAULT_DATABASE_URL = "sqlite+pysqlite:///./tunebridge.db"


def _engine_kwargs(url: str) -> dict:
    if url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}
    return {"pool_pre_ping": True}


database_url = settings.DATABASE_URL or DEFAULT_DATABASE_URL
engine = create_engine(database_url, echo=settings.SQLALCHEMY_ECHO, **_engine_kwargs(database_url))
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db() -> None:
    """Create link tables when they do not exist yet."""
    import tunebridge.models  # noqa: F401

    Base.metadata.create_all(bind=engine)
