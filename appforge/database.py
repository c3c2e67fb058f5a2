from functools import lru_cache

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from .config import get_settings

DATABASE_URL = get_settings().database_url


def _engine_kwargs(url: str) -> dict:
    if not url.startswith("sqlite"):
        return {}
    # Build threads write orders outside the request thread
    kwargs = {"connect_args": {"check_same_thread": False}}
    if url in ("sqlite://", "sqlite:///:memory:"):
        kwargs["poolclass"] = StaticPool
    return kwargs


@lru_cache
def make_session_factory(url: str) -> sessionmaker:
    """One engine and session factory per database URL."""
    bind = create_engine(url, **_engine_kwargs(url))
    return sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=bind)


SessionLocal = make_session_factory(DATABASE_URL)
engine = SessionLocal.kw["bind"]


def init_db(bind=None):
    from .models import Base

    Base.metadata.create_all(bind=bind or engine)
