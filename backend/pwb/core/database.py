"""
Database engines, sessions and shard routing.

Websites, users and the subdomain pool live in the default database.
Tenant-owned tables are routed to the shard selected for the current
request (see ``pwb.middleware.shards``).
"""

import logging
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Dict, List, Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from pwb.core.config import settings
from pwb.core.tenant import ShardBound

logger = logging.getLogger(__name__)

Base = declarative_base()

DEFAULT_SHARD = "default"

_engines: Dict[str, Engine] = {}
_current_shard: ContextVar[str] = ContextVar("pwb_current_shard", default=DEFAULT_SHARD)

SessionLocal = sessionmaker()


def shard_urls() -> Dict[str, str]:
    urls = {DEFAULT_SHARD: settings.DATABASE_URL}
    urls.update(settings.SHARD_DATABASE_URLS)
    return urls


def available_shards() -> List[str]:
    return sorted(set(shard_urls()) | set(_engines))


def get_engine(shard: str = DEFAULT_SHARD) -> Engine:
    """Return the engine for a shard, creating it on first use."""
    engine = _engines.get(shard)
    if engine is not None:
        return engine

    url = shard_urls().get(shard)
    if url is None:
        raise ValueError(f"Unknown shard: {shard}")

    logger.info(f"Creating engine for shard '{shard}'")
    engine = create_engine(url, pool_pre_ping=True)
    _engines[shard] = engine
    return engine


def register_engine(shard: str, engine: Engine) -> None:
    """Install a pre-built engine for a shard (tests, scripts)."""
    _engines[shard] = engine


def reset_engines() -> None:
    for engine in _engines.values():
        engine.dispose()
    _engines.clear()


def get_current_shard() -> str:
    return _current_shard.get()


@contextmanager
def using_shard(shard: str):
    token = _current_shard.set(shard)
    try:
        yield
    finally:
        _current_shard.reset(token)


def create_session(shard: Optional[str] = None) -> Session:
    """Open a session routing tenant tables to ``shard`` (default: current)."""
    shard_engine = get_engine(shard or get_current_shard())
    return SessionLocal(bind=get_engine(DEFAULT_SHARD), binds={ShardBound: shard_engine})


def get_db():
    """FastAPI dependency yielding a request-scoped session."""
    db = create_session()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def session_scope(shard: Optional[str] = None):
    """Session for code running outside a request (middleware, workers)."""
    db = create_session(shard)
    try:
        yield db
    finally:
        db.close()
