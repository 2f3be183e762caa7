"""Engine and session factory for the relational store."""

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool


def create_store_engine(database_url: str) -> Engine:
    """
    Create a SQLAlchemy engine.

    SQLite connections are shared across executor threads; an in-memory
    SQLite database additionally needs a single static connection so every
    session sees the same data.
    """
    kwargs = {"future": True, "pool_pre_ping": True}
    if database_url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        if ":memory:" in database_url or database_url in ("sqlite://", "sqlite+pysqlite://"):
            kwargs["poolclass"] = StaticPool

    return create_engine(database_url, **kwargs)


def create_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(
        bind=engine,
        future=True,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )
