"""SQLAlchemy database engine, session factory, and connection management.

Provides the shared engine, session factory, and declarative base for all
ORM models. SQLite connections enable WAL mode and foreign keys via an
event listener.
"""
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, DeclarativeBase
from sqlalchemy.pool import StaticPool

from assettrackr.config import get_settings


class Base(DeclarativeBase):
    """Declarative base for all ORM models."""
    pass


def build_engine(url: str, echo: bool = False):
    connect_args = {}
    kwargs = {}
    if url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
        if ":memory:" in url or url == "sqlite://":
            # One shared connection, otherwise every session sees an empty DB
            kwargs["poolclass"] = StaticPool
    engine = create_engine(url, connect_args=connect_args, echo=echo, **kwargs)
    if url.startswith("sqlite"):
        @event.listens_for(engine, "connect")
        def _set_sqlite_pragma(dbapi_conn, connection_record):
            cursor = dbapi_conn.cursor()
            cursor.execute("PRAGMA journal_mode=WAL;")
            cursor.execute("PRAGMA foreign_keys=ON;")
            cursor.close()
    return engine


def _get_engine():
    settings = get_settings()
    return build_engine(settings.DATABASE_URL, echo=settings.DEBUG)


engine = _get_engine()

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db():
    """FastAPI dependency that yields a database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def create_tables(bind=None):
    """Create all tables from ORM metadata."""
    # Import models so they register with the metadata
    import assettrackr.models  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)
