import logging
from collections.abc import Iterator

from fastapi import Request
from sqlalchemy import create_engine, event
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

logger = logging.getLogger(__name__)

Base = declarative_base()

_INSERT_BY_DIALECT = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def _normalize_database_url(url: str) -> str:
    # Allow the common `postgres://` form handed out by hosted providers.
    return url.replace("postgres://", "postgresql://", 1) if url.startswith("postgres://") else url


def _set_sqlite_pragmas(dbapi_connection, connection_record):  # noqa: ANN001
    try:
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON;")
        cursor.execute("PRAGMA busy_timeout=30000;")
        cursor.close()
    except Exception as e:
        logger.warning("Failed to set SQLite pragmas: %s", e)


class Database:
    """Owns the engine and session factory; opened and closed by the app lifespan."""

    def __init__(self, url: str, *, create_tables: bool = True):
        self.url = _normalize_database_url((url or "").strip())
        self.create_tables = create_tables
        self.engine: Engine | None = None
        self._sessionmaker: sessionmaker | None = None

    def connect(self) -> None:
        if self.engine is not None:
            return
        engine_kwargs = {"pool_pre_ping": True}
        if self.url.startswith("sqlite"):
            # Needed for SQLite when used with FastAPI/uvicorn (multiple threads).
            engine_kwargs["connect_args"] = {"check_same_thread": False, "timeout": 30}
        self.engine = create_engine(self.url, **engine_kwargs)
        if self.url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_sqlite_pragmas)
        self._sessionmaker = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)
        if self.create_tables:
            self.init_schema()
        logger.info("Connected to database (%s)", self.engine.dialect.name)

    def init_schema(self) -> None:
        # Import models so they register with SQLAlchemy metadata before create_all.
        from . import models  # noqa: F401

        Base.metadata.create_all(bind=self.engine)

    def close(self) -> None:
        if self.engine is not None:
            self.engine.dispose()
        self.engine = None
        self._sessionmaker = None

    def session(self) -> Session:
        if self._sessionmaker is None:
            raise RuntimeError("Database is not connected")
        return self._sessionmaker()


def get_db(request: Request) -> Iterator[Session]:
    db = request.app.state.db.session()
    try:
        yield db
    finally:
        db.close()


def insert_for(db: Session, model):
    """Dialect-specific INSERT supporting ON CONFLICT clauses."""
    dialect = db.get_bind().dialect.name
    try:
        insert = _INSERT_BY_DIALECT[dialect]
    except KeyError:
        raise RuntimeError(f"Upserts are not supported on the {dialect} dialect") from None
    return insert(model)


def commit_and_refresh(db: Session, row):
    """Commit and reload `row`. Blocking; async handlers call it through run_in_threadpool."""
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(row)
    return row
