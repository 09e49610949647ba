"""Process-wide database connection management.

The engine is created lazily on first use and shared by every request.
Concurrent first callers wait on the same attempt; a failed attempt is
discarded so the next caller retries from scratch.
"""

from __future__ import annotations

import enum
import threading
from collections.abc import Generator

import structlog
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from app.core.config import settings
from app.models import Base
from app.services.exceptions import BackendConfigurationError

logger = structlog.get_logger()


class ConnectionState(str, enum.Enum):
    UNINITIALIZED = "uninitialized"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    FAILED = "failed"


def _normalize_url(url: str) -> str:
    if url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql+psycopg://", 1)
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+psycopg://", 1)
    return url


class ConnectionManager:
    def __init__(
        self,
        url: str | None = None,
        *,
        echo: bool = False,
        create_schema: bool = True,
    ) -> None:
        self._url = url
        self._echo = echo
        self._create_schema = create_schema
        self._lock = threading.Lock()
        self._engine: Engine | None = None
        self._sessionmaker: sessionmaker[Session] | None = None
        self.state = ConnectionState.UNINITIALIZED
        self.attempts = 0

    @property
    def url(self) -> str:
        return self._url if self._url is not None else settings.database_url

    def _build_engine(self, url: str) -> Engine:
        kwargs: dict = {"echo": self._echo, "pool_pre_ping": True}
        if url.startswith("sqlite"):
            # Requests are served from a threadpool
            kwargs["connect_args"] = {"check_same_thread": False}
        return create_engine(url, **kwargs)

    def _connect(self) -> Engine:
        raw = (self.url or "").strip()
        if not raw:
            raise BackendConfigurationError(
                "Please define the DATABASE_URL environment variable"
            )

        url = _normalize_url(raw)
        try:
            engine = self._build_engine(url)
        except (SQLAlchemyError, ValueError) as exc:
            raise BackendConfigurationError(f"Invalid DATABASE_URL: {exc}") from exc

        try:
            with engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            if self._create_schema:
                Base.metadata.create_all(engine)
        except SQLAlchemyError as exc:
            engine.dispose()
            raise BackendConfigurationError(f"Database unreachable: {exc}") from exc

        return engine

    def get_engine(self) -> Engine:
        engine = self._engine
        if engine is not None:
            return engine

        with self._lock:
            # Another caller may have finished connecting while we waited.
            if self._engine is not None:
                return self._engine

            self.state = ConnectionState.CONNECTING
            self.attempts += 1
            try:
                engine = self._connect()
            except BackendConfigurationError as exc:
                self.state = ConnectionState.FAILED
                logger.error("database_connect_failed", attempt=self.attempts, error=str(exc))
                raise

            self._sessionmaker = sessionmaker(
                bind=engine, autoflush=False, expire_on_commit=False
            )
            self._engine = engine
            self.state = ConnectionState.CONNECTED
            logger.info("database_connected", dialect=engine.dialect.name)
            return engine

    def session(self) -> Session:
        self.get_engine()
        assert self._sessionmaker is not None
        return self._sessionmaker()

    def dispose(self) -> None:
        with self._lock:
            if self._engine is not None:
                self._engine.dispose()
            self._engine = None
            self._sessionmaker = None
            self.state = ConnectionState.UNINITIALIZED


connection_manager = ConnectionManager(echo=settings.database_echo)


def SessionLocal() -> Session:
    return connection_manager.session()


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
