from typing import Optional

from fastapi import Request
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import DBAPIError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from apv.config import Settings
from apv.core.exceptions import DatabaseConnectionError
from apv.core.logging import get_logger

logger = get_logger("apv.db")


def redact_url(url: str) -> str:
    """Render a database URL with its password masked"""
    return make_url(url).render_as_string(hide_password=True)


def driver_message(exc: SQLAlchemyError) -> str:
    """
    Text of the underlying driver error.

    SQLAlchemy wraps DBAPI errors and appends its own background link;
    the client only gets what the driver reported.
    """
    if isinstance(exc, DBAPIError) and exc.orig is not None:
        return str(exc.orig).strip()
    return str(exc).strip()


def build_engine(settings: Settings) -> Engine:
    url = settings.sqlalchemy_url
    if url.startswith("sqlite"):
        return create_engine(url, connect_args={"check_same_thread": False})
    return create_engine(
        url,
        pool_pre_ping=True,
        connect_args={"connect_timeout": settings.DATABASE_CONNECT_TIMEOUT},
    )


class Database:
    """
    Owns the engine and session factory for one application instance.

    Connections are opened eagerly by ``connect``; every database error
    raises, nothing is retried.
    """

    def __init__(self, settings: Settings, engine: Optional[Engine] = None):
        self.url = settings.sqlalchemy_url
        self.engine = engine or build_engine(settings)
        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)

    @property
    def safe_url(self) -> str:
        return redact_url(self.url)

    def connect(self) -> Session:
        """
        Open a session bound to a live connection.

        Raises:
            DatabaseConnectionError: the database is unreachable or the
                credentials were rejected
        """
        db = self.SessionLocal()
        try:
            db.connection()
        except SQLAlchemyError as e:
            db.close()
            reason = driver_message(e)
            # The request-level error is logged by the exception handler
            logger.warning("Cannot connect to database", database=self.safe_url, reason=reason)
            raise DatabaseConnectionError(reason) from e
        return db

    def ping(self) -> bool:
        """Run ``SELECT 1``; False when the database does not answer"""
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError as e:
            logger.warning("Database ping failed", database=self.safe_url, reason=driver_message(e))
            return False

    def dispose(self) -> None:
        self.engine.dispose()


def get_database(request: Request) -> Database:
    return request.app.state.database

