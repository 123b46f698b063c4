import logging
from collections.abc import Generator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from fileshare.core.config import get_settings

logger = logging.getLogger(__name__)


def build_engine(database_uri: str, **engine_kwargs) -> Engine:
    is_sqlite = database_uri.startswith("sqlite")
    connect_args = {}
    if is_sqlite:
        # FastAPI runs sync endpoints in a threadpool
        connect_args["check_same_thread"] = False
    engine = create_engine(
        database_uri,
        pool_pre_ping=True,
        connect_args=connect_args,
        **engine_kwargs,
    )

    if is_sqlite:
        # SQLite ignores ON DELETE CASCADE unless foreign keys are enabled per connection
        @event.listens_for(engine, "connect")
        def _enable_foreign_keys(dbapi_connection, _connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return engine


settings = get_settings()
engine = build_engine(settings.sqlalchemy_database_uri)
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
    class_=Session,
)


def get_db() -> Generator[Session, None, None]:
    try:
        db = SessionLocal()
        try:
            yield db
        finally:
            db.close()
    except Exception as e:
        logger.error(f"Database connection error: {e}", exc_info=True)
        raise


__all__ = ["engine", "SessionLocal", "get_db", "build_engine"]
