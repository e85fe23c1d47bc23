# database.py
import logging

from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)

Base = declarative_base()


class Database:
    """Engine and session factory shared by every request of one app."""

    def __init__(self, database_url: str):
        # Handle PostgreSQL URL format differences
        if database_url.startswith("postgres://"):
            database_url = database_url.replace("postgres://", "postgresql://", 1)
        self.url = database_url

        engine_kwargs = {}
        if database_url.startswith("sqlite"):
            engine_kwargs["connect_args"] = {"check_same_thread": False}
            # In-memory databases live in a single connection
            if database_url in ("sqlite://", "sqlite:///:memory:"):
                engine_kwargs["poolclass"] = StaticPool

        self.engine = create_engine(database_url, **engine_kwargs)
        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)

    def create_all(self):
        # models must be imported so their tables are registered on Base
        import models  # noqa: F401

        Base.metadata.create_all(bind=self.engine)
        logger.info("Database tables ready (%s)", self.engine.url.render_as_string(hide_password=True))

    def dispose(self):
        self.engine.dispose()
        logger.info("Database connection closed")


def get_db(request: Request):
    db = request.app.state.db.SessionLocal()
    try:
        yield db
    finally:
        db.close()
