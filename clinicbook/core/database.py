from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker, Session
from sqlalchemy.pool import StaticPool
from fastapi import Request
from typing import Generator
import redis

Base = declarative_base()


def create_db_engine(database_url: str) -> Engine:
    """Create an engine with pool settings suited to the backend."""
    if database_url.startswith("sqlite"):
        # In-memory SQLite must share one connection across threads
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            return create_engine(
                database_url,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
            )
        return create_engine(database_url, connect_args={"check_same_thread": False})

    return create_engine(
        database_url,
        pool_size=5,
        max_overflow=10,
        pool_timeout=30,
        pool_recycle=1800,  # Recycle connections after 30 minutes
        pool_pre_ping=True,
    )


class Database:
    """Engine and session factory shared by every request of one app."""

    def __init__(self, database_url: str):
        self.engine = create_db_engine(database_url)
        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)

    def init_db(self):
        """Initialize database tables."""
        # Register every model with Base.metadata before creating tables
        from ..models import appointment, patient, practitioner  # noqa: F401

        Base.metadata.create_all(bind=self.engine)

    def drop_all(self):
        Base.metadata.drop_all(bind=self.engine)

    def session(self) -> Session:
        return self.SessionLocal()

    def dispose(self):
        self.engine.dispose()


def create_redis_client(redis_url: str) -> redis.Redis:
    return redis.from_url(redis_url, decode_responses=True)


# Database dependency
def get_db(request: Request) -> Generator[Session, None, None]:
    """Get database session."""
    db = request.app.state.db.session()
    try:
        yield db
    finally:
        db.close()


# Redis dependency
def get_redis(request: Request) -> redis.Redis:
    """Get Redis client."""
    return request.app.state.redis
