from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from careercoach.config import settings


def build_engine(url: str, echo: bool = False):
    """Create an engine for ``url`` (SQLite locally, PostgreSQL when deployed)."""
    if url.startswith("sqlite"):
        return create_engine(
            url,
            connect_args={"check_same_thread": False},
            echo=echo
        )
    return create_engine(
        url,
        pool_pre_ping=True,
        pool_recycle=300,
        echo=echo
    )


engine = build_engine(settings.database_url, echo=settings.DEBUG)

# Create session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Base class for models
Base = declarative_base()


def get_db():
    """Dependency for getting database session"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
