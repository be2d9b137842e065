# tiktok_analytics/app/database.py
"""
Database Configuration and Session Management
Synchronous SQLAlchemy engine for linked account storage
"""

import logging
from typing import Generator

from sqlalchemy import create_engine, text
from sqlalchemy.orm import Session, sessionmaker

from tiktok_analytics.app.config import get_config
from tiktok_analytics.app.models import Base

logger = logging.getLogger(__name__)

config = get_config()

# Create engine
engine = create_engine(
    config.database.url,
    connect_args=(
        {"check_same_thread": False} if "sqlite" in config.database.url else {}
    ),
    echo=config.database.echo,
)

# Session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db() -> None:
    """
    Initialize database tables
    Creates all tables defined by models
    """
    try:
        Base.metadata.create_all(bind=engine)
        logger.info("✅ Database tables created successfully")
    except Exception as e:
        logger.error(f"❌ Failed to create database tables: {e}")
        raise


def get_db() -> Generator[Session, None, None]:
    """
    Dependency for getting database session

    Usage in FastAPI:
        @router.get("/accounts")
        def list_accounts(db: Session = Depends(get_db)):
            ...

    Yields:
        Database session
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def check_connection() -> bool:
    """Run a trivial query to verify the database is reachable"""
    try:
        with engine.connect() as connection:
            connection.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.error(f"❌ Database connection failed: {e}")
        return False
