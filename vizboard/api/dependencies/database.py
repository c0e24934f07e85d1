# vizboard/api/dependencies/database.py
from pathlib import Path
from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import make_url
from sqlalchemy.orm import declarative_base, sessionmaker, Session
from typing import Generator
from vizboard.core.config import settings
from vizboard.utils.exceptions import APIException
from vizboard.utils.logger import get_logger

logger = get_logger(__name__)


def _create_engine(database_url: str):
    """Build the engine; SQLite gets a shared-thread connection and FK enforcement"""
    url = make_url(database_url)

    if url.get_backend_name() != "sqlite":
        return create_engine(
            database_url,
            echo=settings.database.echo,
            pool_pre_ping=True,
            pool_size=10,
            max_overflow=20,
        )

    if url.database and url.database != ":memory:":
        Path(url.database).parent.mkdir(parents=True, exist_ok=True)

    sqlite_engine = create_engine(
        database_url,
        echo=settings.database.echo,
        connect_args={"check_same_thread": False},
    )

    @event.listens_for(sqlite_engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    return sqlite_engine


# Create database engine
engine = _create_engine(settings.database.url)

# Create session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Create base class for models
Base = declarative_base()


def get_db() -> Generator[Session, None, None]:
    """
    Dependency to get database session.
    Ensures proper cleanup after request.
    """
    db = SessionLocal()
    try:
        yield db
    except APIException:
        db.rollback()
        raise
    except Exception as e:
        logger.error("Database session error", error=str(e))
        db.rollback()
        raise
    finally:
        db.close()


def init_database():
    """Initialize database tables"""
    try:
        # Import all models to ensure they are registered
        from vizboard.api.models import user, dataset, dashboard, setting  # noqa

        # Create all tables
        Base.metadata.create_all(bind=engine)
        logger.info("Database tables created successfully")
    except Exception as e:
        logger.error("Failed to initialize database", error=str(e))
        raise


def check_database_connection():
    """Check if database is accessible"""
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        logger.debug("Database connection successful")
        return True
    except Exception as e:
        logger.error("Database connection failed", error=str(e))
        return False
