"""
Database configuration, session management and the unit-of-work boundary.
"""
from contextlib import contextmanager
from typing import Generator, Iterator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import QueuePool

from app.core.config import settings
from app.core.exceptions import ConflictError, ScoringError, TransactionError
from app.core.logging import get_logger

logger = get_logger(__name__)


def build_engine(database_url: str, echo: bool = False) -> Engine:
    """
    Create an engine for the given URL.

    SQLite (development and tests) gets a thread-tolerant connection; every other
    backend uses the pooled configuration.
    """
    if database_url.startswith("sqlite"):
        return create_engine(
            database_url,
            connect_args={"check_same_thread": False},
            echo=echo,
        )

    return create_engine(
        database_url,
        poolclass=QueuePool,
        pool_size=10,
        max_overflow=20,
        pool_pre_ping=True,  # Verify connections before using
        echo=echo,
    )


DATABASE_URL = settings.DATABASE_URL

engine = build_engine(DATABASE_URL, echo=settings.SQL_ECHO)

# Create session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Generator[Session, None, None]:
    """
    Dependency that provides a database session.

    Usage in FastAPI:
    ```python
    @router.get("/endpoint")
    def endpoint(db: Session = Depends(get_db)):
        # Use db here
        pass
    ```
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def unit_of_work(db: Session, operation: str) -> Iterator[Session]:
    """
    Run a block of writes as one atomic transaction.

    Commits when the block finishes, rolls back everything on any error. Domain
    errors propagate unchanged; a uniqueness violation becomes a ConflictError and
    any other storage failure becomes a TransactionError.

    Usage:
        with unit_of_work(db, "record_ball"):
            ...  # validate, append, aggregate, check completion
    """
    try:
        yield db
        db.commit()
    except ScoringError as e:
        db.rollback()
        logger.warning(
            f"{operation} rejected: {e.message}",
            extra={"operation": operation, "error_code": e.code},
        )
        raise
    except IntegrityError as e:
        db.rollback()
        logger.warning(f"{operation} hit a uniqueness conflict: {e.orig}")
        raise ConflictError(
            "Conflicting write detected, the record already exists",
            details={"operation": operation},
        ) from e
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"{operation} failed and was rolled back: {e}", exc_info=True)
        raise TransactionError(
            f"Failed to {operation.replace('_', ' ')}",
            details={"operation": operation},
        ) from e
    except Exception:
        db.rollback()
        raise


def init_db(bind: Engine = None):
    """Initialize database tables."""
    from app.models.models import Base
    # checkfirst=True will only create tables that don't exist
    Base.metadata.create_all(bind=bind or engine, checkfirst=True)
