"""
Base repository class for data access layer.

The repository pattern provides:
1. Separation of data access logic from scoring logic
2. Single place for query logic (easier to maintain)
3. Easier testing (can mock repositories)
4. Consistent interface for data operations

Repositories never commit. Writes are flushed inside the caller's unit of work
(see app.core.database.unit_of_work), which owns commit and rollback.

Example:
    class InningRepository(BaseRepository[Inning]):
        def find_by_match_and_number(self, match_id: str, number: int) -> Optional[Inning]:
            return self.where_first(Inning.match_id == match_id, Inning.inning_number == number)
"""
import uuid
from abc import ABC
from typing import TypeVar, Generic, Type, Optional
from sqlalchemy import func
from sqlalchemy.orm import Session

from app.core.exceptions import NotFoundError

T = TypeVar("T")


class BaseRepository(Generic[T], ABC):
    """
    Base repository class providing common data access methods.

    Attributes:
        model_type: The SQLAlchemy model class this repository manages
        db: The database session
        entity_name: Human-readable name used in not-found errors
    """

    entity_name = "Record"

    def __init__(self, model_type: Type[T], db: Session):
        self.model_type = model_type
        self.db = db

    # ========================================================================
    # CRUD Operations
    # ========================================================================

    def find_by_id(self, id: str) -> Optional[T]:
        """Find a single record by ID."""
        if not id:
            return None
        return self.db.get(self.model_type, id)

    def get_or_raise(self, id: str) -> T:
        """
        Find a record by ID or raise NotFoundError.

        Raises:
            NotFoundError: If no record has this ID
        """
        instance = self.find_by_id(id)
        if instance is None:
            raise NotFoundError(
                f"{self.entity_name} not found",
                details={"id": id},
            )
        return instance

    def create(self, **kwargs) -> T:
        """
        Create a new record and flush it so constraints are checked immediately.

        A UUID primary key is assigned when none is given.

        Returns:
            The created record (not yet committed to database)
        """
        kwargs.setdefault("id", str(uuid.uuid4()))
        instance = self.model_type(**kwargs)
        self.db.add(instance)
        self.db.flush()
        return instance

    def delete_instance(self, instance: T) -> None:
        """Delete a loaded record and flush."""
        self.db.delete(instance)
        self.db.flush()

    # ========================================================================
    # Query Builders
    # ========================================================================

    def where_first(self, *criterion) -> Optional[T]:
        """Filter records using SQLAlchemy expressions and return first match."""
        return self.db.query(self.model_type).filter(*criterion).first()

    # ========================================================================
    # Existence Checks
    # ========================================================================

    def exists_where(self, *criterion) -> bool:
        """Check if any record matching the criterion exists."""
        return self.db.query(
            self.db.query(self.model_type).filter(*criterion).exists()
        ).scalar()

    def count(self, *criterion) -> int:
        """Count records matching optional criterion."""
        query = self.db.query(func.count(self.model_type.id))
        if criterion:
            query = query.filter(*criterion)
        return query.scalar() or 0
