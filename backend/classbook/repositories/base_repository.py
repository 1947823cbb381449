# backend/classbook/repositories/base_repository.py
"""
Shared data access for the classbook repositories.

Repositories flush but never commit: the calling service owns the
transaction. Driver errors are logged here and re-raised as
RepositoryException with the SQLAlchemy error chained as ``__cause__``, so
a service can tell a unique-key race from any other failure.
"""

import logging
from typing import Generic, List, Optional, Type, TypeVar

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Query, Session

from ..core.exceptions import RepositoryException

# Type variable for generic model support
T = TypeVar("T")

logger = logging.getLogger(__name__)


class BaseRepository(Generic[T]):
    """
    Lookups and inserts common to every table.

    Attributes:
        db: SQLAlchemy session
        model: SQLAlchemy model class
    """

    def __init__(self, db: Session, model: Type[T]):
        self.db = db
        self.model = model
        self.logger = logging.getLogger(f"{__name__}.{model.__name__}")

    @property
    def dialect_name(self) -> str:
        return self.db.get_bind().dialect.name

    def get_by_id(self, id: str, load_relationships: bool = True) -> Optional[T]:
        try:
            query = self._build_query().filter(self.model.id == id)
            if load_relationships:
                query = self._apply_eager_loading(query)
            return query.first()
        except SQLAlchemyError as e:
            self.logger.error(f"Error loading {self.model.__name__} {id}: {str(e)}")
            raise RepositoryException(f"Failed to load {self.model.__name__}") from e

    def create(self, **kwargs) -> T:
        """
        Insert a row and flush it so constraints fire now.

        On failure the session is rolled back before RepositoryException is
        raised; the session stays usable for re-reading the winner of a race.
        """
        entity = self.model(**kwargs)
        try:
            self.db.add(entity)
            self.db.flush()
            return entity
        except IntegrityError as exc:
            self.logger.warning("Constraint rejected new %s: %s", self.model.__name__, exc.orig)
            self.db.rollback()
            raise RepositoryException(
                f"Integrity constraint violated creating {self.model.__name__}"
            ) from exc
        except SQLAlchemyError as e:
            self.logger.error(f"Error creating {self.model.__name__}: {str(e)}")
            self.db.rollback()
            raise RepositoryException(f"Failed to create {self.model.__name__}") from e

    def flush(self) -> None:
        """Flush pending changes; driver errors surface to the service transaction."""
        self.db.flush()

    def _apply_eager_loading(self, query: Query) -> Query:
        """Subclasses add the relationships their callers always read."""
        return query

    def _build_query(self) -> Query:
        return self.db.query(self.model)

    def _execute_query(self, query: Query) -> List[T]:
        try:
            return query.all()
        except SQLAlchemyError as e:
            self.logger.error(f"Query on {self.model.__name__} failed: {str(e)}")
            raise RepositoryException("Query failed") from e
