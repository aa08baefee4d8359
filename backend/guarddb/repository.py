# backend/guarddb/repository.py
"""
Unit-of-work wrapper used by the application services.

Services depend on the small capability surface below (add, first, find,
all, flush, transaction) rather than on raw query construction, so
provisioning and compliance logic can be exercised against any relational
store SQLAlchemy supports.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Iterator, List, Optional, Protocol, Sequence, Type, TypeVar

from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT")


class UnitOfWork(Protocol):
    def add(self, obj: Any) -> Any:
        ...

    def add_all(self, objs: Sequence[Any]) -> None:
        ...

    def first(self, model: Type[ModelT], *criteria: Any) -> Optional[ModelT]:
        ...

    def find(self, model: Type[ModelT], *criteria: Any) -> List[ModelT]:
        ...

    def all(self, model: Type[ModelT]) -> List[ModelT]:
        ...

    def flush(self) -> None:
        ...

    def transaction(self):
        ...


class SqlAlchemyUnitOfWork:
    """UnitOfWork backed by a SQLAlchemy Session."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def add(self, obj: Any) -> Any:
        self.db.add(obj)
        return obj

    def add_all(self, objs: Sequence[Any]) -> None:
        self.db.add_all(list(objs))

    def first(self, model: Type[ModelT], *criteria: Any) -> Optional[ModelT]:
        return self.db.query(model).filter(*criteria).first()

    def find(self, model: Type[ModelT], *criteria: Any) -> List[ModelT]:
        return self.db.query(model).filter(*criteria).all()

    def all(self, model: Type[ModelT]) -> List[ModelT]:
        return self.db.query(model).all()

    def flush(self) -> None:
        self.db.flush()

    @contextmanager
    def transaction(self) -> Iterator["SqlAlchemyUnitOfWork"]:
        """
        Commit everything written inside the block once, or nothing.

        Any exception rolls the session back and is re-raised.
        """
        try:
            yield self
            self.db.commit()
        except Exception:
            logger.warning("Rolling back unit of work", exc_info=True)
            self.db.rollback()
            raise
