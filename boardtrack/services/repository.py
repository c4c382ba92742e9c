# boardtrack/services/repository.py
"""
Record Store: per-entity list / get / create / update(partial) / delete.

All writes go through ``Store.transaction()``. Nested calls join the
outer transaction, so a lifecycle operation that touches two boards
commits (or rolls back) both together. Change notifications are only
published after a successful commit.
"""

import logging
from contextlib import contextmanager
from typing import Any, Dict, Generic, List, Optional, Type, TypeVar

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, SQLModel, select

from ..errors import NotFoundError, StoreError, ValidationError
from ..models.board import Board
from ..models.master import Mill, ServicePartner
from ..models.users import User
from ..utils.helpers import utcnow
from .change_feed import ChangeEvent, ChangeFeed, get_change_feed

log = logging.getLogger("boardtrack.store")

T = TypeVar("T", bound=SQLModel)


class Repository(Generic[T]):
    def __init__(self, store: "Store", model: Type[T], collection: str, label: str):
        self.store = store
        self.model = model
        self.collection = collection
        self.label = label

    @property
    def session(self) -> Session:
        return self.store.session

    def list(self, *where, order_by=None) -> List[T]:
        query = select(self.model)
        if where:
            query = query.where(*where)
        if order_by is not None:
            query = query.order_by(order_by)
        try:
            return list(self.session.exec(query).all())
        except SQLAlchemyError as e:
            raise StoreError(f"Could not list {self.collection}: {e}") from e

    def get(self, record_id: int) -> T:
        try:
            obj = self.session.get(self.model, record_id)
        except SQLAlchemyError as e:
            raise StoreError(f"Could not load {self.label} {record_id}: {e}") from e
        if obj is None:
            raise NotFoundError(f"{self.label} {record_id} not found", id=record_id)
        return obj

    def find_by(self, **filters) -> Optional[T]:
        query = select(self.model)
        for name, value in filters.items():
            query = query.where(getattr(self.model, name) == value)
        try:
            return self.session.exec(query).first()
        except SQLAlchemyError as e:
            raise StoreError(f"Could not query {self.collection}: {e}") from e

    def require_by(self, **filters) -> T:
        obj = self.find_by(**filters)
        if obj is None:
            desc = ", ".join(f"{k}={v!r}" for k, v in filters.items())
            raise NotFoundError(f"{self.label} with {desc} not found", **filters)
        return obj

    def create(self, data: Any) -> T:
        obj = data if isinstance(data, self.model) else self.model.model_validate(data)
        with self.store.transaction():
            self.session.add(obj)
            self.session.flush()
            self.store.notify(self.collection, "created", obj.id)
        self.session.refresh(obj)
        return obj

    def update(self, record_id: int, changes: Dict[str, Any]) -> T:
        """Partial update: only keys present in ``changes`` are written."""
        with self.store.transaction():
            obj = self.get(record_id)
            self.stage(obj, changes)
        self.session.refresh(obj)
        return obj

    def stage(self, obj: T, changes: Dict[str, Any]) -> T:
        """Apply changes to an attached object inside the current transaction."""
        for name, value in changes.items():
            setattr(obj, name, value)
        if isinstance(obj, Board) and "updated_at" not in changes:
            obj.updated_at = utcnow()
        self.session.add(obj)
        self.store.notify(self.collection, "updated", obj.id)
        return obj

    def delete(self, record_id: int) -> None:
        with self.store.transaction():
            obj = self.get(record_id)
            self.session.delete(obj)
            self.store.notify(self.collection, "deleted", record_id)


class Store:
    """Session-scoped facade over the four entity repositories."""

    def __init__(self, session: Session, feed: Optional[ChangeFeed] = None):
        self.session = session
        self.feed = feed or get_change_feed()
        self._depth = 0
        self._pending: List[ChangeEvent] = []

        self.boards: Repository[Board] = Repository(self, Board, "boards", "Board")
        self.mills: Repository[Mill] = Repository(self, Mill, "mills", "Mill")
        self.service_partners: Repository[ServicePartner] = Repository(
            self, ServicePartner, "service_partners", "Service partner"
        )
        self.users: Repository[User] = Repository(self, User, "users", "User")

    def notify(self, collection: str, action: str, record_id: Optional[int]) -> None:
        self._pending.append(ChangeEvent(collection=collection, action=action, record_id=record_id))

    @contextmanager
    def transaction(self):
        outermost = self._depth == 0
        self._depth += 1
        try:
            yield self.session
            if outermost:
                self.session.commit()
            else:
                # joined an outer transaction: write now so a refresh
                # after this block reads the staged values back
                self.session.flush()
        except IntegrityError as e:
            self._abort(outermost)
            reason = str(e.orig)
            if "not null" in reason.lower() or "not-null" in reason.lower():
                raise ValidationError(f"A required field is missing: {reason}") from e
            raise ValidationError(f"Write conflicts with an existing record: {reason}") from e
        except SQLAlchemyError as e:
            self._abort(outermost)
            log.error("Store write rejected: %s", e)
            raise StoreError(f"Store rejected the write: {e}") from e
        except Exception:
            self._abort(outermost)
            raise
        finally:
            self._depth -= 1

        if outermost:
            pending, self._pending = self._pending, []
            for event in pending:
                self.feed.publish(event)

    def _abort(self, outermost: bool) -> None:
        if outermost:
            self.session.rollback()
            self._pending = []
