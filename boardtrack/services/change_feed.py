# boardtrack/services/change_feed.py
"""
Change notifications and live collection views.

Every committed write publishes a ``ChangeEvent`` on the in-process
``ChangeFeed``. ``LiveCollection`` objects subscribe to it and re-read
their whole collection from the store whenever it changes, so derived
views (dashboard, reports) are always recomputed from a fresh snapshot.

Publishing happens synchronously after commit, which gives callers
read-your-writes: by the time a write returns, every live view in this
process already reflects it.

Sync state is explicit:
  CONNECTING  no snapshot loaded yet
  LIVE        last refresh succeeded
  STALE       last refresh (or connectivity check) failed; the previous
              snapshot is still served
"""

import asyncio
import logging
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from ..utils.helpers import utcnow

log = logging.getLogger("boardtrack.change_feed")


@dataclass
class ChangeEvent:
    collection: str          # "boards", "mills", "service_partners", "users"
    action: str              # "created" | "updated" | "deleted"
    record_id: Optional[int] = None
    ts: datetime = field(default_factory=utcnow)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "collection": self.collection,
            "action": self.action,
            "record_id": self.record_id,
            "ts": self.ts.isoformat(),
        }


class ChangeFeed:
    """
    Synchronous in-process pub/sub keyed by collection name.

    Handlers subscribed to "*" receive every event. A failing handler is
    logged and does not stop the others.
    """

    def __init__(self):
        self._handlers: Dict[str, List[Callable[[ChangeEvent], Any]]] = defaultdict(list)

    def publish(self, event: ChangeEvent) -> None:
        handlers = list(self._handlers.get(event.collection, [])) + list(self._handlers.get("*", []))
        for handler in handlers:
            try:
                handler(event)
            except Exception:
                log.error(
                    "Change handler %r raised for %s/%s",
                    handler, event.collection, event.action,
                    exc_info=True,
                )

    def subscribe(self, collection: str, handler: Callable[[ChangeEvent], Any]) -> None:
        if handler not in self._handlers[collection]:
            self._handlers[collection].append(handler)

    def unsubscribe(self, collection: str, handler: Callable[[ChangeEvent], Any]) -> None:
        if handler in self._handlers.get(collection, []):
            self._handlers[collection].remove(handler)


_feed = ChangeFeed()


def get_change_feed() -> ChangeFeed:
    """Return the application-level change feed singleton."""
    return _feed


class SyncState(str, Enum):
    CONNECTING = "CONNECTING"
    LIVE = "LIVE"
    STALE = "STALE"


class LiveCollection:
    """Snapshot of one collection, refreshed on every change notification."""

    def __init__(self, name: str, loader: Callable[[Session], list], engine, feed: ChangeFeed):
        self.name = name
        self._loader = loader
        self._engine = engine
        self._feed = feed
        self._snapshot: list = []
        self.state = SyncState.CONNECTING
        self.last_synced_at: Optional[datetime] = None
        self.last_error: Optional[str] = None
        feed.subscribe(name, self._on_change)

    def _on_change(self, event: ChangeEvent) -> None:
        self.refresh()

    def refresh(self) -> bool:
        try:
            with Session(self._engine) as session:
                rows = self._loader(session)
        except SQLAlchemyError as e:
            self.mark_stale(str(e))
            return False
        except Exception as e:
            log.error("Loading live view %s failed", self.name, exc_info=True)
            self.mark_stale(f"{type(e).__name__}: {e}")
            return False
        self._snapshot = rows
        self.state = SyncState.LIVE
        self.last_synced_at = utcnow()
        self.last_error = None
        return True

    def mark_stale(self, reason: str) -> None:
        if self.state != SyncState.STALE:
            log.warning("Live view %s is stale: %s", self.name, reason)
        self.state = SyncState.STALE
        self.last_error = reason

    def items(self) -> list:
        if self.state == SyncState.CONNECTING:
            self.refresh()
        return list(self._snapshot)

    def status(self) -> Dict[str, Any]:
        return {
            "collection": self.name,
            "state": self.state.value,
            "count": len(self._snapshot),
            "last_synced_at": self.last_synced_at.isoformat() if self.last_synced_at else None,
            "last_error": self.last_error,
        }

    def close(self) -> None:
        self._feed.unsubscribe(self.name, self._on_change)


def _load_boards(session: Session) -> list:
    from sqlmodel import select
    from ..models.board import Board, BoardRead

    boards = session.exec(select(Board).order_by(Board.created_at.desc())).all()
    return [BoardRead.model_validate(b) for b in boards]


def _load_mills(session: Session) -> list:
    from sqlmodel import select
    from ..models.master import Mill, MillRead

    return [MillRead.model_validate(m) for m in session.exec(select(Mill).order_by(Mill.name)).all()]


def _load_partners(session: Session) -> list:
    from sqlmodel import select
    from ..models.master import ServicePartner, ServicePartnerRead

    rows = session.exec(select(ServicePartner).order_by(ServicePartner.name)).all()
    return [ServicePartnerRead.model_validate(p) for p in rows]


def _load_users(session: Session) -> list:
    from sqlmodel import select
    from ..models.users import User, UserRead

    return [UserRead.model_validate(u) for u in session.exec(select(User).order_by(User.email)).all()]


class LiveViews:
    """The four live collections the dashboard and reports read from."""

    def __init__(self, engine, feed: Optional[ChangeFeed] = None):
        from .. import database

        self._engine = engine
        self._ping = database.ping
        feed = feed or get_change_feed()
        self.boards = LiveCollection("boards", _load_boards, engine, feed)
        self.mills = LiveCollection("mills", _load_mills, engine, feed)
        self.service_partners = LiveCollection("service_partners", _load_partners, engine, feed)
        self.users = LiveCollection("users", _load_users, engine, feed)

    def collections(self) -> List[LiveCollection]:
        return [self.boards, self.mills, self.service_partners, self.users]

    def refresh_all(self) -> None:
        for c in self.collections():
            c.refresh()

    def poll_once(self) -> bool:
        """
        Connectivity check. On failure every view goes STALE; once the
        store answers again, any view that is not LIVE is reloaded.
        """
        try:
            self._ping(self._engine)
        except SQLAlchemyError as e:
            for c in self.collections():
                c.mark_stale(f"store unreachable: {e}")
            return False

        for c in self.collections():
            if c.state != SyncState.LIVE:
                c.refresh()
        return True

    def status(self) -> Dict[str, Any]:
        cols = [c.status() for c in self.collections()]
        overall = SyncState.LIVE.value
        if any(c["state"] == SyncState.STALE.value for c in cols):
            overall = SyncState.STALE.value
        elif any(c["state"] == SyncState.CONNECTING.value for c in cols):
            overall = SyncState.CONNECTING.value
        return {"state": overall, "collections": cols}

    def close(self) -> None:
        for c in self.collections():
            c.close()


# Global poller flag/state
sync_running: bool = False
sync_task: Optional[asyncio.Task] = None


async def sync_loop(views: LiveViews, interval_seconds: float) -> None:
    """Background loop polling store connectivity."""
    global sync_running
    while sync_running:
        try:
            await asyncio.to_thread(views.poll_once)
        except Exception:
            log.error("Sync poll failed", exc_info=True)
        await asyncio.sleep(interval_seconds)


def start_sync(views: LiveViews, interval_seconds: float) -> str:
    global sync_running, sync_task
    if sync_running:
        return "already_running"
    sync_running = True
    sync_task = asyncio.create_task(sync_loop(views, interval_seconds))
    return "started"


def stop_sync() -> str:
    global sync_running, sync_task
    sync_running = False
    if sync_task is not None:
        sync_task.cancel()
        sync_task = None
    return "stopped"
