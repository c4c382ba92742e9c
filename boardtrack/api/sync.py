# boardtrack/api/sync.py
"""
Sync status and the change broadcast WebSocket.

Writes publish on the in-process change feed from worker threads;
``ConnectionManager`` forwards each event onto the server's event loop
and pushes it to every connected client.
"""

import asyncio
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect

from ..errors import AuthenticationError
from ..models.users import User
from ..services import permissions as perms
from ..services.auth import decode_access_token
from ..services.change_feed import ChangeEvent, ChangeFeed, LiveViews
from .deps import get_live_views, require_permission

log = logging.getLogger("boardtrack.ws")

router = APIRouter(tags=["sync"])


class ConnectionManager:
    """Manages active WebSocket connections."""

    def __init__(self):
        self.active: List[WebSocket] = []
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._feed: Optional[ChangeFeed] = None

    async def connect(self, ws: WebSocket):
        await ws.accept()
        self.active.append(ws)

    def disconnect(self, ws: WebSocket):
        if ws in self.active:
            self.active.remove(ws)

    async def broadcast(self, message: dict):
        dead = []
        for ws in self.active:
            try:
                await ws.send_json(message)
            except (WebSocketDisconnect, RuntimeError):
                dead.append(ws)
        for ws in dead:
            self.disconnect(ws)

    def attach(self, feed: ChangeFeed, loop: asyncio.AbstractEventLoop) -> None:
        self.detach()
        self._feed = feed
        self._loop = loop
        feed.subscribe("*", self._forward)

    def detach(self) -> None:
        if self._feed is not None:
            self._feed.unsubscribe("*", self._forward)
        self._feed = None
        self._loop = None

    def _forward(self, event: ChangeEvent) -> None:
        if not self.active or self._loop is None or self._loop.is_closed():
            return
        message = {"type": "change", **event.to_dict()}
        asyncio.run_coroutine_threadsafe(self.broadcast(message), self._loop)


ws_manager = ConnectionManager()


@router.get("/api/sync/status")
def sync_status(
    views: LiveViews = Depends(get_live_views),
    user: User = Depends(require_permission(perms.DASHBOARD_VIEW)),
):
    return views.status()


@router.post("/api/sync/refresh")
def sync_refresh(
    views: LiveViews = Depends(get_live_views),
    user: User = Depends(require_permission(perms.DASHBOARD_VIEW)),
):
    """Force a connectivity check and reload of any non-LIVE view."""
    views.poll_once()
    return views.status()


@router.websocket("/ws/changes")
async def changes_websocket(ws: WebSocket, token: str = Query(default=None)):
    """
    Pushes {"type": "change", "collection", "action", "record_id", "ts"}
    for every committed write. Requires ?token=<access token>.
    """
    try:
        decode_access_token(token or "")
    except AuthenticationError:
        await ws.close(code=4001, reason="Authentication required")
        return

    await ws_manager.connect(ws)
    try:
        while True:
            data = await ws.receive_text()
            if data == "ping":
                await ws.send_text("pong")
    except WebSocketDisconnect:
        pass
    finally:
        ws_manager.disconnect(ws)
