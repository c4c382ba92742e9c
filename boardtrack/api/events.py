# boardtrack/api/events.py

from typing import Optional

from fastapi import APIRouter, Depends
from sqlmodel import Session, select

from ..database import get_session
from ..models.events import Event
from ..models.users import User
from ..services import permissions as perms
from .deps import require_permission

router = APIRouter(prefix="/api/events", tags=["events"])


@router.get("")
def get_events(
    session: Session = Depends(get_session),
    limit: int = 100,
    event_type: Optional[str] = None,
    user: User = Depends(require_permission(perms.DASHBOARD_VIEW)),
):
    """
    Recent audit events, newest first.
    """
    query = select(Event)
    if event_type:
        query = query.where(Event.event_type == event_type)
    return session.exec(query.order_by(Event.event_date.desc()).limit(limit)).all()
