import json
import uuid
import logging
from typing import Optional

from sqlmodel import Session

from ..models.events import Event
from ..utils.helpers import utcnow

log = logging.getLogger("boardtrack.events")


def log_event(session: Session, event_type: str, description: str, metadata: Optional[dict] = None):
    """
    Add an audit row to the session. The caller owns the commit, so the
    event lands in the same transaction as the change it describes.
    """
    eid = f"EVT-{uuid.uuid4().hex}"
    e = Event(
        event_id=eid,
        event_type=event_type,
        description=description,
        event_date=utcnow(),
        metadata_json=json.dumps(metadata, default=str) if metadata else None,
    )
    session.add(e)
    log.info("%s: %s", event_type, description)
    return e
