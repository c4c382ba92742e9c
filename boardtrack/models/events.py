from typing import Optional
from datetime import datetime

from sqlmodel import SQLModel, Field


class Event(SQLModel, table=True):
    event_id: str = Field(primary_key=True)
    event_type: str = Field(index=True)
    description: str
    event_date: datetime
    metadata_json: Optional[str] = None
