from typing import List, Optional
from datetime import datetime

from pydantic import field_validator
from sqlmodel import SQLModel, Field, Relationship

from ..utils.helpers import naive_utc, utcnow
from .enums import BoardStatus, WarrantyStatus, ServiceRecordStatus, ServiceResult, Priority


class ServiceRecordBase(SQLModel):
    service_date: datetime = Field(default_factory=utcnow)
    issue_reported: str = ""
    service_partner: str
    action_taken: str = ""
    time_taken: int = 0  # days
    cost: Optional[float] = None
    status: ServiceRecordStatus = ServiceRecordStatus.IN_PROGRESS
    priority: Priority = Priority.MEDIUM
    substitute_board: Optional[str] = None
    outcome: Optional[ServiceResult] = None


class ServiceRecord(ServiceRecordBase, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    board_pk: int = Field(foreign_key="board.id", index=True)

    board: Optional["Board"] = Relationship(back_populates="service_history")


class ServiceRecordRead(ServiceRecordBase):
    id: int


class BoardBase(SQLModel):
    board_id: str = Field(index=True, unique=True)
    current_status: BoardStatus = BoardStatus.IN_USE
    current_location: str
    mill_assigned: str
    warranty_status: WarrantyStatus = WarrantyStatus.UNDER_SERVICE_WARRANTY
    warranty_expiry: datetime
    purchase_date: datetime
    substitute_board: Optional[str] = None

    @field_validator("warranty_expiry", "purchase_date")
    @classmethod
    def dates_as_naive_utc(cls, value):
        return naive_utc(value)


class Board(BoardBase, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    service_history: List[ServiceRecord] = Relationship(
        back_populates="board",
        sa_relationship_kwargs={
            "order_by": "ServiceRecord.id",
            "cascade": "all, delete-orphan",
        },
    )


class BoardCreate(BoardBase):
    pass


class BoardRead(BoardBase):
    id: int
    created_at: datetime
    updated_at: datetime
    service_history: List[ServiceRecordRead] = []


class BoardUpdate(SQLModel):
    """Partial update used by direct edit; every field optional."""
    board_id: Optional[str] = None
    current_status: Optional[BoardStatus] = None
    current_location: Optional[str] = None
    mill_assigned: Optional[str] = None
    warranty_status: Optional[WarrantyStatus] = None
    warranty_expiry: Optional[datetime] = None
    purchase_date: Optional[datetime] = None
    substitute_board: Optional[str] = None

    @field_validator("warranty_expiry", "purchase_date")
    @classmethod
    def dates_as_naive_utc(cls, value):
        return naive_utc(value)


# ---------- lifecycle request bodies ----------

class SendForServiceRequest(SQLModel):
    service_partner: str
    substitute_board: Optional[str] = None
    issue_reported: str = ""
    priority: Priority = Priority.MEDIUM


class InwardEntryRequest(SQLModel):
    service_result: ServiceResult
    new_warranty_months: Optional[int] = None
    return_substitute: bool = False
    notes: str = ""
    cost: Optional[float] = None
    actual_days: Optional[int] = None
