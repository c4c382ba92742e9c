from typing import List, Optional

from sqlalchemy import Column, JSON
from sqlmodel import SQLModel, Field


class MillBase(SQLModel):
    name: str = Field(index=True, unique=True)
    location: str
    contact_person: str
    phone: str
    email: Optional[str] = None


class Mill(MillBase, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)


class MillCreate(MillBase):
    pass


class MillRead(MillBase):
    id: int


class MillUpdate(SQLModel):
    # name is the mill's identity and is not editable
    location: Optional[str] = None
    contact_person: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None


class ServicePartnerBase(SQLModel):
    name: str = Field(index=True, unique=True)
    contact_person: str
    phone: str
    email: str
    address: str
    rating: float = Field(default=4.0, ge=1, le=5)
    avg_repair_time: float = 7.0  # days


class ServicePartner(ServicePartnerBase, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    specialization: List[str] = Field(default_factory=list, sa_column=Column(JSON))


class ServicePartnerCreate(ServicePartnerBase):
    specialization: List[str] = []


class ServicePartnerRead(ServicePartnerBase):
    id: int
    specialization: List[str] = []


class ServicePartnerUpdate(SQLModel):
    name: Optional[str] = None
    contact_person: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None
    rating: Optional[float] = Field(default=None, ge=1, le=5)
    avg_repair_time: Optional[float] = None
    specialization: Optional[List[str]] = None
