from .enums import (
    BoardStatus,
    WarrantyStatus,
    ServiceResult,
    ServiceRecordStatus,
    Priority,
    UserRole,
    UserStatus,
    SERVICE_STATUSES,
)
from .board import (
    Board,
    BoardCreate,
    BoardRead,
    BoardUpdate,
    ServiceRecord,
    ServiceRecordRead,
    SendForServiceRequest,
    InwardEntryRequest,
)
from .master import (
    Mill,
    MillCreate,
    MillRead,
    MillUpdate,
    ServicePartner,
    ServicePartnerCreate,
    ServicePartnerRead,
    ServicePartnerUpdate,
)
from .users import User, UserCreate, UserRead, UserUpdate
from .events import Event

__all__ = [
    "BoardStatus",
    "WarrantyStatus",
    "ServiceResult",
    "ServiceRecordStatus",
    "Priority",
    "UserRole",
    "UserStatus",
    "SERVICE_STATUSES",
    "Board",
    "BoardCreate",
    "BoardRead",
    "BoardUpdate",
    "ServiceRecord",
    "ServiceRecordRead",
    "SendForServiceRequest",
    "InwardEntryRequest",
    "Mill",
    "MillCreate",
    "MillRead",
    "MillUpdate",
    "ServicePartner",
    "ServicePartnerCreate",
    "ServicePartnerRead",
    "ServicePartnerUpdate",
    "User",
    "UserCreate",
    "UserRead",
    "UserUpdate",
    "Event",
]
