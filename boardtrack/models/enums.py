from enum import Enum


class BoardStatus(str, Enum):
    IN_USE = "In Use"
    SENT_FOR_SERVICE = "Sent for Service"
    IN_REPAIR = "In Repair"
    REPAIRED = "Repaired"
    REPLACED = "Replaced"
    RETURNED = "Returned"


class WarrantyStatus(str, Enum):
    UNDER_SERVICE_WARRANTY = "Under Service Warranty"
    UNDER_REPLACEMENT_WARRANTY = "Under Replacement Warranty"
    OUT_OF_WARRANTY = "Out of Warranty"


class ServiceResult(str, Enum):
    """Outcome recorded at inward entry."""
    REPAIRED = "Repaired"
    REPLACED = "Replaced"
    NOT_REPAIRABLE = "Not Repairable"


class ServiceRecordStatus(str, Enum):
    COMPLETED = "Completed"
    IN_PROGRESS = "In Progress"
    CANCELLED = "Cancelled"


class Priority(str, Enum):
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


class UserRole(str, Enum):
    ADMIN = "Admin"
    MILL_SUPERVISOR = "Mill Supervisor"
    SERVICE_PARTNER = "Service Partner"
    VIEWER = "Viewer"


class UserStatus(str, Enum):
    ACTIVE = "Active"
    INACTIVE = "Inactive"


# Statuses in which a board is away from its mill
SERVICE_STATUSES = (
    BoardStatus.SENT_FOR_SERVICE,
    BoardStatus.IN_REPAIR,
    BoardStatus.REPAIRED,
)
