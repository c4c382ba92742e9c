# boardtrack/services/dashboard.py

from __future__ import annotations

from dataclasses import dataclass, field, asdict
from datetime import datetime, timedelta
from typing import Iterable, List

from ..config import settings
from ..models.enums import BoardStatus
from ..utils.helpers import utcnow, days_between

ACTIVE_SERVICE = (BoardStatus.SENT_FOR_SERVICE, BoardStatus.IN_REPAIR)


@dataclass
class DashboardPolicy:
    overdue_days: int = 14
    warranty_window_days: int = 30

    @classmethod
    def from_settings(cls) -> "DashboardPolicy":
        return cls(
            overdue_days=settings.overdue_days,
            warranty_window_days=settings.warranty_window_days,
        )


@dataclass
class MillRollup:
    name: str
    location: str
    total_boards: int
    active_boards: int
    in_service: int
    substitutes: int
    service_rate: float  # in_service / total_boards


@dataclass
class PartnerRollup:
    name: str
    rating: float
    avg_repair_time: float
    current_load: int
    workload: str  # "Low" | "Medium" | "High"


@dataclass
class DashboardStats:
    total_boards: int
    active_boards: int
    in_service: int
    in_repair: int
    repaired: int
    substitute_active: int
    overdue_returns: int
    warranty_expiring: int
    mills: List[MillRollup] = field(default_factory=list)
    partners: List[PartnerRollup] = field(default_factory=list)

    def to_dict(self) -> dict:
        return asdict(self)


def is_overdue(board, now: datetime, overdue_days: int) -> bool:
    return board.current_status in ACTIVE_SERVICE and board.updated_at < now - timedelta(days=overdue_days)


def is_warranty_expiring(board, now: datetime, window_days: int) -> bool:
    return now < board.warranty_expiry <= now + timedelta(days=window_days)


def workload_bucket(load: int) -> str:
    if load > 3:
        return "High"
    if load > 1:
        return "Medium"
    return "Low"


def mill_rollups(boards: list, mills: Iterable) -> List[MillRollup]:
    out = []
    for mill in mills:
        mill_boards = [b for b in boards if b.mill_assigned == mill.name]
        total = len(mill_boards)
        in_service = sum(1 for b in mill_boards if b.current_status in ACTIVE_SERVICE)
        out.append(
            MillRollup(
                name=mill.name,
                location=mill.location,
                total_boards=total,
                active_boards=sum(1 for b in mill_boards if b.current_status == BoardStatus.IN_USE),
                in_service=in_service,
                substitutes=sum(1 for b in mill_boards if b.substitute_board),
                service_rate=(in_service / total) if total else 0.0,
            )
        )
    return out


def partner_rollups(boards: list, partners: Iterable) -> List[PartnerRollup]:
    out = []
    for p in partners:
        load = sum(1 for b in boards if b.current_location == p.name)
        out.append(
            PartnerRollup(
                name=p.name,
                rating=p.rating,
                avg_repair_time=p.avg_repair_time,
                current_load=load,
                workload=workload_bucket(load),
            )
        )
    return out


def compute_dashboard(
    boards: Iterable,
    mills: Iterable = (),
    partners: Iterable = (),
    now: datetime | None = None,
    policy: DashboardPolicy | None = None,
) -> DashboardStats:
    """
    Recompute every dashboard figure from the current collections.
    Nothing is cached; call again whenever the collections change.
    """
    boards = list(boards)
    now = now or utcnow()
    policy = policy or DashboardPolicy.from_settings()

    def count(status: BoardStatus) -> int:
        return sum(1 for b in boards if b.current_status == status)

    return DashboardStats(
        total_boards=len(boards),
        active_boards=count(BoardStatus.IN_USE),
        in_service=count(BoardStatus.SENT_FOR_SERVICE),
        in_repair=count(BoardStatus.IN_REPAIR),
        repaired=count(BoardStatus.REPAIRED),
        substitute_active=sum(1 for b in boards if b.substitute_board),
        overdue_returns=sum(1 for b in boards if is_overdue(b, now, policy.overdue_days)),
        warranty_expiring=sum(
            1 for b in boards if is_warranty_expiring(b, now, policy.warranty_window_days)
        ),
        mills=mill_rollups(boards, mills),
        partners=partner_rollups(boards, partners),
    )


def recent_activity(boards: Iterable, now: datetime | None = None, limit: int = 5, policy: DashboardPolicy | None = None) -> List[dict]:
    """Most recently touched boards, newest first."""
    now = now or utcnow()
    policy = policy or DashboardPolicy.from_settings()
    latest = sorted(boards, key=lambda b: b.updated_at, reverse=True)[:limit]
    out = []
    for b in latest:
        days_ago = days_between(now, b.updated_at)
        out.append(
            {
                "board_id": b.board_id,
                "status": b.current_status.value,
                "location": b.current_location,
                "mill": b.mill_assigned,
                "substitute": b.substitute_board,
                "time": "Today" if days_ago <= 0 else f"{days_ago} days ago",
                "is_overdue": b.current_status in ACTIVE_SERVICE and days_ago > policy.overdue_days,
            }
        )
    return out
