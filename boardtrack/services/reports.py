# boardtrack/services/reports.py
"""
Point-in-time report data: overview, vendor table, warranty buckets and
mill performance. No trend analysis; each call is a fresh snapshot.
"""

from __future__ import annotations

from dataclasses import dataclass, field, asdict
from datetime import datetime, timedelta
from statistics import mean
from typing import Dict, Iterable, List, Tuple

from ..errors import ValidationError
from ..models.enums import SERVICE_STATUSES, BoardStatus, WarrantyStatus
from ..utils.helpers import naive_utc, utcnow
from .dashboard import ACTIVE_SERVICE, DashboardPolicy, is_warranty_expiring

DATE_RANGE_PRESETS: Dict[str, int] = {
    "last7days": 7,
    "last30days": 30,
    "last90days": 90,
    "last12months": 365,
}


@dataclass
class ReportOverview:
    total_services: int
    avg_repair_time: float
    completion_rate: float
    substitute_usage: int


@dataclass
class VendorRow:
    name: str
    services: int
    avg_time: float
    rating: float


@dataclass
class WarrantyBuckets:
    under_warranty: int
    expiring_soon: int
    expired: int


@dataclass
class MillRow:
    name: str
    location: str
    contact_person: str
    phone: str
    total_boards: int
    active_boards: int
    in_service: int
    service_rate: float  # percent, 1 decimal


@dataclass
class ReportData:
    start: datetime
    end: datetime
    generated_at: datetime
    overview: ReportOverview
    vendors: List[VendorRow] = field(default_factory=list)
    warranty: WarrantyBuckets | None = None
    mills: List[MillRow] = field(default_factory=list)

    def to_dict(self) -> dict:
        d = asdict(self)
        for k in ("start", "end", "generated_at"):
            d[k] = d[k].isoformat()
        return d


def resolve_date_range(
    preset: str | None = None,
    start: datetime | None = None,
    end: datetime | None = None,
    now: datetime | None = None,
) -> Tuple[datetime, datetime]:
    """
    Explicit start/end win over a preset. Unknown presets fall back to
    the last 30 days, matching the dashboard's default selection.
    """
    now = naive_utc(now) or utcnow()
    start, end = naive_utc(start), naive_utc(end)
    if start is not None or end is not None:
        start = start or datetime.min
        end = end or now
        if start > end:
            raise ValidationError("start must not be after end", start=str(start), end=str(end))
        return start, end
    days = DATE_RANGE_PRESETS.get(preset or "last30days", 30)
    return now - timedelta(days=days), now


def generate_report(
    boards: Iterable,
    mills: Iterable,
    partners: Iterable,
    start: datetime,
    end: datetime,
    now: datetime | None = None,
    policy: DashboardPolicy | None = None,
) -> ReportData:
    boards = list(boards)
    mills = list(mills)
    partners = list(partners)
    now = naive_utc(now) or utcnow()
    start, end = naive_utc(start), naive_utc(end)
    policy = policy or DashboardPolicy.from_settings()

    in_range = [b for b in boards if start < b.updated_at < end]
    total_services = sum(1 for b in in_range if b.current_status in SERVICE_STATUSES)
    completed = sum(1 for b in in_range if b.current_status == BoardStatus.REPAIRED)
    completion_rate = (completed / total_services) * 100 if total_services else 0.0

    # quoted repair time, not measured durations
    avg_repair_time = mean(p.avg_repair_time for p in partners) if partners else 0.0

    overview = ReportOverview(
        total_services=total_services,
        avg_repair_time=round(avg_repair_time, 1),
        completion_rate=round(completion_rate, 1),
        substitute_usage=sum(1 for b in boards if b.substitute_board),
    )

    vendors = [
        VendorRow(
            name=p.name,
            services=sum(1 for b in boards if b.current_location == p.name),
            avg_time=p.avg_repair_time,
            rating=p.rating,
        )
        for p in partners
    ]

    warranty = WarrantyBuckets(
        under_warranty=sum(
            1 for b in boards
            if b.warranty_status in (
                WarrantyStatus.UNDER_SERVICE_WARRANTY,
                WarrantyStatus.UNDER_REPLACEMENT_WARRANTY,
            )
        ),
        expiring_soon=sum(1 for b in boards if is_warranty_expiring(b, now, policy.warranty_window_days)),
        expired=sum(1 for b in boards if b.warranty_status == WarrantyStatus.OUT_OF_WARRANTY),
    )

    mill_rows = []
    for m in mills:
        mill_boards = [b for b in boards if b.mill_assigned == m.name]
        in_service = sum(1 for b in mill_boards if b.current_status in ACTIVE_SERVICE)
        mill_rows.append(
            MillRow(
                name=m.name,
                location=m.location,
                contact_person=m.contact_person,
                phone=m.phone,
                total_boards=len(mill_boards),
                active_boards=sum(1 for b in mill_boards if b.current_status == BoardStatus.IN_USE),
                in_service=in_service,
                service_rate=round(in_service / len(mill_boards) * 100, 1) if mill_boards else 0.0,
            )
        )

    return ReportData(
        start=start,
        end=end,
        generated_at=now,
        overview=overview,
        vendors=vendors,
        warranty=warranty,
        mills=mill_rows,
    )
