"""
Report data generation and date range resolution.
"""

from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest

from boardtrack.errors import ValidationError
from boardtrack.models.enums import BoardStatus, WarrantyStatus
from boardtrack.services.dashboard import DashboardPolicy
from boardtrack.services.reports import generate_report, resolve_date_range


def _board(board_id, now, status=BoardStatus.IN_USE, mill="Mill 1", location=None,
           updated_days_ago=1, warranty=WarrantyStatus.UNDER_SERVICE_WARRANTY,
           expiry_days=365, substitute=None):
    return SimpleNamespace(
        board_id=board_id,
        current_status=status,
        current_location=location or mill,
        mill_assigned=mill,
        warranty_status=warranty,
        warranty_expiry=now + timedelta(days=expiry_days),
        updated_at=now - timedelta(days=updated_days_ago),
        substitute_board=substitute,
    )


MILLS = [
    SimpleNamespace(name="Mill 1", location="Sector 1", contact_person="Rajesh", phone="1"),
    SimpleNamespace(name="Mill 2", location="Sector 2", contact_person="Suresh", phone="2"),
]
PARTNERS = [
    SimpleNamespace(name="Sheltronics", avg_repair_time=6, rating=4.2),
    SimpleNamespace(name="Super Electronics", avg_repair_time=5, rating=4.5),
]
POLICY = DashboardPolicy()


class TestResolveDateRange:
    @pytest.mark.parametrize("preset, days", [
        ("last7days", 7), ("last30days", 30), ("last90days", 90), ("last12months", 365),
    ])
    def test_presets(self, now, preset, days):
        start, end = resolve_date_range(preset, now=now)
        assert end == now
        assert start == now - timedelta(days=days)

    def test_unknown_preset_falls_back(self, now):
        start, _ = resolve_date_range("yesterday", now=now)
        assert start == now - timedelta(days=30)

    def test_explicit_dates_win(self, now):
        start, end = resolve_date_range("last7days", datetime(2025, 1, 1), datetime(2025, 2, 1), now=now)
        assert (start, end) == (datetime(2025, 1, 1), datetime(2025, 2, 1))

    def test_start_after_end(self, now):
        with pytest.raises(ValidationError):
            resolve_date_range(start=datetime(2025, 3, 1), end=datetime(2025, 2, 1), now=now)

    def test_aware_dates_become_naive_utc(self, now):
        ist = timezone(timedelta(hours=5, minutes=30))
        start, end = resolve_date_range(
            start=datetime(2025, 1, 1, tzinfo=timezone.utc),
            end=datetime(2025, 2, 1, 5, 30, tzinfo=ist),
            now=now,
        )
        assert (start, end) == (datetime(2025, 1, 1), datetime(2025, 2, 1))
        assert start.tzinfo is None and end.tzinfo is None

    def test_open_start_with_aware_end(self, now):
        start, end = resolve_date_range(end=datetime(2025, 2, 1, tzinfo=timezone.utc), now=now)
        assert start == datetime.min
        assert end == datetime(2025, 2, 1)


class TestGenerateReport:
    @pytest.fixture
    def boards(self, now):
        return [
            _board("SMW-B-001", now),
            _board("SMW-B-002", now, BoardStatus.SENT_FOR_SERVICE, mill="Mill 2",
                   location="Sheltronics", substitute="SMW-S-001"),
            _board("SMW-B-003", now, BoardStatus.IN_REPAIR, mill="Mill 2", location="Sheltronics"),
            _board("SMW-B-004", now, BoardStatus.REPAIRED, location="Super Electronics"),
            _board("SMW-B-005", now, BoardStatus.REPAIRED, location="Super Electronics", updated_days_ago=60),
            _board("SMW-B-006", now, warranty=WarrantyStatus.OUT_OF_WARRANTY, expiry_days=-10),
            _board("SMW-B-007", now, warranty=WarrantyStatus.UNDER_REPLACEMENT_WARRANTY, expiry_days=20),
        ]

    def test_overview(self, boards, now):
        start, end = resolve_date_range("last30days", now=now)
        report = generate_report(boards, MILLS, PARTNERS, start, end, now=now, policy=POLICY)

        # B-005 was last touched outside the range
        assert report.overview.total_services == 3
        assert report.overview.completion_rate == pytest.approx(33.3)
        assert report.overview.avg_repair_time == 5.5
        assert report.overview.substitute_usage == 1

    def test_aware_range(self, boards, now):
        start = (now - timedelta(days=30)).replace(tzinfo=timezone.utc)
        end = now.replace(tzinfo=timezone.utc)
        report = generate_report(boards, MILLS, PARTNERS, start, end, now=now, policy=POLICY)
        assert report.overview.total_services == 3

    def test_empty_range(self, boards, now):
        start, end = now - timedelta(hours=1), now
        report = generate_report(boards, MILLS, PARTNERS, start, end, now=now, policy=POLICY)
        assert report.overview.total_services == 0
        assert report.overview.completion_rate == 0.0

    def test_no_partners(self, boards, now):
        start, end = resolve_date_range("last30days", now=now)
        report = generate_report(boards, MILLS, [], start, end, now=now, policy=POLICY)
        assert report.overview.avg_repair_time == 0.0
        assert report.vendors == []

    def test_vendors(self, boards, now):
        start, end = resolve_date_range("last30days", now=now)
        report = generate_report(boards, MILLS, PARTNERS, start, end, now=now, policy=POLICY)
        vendors = {v.name: v for v in report.vendors}
        assert vendors["Sheltronics"].services == 2
        assert vendors["Super Electronics"].services == 2
        assert vendors["Super Electronics"].rating == 4.5

    def test_warranty_buckets(self, boards, now):
        start, end = resolve_date_range("last30days", now=now)
        warranty = generate_report(boards, MILLS, PARTNERS, start, end, now=now, policy=POLICY).warranty
        assert warranty.under_warranty == 6
        assert warranty.expiring_soon == 1
        assert warranty.expired == 1

    def test_mill_rows(self, boards, now):
        start, end = resolve_date_range("last30days", now=now)
        rows = {m.name: m for m in generate_report(boards, MILLS, PARTNERS, start, end, now=now, policy=POLICY).mills}
        assert rows["Mill 2"].total_boards == 2
        assert rows["Mill 2"].in_service == 2
        assert rows["Mill 2"].service_rate == 100.0
        assert rows["Mill 1"].active_boards == 3
        assert rows["Mill 1"].service_rate == 0.0

    def test_to_dict_is_json_ready(self, boards, now):
        start, end = resolve_date_range("last7days", now=now)
        data = generate_report(boards, MILLS, PARTNERS, start, end, now=now, policy=POLICY).to_dict()
        assert data["end"] == now.isoformat()
        assert set(data) >= {"overview", "vendors", "warranty", "mills"}
