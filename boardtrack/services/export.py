# boardtrack/services/export.py
"""
Spreadsheet export and backup dump, computed synchronously from the
in-memory collections.
"""

import io
from datetime import datetime
from typing import Dict, Iterable, List, Optional

import pandas as pd
from openpyxl.utils import get_column_letter

from ..models.enums import SERVICE_STATUSES, BoardStatus
from ..utils.helpers import utcnow, days_between
from .dashboard import ACTIVE_SERVICE, DashboardPolicy

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

MIN_COL_WIDTH = 10
MAX_COL_WIDTH = 50


def _d(value: Optional[datetime]) -> str:
    return value.strftime("%Y-%m-%d") if value else ""


def _dt(value: Optional[datetime]) -> str:
    return value.strftime("%Y-%m-%d %H:%M") if value else ""


def boards_rows(boards: Iterable, include_history: bool = False) -> List[Dict]:
    rows = []
    for b in boards:
        row = {
            "Board ID": b.board_id,
            "Status": b.current_status.value,
            "Current Location": b.current_location,
            "Mill Assigned": b.mill_assigned,
            "Warranty Status": b.warranty_status.value,
            "Purchase Date": _d(b.purchase_date),
            "Warranty Expiry": _d(b.warranty_expiry),
            "Substitute Board": b.substitute_board or "N/A",
        }
        if include_history:
            row["Service History Count"] = len(b.service_history or [])
            row["Created Date"] = _dt(b.created_at)
        row["Last Updated"] = _dt(b.updated_at)
        rows.append(row)
    return rows


def service_status_rows(boards: Iterable, now: datetime) -> List[Dict]:
    return [
        {
            "Board ID": b.board_id,
            "Mill": b.mill_assigned,
            "Service Partner": b.current_location,
            "Status": b.current_status.value,
            "Substitute Board": b.substitute_board or "N/A",
            "Service Date": _d(b.updated_at),
            "Days in Service": days_between(now, b.updated_at),
        }
        for b in boards
        if b.current_status in SERVICE_STATUSES
    ]


def mills_rows(boards: list, mills: Iterable) -> List[Dict]:
    rows = []
    for m in mills:
        mill_boards = [b for b in boards if b.mill_assigned == m.name]
        in_service = sum(1 for b in mill_boards if b.current_status in ACTIVE_SERVICE)
        rate = f"{in_service / len(mill_boards) * 100:.1f}" if mill_boards else "0"
        rows.append(
            {
                "Mill Name": m.name,
                "Location": m.location,
                "Contact Person": m.contact_person,
                "Phone": m.phone,
                "Total Boards": len(mill_boards),
                "Active Boards": sum(1 for b in mill_boards if b.current_status == BoardStatus.IN_USE),
                "In Service": in_service,
                "Service Rate %": rate,
            }
        )
    return rows


def partners_rows(boards: list, partners: Iterable) -> List[Dict]:
    return [
        {
            "Partner Name": p.name,
            "Contact Person": p.contact_person,
            "Phone": p.phone,
            "Email": p.email,
            "Address": p.address,
            "Rating": p.rating,
            "Avg Repair Time (days)": p.avg_repair_time,
            "Current Services": sum(1 for b in boards if b.current_location == p.name),
        }
        for p in partners
    ]


def warranty_alert(days_to_expiry: int, window_days: int) -> str:
    if days_to_expiry < 0:
        return "Expired"
    if days_to_expiry <= window_days:
        return "Expiring Soon"
    return "Active"


def warranty_rows(boards: Iterable, now: datetime, window_days: int) -> List[Dict]:
    rows = []
    for b in boards:
        days = days_between(b.warranty_expiry, now)
        rows.append(
            {
                "Board ID": b.board_id,
                "Mill": b.mill_assigned,
                "Warranty Status": b.warranty_status.value,
                "Purchase Date": _d(b.purchase_date),
                "Warranty Expiry": _d(b.warranty_expiry),
                "Days to Expiry": days,
                "Alert": warranty_alert(days, window_days),
            }
        )
    return rows


def _autosize(worksheet) -> None:
    for idx, column in enumerate(worksheet.iter_cols(), start=1):
        width = MIN_COL_WIDTH
        for cell in column:
            if cell.value is not None:
                width = max(width, len(str(cell.value)))
        worksheet.column_dimensions[get_column_letter(idx)].width = min(width + 2, MAX_COL_WIDTH)


def _write_workbook(sheets: Dict[str, List[Dict]]) -> bytes:
    buf = io.BytesIO()
    with pd.ExcelWriter(buf, engine="openpyxl") as writer:
        for name, rows in sheets.items():
            pd.DataFrame(rows).to_excel(writer, sheet_name=name, index=False)
            _autosize(writer.sheets[name])
    return buf.getvalue()


def export_boards_workbook(boards: Iterable) -> bytes:
    return _write_workbook({"Boards": boards_rows(boards, include_history=True)})


def export_service_report(
    boards: Iterable,
    mills: Iterable,
    partners: Iterable,
    now: Optional[datetime] = None,
    policy: Optional[DashboardPolicy] = None,
) -> bytes:
    """
    Full workbook: Boards Summary, Service Status (only when some board is
    away), Mills Summary, Service Partners, Warranty Report.
    """
    boards = list(boards)
    now = now or utcnow()
    policy = policy or DashboardPolicy.from_settings()

    sheets: Dict[str, List[Dict]] = {"Boards Summary": boards_rows(boards)}
    service = service_status_rows(boards, now)
    if service:
        sheets["Service Status"] = service
    sheets["Mills Summary"] = mills_rows(boards, mills)
    sheets["Service Partners"] = partners_rows(boards, partners)
    sheets["Warranty Report"] = warranty_rows(boards, now, policy.warranty_window_days)
    return _write_workbook(sheets)


def export_filename(prefix: str, now: Optional[datetime] = None) -> str:
    return f"{prefix}-{(now or utcnow()).strftime('%Y-%m-%d')}.xlsx"


def backup_dump(boards: Iterable, mills: Iterable, partners: Iterable, users: Iterable, now: Optional[datetime] = None) -> Dict:
    """Flat JSON-ready dump of every collection for backup/inspection."""
    return {
        "boards": [b.model_dump(mode="json") for b in boards],
        "mills": [m.model_dump(mode="json") for m in mills],
        "servicePartners": [p.model_dump(mode="json") for p in partners],
        "users": [u.model_dump(mode="json", exclude={"password_hash"}) for u in users],
        "exportDate": (now or utcnow()).isoformat(),
    }
