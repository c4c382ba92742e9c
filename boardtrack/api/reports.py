# boardtrack/api/reports.py

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response

from ..models.users import User
from ..services import permissions as perms
from ..services.change_feed import LiveViews
from ..services.export import (
    XLSX_MEDIA_TYPE,
    backup_dump,
    export_boards_workbook,
    export_filename,
    export_service_report,
)
from ..services.reports import generate_report, resolve_date_range
from .deps import get_live_views, require_permission

router = APIRouter(prefix="/api/reports", tags=["reports"])


def _xlsx(content: bytes, filename: str) -> Response:
    return Response(
        content=content,
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("")
def get_report(
    preset: Optional[str] = Query("last30days", alias="range"),
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    views: LiveViews = Depends(get_live_views),
    user: User = Depends(require_permission(perms.REPORTS_VIEW)),
):
    start, end = resolve_date_range(preset, start, end)
    report = generate_report(
        views.boards.items(),
        views.mills.items(),
        views.service_partners.items(),
        start,
        end,
    )
    return report.to_dict()


@router.get("/export.xlsx")
def export_report(
    views: LiveViews = Depends(get_live_views),
    user: User = Depends(require_permission(perms.REPORTS_EXPORT)),
):
    content = export_service_report(
        views.boards.items(),
        views.mills.items(),
        views.service_partners.items(),
    )
    return _xlsx(content, export_filename("SMW-Service-Report"))


@router.get("/boards.xlsx")
def export_boards(
    views: LiveViews = Depends(get_live_views),
    user: User = Depends(require_permission(perms.REPORTS_EXPORT)),
):
    return _xlsx(export_boards_workbook(views.boards.items()), export_filename("SMW-Boards"))


@router.get("/backup")
def get_backup(
    views: LiveViews = Depends(get_live_views),
    user: User = Depends(require_permission(perms.DATA_BACKUP)),
):
    return backup_dump(
        views.boards.items(),
        views.mills.items(),
        views.service_partners.items(),
        views.users.items(),
    )
