# boardtrack/api/dashboard.py

from fastapi import APIRouter, Depends

from ..models.users import User
from ..services import permissions as perms
from ..services.change_feed import LiveViews
from ..services.dashboard import compute_dashboard, recent_activity
from .deps import get_live_views, require_permission

router = APIRouter(prefix="/api/dashboard", tags=["dashboard"])


@router.get("")
def get_dashboard(
    views: LiveViews = Depends(get_live_views),
    user: User = Depends(require_permission(perms.DASHBOARD_VIEW)),
):
    """
    Dashboard figures recomputed from the live collections on every call.

    Returns:
    {
      "stats": {...counts, mills: [...], partners: [...]},
      "recent_activity": [...],
      "sync": {"state": "LIVE" | "STALE" | "CONNECTING", ...}
    }
    """
    boards = views.boards.items()
    stats = compute_dashboard(boards, views.mills.items(), views.service_partners.items())
    return {
        "stats": stats.to_dict(),
        "recent_activity": recent_activity(boards),
        "sync": views.status(),
    }
