# boardtrack/api/boards.py

from typing import List, Optional

from fastapi import APIRouter, Depends

from ..models.board import (
    Board,
    BoardCreate,
    BoardRead,
    BoardUpdate,
    InwardEntryRequest,
    SendForServiceRequest,
)
from ..models.enums import BoardStatus
from ..models.users import User
from ..services import lifecycle
from ..services import permissions as perms
from ..services.change_feed import LiveViews
from ..services.event_logger import log_event
from ..services.repository import Store
from .deps import get_live_views, get_store, require_permission

router = APIRouter(prefix="/api/boards", tags=["boards"])


# ---------- reads (served from live views) ----------

@router.get("", response_model=List[BoardRead])
def list_boards(
    status: Optional[BoardStatus] = None,
    mill: Optional[str] = None,
    views: LiveViews = Depends(get_live_views),
    user: User = Depends(require_permission(perms.BOARDS_READ)),
):
    boards = views.boards.items()
    if status is not None:
        boards = [b for b in boards if b.current_status == status]
    if mill:
        boards = [b for b in boards if b.mill_assigned == mill]
    return boards


@router.get("/available-substitutes", response_model=List[BoardRead])
def get_available_substitutes(
    views: LiveViews = Depends(get_live_views),
    user: User = Depends(require_permission(perms.BOARDS_READ)),
):
    return lifecycle.available_substitutes(views.boards.items())


@router.get("/available-for-service", response_model=List[BoardRead])
def get_available_for_service(
    views: LiveViews = Depends(get_live_views),
    user: User = Depends(require_permission(perms.BOARDS_READ)),
):
    return lifecycle.available_for_service(views.boards.items())


@router.get("/awaiting-inward", response_model=List[BoardRead])
def get_awaiting_inward(
    views: LiveViews = Depends(get_live_views),
    user: User = Depends(require_permission(perms.BOARDS_READ)),
):
    return lifecycle.awaiting_inward(views.boards.items())


@router.get("/service-requests")
def get_service_requests(
    views: LiveViews = Depends(get_live_views),
    user: User = Depends(require_permission(perms.BOARDS_READ)),
):
    """
    Boards currently away for service, shaped as service requests:
    Pending (sent), In Progress (in repair), Completed (repaired).
    """
    return lifecycle.service_requests(views.boards.items(), views.service_partners.items())


@router.get("/{board_pk}", response_model=BoardRead)
def get_board(
    board_pk: int,
    store: Store = Depends(get_store),
    user: User = Depends(require_permission(perms.BOARDS_READ)),
):
    return store.boards.get(board_pk)


# ---------- writes ----------

@router.post("", response_model=BoardRead, status_code=201)
def create_board(
    payload: BoardCreate,
    store: Store = Depends(get_store),
    user: User = Depends(require_permission(perms.BOARDS_WRITE)),
):
    with store.transaction():
        board = store.boards.create(Board.model_validate(payload))
        log_event(store.session, "BOARD_CREATED", f"{board.board_id} registered at {board.mill_assigned}",
                  {"board_id": board.board_id, "by": user.email})
    store.session.refresh(board)
    return board


@router.patch("/{board_pk}", response_model=BoardRead)
def edit_board(
    board_pk: int,
    payload: BoardUpdate,
    store: Store = Depends(get_store),
    user: User = Depends(require_permission(perms.BOARDS_EDIT)),
):
    changes = payload.model_dump(exclude_unset=True)
    return lifecycle.direct_edit(store, board_pk, changes, allowed_fields=perms.editable_board_fields(user.role))


@router.delete("/{board_pk}")
def delete_board(
    board_pk: int,
    store: Store = Depends(get_store),
    user: User = Depends(require_permission(perms.BOARDS_DELETE)),
):
    with store.transaction():
        board = store.boards.get(board_pk)
        board_id = board.board_id
        store.boards.delete(board_pk)
        log_event(store.session, "BOARD_DELETED", f"{board_id} deleted", {"board_id": board_id, "by": user.email})
    return {"status": "deleted", "id": board_pk}


# ---------- lifecycle ----------

@router.post("/{board_pk}/send-for-service", response_model=BoardRead)
def send_for_service(
    board_pk: int,
    payload: SendForServiceRequest,
    store: Store = Depends(get_store),
    user: User = Depends(require_permission(perms.SERVICE_REQUEST)),
):
    return lifecycle.send_for_service(
        store,
        board_pk,
        service_partner=payload.service_partner,
        substitute_board=payload.substitute_board,
        issue_reported=payload.issue_reported,
        priority=payload.priority,
    )


@router.post("/{board_pk}/start-repair", response_model=BoardRead)
def start_repair(
    board_pk: int,
    store: Store = Depends(get_store),
    user: User = Depends(require_permission(perms.SERVICE_UPDATE)),
):
    return lifecycle.start_repair(store, board_pk)


@router.post("/{board_pk}/complete-repair", response_model=BoardRead)
def complete_repair(
    board_pk: int,
    store: Store = Depends(get_store),
    user: User = Depends(require_permission(perms.SERVICE_UPDATE)),
):
    return lifecycle.complete_repair(store, board_pk)


@router.post("/{board_pk}/inward", response_model=BoardRead)
def inward_entry(
    board_pk: int,
    payload: InwardEntryRequest,
    store: Store = Depends(get_store),
    user: User = Depends(require_permission(perms.INWARD_PROCESS)),
):
    return lifecycle.process_inward_entry(
        store,
        board_pk,
        service_result=payload.service_result,
        new_warranty_months=payload.new_warranty_months,
        return_substitute=payload.return_substitute,
        notes=payload.notes,
        cost=payload.cost,
        actual_days=payload.actual_days,
    )
