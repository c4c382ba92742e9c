# boardtrack/services/lifecycle.py
"""
Board lifecycle transitions.

    In Use --send--> Sent for Service --start_repair--> In Repair
    In Repair --complete_repair--> Repaired
    {Sent for Service, In Repair, Repaired} --inward--> In Use | Replaced | Returned

Direct edit bypasses all of the above.

Each operation runs in a single store transaction: the board, its
substitute and the service-history row are committed together or not
at all.
"""

import logging
from datetime import datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional

from dateutil.relativedelta import relativedelta

from ..config import settings
from ..errors import PermissionDeniedError, ValidationError
from ..models.board import Board, ServiceRecord
from ..models.enums import (
    SERVICE_STATUSES,
    BoardStatus,
    Priority,
    ServiceRecordStatus,
    ServiceResult,
    WarrantyStatus,
)
from ..utils.helpers import utcnow, days_between
from .event_logger import log_event
from .repository import Store

log = logging.getLogger("boardtrack.lifecycle")

INWARD_OUTCOMES = {
    ServiceResult.REPAIRED: BoardStatus.IN_USE,
    ServiceResult.REPLACED: BoardStatus.REPLACED,
    ServiceResult.NOT_REPAIRABLE: BoardStatus.RETURNED,
}

NULLABLE_BOARD_FIELDS = {"substitute_board"}


def _require_status(board: Board, allowed: Iterable[BoardStatus], action: str) -> None:
    allowed = tuple(allowed)
    if board.current_status not in allowed:
        raise ValidationError(
            f"Cannot {action} board {board.board_id}: status is "
            f"'{board.current_status.value}', expected one of "
            f"{', '.join(repr(s.value) for s in allowed)}",
            board_id=board.board_id,
            status=board.current_status.value,
        )


def _boards_backed_by(store: Store, substitute_id: str, exclude_pk: Optional[int] = None) -> List[Board]:
    rows = store.boards.list(Board.substitute_board == substitute_id)
    return [b for b in rows if b.id != exclude_pk]


def send_for_service(
    store: Store,
    board_pk: int,
    service_partner: str,
    substitute_board: Optional[str] = None,
    issue_reported: str = "",
    priority: Priority = Priority.MEDIUM,
    now: Optional[datetime] = None,
    enforce_exclusive_substitute: Optional[bool] = None,
) -> Board:
    """
    Dispatch an In Use board to a service partner, optionally deploying a
    substitute board at the owning mill.
    """
    now = now or utcnow()
    if enforce_exclusive_substitute is None:
        enforce_exclusive_substitute = settings.enforce_exclusive_substitute
    if not service_partner:
        raise ValidationError("service_partner is required")

    with store.transaction():
        board = store.boards.get(board_pk)
        _require_status(board, [BoardStatus.IN_USE], "send for service")
        partner = store.service_partners.require_by(name=service_partner)

        substitute = None
        if substitute_board:
            if substitute_board == board.board_id:
                raise ValidationError(f"Board {board.board_id} cannot substitute for itself")
            substitute = store.boards.require_by(board_id=substitute_board)

            already = _boards_backed_by(store, substitute_board, exclude_pk=board.id)
            if already:
                holders = ", ".join(b.board_id for b in already)
                if enforce_exclusive_substitute:
                    raise ValidationError(
                        f"Substitute {substitute_board} is already assigned to {holders}",
                        substitute_board=substitute_board,
                    )
                log.warning("Substitute %s also backs %s", substitute_board, holders)

        store.boards.stage(
            board,
            {
                "current_status": BoardStatus.SENT_FOR_SERVICE,
                "current_location": partner.name,
                "substitute_board": substitute_board or None,
                "updated_at": now,
            },
        )
        board.service_history.append(
            ServiceRecord(
                service_date=now,
                issue_reported=issue_reported,
                service_partner=partner.name,
                status=ServiceRecordStatus.IN_PROGRESS,
                priority=priority,
                substitute_board=substitute_board or None,
            )
        )

        if substitute is not None:
            # substitute stays In Use, it only moves to the board's mill
            store.boards.stage(substitute, {"current_location": board.mill_assigned, "updated_at": now})

        log_event(
            store.session,
            "BOARD_SENT_FOR_SERVICE",
            f"{board.board_id} sent to {partner.name}"
            + (f" with substitute {substitute_board}" if substitute_board else ""),
            {"board_id": board.board_id, "partner": partner.name, "substitute": substitute_board},
        )

    store.session.refresh(board)
    return board


def start_repair(store: Store, board_pk: int, now: Optional[datetime] = None) -> Board:
    return _advance(store, board_pk, BoardStatus.SENT_FOR_SERVICE, BoardStatus.IN_REPAIR, "start repair", now)


def complete_repair(store: Store, board_pk: int, now: Optional[datetime] = None) -> Board:
    return _advance(store, board_pk, BoardStatus.IN_REPAIR, BoardStatus.REPAIRED, "complete repair", now)


def _advance(store: Store, board_pk: int, src: BoardStatus, dst: BoardStatus, action: str, now) -> Board:
    now = now or utcnow()
    with store.transaction():
        board = store.boards.get(board_pk)
        _require_status(board, [src], action)
        store.boards.stage(board, {"current_status": dst, "updated_at": now})
        log_event(
            store.session,
            "BOARD_STATUS_CHANGED",
            f"{board.board_id}: {src.value} -> {dst.value}",
            {"board_id": board.board_id, "from": src.value, "to": dst.value},
        )
    store.session.refresh(board)
    return board


def process_inward_entry(
    store: Store,
    board_pk: int,
    service_result: ServiceResult,
    new_warranty_months: Optional[int] = None,
    return_substitute: bool = False,
    notes: str = "",
    cost: Optional[float] = None,
    actual_days: Optional[int] = None,
    now: Optional[datetime] = None,
) -> Board:
    """Record a board coming back from its service partner."""
    now = now or utcnow()
    if service_result is None:
        raise ValidationError("service_result is required")
    if new_warranty_months is not None and new_warranty_months <= 0:
        raise ValidationError("new_warranty_months must be a positive number of months")

    with store.transaction():
        board = store.boards.get(board_pk)
        _require_status(board, SERVICE_STATUSES, "process inward entry for")
        partner_name = board.current_location

        changes: Dict[str, Any] = {
            "current_status": INWARD_OUTCOMES[service_result],
            "current_location": board.mill_assigned,
            "updated_at": now,
        }
        if service_result == ServiceResult.REPLACED and new_warranty_months:
            changes["warranty_expiry"] = now + relativedelta(months=new_warranty_months)
            changes["warranty_status"] = WarrantyStatus.UNDER_REPLACEMENT_WARRANTY

        substitute_id = board.substitute_board
        if return_substitute and substitute_id:
            changes["substitute_board"] = None

        _close_service_record(board, partner_name, service_result, notes, cost, actual_days, now)
        store.boards.stage(board, changes)

        if return_substitute and substitute_id:
            substitute = store.boards.find_by(board_id=substitute_id)
            if substitute is not None:
                store.boards.stage(substitute, {"current_location": substitute.mill_assigned, "updated_at": now})
            else:
                log.info("Substitute %s for %s no longer exists; nothing to release", substitute_id, board.board_id)

        log_event(
            store.session,
            "BOARD_INWARD",
            f"{board.board_id} returned from {partner_name}: {service_result.value}",
            {
                "board_id": board.board_id,
                "partner": partner_name,
                "result": service_result.value,
                "substitute_released": substitute_id if return_substitute else None,
            },
        )

    store.session.refresh(board)
    return board


def _close_service_record(
    board: Board,
    partner_name: str,
    result: ServiceResult,
    notes: str,
    cost: Optional[float],
    actual_days: Optional[int],
    now: datetime,
) -> ServiceRecord:
    """
    Finalize the open history entry created at dispatch. Boards moved into
    service by direct edit have none, so a completed entry is appended.
    """
    record = next(
        (r for r in reversed(board.service_history) if r.status == ServiceRecordStatus.IN_PROGRESS),
        None,
    )
    if record is None:
        record = ServiceRecord(service_date=board.updated_at, service_partner=partner_name)
        board.service_history.append(record)

    record.status = ServiceRecordStatus.COMPLETED
    record.outcome = result
    record.action_taken = notes or result.value
    record.time_taken = actual_days if actual_days is not None else max(0, days_between(now, record.service_date))
    if cost is not None:
        record.cost = cost
    return record


def direct_edit(
    store: Store,
    board_pk: int,
    changes: Dict[str, Any],
    allowed_fields: Optional[Iterable[str]] = None,
) -> Board:
    """
    Administrative override. Any status is reachable from any status;
    only the caller's editable-field set limits what may change.
    """
    if allowed_fields is not None:
        blocked = sorted(set(changes) - set(allowed_fields))
        if blocked:
            raise PermissionDeniedError(
                f"Not allowed to edit field(s): {', '.join(blocked)}", fields=blocked
            )
    if not changes:
        raise ValidationError("No fields to update")
    cleared = sorted(k for k, v in changes.items() if v is None and k not in NULLABLE_BOARD_FIELDS)
    if cleared:
        raise ValidationError(f"Field(s) cannot be empty: {', '.join(cleared)}", fields=cleared)

    with store.transaction():
        board = store.boards.get(board_pk)
        before = {k: getattr(board, k) for k in changes}
        store.boards.stage(board, changes)
        log_event(
            store.session,
            "BOARD_EDITED",
            f"{board.board_id} edited: {', '.join(sorted(changes))}",
            {"board_id": board.board_id, "before": before, "after": changes},
        )
    store.session.refresh(board)
    return board


# ---------- read helpers over board snapshots ----------

def available_for_service(boards: Iterable) -> list:
    return [b for b in boards if b.current_status == BoardStatus.IN_USE]


def awaiting_inward(boards: Iterable) -> list:
    return [b for b in boards if b.current_status in SERVICE_STATUSES]


def available_substitutes(boards: Iterable, prefix: Optional[str] = None) -> list:
    """Spare boards that are In Use and not already backing another board."""
    boards = list(boards)
    prefix = settings.substitute_prefix if prefix is None else prefix
    taken = {b.substitute_board for b in boards if b.substitute_board}
    return [
        b for b in boards
        if b.board_id.startswith(prefix)
        and b.current_status == BoardStatus.IN_USE
        and b.board_id not in taken
    ]


REQUEST_STATUS = {
    BoardStatus.SENT_FOR_SERVICE: "Pending",
    BoardStatus.IN_REPAIR: "In Progress",
    BoardStatus.REPAIRED: "Completed",
}


def service_requests(boards: Iterable, partners: Iterable, default_repair_days: float = 7) -> List[dict]:
    """
    One open service request per board currently away for service,
    with an expected completion based on the partner's average repair time.
    """
    repair_days = {p.name: p.avg_repair_time for p in partners}
    out = []
    for b in awaiting_inward(boards):
        history = list(b.service_history or [])
        open_rec = next(
            (r for r in reversed(history) if r.status == ServiceRecordStatus.IN_PROGRESS),
            None,
        )
        days = repair_days.get(b.current_location) or default_repair_days
        out.append(
            {
                "id": b.id,
                "board_id": b.board_id,
                "mill_name": b.mill_assigned,
                "service_partner": b.current_location,
                "status": REQUEST_STATUS[b.current_status],
                "issue_reported": open_rec.issue_reported if open_rec else "",
                "priority": open_rec.priority.value if open_rec else Priority.MEDIUM.value,
                "date_requested": b.updated_at.date().isoformat(),
                "expected_completion": (b.updated_at + timedelta(days=days)).date().isoformat(),
                "substitute_board": b.substitute_board,
            }
        )
    return out
