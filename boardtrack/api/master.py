# boardtrack/api/master.py

from typing import List

from fastapi import APIRouter, Depends

from ..models.master import (
    Mill,
    MillCreate,
    MillRead,
    MillUpdate,
    ServicePartner,
    ServicePartnerCreate,
    ServicePartnerRead,
    ServicePartnerUpdate,
)
from ..models.users import User
from ..services import permissions as perms
from ..services.change_feed import LiveViews
from ..services.event_logger import log_event
from ..services.repository import Store
from .deps import get_live_views, get_store, require_permission

router = APIRouter(tags=["master"])


# ---------- mills ----------

@router.get("/api/mills", response_model=List[MillRead])
def list_mills(
    views: LiveViews = Depends(get_live_views),
    user: User = Depends(require_permission(perms.BOARDS_READ)),
):
    return views.mills.items()


@router.post("/api/mills", response_model=MillRead, status_code=201)
def create_mill(
    payload: MillCreate,
    store: Store = Depends(get_store),
    user: User = Depends(require_permission(perms.MASTER_WRITE)),
):
    with store.transaction():
        mill = store.mills.create(Mill.model_validate(payload))
        log_event(store.session, "MILL_CREATED", f"Mill {mill.name} added", {"by": user.email})
    store.session.refresh(mill)
    return mill


@router.patch("/api/mills/{mill_id}", response_model=MillRead)
def update_mill(
    mill_id: int,
    payload: MillUpdate,
    store: Store = Depends(get_store),
    user: User = Depends(require_permission(perms.MASTER_WRITE)),
):
    changes = payload.model_dump(exclude_unset=True)
    with store.transaction():
        mill = store.mills.update(mill_id, changes)
        log_event(store.session, "MILL_UPDATED", f"Mill {mill.name} updated: {', '.join(sorted(changes))}",
                  {"by": user.email})
    store.session.refresh(mill)
    return mill


@router.delete("/api/mills/{mill_id}")
def delete_mill(
    mill_id: int,
    store: Store = Depends(get_store),
    user: User = Depends(require_permission(perms.MASTER_WRITE)),
):
    with store.transaction():
        name = store.mills.get(mill_id).name
        store.mills.delete(mill_id)
        log_event(store.session, "MILL_DELETED", f"Mill {name} deleted", {"by": user.email})
    return {"status": "deleted", "id": mill_id}


# ---------- service partners ----------

@router.get("/api/service-partners", response_model=List[ServicePartnerRead])
def list_service_partners(
    views: LiveViews = Depends(get_live_views),
    user: User = Depends(require_permission(perms.BOARDS_READ)),
):
    return views.service_partners.items()


@router.post("/api/service-partners", response_model=ServicePartnerRead, status_code=201)
def create_service_partner(
    payload: ServicePartnerCreate,
    store: Store = Depends(get_store),
    user: User = Depends(require_permission(perms.MASTER_WRITE)),
):
    with store.transaction():
        partner = store.service_partners.create(ServicePartner.model_validate(payload))
        log_event(store.session, "PARTNER_CREATED", f"Service partner {partner.name} added", {"by": user.email})
    store.session.refresh(partner)
    return partner


@router.patch("/api/service-partners/{partner_id}", response_model=ServicePartnerRead)
def update_service_partner(
    partner_id: int,
    payload: ServicePartnerUpdate,
    store: Store = Depends(get_store),
    user: User = Depends(require_permission(perms.MASTER_WRITE)),
):
    changes = payload.model_dump(exclude_unset=True)
    with store.transaction():
        partner = store.service_partners.update(partner_id, changes)
        log_event(store.session, "PARTNER_UPDATED", f"Service partner {partner.name} updated: {', '.join(sorted(changes))}",
                  {"by": user.email})
    store.session.refresh(partner)
    return partner


@router.delete("/api/service-partners/{partner_id}")
def delete_service_partner(
    partner_id: int,
    store: Store = Depends(get_store),
    user: User = Depends(require_permission(perms.MASTER_WRITE)),
):
    with store.transaction():
        name = store.service_partners.get(partner_id).name
        store.service_partners.delete(partner_id)
        log_event(store.session, "PARTNER_DELETED", f"Service partner {name} deleted", {"by": user.email})
    return {"status": "deleted", "id": partner_id}
