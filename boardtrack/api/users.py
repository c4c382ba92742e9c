# boardtrack/api/users.py

from typing import List

from fastapi import APIRouter, Depends

from ..errors import ValidationError
from ..models.users import User, UserCreate, UserRead, UserUpdate
from ..services import permissions as perms
from ..services.auth import hash_password
from ..services.event_logger import log_event
from ..services.repository import Store
from .deps import get_store, require_permission

router = APIRouter(prefix="/api/users", tags=["users"])


@router.get("", response_model=List[UserRead])
def list_users(
    store: Store = Depends(get_store),
    user: User = Depends(require_permission(perms.USERS_MANAGE)),
):
    return store.users.list(order_by=User.email)


@router.get("/roles")
def get_roles(user: User = Depends(require_permission(perms.USERS_MANAGE))):
    """Role capability matrix for the user management screen."""
    return perms.permissions_matrix()


@router.post("", response_model=UserRead, status_code=201)
def create_user(
    payload: UserCreate,
    store: Store = Depends(get_store),
    user: User = Depends(require_permission(perms.USERS_MANAGE)),
):
    if not payload.password:
        raise ValidationError("password is required", field="password")
    affiliation = perms.check_affiliation(payload.role, payload.mill, payload.service_partner)

    data = payload.model_dump(exclude={"password"})
    data.update(affiliation)
    new_user = User(**data, password_hash=hash_password(payload.password))

    with store.transaction():
        new_user = store.users.create(new_user)
        log_event(store.session, "USER_CREATED", f"User {new_user.email} ({new_user.role.value}) created",
                  {"by": user.email})
    store.session.refresh(new_user)
    return new_user


@router.patch("/{user_id}", response_model=UserRead)
def update_user(
    user_id: int,
    payload: UserUpdate,
    store: Store = Depends(get_store),
    user: User = Depends(require_permission(perms.USERS_MANAGE)),
):
    target = store.users.get(user_id)
    changes = payload.model_dump(exclude_unset=True)

    password = changes.pop("password", None)
    if password:
        changes["password_hash"] = hash_password(password)

    role = changes.get("role", target.role)
    changes.update(
        perms.check_affiliation(
            role,
            changes.get("mill", target.mill),
            changes.get("service_partner", target.service_partner),
        )
    )
    with store.transaction():
        updated = store.users.update(user_id, changes)
        log_event(store.session, "USER_UPDATED", f"User {updated.email} updated",
                  {"by": user.email, "fields": sorted(k for k in changes if k != "password_hash")})
    store.session.refresh(updated)
    return updated


@router.delete("/{user_id}")
def delete_user(
    user_id: int,
    store: Store = Depends(get_store),
    user: User = Depends(require_permission(perms.USERS_MANAGE)),
):
    if user_id == user.id:
        raise ValidationError("You cannot delete your own account")
    with store.transaction():
        email = store.users.get(user_id).email
        store.users.delete(user_id)
        log_event(store.session, "USER_DELETED", f"User {email} deleted", {"by": user.email})
    return {"status": "deleted", "id": user_id}
