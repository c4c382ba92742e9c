# boardtrack/api/auth.py

from fastapi import APIRouter, Depends
from fastapi.security import OAuth2PasswordRequestForm

from ..models.users import User, UserRead
from ..services.auth import authenticate, create_access_token
from ..services.repository import Store
from .deps import get_current_user, get_store

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/login")
def login(
    form: OAuth2PasswordRequestForm = Depends(),
    store: Store = Depends(get_store),
):
    """OAuth2 password flow; the username field carries the email."""
    user = authenticate(store, form.username, form.password)
    return {
        "access_token": create_access_token(user),
        "token_type": "bearer",
        "user": UserRead.model_validate(user).model_dump(mode="json"),
    }


@router.get("/me", response_model=UserRead)
def who_am_i(user: User = Depends(get_current_user)):
    return user
