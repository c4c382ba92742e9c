# boardtrack/api/deps.py
"""
Shared FastAPI dependencies: store, live views, current user and
permission guards.
"""

from typing import Optional

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from sqlmodel import Session

from .. import database
from ..database import get_session
from ..models.users import User
from ..services.auth import user_from_token
from ..services.change_feed import LiveViews
from ..services.permissions import check_permission
from ..services.repository import Store

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login")

_live_views: Optional[LiveViews] = None


def get_store(session: Session = Depends(get_session)) -> Store:
    return Store(session)


def get_live_views() -> LiveViews:
    """Process-wide live collections over the configured engine."""
    global _live_views
    if _live_views is None:
        _live_views = LiveViews(database.engine)
    return _live_views


def get_current_user(
    token: str = Depends(oauth2_scheme),
    store: Store = Depends(get_store),
) -> User:
    return user_from_token(store, token)


def require_permission(operation: str):
    def permission_checker(user: User = Depends(get_current_user)) -> User:
        check_permission(user.role, operation)
        return user
    return permission_checker
