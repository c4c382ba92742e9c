# boardtrack/services/auth.py

import logging
from datetime import datetime, timedelta
from typing import Optional

from jose import JWTError, jwt
from passlib.context import CryptContext

from ..config import settings
from ..errors import AuthenticationError
from ..models.enums import UserRole, UserStatus
from ..models.users import User
from ..utils.helpers import utcnow
from .event_logger import log_event
from .repository import Store

log = logging.getLogger("boardtrack.auth")

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    if not hashed_password:
        return False
    return pwd_context.verify(plain_password, hashed_password)


def create_access_token(user: User, expires_minutes: Optional[int] = None) -> str:
    expire = utcnow() + timedelta(minutes=expires_minutes or settings.access_token_expire_minutes)
    to_encode = {"sub": user.email, "role": user.role.value, "uid": user.id, "exp": expire}
    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.algorithm)


def decode_access_token(token: str) -> dict:
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except JWTError as e:
        raise AuthenticationError("Could not validate credentials") from e
    if payload.get("sub") is None:
        raise AuthenticationError("Could not validate credentials")
    return payload


def authenticate(store: Store, email: str, password: str, now: Optional[datetime] = None) -> User:
    """Sign in by email/password; inactive accounts are refused."""
    user = store.users.find_by(email=email)
    if user is None or not verify_password(password, user.password_hash):
        raise AuthenticationError("Invalid email or password")
    if user.status != UserStatus.ACTIVE:
        raise AuthenticationError("Account is inactive")

    with store.transaction():
        store.users.stage(user, {"last_login": now or utcnow()})
    store.session.refresh(user)
    log.info("User %s signed in", user.email)
    return user


def user_from_token(store: Store, token: str) -> User:
    payload = decode_access_token(token)
    user = store.users.find_by(email=payload["sub"])
    if user is None or user.status != UserStatus.ACTIVE:
        raise AuthenticationError("Could not validate credentials")
    return user


def ensure_initial_admin(store: Store) -> Optional[User]:
    """Create the bootstrap Admin account when the user table is empty."""
    if store.users.find_by() is not None:
        return None
    with store.transaction():
        admin = store.users.create(
            User(
                email=settings.initial_admin_email,
                name="System Administrator",
                role=UserRole.ADMIN,
                status=UserStatus.ACTIVE,
                password_hash=hash_password(settings.initial_admin_password),
            )
        )
        log_event(store.session, "USER_BOOTSTRAP", f"Initial admin {admin.email} created")
    return admin
