"""
Password sign-in, tokens and the bootstrap admin account.
"""

import pytest

from boardtrack.config import settings
from boardtrack.errors import AuthenticationError
from boardtrack.models.enums import UserRole, UserStatus
from boardtrack.services.auth import (
    authenticate,
    create_access_token,
    decode_access_token,
    ensure_initial_admin,
    hash_password,
    user_from_token,
    verify_password,
)

from .conftest import PASSWORD


def test_hash_and_verify():
    hashed = hash_password("s3cret")
    assert hashed != "s3cret"
    assert verify_password("s3cret", hashed)
    assert not verify_password("wrong", hashed)
    assert not verify_password("s3cret", "")


class TestAuthenticate:
    def test_success_records_last_login(self, store, make_user, now):
        make_user(UserRole.VIEWER, email="viewer@smw.com")
        user = authenticate(store, "viewer@smw.com", PASSWORD, now=now)
        assert user.last_login == now

    def test_wrong_password(self, store, make_user):
        make_user(UserRole.VIEWER, email="viewer@smw.com")
        with pytest.raises(AuthenticationError):
            authenticate(store, "viewer@smw.com", "nope")

    def test_unknown_email(self, store):
        with pytest.raises(AuthenticationError):
            authenticate(store, "ghost@smw.com", PASSWORD)

    def test_inactive_refused(self, store, make_user):
        make_user(UserRole.VIEWER, email="old@smw.com", status=UserStatus.INACTIVE)
        with pytest.raises(AuthenticationError):
            authenticate(store, "old@smw.com", PASSWORD)


class TestTokens:
    def test_round_trip(self, store, make_user):
        user = make_user(UserRole.MILL_SUPERVISOR)
        payload = decode_access_token(create_access_token(user))
        assert payload["sub"] == user.email
        assert payload["role"] == "Mill Supervisor"
        assert user_from_token(store, create_access_token(user)).id == user.id

    def test_garbage_token(self):
        with pytest.raises(AuthenticationError):
            decode_access_token("not-a-jwt")

    def test_deactivated_user_token_rejected(self, store, make_user):
        user = make_user(UserRole.VIEWER)
        token = create_access_token(user)
        store.users.update(user.id, {"status": UserStatus.INACTIVE})
        with pytest.raises(AuthenticationError):
            user_from_token(store, token)


class TestInitialAdmin:
    def test_created_when_no_users(self, store):
        admin = ensure_initial_admin(store)
        assert admin.email == settings.initial_admin_email
        assert admin.role == UserRole.ADMIN
        assert verify_password(settings.initial_admin_password, admin.password_hash)

    def test_skipped_when_users_exist(self, store, make_user):
        make_user(UserRole.VIEWER)
        assert ensure_initial_admin(store) is None
        assert len(store.users.list()) == 1
