"""
Shared fixtures.

Every test gets its own in-memory SQLite database, an isolated change
feed and live views bound to both, so nothing leaks between tests.
"""

from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session

from boardtrack.api import deps
from boardtrack.database import build_engine, create_db_and_tables, get_session
from boardtrack.models.board import Board
from boardtrack.models.enums import BoardStatus, UserRole, WarrantyStatus
from boardtrack.models.master import Mill, ServicePartner
from boardtrack.models.users import User
from boardtrack.seed_data import seed_master_data
from boardtrack.services.auth import create_access_token, hash_password
from boardtrack.services.change_feed import ChangeFeed, LiveViews
from boardtrack.services.repository import Store

NOW = datetime(2025, 6, 1, 12, 0, 0)
PASSWORD = "secret-pass"


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def engine():
    eng = build_engine("sqlite://")
    create_db_and_tables(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def feed():
    return ChangeFeed()


@pytest.fixture
def session(engine):
    with Session(engine) as s:
        yield s


@pytest.fixture
def store(session, feed):
    return Store(session, feed)


@pytest.fixture
def seeded(engine, now):
    """Demo mills, partners and boards as loaded on first start."""
    seed_master_data(bind=engine, now=now)
    return engine


@pytest.fixture
def views(engine, feed):
    v = LiveViews(engine, feed)
    yield v
    v.close()


# ---------------------------------------------------------------------------
# HTTP client
# ---------------------------------------------------------------------------

@pytest.fixture
def client(engine, feed, views):
    from boardtrack.main import app

    def _session():
        with Session(engine) as s:
            yield s

    def _store():
        with Session(engine) as s:
            yield Store(s, feed)

    app.dependency_overrides[get_session] = _session
    app.dependency_overrides[deps.get_store] = _store
    app.dependency_overrides[deps.get_live_views] = lambda: views
    yield TestClient(app)
    app.dependency_overrides.clear()


_AFFILIATIONS = {
    UserRole.ADMIN: {},
    UserRole.MILL_SUPERVISOR: {"mill": "Mill 2 - Production Unit B"},
    UserRole.SERVICE_PARTNER: {"service_partner": "Sheltronics"},
    UserRole.VIEWER: {},
}


@pytest.fixture
def make_user(store):
    def _make(role: UserRole, email: str = None, **extra) -> User:
        fields = dict(_AFFILIATIONS[role])
        fields.update(extra)
        return store.users.create(
            User(
                email=email or f"{role.name.lower()}@smw.test",
                name=role.value,
                role=role,
                password_hash=hash_password(PASSWORD),
                **fields,
            )
        )
    return _make


@pytest.fixture
def headers_for(make_user):
    """Bearer headers for a freshly created user of the given role."""
    cache = {}

    def _headers(role: UserRole) -> dict:
        if role not in cache:
            cache[role] = {"Authorization": f"Bearer {create_access_token(make_user(role))}"}
        return cache[role]
    return _headers


# ---------------------------------------------------------------------------
# Record factories
# ---------------------------------------------------------------------------

@pytest.fixture
def make_mill(store):
    def _make(name: str, **fields) -> Mill:
        data = {"location": "Industrial Area", "contact_person": "Supervisor", "phone": "+91-9000000000"}
        data.update(fields)
        return store.mills.create(Mill(name=name, **data))
    return _make


@pytest.fixture
def make_partner(store):
    def _make(name: str, **fields) -> ServicePartner:
        data = {
            "contact_person": "Service Desk",
            "phone": "+91-9000000001",
            "email": f"{name.lower().replace(' ', '')}@partner.test",
            "address": "Tech Park",
            "rating": 4.0,
            "avg_repair_time": 6,
        }
        data.update(fields)
        return store.service_partners.create(ServicePartner(name=name, **data))
    return _make


@pytest.fixture
def make_board(store, now):
    def _make(board_id: str, mill: str = "Mill 2", **fields) -> Board:
        data = {
            "current_status": BoardStatus.IN_USE,
            "current_location": mill,
            "mill_assigned": mill,
            "warranty_status": WarrantyStatus.UNDER_SERVICE_WARRANTY,
            "warranty_expiry": now + timedelta(days=365),
            "purchase_date": now - timedelta(days=365),
            "created_at": now,
            "updated_at": now,
        }
        data.update(fields)
        return store.boards.create(Board(board_id=board_id, **data))
    return _make
