"""
Shared pytest fixtures for the lease comp history test suite.

Provides:
    - app: Flask application (session-scoped)
    - _setup_db: Database table creation/teardown (session-scoped)
    - session: Per-test DB cleanup w/ rollback + recreate (autouse)
    - client: Flask test client (function-scoped)
    - team / other_team: Pre-created Team entities
    - user / owner / admin / billing_user / outsider: Users with team roles
    - actor: ``user`` installed as the authenticated caller for service calls
    - comp: A draft LeaseComp created by ``user``
    - auth_headers: Bearer headers for any user
"""

import pytest
from flask import g

from app import create_app
from app.models import db as _db
from app.models.auth import Team, User
from app.models.lease_comp import Building, LeaseComp
from app.services.jwt_service import generate_access_token


# ── App & DB fixtures ────────────────────────────────────────────────────


@pytest.fixture(scope="session")
def app():
    """Create the Flask application once per test session."""
    application = create_app("testing")
    return application


@pytest.fixture(scope="session")
def _setup_db(app):
    """Create all tables at session start, drop at end."""
    with app.app_context():
        _db.create_all()
    yield
    with app.app_context():
        _db.drop_all()


@pytest.fixture(autouse=True)
def session(app, _setup_db):
    """Per-test: open app context, rollback after test, recreate tables."""
    with app.app_context():
        yield
        _db.session.rollback()
        _db.drop_all()
        _db.create_all()


@pytest.fixture()
def client(app):
    """Flask test client."""
    return app.test_client()


# ── Teams & users ────────────────────────────────────────────────────────


def _make_team(name, slug):
    t = Team(name=name, slug=slug)
    _db.session.add(t)
    _db.session.commit()
    return t


def _make_user(team, email, role="team_member"):
    u = User(team_id=team.id, email=email, full_name=email.split("@")[0].title(), role=role)
    _db.session.add(u)
    _db.session.commit()
    return u


@pytest.fixture()
def team():
    return _make_team("Westside Brokerage", "westside")


@pytest.fixture()
def other_team():
    return _make_team("Eastside Brokerage", "eastside")


@pytest.fixture()
def user(team):
    return _make_user(team, "agent@westside.test")


@pytest.fixture()
def owner(team):
    return _make_user(team, "owner@westside.test", role="team_owner")


@pytest.fixture()
def admin(team):
    return _make_user(team, "admin@westside.test", role="team_admin")


@pytest.fixture()
def billing_user(team):
    return _make_user(team, "billing@westside.test", role="billing_contact")


@pytest.fixture()
def outsider(other_team):
    return _make_user(other_team, "agent@eastside.test")


def _act_as(u):
    g.jwt_user_id = u.id
    g.jwt_team_id = u.team_id
    return u


@pytest.fixture()
def act_as():
    """Factory: install a user as the authenticated caller for service calls."""
    return _act_as


@pytest.fixture()
def actor(user):
    return _act_as(user)


# ── Lease comps ──────────────────────────────────────────────────────────


_seq = iter(range(1, 9999))


def _make_comp(team, created_by, **kw):
    address = kw.pop("address", None) or f"{100 + next(_seq)} Industrial Pkwy, Reno, NV"
    building = Building(full_address_raw=address)
    _db.session.add(building)
    _db.session.flush()
    comp = LeaseComp(
        team_id=team.id,
        building_id=building.id,
        status=kw.pop("status", "draft"),
        tenant_name_raw=kw.pop("tenant_name_raw", "Acme Logistics"),
        created_by=created_by.id,
        updated_by=created_by.id,
        **kw,
    )
    _db.session.add(comp)
    _db.session.commit()
    return comp


@pytest.fixture()
def make_comp():
    """Factory: insert a LeaseComp directly, bypassing the services."""
    return _make_comp


@pytest.fixture()
def comp(team, user):
    return _make_comp(team, user)


# ── HTTP auth ────────────────────────────────────────────────────────────


@pytest.fixture()
def auth_headers():
    """Factory: Bearer headers for the given user."""
    def _headers(u):
        token = generate_access_token(u.id, u.team_id)
        return {"Authorization": f"Bearer {token}"}
    return _headers
