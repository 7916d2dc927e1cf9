"""
Shared fixtures: an in-memory database, seeded users and items, and an API
client wired to the same session.
"""

import os

# Configure test environment BEFORE importing app
os.environ["JWT_SECRET"] = "test-secret"
os.environ["DATABASE_URL"] = "sqlite://"

import pytest
from fastapi.testclient import TestClient
from jose import jwt
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from app.db.db import get_session
from app.main import app
from app.models.item import Item, ItemStatus, ItemType
from app.models.user import User
from app.services.actor import Actor
from app.services.claim_lifecycle import ClaimLifecycle


CLAIM_MESSAGE = "Found near the library entrance, has a blue cover"


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


def make_user(session, public_id, name, role="user"):
    user = User(public_id=public_id, name=name, email=f"{public_id}@example.com", role=role)
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


def make_item(session, owner, item_type=ItemType.lost, title="Blue notebook"):
    item = Item(
        user_id=owner.id,
        title=title,
        category="documents",
        description="A5 notebook with a blue cover",
        location="Central library",
        type=item_type,
        status=ItemStatus.lost if item_type == ItemType.lost else ItemStatus.available,
    )
    session.add(item)
    session.commit()
    session.refresh(item)
    return item


@pytest.fixture
def owner(session):
    return make_user(session, "u1", "Owner One")


@pytest.fixture
def claimant(session):
    return make_user(session, "u2", "Claimant Two")


@pytest.fixture
def stranger(session):
    return make_user(session, "u3", "Stranger Three")


@pytest.fixture
def admin(session):
    return make_user(session, "admin1", "Site Admin", role="admin")


@pytest.fixture
def owner_actor(owner):
    return Actor.from_user(owner)


@pytest.fixture
def claimant_actor(claimant):
    return Actor.from_user(claimant)


@pytest.fixture
def stranger_actor(stranger):
    return Actor.from_user(stranger)


@pytest.fixture
def admin_actor(admin):
    return Actor.from_user(admin)


@pytest.fixture
def lost_item(session, owner):
    return make_item(session, owner)


@pytest.fixture
def lifecycle(session):
    return ClaimLifecycle(session)


@pytest.fixture
def pending_claim(lifecycle, claimant_actor, lost_item):
    return lifecycle.submit(claimant_actor, lost_item, CLAIM_MESSAGE)


@pytest.fixture
def approved_claim(lifecycle, owner_actor, pending_claim):
    return lifecycle.approve(owner_actor, pending_claim.id)


@pytest.fixture
def client(session):
    def override_get_session():
        yield session

    app.dependency_overrides[get_session] = override_get_session
    yield TestClient(app)
    app.dependency_overrides.clear()


def auth_headers(user):
    token = jwt.encode({"sub": user.public_id}, os.environ["JWT_SECRET"], algorithm="HS256")
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def headers():
    return auth_headers
