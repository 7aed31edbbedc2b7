"""
Shared fixtures: in-memory SQLite database, an in-process Redis stand-in and
an httpx client bound to a freshly created app.
"""

from __future__ import annotations

import os

os.environ.setdefault("WF_SECRET_KEY", "test-secret-key-0123456789abcdef0123456789")
os.environ.setdefault("WF_LOG_LEVEL", "warning")

from types import SimpleNamespace
from typing import Optional

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from workforce.core.config import get_settings
from workforce.core.database import get_session, init_db
from workforce.core.redis import RevocationList
from workforce.core.security import hash_password
from workforce.main import create_app
from workforce.models.organization import Organization
from workforce.models.service import Service
from workforce.models.subscription import OrgSubscription
from workforce.models.user import User
from workforce.models.user_org import UserOrg
from workforce.services.sessions import SessionService

PASSWORD = "correct-horse-battery"
# bcrypt is deliberately slow; hash once per test run
PASSWORD_HASH = hash_password(PASSWORD)


class FakeRedis:
    """The subset of the redis.asyncio client the revocation list uses."""

    def __init__(self):
        self.store: dict[str, tuple[str, int]] = {}

    async def setex(self, key: str, ttl: int, value: str) -> None:
        self.store[key] = (value, ttl)

    async def exists(self, *keys: str) -> int:
        return sum(1 for key in keys if key in self.store)

    async def close(self) -> None:
        self.store.clear()


# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------

@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


# ---------------------------------------------------------------------------
# Services & app
# ---------------------------------------------------------------------------

@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def revocations(fake_redis):
    return RevocationList(fake_redis)


@pytest.fixture
def settings():
    return get_settings()


@pytest.fixture
def service(settings, revocations):
    return SessionService(settings, revocations)


@pytest.fixture
def app(session_factory, revocations):
    app = create_app(revocations=revocations)

    async def _get_session():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_session] = _get_session
    return app


@pytest.fixture
async def client(app):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


# ---------------------------------------------------------------------------
# Seed data
# ---------------------------------------------------------------------------

async def make_user(
    session: AsyncSession,
    username: str,
    *,
    email: Optional[str] = None,
    is_active: bool = True,
    is_platform_admin: bool = False,
) -> User:
    user = User(
        email=email or f"{username}@example.com",
        username=username,
        name=username.title(),
        password_hash=PASSWORD_HASH,
        is_active=is_active,
        is_platform_admin=is_platform_admin,
    )
    session.add(user)
    await session.flush()
    return user


async def make_org(session: AsyncSession, name: str, *, is_active: bool = True) -> Organization:
    org = Organization(name=name, display_name=name.title(), is_active=is_active)
    session.add(org)
    await session.flush()
    return org


async def add_member(
    session: AsyncSession,
    user: User,
    org: Organization,
    role: str = "member",
    *,
    is_active: bool = True,
    permissions: Optional[list[str]] = None,
) -> UserOrg:
    membership = UserOrg(
        user_id=user.id,
        org_id=org.id,
        role=role,
        is_active=is_active,
        permissions=permissions or [],
    )
    session.add(membership)
    await session.flush()
    return membership


@pytest.fixture
async def world(session_factory):
    """
    alice: owner of acme (current), admin of globex, removed from initech
    bob:   viewer of acme
    carol: platform admin, member of acme
    dave:  inactive user, member of acme
    """
    async with session_factory() as session:
        acme = await make_org(session, "acme")
        globex = await make_org(session, "globex")
        initech = await make_org(session, "initech")
        dormant = await make_org(session, "dormant", is_active=False)

        alice = await make_user(session, "alice")
        bob = await make_user(session, "bob")
        carol = await make_user(session, "carol", is_platform_admin=True)
        dave = await make_user(session, "dave", is_active=False)

        await add_member(session, alice, acme, "owner")
        await add_member(session, alice, globex, "admin")
        await add_member(session, alice, initech, "member", is_active=False)
        await add_member(session, alice, dormant, "owner")
        await add_member(session, bob, acme, "viewer")
        await add_member(session, carol, acme, "member")
        await add_member(session, dave, acme, "member")

        alice.current_org_id = acme.id
        session.add(alice)

        crm = Service(
            service_name="CRM Sync",
            service_short_name="crm-sync",
            description="Synchronise contacts with the CRM",
            category="integration",
            tags=["crm", "sync"],
        )
        poster = Service(
            service_name="Auto Poster",
            service_short_name="auto-poster",
            description="Schedules social media posts",
            category="automation",
            tags=["social"],
        )
        retired = Service(
            service_name="Legacy Reports",
            service_short_name="legacy-reports",
            description="Old reporting pipeline",
            category="analytics",
            is_active=False,
        )
        session.add_all([crm, poster, retired])
        await session.flush()
        session.add(OrgSubscription(service_id=crm.id, org_id=acme.id, subscribed_by=alice.id))
        await session.commit()

    return SimpleNamespace(
        acme=acme,
        globex=globex,
        initech=initech,
        dormant=dormant,
        alice=alice,
        bob=bob,
        carol=carol,
        dave=dave,
        crm=crm,
        poster=poster,
        retired=retired,
    )


async def login(client: AsyncClient, username: str, **extra) -> dict:
    """Log in through the API and return the session payload."""
    resp = await client.post("/api/auth/login", json={"username": username, "password": PASSWORD, **extra})
    assert resp.status_code == 200, resp.text
    return resp.json()["data"]


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}
