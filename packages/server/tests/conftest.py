"""
Shared fixtures: in-memory SQLite database, seeded tenants and an HTTP client.

The app's session dependency is overridden so every request runs against the
test database; the identity backend is replaced with an AsyncMock.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional
from unittest.mock import AsyncMock

import jwt
import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel

import app.models  # noqa: F401  (populate metadata)
from app.core.config import get_settings
from app.core.database import get_session
from app.core.identity import IdentityClient, get_identity_client
from app.main import app as fastapi_app
from app.models.membership import Membership
from app.models.organization import Organization
from app.models.project import Project
from app.models.user import User

settings = get_settings()


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
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


# ---------------------------------------------------------------------------
# Seed helpers
# ---------------------------------------------------------------------------

async def make_user(
    session: AsyncSession,
    email: str,
    full_name: Optional[str] = None,
    avatar_url: Optional[str] = None,
) -> User:
    user = User(email=email, full_name=full_name, avatar_url=avatar_url)
    session.add(user)
    await session.commit()
    return user


async def make_org(session: AsyncSession, name: str, slug: str, settings: Optional[dict] = None) -> Organization:
    org = Organization(name=name, slug=slug, settings=settings or {})
    session.add(org)
    await session.commit()
    return org


async def add_membership(session: AsyncSession, org: Organization, user: User, role: str) -> Membership:
    membership = Membership(organization_id=org.id, user_id=user.id, role=role)
    session.add(membership)
    await session.commit()
    return membership


async def make_project(
    session: AsyncSession,
    org: Organization,
    owner: User,
    name: str,
    description: Optional[str] = None,
    status: str = "draft",
) -> Project:
    project = Project(
        organization_id=org.id,
        owner_id=owner.id,
        name=name,
        description=description,
        status=status,
    )
    session.add(project)
    await session.commit()
    return project


def make_token(user_id: uuid.UUID, email: Optional[str] = None, **overrides) -> str:
    """An access token shaped like the identity backend's."""
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user_id),
        "email": email,
        "aud": settings.jwt_audience,
        "role": "authenticated",
        "iat": now,
        "exp": now + timedelta(hours=1),
    }
    payload.update(overrides)
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def bearer(user: User) -> dict:
    return {"Authorization": f"Bearer {make_token(user.id, user.email)}"}


# ---------------------------------------------------------------------------
# Tenants
# ---------------------------------------------------------------------------

@pytest.fixture
async def tenant(db):
    """One org with a user at every role plus an outsider."""
    org = await make_org(db, "Zoada Labs", "zoada-labs", {"theme": {"color": "blue", "dark": False}})
    users = {}
    for role in ("owner", "admin", "member", "viewer"):
        users[role] = await make_user(db, f"{role}@zoada.example.com", full_name=f"{role.title()} Person")
        await add_membership(db, org, users[role], role)
    users["outsider"] = await make_user(db, "outsider@elsewhere.example.com")
    return {"org": org, "users": users}


# ---------------------------------------------------------------------------
# App / HTTP client
# ---------------------------------------------------------------------------

@pytest.fixture
def identity():
    return AsyncMock(spec=IdentityClient)


@pytest.fixture
async def client(session_factory, identity):
    async def override_session():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def override_identity():
        yield identity

    fastapi_app.dependency_overrides[get_session] = override_session
    fastapi_app.dependency_overrides[get_identity_client] = override_identity
    async with AsyncClient(transport=ASGITransport(app=fastapi_app), base_url="http://test") as ac:
        yield ac
    fastapi_app.dependency_overrides.clear()
