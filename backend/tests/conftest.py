"""Pytest configuration and shared fixtures for API tests."""

import os

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

# Set test DB before app imports so config/engine use it
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./projecthub_test.db")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("COOKIE_SECURE", "false")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")

from projecthub.core.auth import create_access_token, hash_password
from projecthub.db import Base, async_session_maker, engine
from projecthub.main import app
from projecthub.models import Company, Project, Task, Team, TeamMember, User
from projecthub.models.enums import TeamRole, UserRole

TEST_PASSWORD = "password123"


@pytest_asyncio.fixture
async def clean_db():
    """Recreate all tables so the test starts from an empty database."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    yield


@pytest_asyncio.fixture
async def client(clean_db):
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


@pytest_asyncio.fixture
async def company(clean_db):
    """Committed company; returns its id."""
    async with async_session_maker() as session:
        row = Company(name="Acme", owner_name="Ada", bio="Rockets")
        session.add(row)
        await session.commit()
        return row.id


@pytest.fixture
def make_user():
    """Factory: create a committed user and return its id."""

    async def _make(company_id, email, name="User", role=UserRole.MEMBER, joined_at=None):
        async with async_session_maker() as session:
            user = User(
                name=name,
                email=email,
                password_hash=hash_password(TEST_PASSWORD),
                role=role,
                company_id=company_id,
            )
            if joined_at is not None:
                user.joined_at = joined_at
            session.add(user)
            await session.commit()
            return user.id

    return _make


@pytest_asyncio.fixture
async def admin_user(company, make_user):
    """Admin of `company`; returns (user_id, company_id)."""
    user_id = await make_user(company, "admin@acme.test", name="Admin", role=UserRole.ADMIN)
    return user_id, company


@pytest.fixture
def session_cookie():
    """Factory: Cookie header carrying a session token for a user."""

    def _cookie(user_id, company_id):
        return {"Cookie": f"token={create_access_token(user_id, company_id)}"}

    return _cookie


@pytest.fixture
def auth_headers(admin_user, session_cookie):
    user_id, company_id = admin_user
    return session_cookie(user_id, company_id)


@pytest.fixture
def make_project():
    async def _make(company_id, name="Apollo", manager_id=None, **fields):
        async with async_session_maker() as session:
            project = Project(name=name, company_id=company_id, manager_id=manager_id, **fields)
            session.add(project)
            await session.commit()
            return project.id

    return _make


@pytest.fixture
def make_team():
    async def _make(project_id, name="Core", member_ids=(), leader_id=None):
        async with async_session_maker() as session:
            team = Team(name=name, project_id=project_id, leader_id=leader_id)
            session.add(team)
            await session.flush()
            session.add_all(TeamMember(team_id=team.id, user_id=uid, role=TeamRole.MEMBER) for uid in member_ids)
            await session.commit()
            return team.id

    return _make


@pytest.fixture
def make_task():
    async def _make(team_id, assigned_to, title="Task", **fields):
        async with async_session_maker() as session:
            task = Task(title=title, team_id=team_id, assigned_to=assigned_to, **fields)
            session.add(task)
            await session.commit()
            return task.id

    return _make
