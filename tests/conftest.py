"""
Shared fixtures.

Settings are read when ``app`` is first imported, so the environment is
prepared before any application import. Each test gets its own SQLite file so
that separate sessions (API requests, scheduler ticks) really use separate
connections.
"""
import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("SCHEDULER_ENABLED", "false")

import uuid
from datetime import datetime
from decimal import Decimal

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from app.core.auth import User
from app.core.database import Base, get_async_session
from app.crud.category import create_category_for_user
from app.models import account, budget, category, goal, notification, transaction  # noqa: F401
from app.models.category import CategoryType
from app.schemas.account import AccountCreate
from app.schemas.budget import BudgetCreate
from app.schemas.category import CategoryCreate
from app.services import accounts as account_service
from app.services import budget_tracker

NOW = datetime(2026, 3, 10, 12, 0, 0)


@pytest.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'ledger.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(bind=engine, expire_on_commit=False, class_=AsyncSession)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
async def user(db):
    user = User(
        id=uuid.uuid4(),
        email=f"{uuid.uuid4().hex[:8]}@example.com",
        hashed_password="not-a-real-hash",
        is_active=True,
        is_superuser=False,
        is_verified=True,
        full_name="Test User",
    )
    db.add(user)
    await db.commit()
    # Kept out of the session so a rolled-back unit of work never expires it
    db.expunge(user)
    return user


@pytest.fixture
def make_account(db, user):
    async def _make(name="Main", balance="100.00", is_default=False, owner=None):
        return await account_service.create_account(
            db,
            (owner or user).id,
            AccountCreate(name=name, balance=Decimal(balance), is_default=is_default),
        )
    return _make


@pytest.fixture
def make_category(db, user):
    async def _make(name="Groceries", category_type=CategoryType.expense, owner=None):
        return await create_category_for_user(
            (owner or user).id, CategoryCreate(name=name, category_type=category_type), db
        )
    return _make


@pytest.fixture
def make_budget(db, user):
    async def _make(category_id, limit="100.00"):
        return await budget_tracker.create_budget(
            db, user.id, BudgetCreate(category_id=category_id, limit_amount=Decimal(limit))
        )
    return _make


@pytest.fixture
async def client(session_factory, user):
    from app.api.deps import get_current_user
    from app.main import app

    async def override_session():
        async with session_factory() as session:
            yield session

    async def override_user():
        return user

    app.dependency_overrides[get_async_session] = override_session
    app.dependency_overrides[get_current_user] = override_user
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
