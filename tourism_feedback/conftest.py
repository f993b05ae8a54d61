"""Shared fixtures: in-memory database, AI and alerts switched off."""
import os

os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["AI_PROVIDER_ENABLED"] = "false"
os.environ["ALERT_ENABLED"] = "false"
os.environ["GROQ_API_KEY"] = ""

import pytest  # noqa: E402

from database import engine, get_db_session  # noqa: E402
from models import Base  # noqa: E402


@pytest.fixture
async def db_session():
    """Fresh feedback tables for each test."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    async with get_db_session() as session:
        yield session
