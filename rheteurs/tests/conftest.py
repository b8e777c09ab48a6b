"""
Pytest configuration and fixtures for Les Rhéteurs tests.
"""

from __future__ import annotations

import os

# Set test environment variables before importing config
os.environ.setdefault("TESTING", "true")
os.environ.setdefault("SUPABASE_URL", "https://fake.supabase.co")
os.environ.setdefault("SUPABASE_ANON_KEY", "test-anon-key")

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402

from rheteurs import db  # noqa: E402
from rheteurs.auth import SessionContext  # noqa: E402
from rheteurs.tests.fakes import ANA_EMAIL, LEO_EMAIL, PASSWORD, FakeSupabase  # noqa: E402


@pytest.fixture
def fake():
    """Fresh in-memory backend, installed as the shared client."""
    client = FakeSupabase(rls={"posts": "user_id", "replies": "user_id"})
    previous = db.client
    db.client = client
    yield client
    db.client = previous


@pytest.fixture
def ana_id(fake):
    """A confirmed account with a filled-in profile."""
    user_id = fake.auth.add_user(ANA_EMAIL, PASSWORD, full_name="Ana Karénine")
    fake.seed("profiles", {"id": user_id, "full_name": "Ana Karénine", "avatar_url": "https://img/ana.png"})
    return user_id


@pytest.fixture
def leo_id(fake):
    """A second confirmed account, without a profile row."""
    return fake.auth.add_user(LEO_EMAIL, PASSWORD, full_name="Léo")


@pytest_asyncio.fixture(loop_scope="session")
async def session(fake):
    """Started, anonymous session context."""
    context = SessionContext(client=fake)
    await context.start()
    yield context
    await context.close()


@pytest_asyncio.fixture(loop_scope="session")
async def ana_session(session, ana_id):
    """Session context signed in as Ana."""
    await session.sign_in(ANA_EMAIL, PASSWORD)
    return session
