"""
Shared pytest fixtures for the civicpulse test suite.

Provides an in-process fake backend, ApiClients wired to it through
httpx.ASGITransport, and a logged-in session for each role.
"""

import httpx
import pytest
import pytest_asyncio

from civicpulse.client import ApiClient
from civicpulse.models import User
from civicpulse.session import Session, SessionStore

from . import seed
from .fake_backend import create_app

BASE_URL = "http://testserver/api"


def make_session(user_id: int) -> Session:
    raw = next(u for u in seed.USERS if u["id"] == user_id)
    return Session(token=f"token-{user_id}", user=User.model_validate(raw))


def make_client(app, session: Session = None, **kwargs) -> ApiClient:
    return ApiClient(base_url=BASE_URL, token=session.token if session else None,
                     transport=httpx.ASGITransport(app=app), **kwargs)


def yes(message: str) -> bool:
    return True


@pytest.fixture
def backend():
    """A freshly seeded fake backend per test."""
    return create_app()


@pytest.fixture
def citizen_session():
    return make_session(seed.CITIZEN_ID)


@pytest.fixture
def officer_session():
    return make_session(seed.WATER_OFFICER_ID)


@pytest.fixture
def admin_session():
    return make_session(seed.ADMIN_ID)


@pytest.fixture
def sessions(tmp_path):
    return SessionStore(tmp_path / "session.json")


@pytest_asyncio.fixture
async def anon_client(backend):
    async with make_client(backend) as c:
        yield c


@pytest_asyncio.fixture
async def citizen_client(backend, citizen_session):
    async with make_client(backend, citizen_session) as c:
        yield c


@pytest_asyncio.fixture
async def officer_client(backend, officer_session):
    async with make_client(backend, officer_session) as c:
        yield c


@pytest_asyncio.fixture
async def admin_client(backend, admin_session):
    async with make_client(backend, admin_session) as c:
        yield c
