import os
from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

# Never touch a real database or Firebase project from tests
os.environ.setdefault("STORAGE_BACKEND", "memory")
os.environ.setdefault("FIREBASE_PROJECT_ID", "hugo-test")
os.environ.setdefault("GOOGLE_MAPS_API_KEY", "")


class SteppingClock:
    """Deterministic clock: each call is one second after the previous one."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        current = self.now
        self.now = self.now + timedelta(seconds=1)
        return current


@pytest.fixture
def clock() -> SteppingClock:
    return SteppingClock()


@pytest.fixture
def store():
    from hugo_credits.storage.memory import InMemoryCreditStore
    return InMemoryCreditStore()


@pytest.fixture
def ledger(store, clock):
    from hugo_credits.services.credits import CreditLedger
    return CreditLedger(store, clock=clock)


@pytest.fixture
def current_user():
    from hugo_credits.core.security import AuthenticatedUser
    return AuthenticatedUser(uid="user-1", email="hugo@example.com", claims={"sub": "user-1"})


@pytest.fixture
def app(ledger, current_user):
    from hugo_credits.core.config import Settings
    from hugo_credits.deps import get_current_user
    from hugo_credits.main import create_app

    application = create_app(settings=Settings(), ledger=ledger)
    application.dependency_overrides[get_current_user] = lambda: current_user
    return application


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
