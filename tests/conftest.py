import os

os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["SCHEDULER_ENABLED"] = "0"
os.environ["APP_TZ"] = "Asia/Kolkata"
os.environ["BET_MIN_AMOUNT"] = "10"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["PASSWORD_SALT"] = "test-salt"

import fakeredis
import httpx
import pytest
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from betdesk.core.security import create_access_token
from betdesk.db.session import Base, get_session
from betdesk.models.bet import Bet  # noqa: F401
from betdesk.models.game import GameInstance  # noqa: F401
from betdesk.models.user import User, UserRole
from betdesk.models.wallet import WalletLedger  # noqa: F401
from betdesk.services import cache_service


@pytest.fixture
async def engine(tmp_path):
    eng = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'betdesk.db'}")
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest.fixture
async def session(session_factory):
    async with session_factory() as s:
        yield s


@pytest.fixture
def make_user(session_factory):
    async def _make(username, role=UserRole.PLAYER, balance=0, blocked=False, password_hash="x"):
        async with session_factory() as s:
            u = User(
                username=username,
                password_hash=password_hash,
                nickname=username,
                role=role.value,
                is_blocked=blocked,
                balance=balance,
            )
            s.add(u)
            await s.commit()
            return u
    return _make


@pytest.fixture
async def admin(make_user):
    return await make_user("root", role=UserRole.ADMIN)


@pytest.fixture
async def player(make_user):
    return await make_user("alice", balance=5000)


@pytest.fixture
def fake_redis(monkeypatch):
    r = fakeredis.FakeAsyncRedis(decode_responses=True)
    monkeypatch.setattr(cache_service, "r", r)
    return r


@pytest.fixture
async def client(session_factory, fake_redis):
    from betdesk.main import app

    async def _session():
        async with session_factory() as s:
            yield s

    app.dependency_overrides[get_session] = _session
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def auth():
    def _headers(user) -> dict:
        return {"Authorization": f"Bearer {create_access_token(user.id, user.role)}"}
    return _headers
