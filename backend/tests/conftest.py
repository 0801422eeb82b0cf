"""
Pytest configuration and shared fixtures for Sensore Health tests
"""
import pytest
import os
import sys
import tempfile
from pathlib import Path

# Add backend directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

# Set test environment before importing app
_db_fd, _db_path = tempfile.mkstemp(suffix='.db')
os.close(_db_fd)
TEST_DATABASE_URL = f'sqlite+aiosqlite:///{_db_path}'

os.environ['DATABASE_URL'] = TEST_DATABASE_URL
os.environ['SESSION_SECRET_KEY'] = 'test-secret-key'
os.environ['ENVIRONMENT'] = 'development'
os.environ['BCRYPT_ROUNDS'] = '4'
os.environ['SEED_DEMO_USERS'] = 'false'

from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from sensore.auth import SessionIssuer
from sensore.config import get_settings
from sensore.database import Base, get_db
from sensore.main import app
from sensore.models.user import User
from sensore.services.account_service import hash_password


def pytest_sessionfinish(session, exitstatus):
    if os.path.exists(_db_path):
        os.unlink(_db_path)


@pytest.fixture
async def engine():
    """A fresh schema per test. NullPool keeps connections off the previous test's event loop."""
    test_engine = create_async_engine(TEST_DATABASE_URL, poolclass=NullPool)
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield test_engine
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db(session_factory):
    """A session for calling services directly"""
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def issuer():
    return SessionIssuer(get_settings())


@pytest.fixture
async def client(session_factory):
    """An HTTP client against the app, with get_db bound to the test database"""
    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url='http://testserver') as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def create_user(session_factory):
    """Insert an account directly, bypassing sign-up"""
    async def _create(email, password='secret1', user_type='patient', username=None,
                      first_name='Test', last_name='User', is_active=True):
        user = User(
            username=username or email.split('@')[0].lower(),
            email=email.lower(),
            password_hash=hash_password(password, rounds=4),
            user_type=user_type,
            first_name=first_name,
            last_name=last_name,
            is_active=is_active,
        )
        async with session_factory() as session:
            session.add(user)
            await session.commit()
        return user
    return _create


@pytest.fixture
def fetch_user(session_factory):
    """Read an account back through a fresh session"""
    from sqlalchemy import select

    async def _fetch(email):
        async with session_factory() as session:
            result = await session.execute(select(User).where(User.email == email.lower()))
            return result.scalar_one_or_none()
    return _fetch
