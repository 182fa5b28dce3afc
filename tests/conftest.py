"""
Test infrastructure for the Blogpress API.

Strategy
--------
- SQLite in-memory via aiosqlite; StaticPool makes every session share the
  one connection an in-memory database lives on.
- ``PRAGMA foreign_keys=ON`` is switched on for the test engine so the
  ``ON DELETE CASCADE`` / ``SET NULL`` rules behave as on PostgreSQL.
- The app's get_db dependency is overridden so every test-time request uses
  the test session factory rather than the production one.
- All tables are created fresh before each test and dropped after.
- Redis is disabled by setting cache._redis = None; the CacheManager treats
  that as "always miss, never store".
- Users are inserted directly (the API never creates them) and requests
  authenticate with tokens from ``create_access_token``.
"""
import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool

from blogpress.cache import cache
from blogpress.database import Base, enable_sqlite_foreign_keys, get_db
from blogpress.main import app
from blogpress.middleware import install_query_counter
from blogpress.models import ROLE_ADMIN, ROLE_USER, Category, User
from blogpress.security import create_access_token

# ---------------------------------------------------------------------------
# Test database engine: SQLite in-memory with aiosqlite
# ---------------------------------------------------------------------------

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

engine_test = create_async_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

install_query_counter(engine_test)
enable_sqlite_foreign_keys(engine_test)

async_session_test = async_sessionmaker(
    engine_test,
    class_=AsyncSession,
    expire_on_commit=False,
)


# ---------------------------------------------------------------------------
# Dependency override: replace production get_db with the test session factory
# ---------------------------------------------------------------------------

async def override_get_db():
    async with async_session_test() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


app.dependency_overrides[get_db] = override_get_db


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture(autouse=True)
async def setup_db():
    """Create all tables before each test, drop after to guarantee isolation."""
    cache._redis = None
    async with engine_test.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine_test.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest_asyncio.fixture
async def db_session() -> AsyncSession:
    """
    Yield a live AsyncSession for tests that call services directly.

    Do not combine with ``async_client`` in one test: both would share the
    single in-memory connection.
    """
    async with async_session_test() as session:
        yield session


@pytest_asyncio.fixture
async def async_client() -> AsyncClient:
    """Yield an httpx.AsyncClient wired to the FastAPI app via ASGITransport."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


async def create_user(name: str, email: str, role: str = ROLE_USER) -> User:
    async with async_session_test() as session:
        user = User(name=name, email=email, role=role, bio=f"{name} writes here.")
        session.add(user)
        await session.commit()
        return user


async def create_category(name: str = "Tech", slug: str = "tech", color: str = "#AABBCC") -> Category:
    async with async_session_test() as session:
        category = Category(name=name, slug=slug, color=color)
        session.add(category)
        await session.commit()
        return category


@pytest_asyncio.fixture
async def author() -> User:
    return await create_user("Alice Author", "alice@example.com")


@pytest_asyncio.fixture
async def other_user() -> User:
    return await create_user("Bob Reader", "bob@example.com")


@pytest_asyncio.fixture
async def admin() -> User:
    return await create_user("Ada Admin", "ada@example.com", role=ROLE_ADMIN)


@pytest_asyncio.fixture
async def category() -> Category:
    return await create_category()


@pytest.fixture
def make_category():
    """Return the category factory for tests that need more than one."""
    return create_category


@pytest.fixture
def auth_headers():
    """Return a function building the Authorization header for a user."""

    def _headers(user: User) -> dict[str, str]:
        return {"Authorization": f"Bearer {create_access_token(user.id)}"}

    return _headers


@pytest.fixture
def post_payload(category):
    """Return a function building a valid post body, with overrides."""

    def _payload(**overrides) -> dict:
        body = {
            "title": "Hello World",
            "content": "1234567890",
            "category": category.id,
            "isPublished": True,
        }
        body.update(overrides)
        return body

    return _payload
