"""
Test infrastructure for the content management API.

Strategy
--------
- SQLite in-memory via aiosqlite eliminates the need for a running Postgres
  instance in CI, keeping the suite fast and self-contained.
- StaticPool forces all async tasks to share the same in-memory database
  connection, which is required because SQLite in-memory databases are
  connection-scoped; a new connection would see an empty database.
- The app's get_db dependency is overridden so every test-time request uses
  the test session factory rather than the production one.
- All tables are created fresh before each test and dropped after, giving
  each test a clean isolated state without needing transactions or truncation.
- The media store is replaced by ``FakeMediaStore``, an in-memory stand-in
  that records every call and can be told to refuse uploads or deletes,
  so the consistency ordering between media and database can be asserted.
"""
import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool

from cms_api.database import Base, get_db
from cms_api.dependencies import RequestContext, get_media_store
from cms_api.main import app
from cms_api.media import MediaResult

# ---------------------------------------------------------------------------
# Test database engine — SQLite in-memory with aiosqlite
# ---------------------------------------------------------------------------

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

engine_test = create_async_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

async_session_test = async_sessionmaker(
    engine_test,
    class_=AsyncSession,
    expire_on_commit=False,
)


# ---------------------------------------------------------------------------
# Dependency override — replace production get_db with the test session factory
# ---------------------------------------------------------------------------

async def override_get_db():
    async with async_session_test() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


app.dependency_overrides[get_db] = override_get_db


# ---------------------------------------------------------------------------
# Media store fake
# ---------------------------------------------------------------------------

class FakeMediaStore:
    """
    In-memory media store.

    ``assets`` maps every currently stored asset id to its URL, so tests
    can check for orphaned or prematurely deleted images.  ``calls``
    records ``("upload", preset)`` / ``("delete", asset_id)`` in order.
    """

    def __init__(self) -> None:
        self.assets: dict[str, str] = {}
        self.calls: list[tuple[str, str | None]] = []
        self.fail_upload = False
        self.fail_delete = False
        self._counter = 0

    async def upload(self, payload: str, preset: str) -> MediaResult:
        self.calls.append(("upload", preset))
        if self.fail_upload:
            return MediaResult(
                successful=False,
                error_message="Invalid image file",
                errors=[{"http_code": 400}],
            )
        self._counter += 1
        asset_id = f"{preset}/asset-{self._counter}"
        url = f"https://media.test/{asset_id}.png"
        self.assets[asset_id] = url
        return MediaResult(successful=True, asset_id=asset_id, url=url)

    async def delete(self, asset_id: str | None) -> MediaResult:
        self.calls.append(("delete", asset_id))
        if not asset_id:
            return MediaResult(successful=True)
        if self.fail_delete:
            return MediaResult(
                successful=False,
                error_message=f"Asset {asset_id!r} could not be deleted",
                errors=["not found"],
            )
        self.assets.pop(asset_id, None)
        return MediaResult(successful=True, asset_id=asset_id)

    def uploads(self) -> list[str | None]:
        return [arg for op, arg in self.calls if op == "upload"]

    def deletes(self) -> list[str | None]:
        return [arg for op, arg in self.calls if op == "delete"]


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture(autouse=True)
async def setup_db():
    """Create all tables before each test, drop after to guarantee isolation."""
    async with engine_test.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine_test.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
def media() -> FakeMediaStore:
    """A fresh fake media store, also wired into the app for endpoint tests."""
    store = FakeMediaStore()
    app.dependency_overrides[get_media_store] = lambda: store
    yield store
    app.dependency_overrides.pop(get_media_store, None)


@pytest.fixture
def ctx() -> RequestContext:
    return RequestContext.create("test-request")


@pytest_asyncio.fixture
async def db_session() -> AsyncSession:
    """
    Yield a live AsyncSession for tests that call services directly or
    need to assert ORM state.
    """
    async with async_session_test() as session:
        yield session


@pytest_asyncio.fixture
async def async_client(media: FakeMediaStore) -> AsyncClient:
    """Yield an httpx.AsyncClient wired to the FastAPI app via ASGITransport."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
