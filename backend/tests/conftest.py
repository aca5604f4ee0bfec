"""Master test fixtures.

Environment variables are set BEFORE any application imports so that
``config.Settings()`` initialises with test-safe values and never
touches Docker secrets or a production database.
"""

import os

# ── Set test env vars before any app import ──────────────────────────
os.environ.update({
    "DATABASE_URL": "sqlite+aiosqlite://",
    "POSTGRES_PASSWORD": "testpassword",
    "APP_SECRET_KEY": "test-secret-key-for-jwt-signing",
    "PUBLIC_BASE_URL": "https://api.test.example.com",
    "FRONTEND_BASE_URL": "https://test.example.com",
    "STORAGE_DRIVER": "local",
})

import pytest

from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

# Now safe to import application code
from config import settings
from models.base import Base, get_db
from models import CustomRequest, Order, Product
from auth.jwt import create_access_token
from delivery import AccessRecorder, DownloadOrchestrator
from storage.local import LocalStorage
from factories import BUYER_ID, CREATOR_ID, STRANGER_ID

PUBLIC_BASE_URL = "https://api.test.example.com"


# ── Shared in-memory SQLite engine ───────────────────────────────────
_test_engine = create_async_engine("sqlite+aiosqlite://", echo=False, poolclass=StaticPool)
_TestSession = async_sessionmaker(_test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture(autouse=True)
async def _create_tables():
    """Create and drop SQLite tables around every test."""
    async with _test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with _test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
def session_factory():
    return _TestSession


@pytest.fixture
async def db_session():
    """Yield a test DB session."""
    async with _TestSession() as session:
        yield session


@pytest.fixture
def local_storage(tmp_path) -> LocalStorage:
    """Local driver rooted in a per-test temp dir."""
    return LocalStorage(
        tmp_path / "store",
        secret_key=settings.app_secret_key,
        base_url=PUBLIC_BASE_URL,
    )


@pytest.fixture
def recorder() -> AccessRecorder:
    return AccessRecorder(_TestSession)


@pytest.fixture
def orchestrator(local_storage, recorder) -> DownloadOrchestrator:
    return DownloadOrchestrator(local_storage, recorder, expires_seconds=120, head_timeout_seconds=2)


@pytest.fixture
async def test_client(db_session: AsyncSession, local_storage, orchestrator):
    """HTTPX async client wired to the FastAPI app, with DB and storage overrides.

    The startup event is NOT run; tables come from ``_create_tables``.
    """
    from main import app
    from api.deps import get_orchestrator, get_storage

    async def _override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = _override_get_db
    app.dependency_overrides[get_storage] = lambda: local_storage
    app.dependency_overrides[get_orchestrator] = lambda: orchestrator
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    await orchestrator.recorder.drain()
    app.dependency_overrides.clear()


def _headers(user_id: int, role: str = "user") -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user_id, role)}"}


@pytest.fixture
def buyer_headers() -> dict[str, str]:
    """Authorization header for the buyer."""
    return _headers(BUYER_ID)


@pytest.fixture
def creator_headers() -> dict[str, str]:
    """Authorization header for a creator account."""
    return _headers(CREATOR_ID, "creator")


@pytest.fixture
def stranger_headers() -> dict[str, str]:
    return _headers(STRANGER_ID)


@pytest.fixture
async def purchased_product(db_session: AsyncSession) -> dict:
    """A purchase product owned by the creator with a paid order by the buyer."""
    product = Product(
        user_id=CREATOR_ID,
        product_type="purchase",
        filename="products/202/ebook.pdf",
        title="Field Guide",
    )
    db_session.add(product)
    await db_session.flush()
    order = Order(product_id=product.id, buyer_id=BUYER_ID, status="paid", amount_cents=1500)
    db_session.add(order)
    await db_session.commit()
    return {"product_id": product.id, "order_id": order.id, "key": product.filename}


@pytest.fixture
async def delivered_request(db_session: AsyncSession) -> dict:
    """A delivered custom request paid for through an order."""
    product = Product(user_id=CREATOR_ID, product_type="request", title="Custom portrait")
    db_session.add(product)
    await db_session.flush()
    order = Order(product_id=product.id, buyer_id=BUYER_ID, status="paid", amount_cents=5000)
    db_session.add(order)
    await db_session.flush()
    req = CustomRequest(
        order_id=order.id,
        buyer_id=BUYER_ID,
        creator_id=CREATOR_ID,
        status="delivered",
        title="Portrait",
        attachment_path="requests/reference.jpg",
        creator_attachment_path="deliveries/abc.zip",
    )
    db_session.add(req)
    await db_session.commit()
    return {"request_id": req.id, "order_id": order.id, "product_id": product.id}
