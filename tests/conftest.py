import os

# Must be set before the application (and its engine) is imported
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./test.db")
os.environ.setdefault("DEBUG", "false")

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import NullPool

from bizvest.main import app
from bizvest.api.deps import create_access_token, get_ai_gateway
from bizvest.config import settings
from bizvest.database import Base, get_db
from bizvest.exceptions import AIServiceError
from bizvest.models.business import Business
from bizvest.models.product import Product
from bizvest.models.user import User
from bizvest.services.user_service import get_password_hash

# Test database URL (SQLite for testing)
TEST_DATABASE_URL = "sqlite+aiosqlite:///./test.db"

TEST_PASSWORD = "testpassword123"


class FakeGateway:
    """Stands in for AIGateway. Answers are registered per feature.

    An answer that is an exception instance is raised instead of returned.
    """

    def __init__(self):
        self.answers = {}
        self.calls = []

    def answer(self, feature: str, value):
        self.answers[feature] = value

    async def _respond(self, feature: str, prompt: str, attachment=None):
        self.calls.append({"feature": feature, "prompt": prompt, "attachment": attachment})
        if feature not in self.answers:
            raise AIServiceError(f"no answer registered for {feature}")
        value = self.answers[feature]
        if isinstance(value, Exception):
            raise value
        return value

    def calls_for(self, feature: str) -> list:
        return [call for call in self.calls if call["feature"] == feature]

    async def generate_text(
        self,
        prompt,
        response_mime_type="text/plain",
        response_schema=None,
        attachment=None,
        feature="chat",
    ):
        return await self._respond(feature, prompt, attachment)

    async def generate_json(self, prompt, response_schema, attachment=None, feature="json"):
        return await self._respond(feature, prompt, attachment)

    async def close(self):
        pass


@pytest_asyncio.fixture
async def test_db():
    """Create test database and tables."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        poolclass=NullPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async_session = async_sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False
    )

    async with async_session() as session:
        yield session

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
def fake_gateway():
    return FakeGateway()


@pytest.fixture
def upload_dir(tmp_path, monkeypatch):
    """Send uploaded files to a per-test directory."""
    monkeypatch.setattr(settings, "UPLOAD_DIR", str(tmp_path))
    return tmp_path


async def _make_user(db: AsyncSession, username: str, email: str) -> User:
    user = User(
        username=username,
        email=email,
        hashed_password=get_password_hash(TEST_PASSWORD),
        is_active=True,
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


@pytest_asyncio.fixture
async def test_user(test_db: AsyncSession):
    """Create a test user."""
    return await _make_user(test_db, "owner", "owner@example.com")


@pytest_asyncio.fixture
async def other_user(test_db: AsyncSession):
    """A second user who owns nothing of test_user's."""
    return await _make_user(test_db, "investor", "investor@example.com")


def auth_header(user: User) -> dict:
    token = create_access_token(data={"sub": str(user.id)})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def other_headers(other_user: User):
    return auth_header(other_user)


@pytest_asyncio.fixture
async def client(test_db: AsyncSession, fake_gateway: FakeGateway, upload_dir):
    """Create test client with overridden database and AI gateway."""

    async def override_get_db():
        yield test_db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_ai_gateway] = lambda: fake_gateway

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def authenticated_client(client: AsyncClient, test_user: User):
    """Create authenticated test client."""
    # Login to get token
    response = await client.post(
        "/login",
        json={"username": "owner", "password": TEST_PASSWORD},
    )
    token = response.json()["access_token"]

    client.headers["Authorization"] = f"Bearer {token}"
    return client


@pytest_asyncio.fixture
async def test_business(test_db: AsyncSession, test_user: User):
    """A business owned by test_user with two products."""
    business = Business(
        user_id=test_user.id,
        name="Warung Sehat",
        type="CV",
        industry="Food & Beverage",
        description="Healthy catering for offices",
    )
    test_db.add(business)
    await test_db.flush()
    test_db.add_all([
        Product(business_id=business.id, name="Keripik Tempe", category="Snack", unit="pack"),
        Product(business_id=business.id, name="Sambal Bawang Premium", category="Condiment", unit="jar"),
    ])
    await test_db.commit()
    await test_db.refresh(business)
    return business
