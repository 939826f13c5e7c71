"""
Tests for registration, login and user endpoints.

Also covers the RFC 7807 error body and the correlation headers every
response carries.
"""
import pytest
from httpx import AsyncClient

from bizvest.models.user import User
from tests.factories import UserFactory


class TestRegister:
    """Tests for POST /register"""

    @pytest.mark.asyncio
    async def test_register_user(self, client: AsyncClient):
        payload = UserFactory()
        response = await client.post("/register", json=payload)

        assert response.status_code == 201
        data = response.json()
        assert data["username"] == payload["username"]
        assert data["email"] == payload["email"]
        assert "hashed_password" not in data
        assert "password" not in data

    @pytest.mark.asyncio
    async def test_register_duplicate_username(self, client: AsyncClient, test_user: User):
        payload = UserFactory(username=test_user.username)
        response = await client.post("/register", json=payload)

        assert response.status_code == 400
        assert response.json()["code"] == "RES_002"

    @pytest.mark.asyncio
    async def test_register_duplicate_email(self, client: AsyncClient, test_user: User):
        payload = UserFactory(email=test_user.email)
        response = await client.post("/register", json=payload)
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_register_invalid_payload_is_400(self, client: AsyncClient):
        response = await client.post(
            "/register",
            json={"username": "ab", "email": "not-an-email", "password": "123"},
        )

        assert response.status_code == 400
        data = response.json()
        assert data["code"] == "VAL_001"
        fields = {error["field"] for error in data["errors"]}
        assert "body.email" in fields


class TestLogin:
    """Tests for POST /login"""

    @pytest.mark.asyncio
    async def test_login_returns_token(self, client: AsyncClient, test_user: User):
        response = await client.post(
            "/login",
            json={"username": test_user.username, "password": "testpassword123"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["token_type"] == "bearer"
        assert data["access_token"] == data["token"]

    @pytest.mark.asyncio
    async def test_login_wrong_password(self, client: AsyncClient, test_user: User):
        response = await client.post(
            "/login",
            json={"username": test_user.username, "password": "wrong-password"},
        )

        assert response.status_code == 401
        data = response.json()
        assert data["code"] == "AUTH_001"
        assert "trace_id" in data
        assert "timestamp" in data
        assert response.headers["content-type"].startswith("application/problem+json")

    @pytest.mark.asyncio
    async def test_login_unknown_user(self, client: AsyncClient):
        response = await client.post("/login", json={"username": "nobody", "password": "whatever"})
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_register_then_login(self, client: AsyncClient):
        payload = UserFactory()
        await client.post("/register", json=payload)

        response = await client.post(
            "/login",
            json={"username": payload["username"], "password": payload["password"]},
        )
        assert response.status_code == 200


class TestAuthentication:
    @pytest.mark.asyncio
    async def test_missing_token(self, client: AsyncClient):
        response = await client.get("/business/user")
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_invalid_token(self, client: AsyncClient):
        response = await client.get(
            "/business/user",
            headers={"Authorization": "Bearer not.a.jwt"},
        )
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_correlation_headers(self, client: AsyncClient):
        response = await client.get("/health", headers={"X-Correlation-ID": "session-abc"})

        assert response.status_code == 200
        assert response.headers["X-Correlation-ID"] == "session-abc"
        assert response.headers["X-Request-ID"]
        assert "Server-Timing" in response.headers


class TestUsers:
    """Tests for /users/{id}"""

    @pytest.mark.asyncio
    async def test_get_user_is_public(self, client: AsyncClient, test_user: User):
        response = await client.get(f"/users/{test_user.id}")

        assert response.status_code == 200
        assert response.json()["username"] == test_user.username

    @pytest.mark.asyncio
    async def test_get_unknown_user(self, client: AsyncClient):
        response = await client.get("/users/9999")

        assert response.status_code == 404
        assert response.json()["code"] == "RES_001"

    @pytest.mark.asyncio
    async def test_update_self(self, authenticated_client: AsyncClient, test_user: User):
        response = await authenticated_client.put(
            f"/users/{test_user.id}",
            json={"username": "owner-renamed", "password": "new-password-1"},
        )

        assert response.status_code == 200
        assert response.json()["username"] == "owner-renamed"

        login = await authenticated_client.post(
            "/login",
            json={"username": "owner-renamed", "password": "new-password-1"},
        )
        assert login.status_code == 200

    @pytest.mark.asyncio
    async def test_update_someone_else(
        self, client: AsyncClient, test_user: User, other_headers: dict
    ):
        response = await client.put(
            f"/users/{test_user.id}",
            json={"username": "hijacked"},
            headers=other_headers,
        )
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_update_to_taken_email(
        self, authenticated_client: AsyncClient, test_user: User, other_user: User
    ):
        response = await authenticated_client.put(
            f"/users/{test_user.id}",
            json={"email": other_user.email},
        )
        assert response.status_code == 400
