"""
Tests for the business and product endpoints (/business).
"""
import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from bizvest.models.business import Business
from bizvest.models.user import User
from tests.factories import BusinessFactory, ProductFactory


class TestCreateBusiness:
    """Tests for POST /business"""

    @pytest.mark.asyncio
    async def test_create_with_products_and_info(
        self, authenticated_client: AsyncClient, test_user: User
    ):
        payload = {
            "business": BusinessFactory(name="Kopi Nusantara"),
            "additional_info": [{"name": "instagram", "value": "@kopinusantara"}],
            "products": [ProductFactory(name="Kopi Gayo"), ProductFactory(name="Kopi Toraja")],
        }
        response = await authenticated_client.post("/business", json=payload)

        assert response.status_code == 201
        data = response.json()
        assert data["name"] == "Kopi Nusantara"
        assert data["user_id"] == test_user.id
        assert [p["name"] for p in data["products"]] == ["Kopi Gayo", "Kopi Toraja"]
        assert data["additional_info"][0]["value"] == "@kopinusantara"
        assert data["market_cap"] == 0
        assert data["ebitda_multiplier"] == 1.0

    @pytest.mark.asyncio
    async def test_create_requires_auth(self, client: AsyncClient):
        response = await client.post("/business", json={"business": BusinessFactory()})
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_create_requires_name(self, authenticated_client: AsyncClient):
        response = await authenticated_client.post("/business", json={"business": {"type": "CV"}})
        assert response.status_code == 400


class TestReadBusiness:
    @pytest.mark.asyncio
    async def test_get_business_is_public(self, client: AsyncClient, test_business: Business):
        response = await client.get(f"/business/{test_business.id}")

        assert response.status_code == 200
        data = response.json()
        assert data["name"] == "Warung Sehat"
        assert len(data["products"]) == 2
        assert data["financial"] is None

    @pytest.mark.asyncio
    async def test_get_unknown_business(self, client: AsyncClient):
        response = await client.get("/business/9999")
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_list_my_businesses(
        self, authenticated_client: AsyncClient, test_business: Business
    ):
        response = await authenticated_client.get("/business/user")

        assert response.status_code == 200
        data = response.json()
        assert [b["id"] for b in data] == [test_business.id]
        assert "market_cap" in data[0]

    @pytest.mark.asyncio
    async def test_list_my_businesses_excludes_others(
        self, client: AsyncClient, test_business: Business, other_headers: dict
    ):
        response = await client.get("/business/user", headers=other_headers)
        assert response.json() == []


class TestUpdateDeleteBusiness:
    @pytest.mark.asyncio
    async def test_update_business(self, authenticated_client: AsyncClient, test_business: Business):
        response = await authenticated_client.put(
            f"/business/{test_business.id}",
            json={"description": "Catering and frozen food", "founded_at": "2019-03-01"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["description"] == "Catering and frozen food"
        assert data["founded_at"] == "2019-03-01"
        assert data["name"] == "Warung Sehat"

    @pytest.mark.asyncio
    async def test_update_not_owner(
        self, client: AsyncClient, test_business: Business, other_headers: dict
    ):
        response = await client.put(
            f"/business/{test_business.id}",
            json={"name": "Taken Over"},
            headers=other_headers,
        )

        assert response.status_code == 403
        assert response.json()["code"] == "AUTH_002"

    @pytest.mark.asyncio
    async def test_delete_is_soft(
        self, authenticated_client: AsyncClient, test_db: AsyncSession, test_business: Business
    ):
        response = await authenticated_client.delete(f"/business/{test_business.id}")
        assert response.status_code == 204

        response = await authenticated_client.get(f"/business/{test_business.id}")
        assert response.status_code == 404

        row = await test_db.get(Business, test_business.id)
        assert row is not None
        assert row.deleted_at is not None


class TestProducts:
    """Tests for /business/{id}/products"""

    @pytest.mark.asyncio
    async def test_list_products_is_public(self, client: AsyncClient, test_business: Business):
        response = await client.get(f"/business/{test_business.id}/products")

        assert response.status_code == 200
        assert [p["name"] for p in response.json()] == ["Keripik Tempe", "Sambal Bawang Premium"]

    @pytest.mark.asyncio
    async def test_add_products(self, authenticated_client: AsyncClient, test_business: Business):
        response = await authenticated_client.post(
            f"/business/{test_business.id}/products",
            json={"products": [ProductFactory(name="Es Teh Jumbo")]},
        )

        assert response.status_code == 201
        created = response.json()
        assert created[0]["name"] == "Es Teh Jumbo"
        assert created[0]["business_id"] == test_business.id

    @pytest.mark.asyncio
    async def test_add_products_requires_at_least_one(
        self, authenticated_client: AsyncClient, test_business: Business
    ):
        response = await authenticated_client.post(
            f"/business/{test_business.id}/products",
            json={"products": []},
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_add_products_not_owner(
        self, client: AsyncClient, test_business: Business, other_headers: dict
    ):
        response = await client.post(
            f"/business/{test_business.id}/products",
            json={"products": [ProductFactory()]},
            headers=other_headers,
        )
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_update_product(self, authenticated_client: AsyncClient, test_business: Business):
        products = (await authenticated_client.get(f"/business/{test_business.id}/products")).json()

        response = await authenticated_client.put(
            f"/business/{test_business.id}/products/{products[0]['id']}",
            json={"hpp": 4500, "unit": "box"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["hpp"] == 4500
        assert data["unit"] == "box"
        assert data["name"] == "Keripik Tempe"

    @pytest.mark.asyncio
    async def test_product_of_another_business(
        self, authenticated_client: AsyncClient, test_db: AsyncSession, test_user: User,
        test_business: Business,
    ):
        other = Business(user_id=test_user.id, name="Second Shop")
        test_db.add(other)
        await test_db.commit()
        products = (await authenticated_client.get(f"/business/{test_business.id}/products")).json()

        response = await authenticated_client.put(
            f"/business/{other.id}/products/{products[0]['id']}",
            json={"name": "Moved"},
        )
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_delete_product(self, authenticated_client: AsyncClient, test_business: Business):
        products = (await authenticated_client.get(f"/business/{test_business.id}/products")).json()

        response = await authenticated_client.delete(
            f"/business/{test_business.id}/products/{products[1]['id']}"
        )
        assert response.status_code == 204

        remaining = (await authenticated_client.get(f"/business/{test_business.id}/products")).json()
        assert [p["name"] for p in remaining] == ["Keripik Tempe"]
