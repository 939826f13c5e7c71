"""
Tests for the append-only financial history (/business/{id}/financial).
"""
import pytest
from httpx import AsyncClient

from bizvest.models.business import Business
from tests.factories import FinancialFactory

B = 1_000_000_000


class TestFinancial:
    @pytest.mark.asyncio
    async def test_empty_record_when_none(
        self, authenticated_client: AsyncClient, test_business: Business
    ):
        response = await authenticated_client.get(f"/business/{test_business.id}/financial")

        assert response.status_code == 200
        data = response.json()
        assert data["id"] is None
        assert data["business_id"] == test_business.id
        assert data["revenue"] == 0
        assert data["market_cap"] == 0

    @pytest.mark.asyncio
    async def test_read_requires_auth(self, client: AsyncClient, test_business: Business):
        response = await client.get(f"/business/{test_business.id}/financial")
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_create_computes_valuation(
        self, authenticated_client: AsyncClient, test_business: Business
    ):
        response = await authenticated_client.post(
            f"/business/{test_business.id}/financial",
            json={"revenue": 6 * B, "ebitda": 900_000_000},
        )

        assert response.status_code == 201
        data = response.json()
        assert data["id"] is not None
        assert data["assets"] == 0  # missing amounts default to 0
        assert data["ebitda_multiplier"] == 3.0
        assert data["market_cap"] == 2_700_000_000

    @pytest.mark.asyncio
    async def test_update_appends_and_overlays(
        self, authenticated_client: AsyncClient, test_business: Business
    ):
        url = f"/business/{test_business.id}/financial"
        first = (await authenticated_client.post(url, json=FinancialFactory(revenue=2 * B, notes="FY2023"))).json()

        response = await authenticated_client.put(url, json={"ebitda": 500_000_000, "notes": None})

        assert response.status_code == 200
        second = response.json()
        assert second["id"] != first["id"]
        assert second["revenue"] == 2 * B
        assert second["ebitda"] == 500_000_000
        assert second["assets"] == first["assets"]
        assert second["notes"] == "FY2023"
        assert second["market_cap"] == 1 * B

        current = (await authenticated_client.get(url)).json()
        assert current["id"] == second["id"]

        history = (await authenticated_client.get(f"{url}/history")).json()
        assert [row["id"] for row in history] == [second["id"], first["id"]]
        assert history[1]["ebitda"] == first["ebitda"]  # previous row untouched

    @pytest.mark.asyncio
    async def test_business_valued_from_current_financial(
        self, authenticated_client: AsyncClient, test_business: Business
    ):
        url = f"/business/{test_business.id}/financial"
        await authenticated_client.post(url, json={"revenue": 500_000_000, "ebitda": 100_000_000})
        await authenticated_client.put(url, json={"revenue": 12 * B})

        data = (await authenticated_client.get(f"/business/{test_business.id}")).json()
        assert data["ebitda_multiplier"] == 4.0
        assert data["market_cap"] == 400_000_000
        assert data["financial"]["revenue"] == 12 * B

    @pytest.mark.asyncio
    async def test_write_not_owner(
        self, client: AsyncClient, test_business: Business, other_headers: dict
    ):
        response = await client.post(
            f"/business/{test_business.id}/financial",
            json=FinancialFactory(),
            headers=other_headers,
        )
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_unknown_business(self, authenticated_client: AsyncClient):
        response = await authenticated_client.get("/business/9999/financial")
        assert response.status_code == 404
