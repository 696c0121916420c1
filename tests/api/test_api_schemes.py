"""Tests for the scheme and eligibility endpoints."""

import pytest
from httpx import AsyncClient
from sqlalchemy import func, select
from uuid_extensions import uuid7

from assistance.db.tables import BenefitRow, CriterionRow, SchemeRow
from assistance.errors import StorageFailureError
from assistance.repositories.pool import CriteriaBenefitPool

pytestmark = pytest.mark.anyio

EMPLOYED = {
    "criteria_level": "individual",
    "criteria_type": "employment_status",
    "status": "employed",
}
HAS_CHILDREN = {"criteria_level": "individual", "criteria_type": "has_children"}
GRANT = {"name": "Cash grant", "amount": 500}

JAMES = {
    "name": "James",
    "employment_status": "employed",
    "marital_status": "single",
    "sex": "male",
    "date_of_birth": "1990-07-01",
}


async def _create_scheme(client: AsyncClient, name: str, criteria=(), benefits=()) -> dict:
    response = await client.post(
        "/api/schemes",
        json={"name": name, "criteria": list(criteria), "benefits": list(benefits)},
    )
    assert response.status_code == 201, response.text
    return response.json()


class TestCreateScheme:
    async def test_create_returns_201(self, client: AsyncClient) -> None:
        data = await _create_scheme(client, "Retrenchment Assistance", [EMPLOYED], [GRANT])
        assert data["name"] == "Retrenchment Assistance"
        assert data["criteria"][0]["criteria_type"] == "employment_status"
        assert data["benefits"] == [
            {"id": data["benefits"][0]["id"], "name": "Cash grant", "amount": 500.0},
        ]

    async def test_values_normalized(self, client: AsyncClient) -> None:
        data = await _create_scheme(client, "Shouty", [{
            "criteria_level": "Individual",
            "criteria_type": "Employment_Status",
            "status": "EMPLOYED",
        }])
        assert data["criteria"][0]["criteria_level"] == "individual"
        assert data["criteria"][0]["status"] == "employed"

    async def test_duplicate_name_409(self, client: AsyncClient) -> None:
        await _create_scheme(client, "Taken")
        response = await client.post("/api/schemes", json={"name": "Taken"})
        assert response.status_code == 409

        listing = await client.get("/api/schemes")
        assert [s["name"] for s in listing.json()] == ["Taken"]

    async def test_unknown_criteria_type_422(self, client: AsyncClient) -> None:
        response = await client.post("/api/schemes", json={
            "name": "Bad",
            "criteria": [{"criteria_level": "individual", "criteria_type": "income"}],
        })
        assert response.status_code == 422

    async def test_negative_benefit_422(self, client: AsyncClient) -> None:
        response = await client.post("/api/schemes", json={
            "name": "Bad", "benefits": [{"name": "Refund", "amount": -5}],
        })
        assert response.status_code == 422

    async def test_failure_after_interning_leaves_nothing(
        self, client: AsyncClient, session_factory, monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        async def failing_link(self, scheme_id, benefit_id):
            raise StorageFailureError("Failed to store scheme benefit link.")

        monkeypatch.setattr(CriteriaBenefitPool, "link_benefit", failing_link)
        response = await client.post("/api/schemes", json={
            "name": "Half Built", "criteria": [EMPLOYED], "benefits": [GRANT],
        })
        assert response.status_code == 503

        async with session_factory() as session:
            for table in (CriterionRow, BenefitRow, SchemeRow):
                count = await session.execute(select(func.count()).select_from(table))
                assert count.scalar_one() == 0, table.__tablename__


class TestSchemeCrud:
    async def test_get_and_list(self, client: AsyncClient) -> None:
        created = await _create_scheme(client, "Open")
        response = await client.get(f"/api/schemes/{created['id']}")
        assert response.status_code == 200
        assert response.json()["name"] == "Open"

        listing = await client.get("/api/schemes")
        assert [s["id"] for s in listing.json()] == [created["id"]]

    async def test_get_unknown_404(self, client: AsyncClient) -> None:
        response = await client.get(f"/api/schemes/{uuid7()}")
        assert response.status_code == 404

    async def test_get_malformed_id_422(self, client: AsyncClient) -> None:
        response = await client.get("/api/schemes/not-a-uuid")
        assert response.status_code == 422

    async def test_update_returns_204_and_replaces(self, client: AsyncClient) -> None:
        created = await _create_scheme(client, "Family", [EMPLOYED, HAS_CHILDREN], [GRANT])
        response = await client.put(
            f"/api/schemes/{created['id']}",
            json={"name": "Family", "criteria": [HAS_CHILDREN]},
        )
        assert response.status_code == 204

        data = (await client.get(f"/api/schemes/{created['id']}")).json()
        assert [c["criteria_type"] for c in data["criteria"]] == ["has_children"]
        assert data["benefits"] == []

    async def test_update_unknown_404(self, client: AsyncClient) -> None:
        response = await client.put(f"/api/schemes/{uuid7()}", json={"name": "Ghost"})
        assert response.status_code == 404

    async def test_rename_to_taken_name_409_keeps_original(self, client: AsyncClient) -> None:
        await _create_scheme(client, "First")
        second = await _create_scheme(client, "Second", [EMPLOYED])
        response = await client.put(
            f"/api/schemes/{second['id']}", json={"name": "First"},
        )
        assert response.status_code == 409

        data = (await client.get(f"/api/schemes/{second['id']}")).json()
        assert data["name"] == "Second"
        assert len(data["criteria"]) == 1

    async def test_delete_returns_204(self, client: AsyncClient) -> None:
        created = await _create_scheme(client, "Gone", [EMPLOYED])
        response = await client.delete(f"/api/schemes/{created['id']}")
        assert response.status_code == 204
        assert (await client.get(f"/api/schemes/{created['id']}")).status_code == 404

    async def test_delete_unknown_404(self, client: AsyncClient) -> None:
        response = await client.delete(f"/api/schemes/{uuid7()}")
        assert response.status_code == 404


class TestEligibleSchemes:
    async def test_eligible_for_applicant(self, client: AsyncClient) -> None:
        await _create_scheme(client, "Employment Support", [EMPLOYED])
        await _create_scheme(client, "Family Support", [EMPLOYED, HAS_CHILDREN])
        applicant = (await client.post("/api/applicants", json=JAMES)).json()

        response = await client.get(
            "/api/schemes/eligible", params={"applicant": applicant["id"]},
        )
        assert response.status_code == 200
        assert [s["name"] for s in response.json()] == ["Employment Support"]

    async def test_eligible_unknown_applicant_404(self, client: AsyncClient) -> None:
        response = await client.get("/api/schemes/eligible", params={"applicant": str(uuid7())})
        assert response.status_code == 404

    async def test_eligible_requires_applicant(self, client: AsyncClient) -> None:
        response = await client.get("/api/schemes/eligible")
        assert response.status_code == 422
