"""Unit tests for account, stats and audit event routes."""

import pytest
from fastapi.testclient import TestClient

from credledger.registry import MAX_AMOUNT, CredentialRegistry
from tests.conftest import OUTSIDER, OWNER, STUDENT
from tests.unit.api.conftest import as_caller


@pytest.mark.unit
class TestAccountRoutes:
    """Tests for /accounts and /transfers."""

    def test_unknown_balance(self, client: TestClient) -> None:
        response = client.get(f"/api/v1/accounts/{STUDENT}")

        assert response.status_code == 200
        assert response.json()["data"] == {"identity": STUDENT, "balance": 0}

    def test_deposit(self, client: TestClient) -> None:
        response = client.post(
            f"/api/v1/accounts/{STUDENT}/deposits", json={"amount": 75}, headers=as_caller(OWNER)
        )

        assert response.status_code == 201
        assert response.json()["data"]["balance"] == 75
        assert client.get(f"/api/v1/accounts/{STUDENT}").json()["data"]["balance"] == 75

    def test_deposit_without_caller_returns_401(self, client: TestClient) -> None:
        response = client.post(f"/api/v1/accounts/{STUDENT}/deposits", json={"amount": 75})

        assert response.status_code == 401
        assert client.get(f"/api/v1/accounts/{STUDENT}").json()["data"]["balance"] == 0

    @pytest.mark.parametrize("identity", [STUDENT, OUTSIDER])
    def test_deposit_by_non_owner_returns_403(self, client: TestClient, identity: str) -> None:
        """Students cannot fund themselves or anyone else."""
        response = client.post(
            f"/api/v1/accounts/{STUDENT}/deposits",
            json={"amount": 10**9},
            headers=as_caller(identity),
        )

        assert response.status_code == 403
        assert client.get(f"/api/v1/accounts/{STUDENT}").json()["data"]["balance"] == 0

    @pytest.mark.parametrize("amount", [0, MAX_AMOUNT + 1])
    def test_deposit_rejects_out_of_range(self, client: TestClient, amount: int) -> None:
        response = client.post(
            f"/api/v1/accounts/{STUDENT}/deposits",
            json={"amount": amount},
            headers=as_caller(OWNER),
        )

        assert response.status_code == 422

    def test_list_transfers(
        self, client: TestClient, course_id: int, enrolled_student: str
    ) -> None:
        response = client.get("/api/v1/transfers", params={"identity": enrolled_student})

        assert response.status_code == 200
        memos = [t["memo"] for t in response.json()["data"]]
        assert memos == ["deposit", f"enrollment:{course_id}"]


@pytest.mark.unit
class TestStatsRoute:
    """Tests for GET /stats."""

    def test_stats(self, client: TestClient, course_id: int, funded_student: str) -> None:
        response = client.get("/api/v1/stats")

        assert response.status_code == 200
        assert response.json()["data"] == {
            "total_courses": 1,
            "total_students": 1,
            "owner": OWNER,
        }


@pytest.mark.unit
class TestEventRoutes:
    """Tests for GET /events."""

    def test_list_events(self, client: TestClient, registry: CredentialRegistry) -> None:
        registry.register_student(STUDENT, "Ada")

        response = client.get("/api/v1/events")

        assert response.status_code == 200
        events = response.json()["data"]
        assert len(events) == 1
        assert events[0]["event_type"] == "student_registered"
        assert events[0]["payload"] == {"student": STUDENT, "name": "Ada"}

    def test_filter_events(self, client: TestClient, course_id: int) -> None:
        response = client.get("/api/v1/events", params={"event_type": "course_created"})

        events = response.json()["data"]
        assert [e["event_type"] for e in events] == ["course_created"]

    def test_unknown_event_type(self, client: TestClient) -> None:
        response = client.get("/api/v1/events", params={"event_type": "bogus"})

        assert response.status_code == 422
