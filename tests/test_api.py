from unittest.mock import AsyncMock

from fastapi.testclient import TestClient

from app.config import Settings
from app.main import create_app
from app.orchestrator import NOTE_LLM_PARSE_FAILED, NOTE_NO_CREDENTIAL
from app.schemas import BudgetBreakdown, Plan, PlanOverview

PLAN_URL = "/api/trips/ABC123/plan"


def _client(**settings) -> TestClient:
    return TestClient(create_app(Settings(**settings)))


def _doi_suthep_payload() -> dict:
    return {
        "group_size": 2,
        "max_budget_per_person": 1000,
        "votes_summary": [
            {"name": "Doi Suthep", "estimated_cost": 100, "duration": "1h", "location": "Chiang Mai"}
        ],
    }


def test_post_without_credential_returns_fallback_plan():
    response = _client().post(PLAN_URL, json=_doi_suthep_payload())

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["fromLLM"] is False
    assert body["note"] == NOTE_NO_CREDENTIAL
    assert body["data"]["totalBudget"] == 2000
    first = body["data"]["itinerary"][0]["items"][0]
    assert first["name"] == "Doi Suthep"
    assert first["estCost"] == 200


def test_empty_request_still_succeeds():
    response = _client().get(PLAN_URL)

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["participants"] == 2
    assert data["totalBudget"] == 20000
    assert data["dates"] is None
    assert len(data["itinerary"]) == 2
    assert data["tips"]
    assert set(data["budgetBreakdown"]) == {
        "transportation",
        "accommodation",
        "attractions",
        "meals",
        "shopping",
        "miscellaneous",
    }
    # optional fields that were never set are omitted rather than null
    lunch = data["itinerary"][0]["items"][1]
    assert "location" not in lunch


def test_get_reads_votes_from_query_string():
    response = _client().get(PLAN_URL, params={"votes": "a|200|2h|X;b|150|1h|Y", "group": "3"})

    data = response.json()["data"]
    attractions = [i for i in data["itinerary"][0]["items"] if i["type"] == "attraction"]
    assert [i["name"] for i in attractions] == ["a", "b"]
    assert attractions[0]["estCost"] == 600
    assert data["participants"] == 3


def test_post_body_overrides_query_values():
    response = _client().post(PLAN_URL + "?group=5&budget=500", json={"group_size": 2})

    data = response.json()["data"]
    assert data["participants"] == 2
    assert data["totalBudget"] == 1000


def test_malformed_post_body_is_ignored():
    response = _client().post(
        PLAN_URL + "?group=4",
        content=b"{oops",
        headers={"Content-Type": "application/json"},
    )

    assert response.status_code == 200
    assert response.json()["data"]["participants"] == 4


def test_llm_plan_is_returned_when_model_succeeds(monkeypatch):
    plan = Plan(
        title="LLM plan",
        overview=PlanOverview(destinations=["Doi Suthep"]),
        itinerary=[],
        budget_breakdown=BudgetBreakdown(
            transportation=1, accommodation=1, attractions=1, meals=1, shopping=1, miscellaneous=1
        ),
    )
    generator = AsyncMock(return_value=plan)
    monkeypatch.setattr("app.orchestrator.generate_llm_plan", generator)

    response = _client(openai_api_key="test-key").post(PLAN_URL, json=_doi_suthep_payload())

    assert response.status_code == 200
    body = response.json()
    generator.assert_awaited_once()
    assert body["fromLLM"] is True
    assert "note" not in body
    assert body["data"]["title"] == "LLM plan"
    assert body["data"]["totalBudget"] is None


def test_model_failure_falls_back_with_parse_note(monkeypatch):
    monkeypatch.setattr("app.orchestrator.generate_llm_plan", AsyncMock(return_value=None))

    response = _client(openai_api_key="test-key").post(PLAN_URL, json=_doi_suthep_payload())
    baseline = _client().post(PLAN_URL, json=_doi_suthep_payload())

    assert response.status_code == 200
    body = response.json()
    assert body["fromLLM"] is False
    assert body["note"] == NOTE_LLM_PARSE_FAILED
    assert body["data"] == baseline.json()["data"]


def test_unexpected_error_returns_failed_envelope(monkeypatch):
    monkeypatch.setattr("app.main.generate_plan", AsyncMock(side_effect=RuntimeError("boom")))

    response = _client(cors_origin="https://trip.example").get(PLAN_URL)

    assert response.status_code == 500
    assert response.json() == {"success": False, "error": "boom"}
    assert response.headers["access-control-allow-origin"] == "https://trip.example"


def test_preflight_returns_cors_headers():
    response = _client(cors_origin="https://trip.example").options(PLAN_URL)

    assert response.status_code == 200
    assert response.content == b""
    assert response.headers["access-control-allow-origin"] == "https://trip.example"
    assert response.headers["access-control-allow-methods"] == "GET,POST,OPTIONS"
    assert response.headers["access-control-allow-headers"] == "Content-Type, Authorization"


def test_cors_origin_defaults_to_wildcard():
    response = _client().get(PLAN_URL)
    assert response.headers["access-control-allow-origin"] == "*"


def test_huge_query_numbers_still_return_fallback_plan():
    client = _client()

    response = client.get(PLAN_URL, params={"budget": "1e308", "group": "2"})
    assert response.status_code == 200
    assert response.json()["data"]["totalBudget"] == 2 * int(1e308)

    response = client.get(PLAN_URL, params={"votes": "a|1e308"})
    assert response.status_code == 200
    first = response.json()["data"]["itinerary"][0]["items"][0]
    assert first["name"] == "a"
    assert first["estCost"] == 2 * int(1e308)


def test_fractional_budget_round_trips_through_api():
    data = _client().get(PLAN_URL, params={"budget": "1500.25", "group": "2"}).json()["data"]

    assert data["totalBudget"] == 3000.5
    assert data["tips"][-1] == "งบประมาณรวม 3,000.5 บาท สำหรับ 2 คน"
