"""
HTTP surface tests. Upstream clients are swapped for ones backed by
FakeSession through FastAPI dependency overrides.
"""
import pytest
from conftest import FakeResponse, FakeSession, connection_error, label_result, labels_responder
from fastapi.testclient import TestClient

from medsafe.api.deps import get_drug_directory, get_interaction_sources, get_rxnav
from medsafe.main import app
from medsafe.services.drug_directory import DrugDirectoryClient
from medsafe.services.interaction_sources import CommonInteractionSource, LabelScanInteractionSource
from medsafe.services.rxnav import RxNavClient
from medsafe.services.scheduling import INTERACTION_DATA_UNAVAILABLE


class Upstream:
    """Swappable responder shared by both fake clients."""

    def __init__(self):
        self.responder = connection_error

    def __call__(self, url, params):
        return self.responder(url, params)


@pytest.fixture
def upstream():
    return Upstream()


@pytest.fixture
def client(context, upstream):
    directory = DrugDirectoryClient(context, session=FakeSession(upstream))
    rxnav = RxNavClient(context, session=FakeSession(upstream))

    app.dependency_overrides[get_drug_directory] = lambda: directory
    app.dependency_overrides[get_rxnav] = lambda: rxnav
    app.dependency_overrides[get_interaction_sources] = lambda: [
        LabelScanInteractionSource(directory),
        CommonInteractionSource(),
    ]
    yield TestClient(app)
    app.dependency_overrides.clear()


# =============================================================================
# Service
# =============================================================================

def test_health(client):
    assert client.get("/health").json() == {"ok": True}
    assert client.get("/").json()["service"] == "Medication Safety Engine"


# =============================================================================
# Schedule
# =============================================================================

def test_create_schedule(client):
    body = {
        "date": "2026-03-14",
        "medications": [{"name": "metformin", "dosage": "500mg", "frequency": "twice daily", "with_food": True}],
    }

    r = client.post("/schedule", json=body)

    assert r.status_code == 200
    data = r.json()
    assert data["date"] == "2026-03-14"
    assert [s["time"] for s in data["slots"]] == ["07:45", "18:45"]
    assert data["slots"][0]["instructions"] == ["Take with breakfast"]
    assert data["safety_note"].startswith("Not medical advice")


def test_empty_schedule(client):
    data = client.post("/schedule", json={"medications": []}).json()

    assert data["slots"] == []
    assert data["meal_plan"] is None
    assert len(data["general_instructions"]) == 3


def test_invalid_medication_is_rejected(client):
    r = client.post("/schedule", json={"medications": [{"name": "x", "time_of_day": "noonish"}]})

    assert r.status_code == 422


def test_schedule_from_records(client):
    body = {"records": [
        {"name": "levothyroxine", "dosage": "50mcg", "frequency": "once daily"},
        {"name": "calcium", "active": False},
    ]}

    data = client.post("/schedule/from-records", json=body).json()

    assert [s["time"] for s in data["slots"]] == ["06:30"]
    assert data["slots"][0]["medications"][0]["dosage"] == "50mcg"


def test_known_interaction_still_flags_unchecked_drugs(client):
    body = {"medications": [{"name": "warfarin"}, {"name": "aspirin"}, {"name": "sertraline"}]}

    data = client.post("/schedule/with-interactions", json=body).json()

    warnings = data["schedule"]["warnings"]
    assert data["interactions"]["status"] == "found"
    assert data["interactions"]["unreachable"] == ["warfarin", "aspirin", "sertraline"]
    assert "Major interaction: warfarin and aspirin (Common Interactions Database)" in warnings
    assert INTERACTION_DATA_UNAVAILABLE in warnings
    assert "Not checked for interactions: warfarin, aspirin, sertraline" in warnings


def test_schedule_with_interactions_unavailable(client):
    body = {"medications": [{"name": "amoxicillin"}, {"name": "ibuprofen"}]}

    data = client.post("/schedule/with-interactions", json=body).json()

    assert data["interactions"]["status"] == "unavailable"
    assert INTERACTION_DATA_UNAVAILABLE in data["schedule"]["warnings"]


# =============================================================================
# Drugs
# =============================================================================

def test_search_requires_two_characters(client):
    assert client.get("/drugs/search", params={"q": "a"}).status_code == 422
    assert client.get("/drugs/search", params={"q": "aspirin", "limit": 0}).status_code == 422


def test_search_returns_display_names(client, upstream):
    upstream.responder = lambda url, params: FakeResponse(
        200, {"results": [label_result("Bayer", "aspirin", [])]}
    )

    data = client.get("/drugs/search", params={"q": "aspirin"}).json()

    assert data[0]["display_name"] == "Bayer"
    assert data[0]["manufacturer_name"] == "Acme Pharma"


def test_search_upstream_down_is_empty_list(client):
    r = client.get("/drugs/search", params={"q": "aspirin"})

    assert r.status_code == 200
    assert r.json() == []


def test_label_not_found(client, upstream):
    upstream.responder = labels_responder({})

    assert client.get("/drugs/label", params={"name": "nothing"}).status_code == 404


def test_label_found(client, upstream):
    upstream.responder = labels_responder({"warfarin": label_result("Coumadin", "warfarin", ["x"])})

    data = client.get("/drugs/label", params={"name": "warfarin"}).json()

    assert data["brand_name"] == ["Coumadin"]


def test_suggestions(client, upstream):
    upstream.responder = lambda url, params: FakeResponse(
        200, {"results": [label_result(f"Aspirin {i}", "aspirin", []) for i in range(7)]}
    )

    assert len(client.get("/drugs/suggestions", params={"q": "asprin"}).json()) == 5


def test_interactions_endpoint(client, upstream):
    upstream.responder = labels_responder({
        "warfarin": label_result("Coumadin", "warfarin", ["Avoid aspirin."]),
    })

    data = client.post("/drugs/interactions", json={"names": ["warfarin", "aspirin"]}).json()

    assert data["status"] == "found"
    sources = {i["source"] for i in data["interactions"]}
    assert sources == {"OpenFDA", "Common Interactions Database"}


def test_interactions_single_name(client):
    data = client.post("/drugs/interactions", json={"names": ["warfarin"]}).json()

    assert data["status"] == "none_found"
    assert data["interactions"] == []


def test_orange_book_and_rxnav_search(client, upstream):
    def respond(url, params):
        if url.endswith("/drug/drugsfda.json"):
            return FakeResponse(200, {"results": []})
        if url.endswith("/drugs.json"):
            return FakeResponse(200, {"drugGroup": {"conceptGroup": [
                {"tty": "IN", "conceptProperties": [{"rxcui": "6809", "name": "metformin", "tty": "IN"}]},
            ]}})
        return FakeResponse(404, None)

    upstream.responder = respond

    assert client.get("/drugs/orange-book", params={"ingredient": "metformin"}).json() == []
    concepts = client.get("/drugs/rxnav/search", params={"q": "metformin"}).json()
    assert concepts == [{"rxcui": "6809", "name": "metformin", "synonym": None, "tty": "IN"}]
