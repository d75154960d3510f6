import pytest
from fastapi.testclient import TestClient

import config
import main
from conftest import FakeLLMClient, recipe_block
from roots.llm import APIError
from roots.models import LinkMetadata
from roots.search import SearchOrchestrator


SEARCH_BODY = {
    "ingredients": ["Chicken", "Rice"],
    "appliances": ["Stove"],
    "cultures": ["Caribbean"],
    "max_time": 45,
}


async def fake_fetcher(url):
    if "unreachable" in url:
        return None
    return LinkMetadata(
        url=url,
        title="Preview",
        images=[url + "/hero.jpg"],
        favicons=[url + "/favicon.ico"]
    )


@pytest.fixture
def llm():
    return FakeLLMClient()


@pytest.fixture
def api(llm):
    main.sessions.clear()
    main.app.dependency_overrides[main.get_orchestrator] = lambda: SearchOrchestrator(llm)
    main.app.dependency_overrides[main.get_metadata_fetcher] = lambda: fake_fetcher
    with TestClient(main.app) as client:
        yield client
    main.app.dependency_overrides.clear()
    main.sessions.clear()


def new_session(api) -> str:
    response = api.post("/sessions")
    assert response.status_code == 200
    assert response.json()["state"] == "idle"
    return response.json()["session_id"]


def test_root_and_health(api):
    assert api.get("/").json()["message"] == "Roots & Recipes API is running"
    assert api.get("/health").json()["status"] == "healthy"


def test_options(api):
    data = api.get("/options").json()
    assert "Levantine" in data["cultures"]
    assert "Corn / Masa" in data["ingredients"]
    assert "Air Fryer" in data["cooking_appliances"]
    assert "Mortar & Pestle" in data["processing_tools"]


def test_search_and_load_more(api, llm):
    llm.responses = [
        recipe_block("Jerk Chicken", source_url="https://a.example/jerk"),
        recipe_block("Rice and Peas") + recipe_block("Pelau"),
    ]
    session_id = new_session(api)

    first = api.post(f"/sessions/{session_id}/search", json=SEARCH_BODY)
    assert first.status_code == 200
    assert first.json()["state"] == "populated"
    assert [r["name"] for r in first.json()["records"]] == ["Jerk Chicken"]
    assert first.json()["records"][0]["kind"] == "recipe"

    more = api.post(f"/sessions/{session_id}/more")
    assert more.status_code == 200
    assert [r["name"] for r in more.json()["records"]] == ["Jerk Chicken", "Rice and Peas", "Pelau"]
    assert "Jerk Chicken" in llm.calls[1]["prompt"]

    state = api.get(f"/sessions/{session_id}").json()
    assert len(state["records"]) == 3
    assert state["criteria"]["max_time_minutes"] == 45


def test_search_without_ingredients_is_rejected(api, llm):
    session_id = new_session(api)

    response = api.post(f"/sessions/{session_id}/search", json={**SEARCH_BODY, "ingredients": []})

    assert response.status_code == 400
    assert "ingredient" in response.json()["detail"]
    assert llm.calls == []


def test_business_search_without_zip(api, llm):
    session_id = new_session(api)

    response = api.post(f"/sessions/{session_id}/search", json={**SEARCH_BODY, "mode": "business"})

    assert response.status_code == 422
    assert response.json()["detail"]["error"] == "zip_code_required"
    assert llm.calls == []


def test_business_search_with_zip(api, llm):
    llm.responses = ["[BUSINESS_START]\nNAME: Island Spice\nADDRESS: 9 Bay Rd\n[BUSINESS_END]"]
    session_id = new_session(api)

    response = api.post(
        f"/sessions/{session_id}/search",
        json={**SEARCH_BODY, "mode": "business", "zip_code": "10027"}
    )

    assert response.status_code == 200
    data = response.json()
    assert data["mode"] == "business"
    assert data["records"][0]["name"] == "Island Spice"
    assert data["records"][0]["kind"] == "business"


def test_failed_model_call_returns_empty_results(api, llm):
    llm.responses = [APIError("quota")]
    session_id = new_session(api)

    response = api.post(f"/sessions/{session_id}/search", json=SEARCH_BODY)

    assert response.status_code == 200
    assert response.json()["state"] == "empty"
    assert response.json()["records"] == []


def test_load_more_before_search(api):
    session_id = new_session(api)
    assert api.post(f"/sessions/{session_id}/more").status_code == 400


def test_unknown_session(api):
    assert api.get("/sessions/nope").status_code == 404
    assert api.post("/sessions/nope/search", json=SEARCH_BODY).status_code == 404


def test_preview(api):
    data = api.get("/preview", params={"url": "https://food.example.com"}).json()
    assert data["metadata"]["title"] == "Preview"
    assert data["favicon_url"] == "https://food.example.com/favicon.ico"


def test_preview_failure_is_not_an_error(api):
    response = api.get("/preview", params={"url": "https://unreachable.example.com"})

    assert response.status_code == 200
    assert response.json()["metadata"] is None
    assert response.json()["favicon_url"] == (
        "https://www.google.com/s2/favicons?domain=unreachable.example.com&sz=64"
    )


def test_cards(api):
    records = [
        {"kind": "recipe", "name": "Roti", "source_url": "https://food.example.com"},
        {"kind": "business", "name": "Doubles Stand", "website": "https://unreachable.example.com",
         "thumbnail_url": "https://img.example.com/doubles.jpg"},
        {"kind": "recipe", "name": ""},
    ]

    cards = api.post("/cards", json={"records": records}).json()

    assert [c["record"]["name"] for c in cards] == ["Roti", "Doubles Stand"]
    assert cards[0]["image_url"] == "https://food.example.com/hero.jpg"
    assert cards[1]["image_url"] == "https://img.example.com/doubles.jpg"
    assert cards[1]["metadata"] is None


def test_cards_tolerate_null_and_odd_fields(api):
    records = [
        {"name": "Pho", "ingredients": None, "appliances": "Stockpot", "time": None,
         "source_url": None, "thumbnail_url": 42},
        {"kind": "business", "name": "Banh Mi Cart", "website": None, "parking_spots": 4},
    ]

    response = api.post("/cards", json={"records": records})

    assert response.status_code == 200
    pho, cart = response.json()
    assert pho["record"]["ingredients"] == []
    assert pho["record"]["appliances"] == ["Stockpot"]
    assert pho["record"]["source_url"] == ""
    assert pho["image_url"] == config.PLACEHOLDER_IMAGE
    assert cart["record"]["parking_spots"] == "4"
    assert cart["favicon_url"] is None


def test_delete_session(api):
    session_id = new_session(api)

    response = api.delete(f"/sessions/{session_id}")

    assert response.status_code == 200
    assert response.json()["deleted"] is True
    assert session_id not in main.sessions
    assert api.get(f"/sessions/{session_id}").status_code == 404
    assert api.delete(f"/sessions/{session_id}").status_code == 404


def test_oldest_session_is_evicted(api, monkeypatch):
    monkeypatch.setattr(main, "MAX_SESSIONS", 2)

    first = new_session(api)
    second = new_session(api)
    third = new_session(api)

    assert list(main.sessions) == [second, third]
    assert api.get(f"/sessions/{first}").status_code == 404
    assert api.get(f"/sessions/{third}").status_code == 200
