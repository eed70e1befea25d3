import pytest
from fastapi.testclient import TestClient

from companion.dependencies import get_companion
from companion.main import app

from conftest import BASE_LAT, BASE_LNG, north_of_base

ITINERARY = {
    "activities": [
        {
            "id": "museum",
            "name": "Musée d'Orsay",
            "category": "culture",
            "latitude": north_of_base(150),
            "longitude": BASE_LNG,
            "types": ["museum"],
            "rating": 4.7,
        },
        {
            "id": "cafe",
            "name": "Café de Flore",
            "category": "food_drink",
            "latitude": north_of_base(400),
            "longitude": BASE_LNG,
            "types": ["cafe", "coffee"],
        },
        {"id": "bistro", "name": "Le Comptoir", "category": "food_drink", "types": ["restaurant"], "day_number": 2},
    ]
}

FIX = {"latitude": BASE_LAT, "longitude": BASE_LNG, "accuracy": 12, "timestamp": "2025-06-14T10:00:00Z"}


@pytest.fixture
def client(companion):
    app.dependency_overrides[get_companion] = lambda: companion
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_health(client):
    assert client.get("/api/health").json()["status"] == "ok"


def test_location_near_museum_pushes_message(client):
    assert client.put("/api/companion/activities", json=ITINERARY).json()["count"] == 3
    assert client.post("/api/companion/trip/activate", json={"trip_id": "trip-1"}).json()["sub_mode"] == "choice"

    resp = client.post("/api/companion/location", json=FIX)
    assert resp.status_code == 200
    body = resp.json()
    assert body["applied"] is True
    proximity = [m for m in body["new_messages"] if m["type"] == "location_trigger"]
    assert proximity[0]["activity_id"] == "museum"
    assert proximity[0]["priority"] == "high"

    listed = client.get("/api/companion/messages").json()["messages"]
    assert proximity[0]["id"] in [m["id"] for m in listed]


def test_dismiss_and_act(client):
    client.put("/api/companion/activities", json=ITINERARY)
    client.post("/api/companion/trip/activate", json={"trip_id": "trip-1"})
    messages = client.post("/api/companion/location", json=FIX).json()["new_messages"]

    dismissed = client.post(f"/api/companion/messages/{messages[0]['id']}/dismiss").json()
    assert dismissed["is_dismissed"] is True

    assert client.post("/api/companion/messages/missing/dismiss").status_code == 404
    assert client.post("/api/companion/messages/missing/act").status_code == 404


def test_recommendations_explain_themselves(client):
    client.put("/api/companion/activities", json=ITINERARY)
    client.post("/api/companion/location", json=FIX)

    recs = client.get("/api/companion/recommendations", params={"count": 2}).json()["recommendations"]
    assert len(recs) == 2
    assert recs[0]["id"] == "museum"
    assert recs[0]["why_now"]["text"]
    assert recs[0]["distance_m"] == 150


def test_sub_mode_requires_active_trip(client):
    resp = client.put("/api/companion/mode", json={"sub_mode": "craving"})
    assert resp.status_code == 409

    assert client.get("/api/companion/mode").json() == {
        "mode": "planning",
        "sub_mode": None,
        "has_active_trip": False,
        "trip_id": None,
        "day_number": None,
    }


def test_craving_search(client):
    client.put("/api/companion/activities", json=ITINERARY)
    client.post("/api/companion/trip/activate", json={"trip_id": "trip-1"})

    body = client.post("/api/companion/craving", json={"query": "coffee"}).json()
    assert [m["id"] for m in body["matches"]] == ["cafe"]
    assert client.get("/api/companion/mode").json()["sub_mode"] == "craving"


def test_activity_feedback(client):
    client.put("/api/companion/activities", json=ITINERARY)

    assert client.post("/api/companion/activities/museum/complete").json()["ok"] is True
    assert client.post("/api/companion/activities/museum/visit").status_code == 422
    assert client.post("/api/companion/activities/nope/skip").status_code == 404

    assert client.post("/api/companion/undo").json()["undone"] == {"action": "completion", "activity_id": "museum"}


def test_weather_refresh_needs_location(client):
    assert client.post("/api/companion/weather/refresh").status_code == 409


def test_day_listing(client):
    client.put("/api/companion/activities", json=ITINERARY)
    body = client.get("/api/companion/activities/day/2").json()
    assert [a["id"] for a in body["activities"]] == ["bistro"]


def test_learning_reset(client):
    client.put("/api/companion/activities", json=ITINERARY)
    client.post("/api/companion/activities/cafe/skip")
    assert client.get("/api/companion/learning").json()["dismissed_count"] == 1

    client.delete("/api/companion/learning")
    assert client.get("/api/companion/learning").json()["dismissed_count"] == 0
