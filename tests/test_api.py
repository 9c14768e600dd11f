# tests/test_api.py
import pytest
from fastapi.testclient import TestClient

from city_apps.api.city_tool_api import app

H2 = [[0, 2], [0, 0], [0, 0], [0, 0]]


@pytest.fixture(scope="module")
def client():
    return TestClient(app)


def test_hint(client):
    r = client.post("/hint", json={"border_hints": H2})
    assert r.status_code == 200
    assert r.json() == {"move": {"row": 0, "column": 1, "height": 1, "cost": 1}}


def test_hint_on_solved_grid(client):
    r = client.post("/hint", json={"border_hints": H2, "current": [[2, 1], [1, 2]]})
    assert r.json() == {"move": None}


def test_difficulty(client):
    r = client.post("/difficulty", json={"border_hints": H2})
    assert r.json() == {"difficulty": -1.0}


def test_allowed_heights(client):
    r = client.post("/allowed_heights", json={"border_hints": H2})
    assert r.json() == {"allowed_heights": [[[1, 2], [1]], [[1, 2], [2]]]}


def test_errors(client):
    r = client.post("/field_errors", json={"grid": [[1, 1], [2, 2]]})
    assert len(r.json()["errors"]) == 4

    r = client.post("/border_errors", json={"border_hints": H2, "current": [[1, 2], [2, 1]]})
    assert r.json()["errors"] == [
        {"kind": "border", "message": 'The constraint "2" cannot be satisfied', "index": 1}
    ]


def test_check_and_solve(client):
    r = client.post("/check", json={"border_hints": H2, "current": [[2, 1], [1, 2]]})
    assert r.json() == {"ok": True, "solved": True, "issues": []}

    r = client.post("/solve", json={"border_hints": H2})
    payload = r.json()
    assert payload["solved"] is True
    assert payload["snapshot"]["current"] == [[2, 1], [1, 2]]
    assert len(payload["moves"]) == 4


def test_generic_request(client):
    r = client.post("/request", json={"kind": "getAllowedHeights", "border_hints": H2, "buildings": [[0, 0], [0, 0]]})
    assert r.json() == {"kind": "getAllowedHeights", "result": [[[1, 2], [1]], [[1, 2], [2]]]}

    r = client.post("/request", json={"kind": "computeCityDifficulty", "border_hints": H2})
    assert r.json() == {"kind": "computeCityDifficulty", "result": -1.0}


def test_bad_requests(client):
    assert client.post("/request", json={"kind": "nope", "border_hints": H2}).status_code == 422
    assert client.post("/request", json={"kind": "getBorderErrors", "border_hints": H2}).status_code == 422
    assert client.post("/field_errors", json={"grid": [[1, 5], [2, 2]]}).status_code == 422
    assert client.post("/hint", json={"border_hints": H2[:3]}).status_code == 422


def test_city_codec(client):
    r = client.post("/cities/encode", json={"width": 2, "height": 2, "border_hints": H2})
    assert r.json() == {"city_id": "AAG", "uri": "http://localhost:8000/#AAG"}

    r = client.post("/cities/decode", json={"city_id": "AAG"})
    assert r.json() == {"width": 2, "height": 2, "border_hints": H2}

    r = client.post("/cities/decode", json={"city_id": "!!!"})
    assert r.status_code == 400


def test_state_codec(client):
    city = {"width": 2, "height": 2, "border_hints": H2}
    r = client.post("/states/encode", json={"city": city, "buildings": [[1, 0], [0, 0]], "marks": [[[], [1, 2]], [[], []]]})
    state = r.json()["state"]

    r = client.post("/states/decode", json={"state": state, "width": 2, "height": 2})
    assert r.json() == {"buildings": [[1, 0], [0, 0]], "marks": [[[], [1, 2]], [[], []]]}


def test_state_encode_rejects_misshapen_marks(client):
    city = {"width": 2, "height": 2, "border_hints": H2}
    r = client.post("/states/encode", json={"city": city, "buildings": [[0, 0], [0, 0]], "marks": [[[]]]})
    assert r.status_code == 400


def test_difficulty_search_timeout(client, monkeypatch):
    import city_apps.api.city_tool_api as api

    monkeypatch.setattr(api, "time_limit", lambda seconds: (lambda: True))
    no_hints = [[0, 0, 0], [0, 0, 0], [0, 0, 0], [0, 0, 0]]
    assert client.post("/difficulty", json={"border_hints": no_hints}).status_code == 503
    assert client.post("/request", json={"kind": "difficulty", "border_hints": no_hints}).status_code == 503
    # no guesses needed, so the limit never kicks in
    assert client.post("/difficulty", json={"border_hints": H2}).json() == {"difficulty": -1.0}
