"""Tests for the HTTP endpoints."""

import threading

import pytest
from fastapi.testclient import TestClient

from config import MAX_GRID_SIZE
from main import app


@pytest.fixture
def client():
    return TestClient(app)


def _create_game(client: TestClient, size: int = 20, seed: int = 7) -> str:
    """Helper to create a game with two joined players. p1 moves first."""
    resp = client.post("/games", json={"size": size, "seed": seed})
    assert resp.status_code == 200
    game_id = resp.json()["game_id"]
    for player_id, name in [("p1", "Alice"), ("p2", "Bob")]:
        resp = client.post(f"/games/{game_id}/join", json={"player_id": player_id, "name": name})
        assert resp.status_code == 200
    return game_id


def _action(client: TestClient, game_id: str, **body):
    return client.post(f"/games/{game_id}/action", json=body)


class TestServerInfo:
    """Tests for the root and health endpoints."""

    def test_root(self, client):
        assert client.get("/").json()["status"] == "running"

    def test_health(self, client):
        assert client.get("/health").json() == {"healthy": True}


class TestLobby:
    """Tests for game creation and joining."""

    def test_create_and_get(self, client):
        game_id = _create_game(client)
        data = client.get(f"/games/{game_id}").json()
        assert data["size"] == 20
        assert data["seed"] == 7
        assert data["current_player_id"] == "p1"
        assert [p["id"] for p in data["players"]] == ["p1", "p2"]

    def test_unknown_game(self, client):
        assert client.get("/games/nope").status_code == 404
        assert client.get("/games/nope/state").status_code == 404

    def test_duplicate_join(self, client):
        game_id = _create_game(client)
        resp = client.post(f"/games/{game_id}/join", json={"player_id": "p1", "name": "Again"})
        assert resp.status_code == 400

    def test_invalid_size(self, client):
        assert client.post("/games", json={"size": 0}).status_code == 422

    def test_oversized_map_rejected(self, client):
        assert client.post("/games", json={"size": MAX_GRID_SIZE + 1}).status_code == 422
        assert client.post("/games", json={"size": 1500}).status_code == 422
        assert client.post("/games", json={"size": MAX_GRID_SIZE}).status_code == 200

    def test_unit_table(self, client):
        game_id = _create_game(client)
        units = client.get(f"/games/{game_id}/units").json()
        assert units["archer"]["cost"] == 150
        assert units["lancer"]["special_abilities"] == ["anti_cavalry"]

    def test_map(self, client):
        game_id = _create_game(client, size=12)
        tiles = client.get(f"/games/{game_id}/map").json()["tiles"]
        assert len(tiles) == 12
        assert all(len(row) == 12 for row in tiles)

    def test_seeded_maps_match(self, client):
        first = _create_game(client, seed=42)
        second = _create_game(client, seed=42)
        assert client.get(f"/games/{first}/map").json() == client.get(f"/games/{second}/map").json()


class TestActions:
    """Tests for action submission and board queries."""

    def test_spawn(self, client):
        game_id = _create_game(client)
        resp = _action(client, game_id, player_id="p1", action_type="spawn", position=[2, 19], unit_type="archer")
        assert resp.status_code == 200
        assert resp.json()["success"] is True

        units = client.get(f"/games/{game_id}/state").json()["units"]
        assert len(units) == 1
        assert (units[0]["x"], units[0]["y"], units[0]["owner"]) == (2, 19, "p1")

    def test_not_your_turn(self, client):
        game_id = _create_game(client)
        resp = _action(client, game_id, player_id="p2", action_type="end_turn")
        assert resp.status_code == 409

    def test_unknown_player(self, client):
        game_id = _create_game(client)
        resp = _action(client, game_id, player_id="ghost", action_type="end_turn")
        assert resp.status_code == 404

    def test_invalid_action(self, client):
        game_id = _create_game(client)
        _action(client, game_id, player_id="p1", action_type="spawn", position=[2, 19], unit_type="archer")
        resp = _action(client, game_id, player_id="p1", action_type="spawn", position=[2, 19], unit_type="lancer")
        assert resp.status_code == 400
        assert "occupied" in resp.json()["detail"]

    def test_reachable_after_turn_cycle(self, client):
        game_id = _create_game(client)
        _action(client, game_id, player_id="p1", action_type="spawn", position=[2, 19], unit_type="light_infantry")
        assert client.get(f"/games/{game_id}/reachable", params={"x": 2, "y": 19}).json() == []

        _action(client, game_id, player_id="p1", action_type="end_turn")
        _action(client, game_id, player_id="p2", action_type="end_turn")

        cells = client.get(f"/games/{game_id}/reachable", params={"x": 2, "y": 19}).json()
        assert {"x": 1, "y": 19, "cost": 1} in cells
        assert all(cell["cost"] <= 3 for cell in cells)

    def test_reachable_empty_cell(self, client):
        game_id = _create_game(client)
        assert client.get(f"/games/{game_id}/reachable", params={"x": 0, "y": 0}).status_code == 404

    def test_log(self, client):
        game_id = _create_game(client)
        _action(client, game_id, player_id="p1", action_type="spawn", position=[2, 19], unit_type="archer")
        _action(client, game_id, player_id="p1", action_type="end_turn")
        log = client.get(f"/games/{game_id}/log").json()
        assert [entry["action_type"] for entry in log] == ["spawn", "end_turn"]


class TestLocking:
    """Tests that reads share the registry lock with action submission."""

    def test_state_read_waits_for_lock(self, client):
        game_id = _create_game(client)
        statuses = []

        def read_state():
            statuses.append(client.get(f"/games/{game_id}/state").status_code)

        with app.state.lock:
            reader = threading.Thread(target=read_state)
            reader.start()
            reader.join(timeout=0.3)
            assert reader.is_alive()
            assert statuses == []

        reader.join(timeout=5)
        assert not reader.is_alive()
        assert statuses == [200]

    def test_log_read_waits_for_lock(self, client):
        game_id = _create_game(client)
        statuses = []

        def read_log():
            statuses.append(client.get(f"/games/{game_id}/log").status_code)

        with app.state.lock:
            reader = threading.Thread(target=read_log)
            reader.start()
            reader.join(timeout=0.3)
            assert statuses == []

        reader.join(timeout=5)
        assert statuses == [200]
