"""
Unit tests for the FastAPI REST API.

Tests:
- Health check endpoint
- Validate endpoint with valid/invalid sources
- Diagram sessions: create, poll, input, delete
- Session eviction
- Error response handling
"""

import pytest
import sys
from pathlib import Path

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from fastapi.testclient import TestClient

from godiagram.config import AppConfig, DiagramSettings

PROBLEM = "problem\na b .\n. . .\n. . .\n---\nsize: 3\nto-play: black\nsolutions: a>b"
REPLAY = "replay\n1 2\n. ."


# --- Fixtures ---


@pytest.fixture
def client():
    """Create a test client with fresh sessions (bypass lifespan)."""
    from godiagram.api import SessionStore, app, state

    # Replies land on the next request
    state.config = AppConfig(diagrams=DiagramSettings(reply_delay=0.0))
    state.sessions = SessionStore(max_sessions=3)
    return TestClient(app, raise_server_exceptions=False)


def create(client, source, **extra):
    response = client.post("/diagrams", json={"source": source, **extra})
    assert response.status_code == 200
    return response.json()


# --- Health Endpoint ---


class TestHealthEndpoint:
    """Tests for GET /health."""

    def test_health_returns_ok(self, client):
        """Test health check returns status ok."""
        response = client.get("/health")
        assert response.status_code == 200

        data = response.json()
        assert data["status"] == "ok"
        assert data["sessions"] == 0

    def test_health_counts_sessions(self, client):
        """Test health check reports live sessions."""
        create(client, REPLAY)
        assert client.get("/health").json()["sessions"] == 1


# --- Validate Endpoint ---


class TestValidateEndpoint:
    """Tests for POST /validate."""

    def test_valid_source(self, client):
        """Test a valid source reports its type."""
        response = client.post("/validate", json={"source": PROBLEM})
        assert response.status_code == 200

        data = response.json()
        assert data["valid"] is True
        assert data["diagram_type"] == "problem"
        assert data["error"] is None

    def test_invalid_source(self, client):
        """Test an invalid source reports the error."""
        response = client.post("/validate", json={"source": "replay\n1 3\n. ."})
        assert response.status_code == 200

        data = response.json()
        assert data["valid"] is False
        assert "expected 2" in data["error"]

    def test_validate_keeps_no_session(self, client):
        """Test validation does not open a session."""
        client.post("/validate", json={"source": REPLAY})
        assert client.get("/health").json()["sessions"] == 0

    def test_missing_source(self, client):
        """Test a body without source returns 422."""
        response = client.post("/validate", json={})
        assert response.status_code == 422


# --- Diagram Sessions ---


class TestCreateDiagram:
    """Tests for POST /diagrams."""

    def test_create_returns_state(self, client):
        """Test the response carries an id and the render state."""
        data = create(client, PROBLEM, seed=1)
        assert data["id"]
        state = data["state"]
        assert state["diagram_type"] == "problem"
        assert state["rows"] == [". . .", ". . .", ". . ."]
        assert state["result"] == "incomplete"
        assert state["turn"] == "black"
        assert state["controls"] == {"reset": False}

    def test_create_invalid_source(self, client):
        """Test an invalid source returns 400."""
        response = client.post("/diagrams", json={"source": "puzzle\n. .\n. ."})
        assert response.status_code == 400
        assert "Unknown diagram type" in response.json()["detail"]

    def test_get_unknown_session(self, client):
        """Test an unknown id returns 404."""
        response = client.get("/diagrams/nope")
        assert response.status_code == 404

    def test_get_session(self, client):
        """Test polling a session returns its state."""
        data = create(client, REPLAY)
        response = client.get(f"/diagrams/{data['id']}")
        assert response.status_code == 200
        assert response.json()["state"]["total_moves"] == 2

    def test_eviction(self, client):
        """Test the oldest session is dropped when the store is full."""
        ids = [create(client, REPLAY)["id"] for _ in range(4)]
        assert client.get(f"/diagrams/{ids[0]}").status_code == 404
        assert client.get(f"/diagrams/{ids[3]}").status_code == 200
        assert client.get("/health").json()["sessions"] == 3


class TestDiagramInput:
    """Tests for POST /diagrams/{id}/input."""

    def test_problem_click_and_reply(self, client):
        """Test a click is answered by the reply."""
        session_id = create(client, PROBLEM, seed=1)["id"]
        response = client.post(f"/diagrams/{session_id}/input", json={"action": "click", "row": 0, "col": 0})
        assert response.status_code == 200

        data = response.json()
        assert data["changed"] is True
        assert data["state"]["rows"][0] == "X O ."
        assert data["state"]["result"] == "success"
        assert data["state"]["last_move"] == [0, 1]

    def test_replay_navigation(self, client):
        """Test button inputs drive a replay."""
        session_id = create(client, REPLAY)["id"]
        data = client.post(f"/diagrams/{session_id}/input", json={"action": "last"}).json()
        assert data["state"]["move_number"] == 2
        assert data["state"]["rows"] == ["X O", ". ."]

        data = client.post(f"/diagrams/{session_id}/input", json={"action": "next"}).json()
        assert data["changed"] is False

    def test_unsupported_input(self, client):
        """Test an input the diagram does not handle is reported unchanged."""
        session_id = create(client, REPLAY)["id"]
        data = client.post(f"/diagrams/{session_id}/input", json={"action": "undo"}).json()
        assert data["changed"] is False

    def test_click_without_point(self, client):
        """Test a click needs row and col."""
        session_id = create(client, PROBLEM)["id"]
        response = client.post(f"/diagrams/{session_id}/input", json={"action": "click", "row": 0})
        assert response.status_code == 400

    def test_unknown_action(self, client):
        """Test an unknown action returns 422."""
        session_id = create(client, PROBLEM)["id"]
        response = client.post(f"/diagrams/{session_id}/input", json={"action": "resign"})
        assert response.status_code == 422

    def test_negative_point(self, client):
        """Test negative coordinates return 422."""
        session_id = create(client, PROBLEM)["id"]
        response = client.post(f"/diagrams/{session_id}/input", json={"action": "click", "row": -1, "col": 0})
        assert response.status_code == 422

    def test_input_unknown_session(self, client):
        """Test input to an unknown id returns 404."""
        response = client.post("/diagrams/nope/input", json={"action": "next"})
        assert response.status_code == 404


class TestDeleteDiagram:
    """Tests for DELETE /diagrams/{id}."""

    def test_delete(self, client):
        """Test deleting a session removes it."""
        session_id = create(client, REPLAY)["id"]
        response = client.delete(f"/diagrams/{session_id}")
        assert response.status_code == 200
        assert response.json() == {"deleted": session_id}
        assert client.get(f"/diagrams/{session_id}").status_code == 404

    def test_delete_unknown(self, client):
        """Test deleting an unknown id returns 404."""
        assert client.delete("/diagrams/nope").status_code == 404
