"""
Tests for API layer.

Tests:
- API service methods
- HTTP status codes and error bodies
- Session lifecycle via API
"""

import pytest

from ..api.schemas import CreateSessionRequest, ErrorCode, ErrorResponse, MoveRequest, SessionStatus
from ..api.service import APIService
from ..bots import PassivePolicy
from ..config import Settings
from ..session import HUMAN_SEAT_ID, SessionManager
from ..storage import MemorySessionStore, StorageError


class FlakySessionStore(MemorySessionStore):
    """Saves until `failing` is switched on."""

    def __init__(self, failing=False):
        super().__init__()
        self.failing = failing

    def save(self, session_id, record):
        if self.failing:
            raise StorageError("disk full")
        super().save(session_id, record)


def _make_bots_passive(service, session_id):
    session = service.session_manager.get_session(session_id)
    session.providers = {seat: PassivePolicy() for seat in session.providers}


class TestAPIService:
    """Tests for APIService."""

    @pytest.fixture
    def service(self):
        """Create a fresh API service."""
        return APIService()

    def test_create_session(self, service):
        response = service.create_session(CreateSessionRequest(human_name="Ada", num_opponents=2, seed=5))

        assert response.status == SessionStatus.YOUR_MOVE
        assert response.phase == "TURN_START"
        assert response.current_player_id == HUMAN_SEAT_ID
        assert len(response.players) == 3
        assert len(response.hand) == 2
        assert response.deck_size == 15 - 6
        assert any(m.type == "ACTION" and m.action == "Income" for m in response.legal_moves)

    def test_opponent_hands_are_hidden(self, service):
        response = service.create_session(CreateSessionRequest(seed=5))

        hand_ids = {c.card_id for c in response.hand}
        assert all(m.card_id is None or m.card_id in hand_ids for m in response.legal_moves)
        assert all(p.revealed_roles == [] for p in response.players)

    def test_submit_income(self, service):
        created = service.create_session(CreateSessionRequest(num_opponents=2, seed=5))
        _make_bots_passive(service, created.session_id)

        response = service.submit_move(created.session_id, MoveRequest(type="ACTION", action="income"))

        assert response.success
        coins = {p.player_id: p.coins for p in response.session.players}
        assert coins == {HUMAN_SEAT_ID: 3, "bot_1": 3, "bot_2": 3}
        assert response.session.status == SessionStatus.YOUR_MOVE
        assert len(response.automated_moves) == 2

    def test_illegal_move(self, service):
        created = service.create_session(CreateSessionRequest(seed=5))

        response = service.submit_move(
            created.session_id, MoveRequest(type="ACTION", action="Coup", target_id="bot_1")
        )

        assert isinstance(response, ErrorResponse)
        assert response.error_code == ErrorCode.ILLEGAL_MOVE
        assert response.details == {"reason": "INSUFFICIENT_COINS"}

    def test_unknown_action(self, service):
        created = service.create_session(CreateSessionRequest(seed=5))

        response = service.submit_move(created.session_id, MoveRequest(type="ACTION", action="Bribe"))

        assert response.error_code == ErrorCode.VALIDATION_ERROR

    def test_lose_card_needs_card_id(self, service):
        created = service.create_session(CreateSessionRequest(seed=5))

        response = service.submit_move(created.session_id, MoveRequest(type="LOSE_CARD"))

        assert response.error_code == ErrorCode.VALIDATION_ERROR

    def test_unknown_session(self, service):
        assert service.get_session("nope").error_code == ErrorCode.SESSION_NOT_FOUND
        assert service.submit_move("nope", MoveRequest(type="PASS")).error_code == ErrorCode.SESSION_NOT_FOUND

    def test_end_session(self, service):
        created = service.create_session(CreateSessionRequest(seed=5))

        assert service.list_sessions() == [created.session_id]
        assert service.end_session(created.session_id)
        assert service.list_sessions() == []
        assert not service.end_session(created.session_id)

    def test_file_backed_service(self, tmp_path):
        service = APIService.from_settings(Settings(data_dir=tmp_path))
        created = service.create_session(CreateSessionRequest(seed=5))

        assert (tmp_path / "sessions" / f"{created.session_id}.json").exists()
        assert service.leaderboard().entries == []

    def test_save_failure_is_internal_error(self):
        store = FlakySessionStore()
        service = APIService(session_manager=SessionManager(store=store))
        created = service.create_session(CreateSessionRequest(num_opponents=1, seed=5))
        _make_bots_passive(service, created.session_id)
        store.failing = True

        response = service.submit_move(created.session_id, MoveRequest(type="ACTION", action="Income"))

        assert isinstance(response, ErrorResponse)
        assert response.error_code == ErrorCode.INTERNAL_ERROR
        assert response.details == {"reason": "StorageError"}
        # The move still happened in memory.
        current = service.get_session(created.session_id)
        me = next(p for p in current.players if p.is_human)
        assert me.coins == 3

    def test_create_with_failing_store(self):
        service = APIService(session_manager=SessionManager(store=FlakySessionStore(failing=True)))

        response = service.create_session(CreateSessionRequest(seed=5))

        assert isinstance(response, ErrorResponse)
        assert response.error_code == ErrorCode.INTERNAL_ERROR

    def test_corrupt_session_file(self, tmp_path):
        settings = Settings(data_dir=tmp_path)
        created = APIService.from_settings(settings).create_session(CreateSessionRequest(seed=5))
        (tmp_path / "sessions" / f"{created.session_id}.json").write_text("{not json", encoding="utf-8")

        response = APIService.from_settings(settings).get_session(created.session_id)

        assert isinstance(response, ErrorResponse)
        assert response.error_code == ErrorCode.INTERNAL_ERROR


class TestHTTP:
    """Tests for the FastAPI routes."""

    @pytest.fixture
    def service(self):
        return APIService()

    @pytest.fixture
    def client(self, service):
        testclient = pytest.importorskip("fastapi.testclient")
        from ..api.app import create_app
        return testclient.TestClient(create_app(service=service, settings=Settings()))

    def _create(self, client, **body):
        response = client.post("/api/v1/sessions", json={"seed": 5, **body})
        assert response.status_code == 201
        return response.json()

    def test_health(self, client):
        response = client.get("/api/v1/health")

        assert response.status_code == 200
        assert response.json()["status"] == "ok"

    def test_create_and_get(self, client):
        created = self._create(client, human_name="Ada", num_opponents=3)

        response = client.get(f"/api/v1/sessions/{created['session_id']}")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "your_move"
        assert [p["name"] for p in body["players"]][0] == "Ada"
        assert len(body["players"]) == 4

    def test_create_validation(self, client):
        assert client.post("/api/v1/sessions", json={"num_opponents": 9}).status_code == 422

        response = client.post("/api/v1/sessions", json={"personalities": ["grumpy"]})

        assert response.status_code == 422
        assert response.json()["error_code"] == "VALIDATION_ERROR"

    def test_unknown_session(self, client):
        response = client.get("/api/v1/sessions/missing")

        assert response.status_code == 404
        assert response.json()["error_code"] == "SESSION_NOT_FOUND"

    def test_income_round(self, client, service):
        created = self._create(client, num_opponents=1)
        _make_bots_passive(service, created["session_id"])

        response = client.post(
            f"/api/v1/sessions/{created['session_id']}/moves",
            json={"type": "ACTION", "action": "Income"},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["success"]
        me = next(p for p in body["session"]["players"] if p["is_human"])
        assert me["coins"] == 3
        assert body["session"]["current_player_id"] == HUMAN_SEAT_ID

    def test_illegal_move_conflict(self, client):
        created = self._create(client)

        response = client.post(
            f"/api/v1/sessions/{created['session_id']}/moves",
            json={"type": "ACTION", "action": "Coup", "target_id": "bot_1"},
        )

        assert response.status_code == 409
        body = response.json()
        assert body["error_code"] == "ILLEGAL_MOVE"
        assert body["details"]["reason"] == "INSUFFICIENT_COINS"

    def test_bad_move_type(self, client):
        created = self._create(client)

        response = client.post(f"/api/v1/sessions/{created['session_id']}/moves", json={"type": "DANCE"})

        assert response.status_code == 422

    def test_unknown_action(self, client):
        created = self._create(client)

        response = client.post(
            f"/api/v1/sessions/{created['session_id']}/moves",
            json={"type": "ACTION", "action": "Bribe"},
        )

        assert response.status_code == 422
        assert response.json()["error_code"] == "VALIDATION_ERROR"

    def test_list_and_delete(self, client):
        created = self._create(client)
        session_id = created["session_id"]

        listing = client.get("/api/v1/sessions").json()
        assert listing == {"sessions": [session_id], "count": 1}

        assert client.delete(f"/api/v1/sessions/{session_id}").status_code == 200
        assert client.delete(f"/api/v1/sessions/{session_id}").status_code == 404
        assert client.get(f"/api/v1/sessions/{session_id}").status_code == 404

    def test_leaderboard(self, client):
        response = client.get("/api/v1/leaderboard", params={"limit": 5})

        assert response.status_code == 200
        assert response.json() == {"entries": []}
        assert client.get("/api/v1/leaderboard", params={"limit": 0}).status_code == 422

    def test_save_failure_is_500(self):
        store = FlakySessionStore()
        service = APIService(session_manager=SessionManager(store=store))
        testclient = pytest.importorskip("fastapi.testclient")
        from ..api.app import create_app
        client = testclient.TestClient(create_app(service=service, settings=Settings()))
        created = self._create(client, num_opponents=1)
        store.failing = True

        response = client.post(
            f"/api/v1/sessions/{created['session_id']}/moves",
            json={"type": "ACTION", "action": "Income"},
        )

        assert response.status_code == 500
        assert response.json()["error_code"] == "INTERNAL_ERROR"
