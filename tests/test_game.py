"""
tests/test_game.py
==================
The Flask app, its JSON routes and the Socket.IO round sessions.

Run with:
    pytest tests/test_game.py -v
"""

from __future__ import annotations

import random
from unittest.mock import patch

import pytest

from patternpro import create_app, socketio
from patternpro.patterns import PatternFamily
from patternpro.training import RoundPhase, TrainingState


# ══════════════════════════════════════════════════════════════════════════════
# Fixtures / base helpers
# ══════════════════════════════════════════════════════════════════════════════

class TestConfig:
    TESTING = True
    SECRET_KEY = "test-secret-key"
    ROUND_PUZZLES = 3
    ANSWER_TIMEOUT = 10
    TICK_INTERVAL = 0.3
    AI_BATCH_SIZE = 5
    RESULT_PAUSE = 0
    MAX_BATCH = 50
    LOG_LEVEL = "WARNING"
    SOCKETIO_ASYNC_MODE = "threading"


SETTINGS = {
    "round_puzzles":  3,
    "answer_timeout": 10,
    "tick_interval":  0.3,
    "ai_batch_size":  5,
    "result_pause":   0,
}


@pytest.fixture(scope="function")
def app():
    application = create_app(TestConfig)
    with application.app_context():
        yield application


@pytest.fixture
def client(app):
    return app.test_client()


def _emitted(mock, name):
    """Payloads of every call to ``mock`` that emitted event ``name``."""
    return [c[0][1] for c in mock.call_args_list if c[0][0] == name]


# ══════════════════════════════════════════════════════════════════════════════
# 1. JSON ROUTES
# ══════════════════════════════════════════════════════════════════════════════

class TestRoutes:

    def test_families(self, client):
        resp = client.get("/api/families")
        assert resp.status_code == 200
        assert resp.get_json()["families"] == [f.value for f in PatternFamily]

    def test_pattern_of_named_family(self, client):
        resp = client.get("/api/pattern?family=squares")
        assert resp.status_code == 200
        data = resp.get_json()
        assert data["family"] == "squares"
        assert len(data["sequence"]) == 4
        assert data["rule"] == "Perfect squares"

    def test_random_pattern(self, client):
        data = client.get("/api/pattern").get_json()
        assert "answer" in data and len(data["sequence"]) == 4

    def test_unknown_family_is_400(self, client):
        resp = client.get("/api/pattern?family=bogus")
        assert resp.status_code == 400
        assert "bogus" in resp.get_json()["error"]

    def test_patterns_count(self, client):
        data = client.get("/api/patterns?count=7").get_json()
        assert len(data["patterns"]) == 7

    def test_patterns_count_at_limit(self, client):
        data = client.get("/api/patterns?count=50").get_json()
        assert len(data["patterns"]) == 50

    @pytest.mark.parametrize("count", ["0", "-2", "abc", "51", "100000000"])
    def test_patterns_bad_count_is_400(self, client, count):
        resp = client.get(f"/api/patterns?count={count}")
        assert resp.status_code == 400
        assert "error" in resp.get_json()

    def test_tick(self, client):
        data = client.post("/api/tick", json={"learning_rate": 0.2, "error_rate": 0.8}).get_json()
        assert data["error_rate"] == pytest.approx(0.888)
        assert data["learning_rate"] == pytest.approx(0.156)
        assert data["saturated"] is False

    def test_tick_saturates(self, client):
        data = client.post("/api/tick", json={"learning_rate": 0.5, "error_rate": 0.96}).get_json()
        assert data["error_rate"] == 1.0
        assert data["saturated"] is True

    def test_boost(self, client):
        data = client.post("/api/boost", json={"learning_rate": 0.5, "error_rate": 0.5}).get_json()
        assert data["learning_rate"] == pytest.approx(0.62)
        assert data["error_rate"] == pytest.approx(0.42)

    def test_out_of_range_state_is_400(self, client):
        resp = client.post("/api/tick", json={"learning_rate": 1.5, "error_rate": 0.5})
        assert resp.status_code == 400

    def test_missing_body_is_400(self, client):
        assert client.post("/api/boost").status_code == 400

    def test_simulate(self, client):
        resp = client.post("/api/simulate", json={
            "correct": 4, "posed": 5, "learning_rate": 0.6, "error_rate": 0.2, "batch_size": 12,
        })
        assert resp.status_code == 200
        data = resp.get_json()
        assert data["ai_total"] == 12
        assert len(data["ai_answers"]) == 12
        assert data["user_accuracy"] == pytest.approx(0.8)
        assert data["user_score"] == pytest.approx(80)
        assert data["message"] == "Excellent! Your AI is well-trained!"

    @pytest.mark.parametrize("body", [
        {"correct": 6, "posed": 5},
        {"correct": 1, "posed": 5, "batch_size": 0},
        {"correct": 1, "posed": 5, "error_rate": -0.2},
        {"correct": 1, "posed": 51},
        {"correct": 1, "posed": 5, "batch_size": 51},
    ])
    def test_simulate_bad_input_is_400(self, client, body):
        assert client.post("/api/simulate", json=body).status_code == 400

    def test_oversized_request_builds_nothing(self, client):
        with patch("patternpro.game.routes.generate_patterns") as mock_generate:
            assert client.get("/api/patterns?count=100000000").status_code == 400
            assert client.post("/api/simulate", json={"correct": 0, "posed": 10 ** 8}).status_code == 400
            mock_generate.assert_not_called()


# ══════════════════════════════════════════════════════════════════════════════
# 2. ROUND SESSIONS  (pure unit tests, no sockets needed)
# ══════════════════════════════════════════════════════════════════════════════

class TestGameSessions:
    """GameSessions with socket emit and background tasks mocked out."""

    def setup_method(self):
        from patternpro.game.session import GameSessions
        self.GameSessions = GameSessions

    def _start(self, settings=SETTINGS):
        gs = self.GameSessions(rng=random.Random(1))
        gs.start_round("sid_1", dict(settings))
        return gs, gs.sessions["sid_1"]

    def _answer_current(self, gs, session):
        puzzle = session["record"].pending
        gs.submit_answer(session["sid"], str(puzzle.answer))

    @patch("patternpro.game.session.socketio")
    @patch("patternpro.game.session.emit")
    def test_start_round(self, mock_emit, mock_socketio):
        gs, session = self._start()
        assert session["phase"] is RoundPhase.ACTIVE
        assert session["state"] == TrainingState()
        assert len(session["puzzles"]) == 3
        assert session["record"].pending is session["puzzles"][0]

        started = _emitted(mock_emit, "round_started")
        assert len(started) == 1
        assert started[0]["number"] == 1 and started[0]["total"] == 3
        assert "answer" not in started[0]["puzzle"]
        # tick loop + countdown
        assert mock_socketio.start_background_task.call_count == 2

    @patch("patternpro.game.session.socketio")
    @patch("patternpro.game.session.emit")
    def test_correct_answer_advances(self, mock_emit, mock_socketio):
        gs, session = self._start()
        self._answer_current(gs, session)
        assert len(session["record"].correct) == 1
        assert session["index"] == 1
        assert session["processing"] is False
        assert _emitted(mock_emit, "answer_result")[0]["correct"] is True
        assert _emitted(mock_socketio.emit, "next_puzzle")[0]["number"] == 2

    @patch("patternpro.game.session.socketio")
    @patch("patternpro.game.session.emit")
    def test_wrong_answer_recorded(self, mock_emit, mock_socketio):
        gs, session = self._start()
        puzzle = session["record"].pending
        gs.submit_answer("sid_1", puzzle.answer + 1)
        assert session["record"].wrong == [puzzle]
        result = _emitted(mock_emit, "answer_result")[0]
        assert result["correct"] is False
        assert result["answer"] == puzzle.answer

    @patch("patternpro.game.session.socketio")
    @patch("patternpro.game.session.emit")
    def test_non_numeric_answer_is_not_recorded(self, mock_emit, mock_socketio):
        gs, session = self._start()
        gs.submit_answer("sid_1", "twelve")
        assert session["record"].answers == []
        assert session["index"] == 0
        assert _emitted(mock_emit, "answer_result")[-1]["message"] == "Answer must be a number."

    @patch("patternpro.game.session.emit")
    def test_submit_without_round(self, mock_emit):
        gs = self.GameSessions()
        gs.submit_answer("unknown_sid", "3")
        mock_emit.assert_called_once()
        assert mock_emit.call_args[0][0] == "answer_result"
        assert mock_emit.call_args[0][1]["correct"] is False

    @patch("patternpro.game.session.socketio")
    @patch("patternpro.game.session.emit")
    def test_submit_while_processing_is_rejected(self, mock_emit, mock_socketio):
        gs, session = self._start()
        session["processing"] = True
        gs.submit_answer("sid_1", "3")
        assert session["record"].answers == []
        assert _emitted(mock_emit, "answer_result")[-1]["message"] == "Answer already being processed."

    @patch("patternpro.game.session.socketio")
    @patch("patternpro.game.session.emit")
    def test_all_answered_ends_round(self, mock_emit, mock_socketio):
        gs, session = self._start()
        for _ in range(3):
            self._answer_current(gs, session)

        assert "sid_1" not in gs.sessions
        assert session["record"].finalized
        ended = _emitted(mock_socketio.emit, "round_ended")
        assert len(ended) == 1
        payload = ended[0]
        assert payload["reason"] == "all_answered"
        assert payload["user_correct"] == 3
        assert payload["user_score"] == pytest.approx(100)
        assert payload["ai_total"] == 5
        assert len(payload["ai_answers"]) == 5
        assert payload["message"] == "Excellent! Your AI is well-trained!"

    @patch("patternpro.game.session.socketio")
    @patch("patternpro.game.session.emit")
    def test_ai_progress_precedes_results(self, mock_emit, mock_socketio):
        gs, session = self._start()
        for _ in range(3):
            self._answer_current(gs, session)

        names = [c[0][0] for c in mock_socketio.emit.call_args_list]
        progress = _emitted(mock_socketio.emit, "ai_progress")
        assert [p["number"] for p in progress] == [1, 2, 3, 4, 5]
        assert all(p["total"] == 5 and p["round_id"] == session["id"] for p in progress)
        assert names.index("round_ended") > max(i for i, n in enumerate(names) if n == "ai_progress")

        ended = _emitted(mock_socketio.emit, "round_ended")[0]
        assert [p["correct"] for p in progress] == [p["ai_correct"] for p in ended["puzzles"]]

    @patch("patternpro.game.session.socketio")
    @patch("patternpro.game.session.emit")
    def test_tick_applies_drift(self, mock_emit, mock_socketio):
        gs, session = self._start()
        assert gs._run_tick("sid_1", session["id"]) is True
        assert session["state"].learning_rate == pytest.approx(0.156)
        assert session["state"].error_rate == pytest.approx(0.888)
        assert len(_emitted(mock_socketio.emit, "training_update")) == 1

    @patch("patternpro.game.session.socketio")
    @patch("patternpro.game.session.emit")
    def test_tick_paused_while_processing(self, mock_emit, mock_socketio):
        gs, session = self._start()
        session["processing"] = True
        assert gs._run_tick("sid_1", session["id"]) is True
        assert session["state"] == TrainingState()
        assert _emitted(mock_socketio.emit, "training_update") == []

    @patch("patternpro.game.session.socketio")
    @patch("patternpro.game.session.emit")
    def test_stale_tick_is_ignored(self, mock_emit, mock_socketio):
        gs, session = self._start()
        assert gs._run_tick("sid_1", "some-old-round") is False
        assert session["state"] == TrainingState()

    @patch("patternpro.game.session.socketio")
    @patch("patternpro.game.session.emit")
    def test_saturation_ends_round(self, mock_emit, mock_socketio):
        gs, session = self._start()
        session["state"] = TrainingState(learning_rate=0.5, error_rate=0.96)
        assert gs._run_tick("sid_1", session["id"]) is False
        assert "sid_1" not in gs.sessions
        ended = _emitted(mock_socketio.emit, "round_ended")
        assert ended[0]["reason"] == "error_saturated"
        assert ended[0]["training"]["error_rate"] == 1.0
        # no further ticks for the finished round
        assert gs._run_tick("sid_1", session["id"]) is False

    @patch("patternpro.game.session.socketio")
    @patch("patternpro.game.session.emit")
    def test_countdown_records_timeout(self, mock_emit, mock_socketio):
        gs, session = self._start()
        gs._expire_answer("sid_1", session["id"], 0)
        assert session["record"].answers == [None]
        assert session["index"] == 1
        result = _emitted(mock_socketio.emit, "answer_result")[0]
        assert result["timed_out"] is True and result["correct"] is False

    @patch("patternpro.game.session.socketio")
    @patch("patternpro.game.session.emit")
    def test_countdown_for_answered_puzzle_is_ignored(self, mock_emit, mock_socketio):
        gs, session = self._start()
        self._answer_current(gs, session)
        gs._expire_answer("sid_1", session["id"], 0)
        assert session["record"].answers[-1] is not None
        assert len(session["record"].answers) == 1

    @patch("patternpro.game.session.socketio")
    @patch("patternpro.game.session.emit")
    def test_new_round_supersedes_old_timers(self, mock_emit, mock_socketio):
        gs, first = self._start()
        gs.start_round("sid_1", dict(SETTINGS))
        second = gs.sessions["sid_1"]
        assert second["id"] != first["id"]
        assert first["phase"] is RoundPhase.IDLE
        assert gs._run_tick("sid_1", first["id"]) is False
        gs._expire_answer("sid_1", first["id"], 0)
        assert second["record"].answers == []

    @patch("patternpro.game.session.socketio")
    @patch("patternpro.game.session.emit")
    def test_result_pause_holds_processing(self, mock_emit, mock_socketio):
        gs, session = self._start(dict(SETTINGS, result_pause=1.5))
        self._answer_current(gs, session)
        assert session["processing"] is True
        assert session["index"] == 0
        # ticks stay paused until the next puzzle is posed
        assert gs._run_tick("sid_1", session["id"]) is True
        assert session["state"] == TrainingState()

        gs._advance_later("sid_1", session["id"], 0, 1.5)
        mock_socketio.sleep.assert_called_with(1.5)
        assert session["index"] == 1
        assert session["processing"] is False

    @patch("patternpro.game.session.socketio")
    @patch("patternpro.game.session.emit")
    def test_boost(self, mock_emit, mock_socketio):
        gs, session = self._start()
        gs.boost("sid_1")
        assert session["state"].learning_rate == pytest.approx(0.32)
        assert session["state"].error_rate == pytest.approx(0.72)
        assert len(_emitted(mock_emit, "training_update")) == 1

    @patch("patternpro.game.session.emit")
    def test_boost_without_round_is_ignored(self, mock_emit):
        self.GameSessions().boost("nobody")
        mock_emit.assert_not_called()

    @patch("patternpro.game.session.socketio")
    @patch("patternpro.game.session.emit")
    def test_disconnect_drops_session(self, mock_emit, mock_socketio):
        gs, session = self._start()
        gs.disconnect("sid_1")
        assert gs.sessions == {}
        assert session["phase"] is RoundPhase.IDLE
        assert gs._run_tick("sid_1", session["id"]) is False


class TestHelpers:

    @pytest.mark.parametrize("raw,expected", [
        ("19", 19.0), (" 0.25 ", 0.25), (7, 7.0), ("-3", -3.0),
        ("", None), ("abc", None), (None, None), (True, None), ("nan", None), ("inf", None),
    ])
    def test_parse_answer(self, raw, expected):
        from patternpro.game.session import _parse_answer
        assert _parse_answer(raw) == expected

    def test_settings_from_config(self, app):
        from patternpro.game.session import settings_from_config
        assert settings_from_config(app.config) == SETTINGS


# ══════════════════════════════════════════════════════════════════════════════
# 3. SOCKET EVENTS
# ══════════════════════════════════════════════════════════════════════════════

class TestSocketEvents:

    @patch("patternpro.game.session.GameSessions._spawn")
    def test_start_round_and_bad_answer(self, mock_spawn, app):
        sock = socketio.test_client(app)
        assert sock.is_connected()

        sock.emit("start_round")
        names = [m["name"] for m in sock.get_received()]
        assert "round_started" in names

        sock.emit("submit_answer", {"answer": "not a number"})
        received = sock.get_received()
        results = [m["args"][0] for m in received if m["name"] == "answer_result"]
        assert results and results[0]["message"] == "Answer must be a number."

        sock.emit("boost")
        assert any(m["name"] == "training_update" for m in sock.get_received())

        sock.disconnect()
