"""
patternpro/game/session.py

Single-player rounds over Socket.IO, one per connection:
  1. Human phase:    ROUND_PUZZLES puzzles, each with an ANSWER_TIMEOUT countdown.
  2. Training drift: a background tick every TICK_INTERVAL seconds pushes the
                     error rate up; the player's "boost" events push it back.
  3. AI phase:       when every puzzle is answered or the error rate saturates,
                     the AI solves AI_BATCH_SIZE fresh puzzles, reporting
                     each one as ai_progress, and results are sent.

All session mutation happens under one lock. Background tasks carry the
round_id they were started for and exit as soon as it no longer matches, so
a timer never touches a round that has been replaced or ended.
"""
from __future__ import annotations

import logging
import math
import random
from threading import Lock
from typing import Dict, Optional
from uuid import uuid4

from flask_socketio import emit

from patternpro import socketio
from patternpro.patterns import generate_patterns
from patternpro.training import (
    RoundPhase, RoundRecord, TrainingState,
    tick, apply_boost, simulate, performance_message,
)

logger = logging.getLogger(__name__)


def settings_from_config(config) -> Dict:
    return {
        "round_puzzles":  config["ROUND_PUZZLES"],
        "answer_timeout": config["ANSWER_TIMEOUT"],
        "tick_interval":  config["TICK_INTERVAL"],
        "ai_batch_size":  config["AI_BATCH_SIZE"],
        "result_pause":   config.get("RESULT_PAUSE", 0),
    }


def _parse_answer(raw) -> Optional[float]:
    if isinstance(raw, bool) or raw is None:
        return None
    if isinstance(raw, str):
        raw = raw.strip()
        if not raw:
            return None
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return None
    if math.isnan(value) or math.isinf(value):
        return None
    return value


class GameSessions:
    def __init__(self, rng: Optional[random.Random] = None) -> None:
        self._lock    = Lock()
        self._rng     = rng or random.Random()
        self.sessions: Dict[str, Dict] = {}

    # ── Scheduling ────────────────────────────────────────────────────────

    def _spawn(self, target, *args) -> None:
        socketio.start_background_task(target, *args)

    def _start_tick_loop(self, session: Dict) -> None:
        self._spawn(self._tick_loop, session["sid"], session["id"],
                    session["settings"]["tick_interval"])

    def _start_answer_timer(self, session: Dict) -> None:
        self._spawn(self._answer_timer, session["sid"], session["id"],
                    session["index"], session["settings"]["answer_timeout"])

    def _tick_loop(self, sid: str, round_id: str, interval: float) -> None:
        while True:
            socketio.sleep(interval)
            if not self._run_tick(sid, round_id):
                return

    def _answer_timer(self, sid: str, round_id: str, index: int, timeout: float) -> None:
        socketio.sleep(timeout)
        self._expire_answer(sid, round_id, index)

    def _advance_later(self, sid: str, round_id: str, index: int, pause: float) -> None:
        socketio.sleep(pause)
        with self._lock:
            session = self._current(sid, round_id)
            if not session or session["index"] != index:
                return
            self._advance(session)

    def _current(self, sid: str, round_id: str) -> Optional[Dict]:
        """The live session for sid, only if it is still the round the caller started for."""
        session = self.sessions.get(sid)
        if not session or session["id"] != round_id:
            logger.debug("Stale callback for round %s ignored", round_id)
            return None
        if session["phase"] is not RoundPhase.ACTIVE:
            return None
        return session

    # ── Payload helpers ───────────────────────────────────────────────────

    def _puzzle_payload(self, session: Dict) -> Dict:
        return {
            "round_id": session["id"],
            "number":   session["index"] + 1,
            "total":    len(session["puzzles"]),
            "timeout":  session["settings"]["answer_timeout"],
            "puzzle":   session["puzzles"][session["index"]].as_payload(),
        }

    def _results_payload(self, session: Dict, result, reason: str) -> Dict:
        record     = session["record"]
        user_score = record.user_accuracy * 100
        return {
            "round_id":        session["id"],
            "reason":          reason,
            "user_answers":    list(record.answers),
            "correct_answers": [p.answer for p in record.puzzles],
            "user_correct":    len(record.correct),
            "user_score":      user_score,
            "ai_score":        result.accuracy * 100,
            "message":         performance_message(user_score),
            "training":        session["state"].as_payload(),
            **result.as_payload(),
        }

    # ── Round lifecycle ───────────────────────────────────────────────────

    def start_round(self, sid: str, settings: Dict) -> None:
        with self._lock:
            previous = self.sessions.pop(sid, None)
            if previous:
                previous["phase"] = RoundPhase.IDLE
                logger.info("Round %s for %s superseded", previous["id"], sid)

            puzzles = generate_patterns(settings["round_puzzles"], self._rng)
            record  = RoundRecord()
            record.pose(puzzles[0])
            session = {
                "id":         uuid4().hex,
                "sid":        sid,
                "settings":   dict(settings),
                "puzzles":    puzzles,
                "index":      0,
                "record":     record,
                "state":      TrainingState(),
                "phase":      RoundPhase.ACTIVE,
                "processing": False,
            }
            self.sessions[sid] = session
            logger.info("Round %s started for %s", session["id"], sid)

            emit(
                "round_started",
                {**self._puzzle_payload(session), "training": session["state"].as_payload()},
                to=sid,
            )
            self._start_tick_loop(session)
            self._start_answer_timer(session)

    def submit_answer(self, sid: str, raw) -> None:
        with self._lock:
            session = self.sessions.get(sid)
            if not session or session["phase"] is not RoundPhase.ACTIVE:
                emit("answer_result", {"correct": False, "message": "No active round."}, to=sid)
                return

            if session["processing"]:
                emit("answer_result", {"correct": False, "message": "Answer already being processed."}, to=sid)
                return

            value = _parse_answer(raw)
            if value is None:
                emit("answer_result", {"correct": False, "message": "Answer must be a number."}, to=sid)
                return

            # Ticks and the countdown stay paused until the next puzzle is posed
            session["processing"] = True
            puzzle  = session["record"].pending
            correct = session["record"].record_answer(value)
            emit(
                "answer_result",
                {
                    "correct":   correct,
                    "timed_out": False,
                    "answer":    puzzle.answer,
                    "rule":      puzzle.rule,
                    "number":    session["index"] + 1,
                },
                to=sid,
            )
            self._schedule_advance(session)

    def boost(self, sid: str) -> None:
        with self._lock:
            session = self.sessions.get(sid)
            if not session or session["phase"] is not RoundPhase.ACTIVE:
                return
            session["state"] = apply_boost(session["state"])
            emit("training_update", session["state"].as_payload(), to=sid)

    def disconnect(self, sid: str) -> None:
        with self._lock:
            session = self.sessions.pop(sid, None)
            if session:
                session["phase"] = RoundPhase.IDLE
                logger.info("Round %s dropped, %s disconnected", session["id"], sid)

    # ── Timer callbacks ───────────────────────────────────────────────────

    def _run_tick(self, sid: str, round_id: str) -> bool:
        """Apply one drift step. Returns False once the loop should stop."""
        with self._lock:
            session = self._current(sid, round_id)
            if not session:
                return False
            if session["processing"]:
                return True

            session["state"] = tick(session["state"])
            socketio.emit("training_update", session["state"].as_payload(), to=sid)

            if session["state"].is_saturated:
                self._end_round(session, reason="error_saturated")
                return False
            return True

    def _expire_answer(self, sid: str, round_id: str, index: int) -> None:
        with self._lock:
            session = self._current(sid, round_id)
            if not session or session["index"] != index or session["processing"]:
                return

            session["processing"] = True
            puzzle = session["record"].pending
            session["record"].record_timeout()
            socketio.emit(
                "answer_result",
                {
                    "correct":   False,
                    "timed_out": True,
                    "answer":    puzzle.answer,
                    "rule":      puzzle.rule,
                    "number":    index + 1,
                    "message":   "Time's up!",
                },
                to=sid,
            )
            self._schedule_advance(session)

    # ── Core round logic (caller holds the lock) ──────────────────────────

    def _schedule_advance(self, session: Dict) -> None:
        pause = session["settings"]["result_pause"]
        if pause > 0:
            self._spawn(self._advance_later, session["sid"], session["id"], session["index"], pause)
        else:
            self._advance(session)

    def _advance(self, session: Dict) -> None:
        record = session["record"]
        if len(record.answers) >= len(session["puzzles"]):
            self._end_round(session, reason="all_answered")
            return

        session["index"] += 1
        record.pose(session["puzzles"][session["index"]])
        session["processing"] = False
        socketio.emit("next_puzzle", self._puzzle_payload(session), to=session["sid"])
        self._start_answer_timer(session)

    def _end_round(self, session: Dict, reason: str) -> None:
        session["phase"]      = RoundPhase.TERMINAL
        session["processing"] = True
        sid    = session["sid"]
        record = session["record"].finalize()

        def report(number: int, total: int, correct: bool) -> None:
            socketio.emit("ai_progress", {
                "round_id": session["id"],
                "number":   number,
                "total":    total,
                "correct":  correct,
            }, to=sid)

        result = simulate(
            record, session["state"], session["settings"]["ai_batch_size"], self._rng,
            on_step=report,
        )

        socketio.emit("round_ended", self._results_payload(session, result, reason), to=sid)
        logger.info(
            "Round %s ended (%s): player %d/%d, AI %d/%d",
            session["id"], reason, len(record.correct), len(record.puzzles),
            result.correct_count, len(result.puzzles),
        )
        self.sessions.pop(session["sid"], None)
        session["phase"] = RoundPhase.IDLE


sessions = GameSessions()
