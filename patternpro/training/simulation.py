"""
patternpro/training/simulation.py

The human phase is collected in a RoundRecord. When the round ends the AI
"solves" a fresh batch: its accuracy comes from the player's accuracy and
the training efficiency, and every miss is a near-miss around the answer.
"""
from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Tuple

from patternpro.errors import InvalidArgument
from patternpro.patterns import Puzzle, generate_patterns, is_correct
from patternpro.training.data import (
    ACCURACY_WEIGHT, NOISE_SPAN, MIN_ACCURACY, MAX_ACCURACY,
    WRONG_SPREAD, MIN_WRONG_SPREAD, PERFORMANCE_TIERS, PERFORMANCE_FALLBACK,
)
from patternpro.training.model import TrainingState, check_unit_interval

logger = logging.getLogger(__name__)


# ── Human phase ───────────────────────────────────────────────────────────────

@dataclass
class RoundRecord:
    """Puzzles posed to the player and what they answered (None = timed out)."""
    puzzles:   List[Puzzle] = field(default_factory=list)
    answers:   List[Optional[float]] = field(default_factory=list)
    correct:   List[Puzzle] = field(default_factory=list)
    wrong:     List[Puzzle] = field(default_factory=list)
    finalized: bool = False

    def _check_open(self) -> None:
        if self.finalized:
            raise InvalidArgument("round record is finalized")

    @property
    def pending(self) -> Optional[Puzzle]:
        """The posed puzzle still waiting for an answer, if any."""
        if len(self.answers) < len(self.puzzles):
            return self.puzzles[len(self.answers)]
        return None

    def pose(self, puzzle: Puzzle) -> None:
        self._check_open()
        if self.pending is not None:
            raise InvalidArgument("previous puzzle has not been answered yet")
        self.puzzles.append(puzzle)

    def record_answer(self, value: Optional[float]) -> bool:
        self._check_open()
        puzzle = self.pending
        if puzzle is None:
            raise InvalidArgument("no puzzle is awaiting an answer")
        self.answers.append(value)
        correct = is_correct(puzzle, value)
        (self.correct if correct else self.wrong).append(puzzle)
        return correct

    def record_timeout(self) -> bool:
        return self.record_answer(None)

    @property
    def user_accuracy(self) -> float:
        if not self.puzzles:
            return 0.0
        return len(self.correct) / len(self.puzzles)

    def finalize(self) -> "RoundRecord":
        self.finalized = True
        return self


# ── AI batch-solve ────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class SimulationResult:
    puzzles:       Tuple[Puzzle, ...]
    answers:       Tuple[float, ...]
    correct_flags: Tuple[bool, ...]
    correct_count: int
    user_accuracy: float
    efficiency:    float
    noise:         Optional[float]
    base_accuracy: float

    @property
    def accuracy(self) -> float:
        return self.correct_count / len(self.puzzles)

    def as_payload(self) -> dict:
        return {
            "ai_answers":    list(self.answers),
            "ai_correct":    self.correct_count,
            "ai_total":      len(self.puzzles),
            "ai_accuracy":   self.accuracy,
            "user_accuracy": self.user_accuracy,
            "efficiency":    self.efficiency,
            "noise":         self.noise,
            "base_accuracy": self.base_accuracy,
            "puzzles": [
                dict(p.as_payload(reveal=True), ai_answer=a, ai_correct=c)
                for p, a, c in zip(self.puzzles, self.answers, self.correct_flags)
            ],
        }


def compute_base_accuracy(user_accuracy: float, efficiency: float, noise: float) -> float:
    """clamp(user_accuracy * efficiency * 0.9 + noise, 0.1, 0.95)"""
    user_accuracy = check_unit_interval("user_accuracy", user_accuracy)
    efficiency = check_unit_interval("efficiency", efficiency)
    noise = check_unit_interval("noise", noise)
    if noise >= NOISE_SPAN:
        raise InvalidArgument(f"noise must lie in [0, {NOISE_SPAN}), got {noise!r}")
    raw = user_accuracy * efficiency * ACCURACY_WEIGHT + noise
    return min(MAX_ACCURACY, max(MIN_ACCURACY, raw))


def synthesize_wrong_answer(puzzle: Puzzle, rng: random.Random) -> int:
    """A near-miss: within ±max(1, 30% of the answer), never judged correct."""
    spread = max(MIN_WRONG_SPREAD, abs(puzzle.answer) * WRONG_SPREAD)
    offset = (rng.random() - 0.5) * 2 * spread
    wrong = round(puzzle.answer + offset)
    if is_correct(puzzle, wrong):
        wrong += 1 if rng.random() < 0.5 else -1
    return wrong


def simulate(
    record: RoundRecord,
    state: TrainingState,
    batch_size: int,
    rng: Optional[random.Random] = None,
    base_accuracy: Optional[float] = None,
    on_step: Optional[Callable[[int, int, bool], None]] = None,
) -> SimulationResult:
    """Let the AI solve ``batch_size`` fresh puzzles.

    ``base_accuracy`` replaces the computed probability when given; tests use
    it to force an all-correct (1.0) or all-wrong (0.0) batch. ``on_step`` is
    called as ``on_step(number, batch_size, correct)`` after each puzzle is
    solved, so a caller can report progress.
    """
    if isinstance(batch_size, bool) or not isinstance(batch_size, int) or batch_size <= 0:
        raise InvalidArgument(f"batch_size must be a positive integer, got {batch_size!r}")
    if not isinstance(state, TrainingState):
        raise InvalidArgument(f"state must be a TrainingState, got {state!r}")
    rng = rng or random.Random()

    user_accuracy = record.user_accuracy
    efficiency = state.efficiency
    noise = None
    if base_accuracy is None:
        noise = rng.random() * NOISE_SPAN
        base_accuracy = compute_base_accuracy(user_accuracy, efficiency, noise)
    else:
        base_accuracy = check_unit_interval("base_accuracy", base_accuracy)

    puzzles = generate_patterns(batch_size, rng)
    answers, flags = [], []
    for number, puzzle in enumerate(puzzles, start=1):
        if rng.random() < base_accuracy:
            answers.append(puzzle.answer)
            flags.append(True)
        else:
            answers.append(synthesize_wrong_answer(puzzle, rng))
            flags.append(False)
        if on_step is not None:
            on_step(number, batch_size, flags[-1])

    result = SimulationResult(
        puzzles=tuple(puzzles),
        answers=tuple(answers),
        correct_flags=tuple(flags),
        correct_count=sum(flags),
        user_accuracy=user_accuracy,
        efficiency=efficiency,
        noise=noise,
        base_accuracy=base_accuracy,
    )
    logger.debug(
        "AI solved %d/%d (base accuracy %.3f, efficiency %.3f)",
        result.correct_count, batch_size, base_accuracy, efficiency,
    )
    return result


def performance_message(score: float) -> str:
    """Results-screen headline for a 0–100 score."""
    for threshold, message in PERFORMANCE_TIERS:
        if score >= threshold:
            return message
    return PERFORMANCE_FALLBACK
