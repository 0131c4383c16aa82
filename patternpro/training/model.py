"""
patternpro/training/model.py

The AI's training balance: two independent rates in [0, 1] that drift on a
fixed cadence and that the player pushes back with boosts. Every transition
is a pure function returning a new TrainingState; the caller owns the clock.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum

from patternpro.errors import InvalidArgument
from patternpro.training.data import (
    INITIAL_LEARNING_RATE, INITIAL_ERROR_RATE,
    DRIFT_BASE, DRIFT_SCALE, DECAY_BASE, DECAY_SCALE,
    BOOST_LEARNING, BOOST_ERROR, BOUND_EPSILON,
)


class RoundPhase(Enum):
    IDLE     = "idle"
    ACTIVE   = "active"
    TERMINAL = "terminal"


def check_unit_interval(name: str, value) -> float:
    """Return ``value`` as a float, or raise InvalidArgument if it is not in [0, 1]."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidArgument(f"{name} must be a number, got {value!r}")
    if math.isnan(value) or not 0.0 <= value <= 1.0:
        raise InvalidArgument(f"{name} must lie in [0, 1], got {value!r}")
    return float(value)


def _bounded(value: float) -> float:
    if value >= 1.0 - BOUND_EPSILON:
        return 1.0
    if value <= BOUND_EPSILON:
        return 0.0
    return value


@dataclass(frozen=True)
class TrainingState:
    learning_rate: float = INITIAL_LEARNING_RATE
    error_rate:    float = INITIAL_ERROR_RATE

    def __post_init__(self) -> None:
        object.__setattr__(self, "learning_rate", check_unit_interval("learning_rate", self.learning_rate))
        object.__setattr__(self, "error_rate", check_unit_interval("error_rate", self.error_rate))

    @property
    def efficiency(self) -> float:
        return self.learning_rate / (1 + self.error_rate)

    @property
    def is_saturated(self) -> bool:
        """Error rate has hit the ceiling; the round must end."""
        return self.error_rate >= 1.0

    def as_payload(self) -> dict:
        return {
            "learning_rate": self.learning_rate,
            "error_rate":    self.error_rate,
            "efficiency":    self.efficiency,
        }


def tick(state: TrainingState) -> TrainingState:
    """One drift step. Both updates read the learning rate from before the step."""
    learning = state.learning_rate
    drift = DRIFT_BASE + DRIFT_SCALE * (1 - learning)
    decay = DECAY_BASE + DECAY_SCALE * (1 - learning)
    return TrainingState(
        learning_rate=_bounded(max(0.0, learning - decay)),
        error_rate=_bounded(min(1.0, state.error_rate + drift)),
    )


def apply_boost(state: TrainingState) -> TrainingState:
    return TrainingState(
        learning_rate=_bounded(min(1.0, state.learning_rate + BOOST_LEARNING)),
        error_rate=_bounded(max(0.0, state.error_rate - BOOST_ERROR)),
    )
