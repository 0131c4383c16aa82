"""Training balance dynamics and the simulated AI batch-solve."""

from patternpro.training.model import RoundPhase, TrainingState, tick, apply_boost
from patternpro.training.simulation import (
    RoundRecord, SimulationResult,
    compute_base_accuracy, synthesize_wrong_answer, simulate, performance_message,
)

__all__ = [
    "RoundPhase", "TrainingState", "tick", "apply_boost",
    "RoundRecord", "SimulationResult",
    "compute_base_accuracy", "synthesize_wrong_answer", "simulate", "performance_message",
]
