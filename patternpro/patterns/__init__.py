"""Pattern engine: sequence families, puzzle generation and answer judging."""

from patternpro.patterns.generator import (
    PatternFamily, Puzzle,
    families, make_puzzle, build_pattern, generate_pattern, generate_patterns, is_correct,
    round_half_up,
)

__all__ = [
    "PatternFamily", "Puzzle",
    "families", "make_puzzle", "build_pattern", "generate_pattern", "generate_patterns",
    "is_correct", "round_half_up",
]
