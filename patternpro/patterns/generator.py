"""
patternpro/patterns/generator.py

Pattern engine. Every puzzle comes from one family of a closed catalog:
  1. Parameters are drawn from the ranges in data.PARAM_RANGES.
  2. The family's term function produces five consecutive terms.
  3. The first four are shown, the fifth is the answer.

Randomness is always injected (any random.Random-compatible object), so a
seeded or scripted source reproduces a batch exactly.
"""
from __future__ import annotations

import math
import random
from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from typing import Callable, Dict, List, Optional, Tuple, Union

from patternpro.errors import InvalidArgument, UnreachableState
from patternpro.patterns.data import (
    SEQUENCE_LENGTH, HARMONIC_DECIMALS, PRIMES, COMPOSITES, PARAM_RANGES,
)

Number = Union[int, float]


class PatternFamily(Enum):
    ARITHMETIC          = "arithmetic"
    GEOMETRIC           = "geometric"
    HARMONIC            = "harmonic"
    SQUARES             = "squares"
    CUBES               = "cubes"
    QUADRATIC           = "quadratic"
    FIBONACCI           = "fibonacci"
    FACTORIAL           = "factorial"
    DOUBLE_FACTORIAL    = "double_factorial"
    ALTERNATING_SIGN    = "alternating_sign"
    ALTERNATING_MUL_ADD = "alternating_mul_add"
    POWERS_OF_TEN       = "powers_of_ten"
    POWERS_OF_TWO       = "powers_of_two"
    SQUARE_MINUS_ONE    = "square_minus_one"
    MIRRORED            = "mirrored"
    REPEATING_DIGIT     = "repeating_digit"
    TRIANGULAR          = "triangular"
    PENTAGONAL          = "pentagonal"
    CENTERED_HEXAGONAL  = "centered_hexagonal"
    PRIMES              = "primes"
    COMPOSITES          = "composites"


@dataclass(frozen=True)
class Puzzle:
    sequence: Tuple[Number, ...]
    answer:   Number
    rule:     str
    family:   PatternFamily
    params:   Dict[str, int] = field(default_factory=dict, compare=False, hash=False)
    decimals: Optional[int]  = None

    def as_payload(self, reveal: bool = False) -> Dict:
        """JSON-ready view; the answer and rule stay server-side unless revealed."""
        payload = {
            "sequence": list(self.sequence),
            "family":   self.family.value,
            "decimals": self.decimals,
        }
        if reveal:
            payload["answer"] = self.answer
            payload["rule"]   = self.rule
        return payload


# ── Term helpers ──────────────────────────────────────────────────────────────

def _terms(fn: Callable[[int], Number]) -> List[Number]:
    return [fn(i) for i in range(SEQUENCE_LENGTH + 1)]


def _double_factorial(n: int) -> int:
    result = 1
    while n > 1:
        result *= n
        n -= 2
    return result


def round_half_up(value: float, decimals: int) -> float:
    """Round to ``decimals`` digits with ties away from zero (0.125 -> 0.13).

    Works on the shortest decimal repr of the float, so the digits a player
    reads are the digits that get rounded.
    """
    quantum = Decimal(1).scaleb(-decimals)
    return float(Decimal(repr(float(value))).quantize(quantum, rounding=ROUND_HALF_UP))


def _signed(value: int) -> str:
    return f"+ {value}" if value >= 0 else f"- {abs(value)}"


def _quadratic_label(a: int, b: int, c: int) -> str:
    label = "n²" if a == 1 else f"{a}n²"
    if b:
        label += f" {_signed(b)}n"
    if c:
        label += f" {_signed(c)}"
    return label


# ── Family builders ───────────────────────────────────────────────────────────
# Each builder maps drawn parameters to (five terms, rule label).

def _arithmetic(p):
    return _terms(lambda i: p["start"] + i * p["diff"]), f"Arithmetic: +{p['diff']}"


def _geometric(p):
    return _terms(lambda i: p["start"] * p["ratio"] ** i), f"Geometric: ×{p['ratio']}"


def _harmonic(p):
    return (
        _terms(lambda i: round_half_up(1 / (p["start"] + i), HARMONIC_DECIMALS)),
        f"Harmonic: 1/n from n = {p['start']}",
    )


def _squares(p):
    return _terms(lambda i: (p["start"] + i) ** 2), "Perfect squares"


def _cubes(p):
    return _terms(lambda i: (p["start"] + i) ** 3), "Perfect cubes"


def _quadratic(p):
    a, b, c = p["a"], p["b"], p["c"]
    terms = _terms(lambda i: a * (p["start"] + i) ** 2 + b * (p["start"] + i) + c)
    return terms, f"Quadratic: {_quadratic_label(a, b, c)}"


def _fibonacci(p):
    terms = [p["a"], p["b"]]
    while len(terms) < SEQUENCE_LENGTH + 1:
        terms.append(terms[-1] + terms[-2])
    return terms, "Fibonacci-like: sum of the previous two"


def _factorial(p):
    return _terms(lambda i: math.factorial(p["start"] + i)), "Factorials"


def _double_factorial_family(p):
    return _terms(lambda i: _double_factorial(p["start"] + i)), "Double factorials"


def _alternating_sign(p):
    terms = _terms(lambda i: (-1) ** i * (p["start"] + i * p["step"]))
    return terms, f"Alternating sign: magnitude +{p['step']}"


def _alternating_mul_add(p):
    terms = [p["start"]]
    for i in range(SEQUENCE_LENGTH):
        terms.append(terms[-1] * p["factor"] if i % 2 == 0 else terms[-1] + p["addend"])
    return terms, f"Alternating: ×{p['factor']}, +{p['addend']}"


def _powers_of_ten(p):
    return _terms(lambda i: 10 ** (p["start"] + i)), "Powers of ten"


def _powers_of_two(p):
    return _terms(lambda i: 2 ** (p["start"] + i)), "Powers of two"


def _square_minus_one(p):
    return _terms(lambda i: (p["start"] + i) ** 2 - 1), "Squares minus one"


def _mirrored(p):
    terms = _terms(lambda i: p["start"] + p["step"] * (2 - abs(i - 2)))
    return terms, f"Mirrored: up {p['step']}, then back down"


def _repeating_digit(p):
    digit = p["digit"]
    return _terms(lambda i: digit * (10 ** (i + 1) - 1) // 9), f"Repeating digit: {digit}"


def _triangular(p):
    return _terms(lambda i: (p["start"] + i) * (p["start"] + i + 1) // 2), "Triangular numbers"


def _pentagonal(p):
    return _terms(lambda i: (p["start"] + i) * (3 * (p["start"] + i) - 1) // 2), "Pentagonal numbers"


def _centered_hexagonal(p):
    return (
        _terms(lambda i: 3 * (p["start"] + i) * (p["start"] + i - 1) + 1),
        "Centered hexagonal numbers",
    )


def _primes(p):
    return list(PRIMES[p["index"]:p["index"] + SEQUENCE_LENGTH + 1]), "Prime numbers"


def _composites(p):
    return list(COMPOSITES[p["index"]:p["index"] + SEQUENCE_LENGTH + 1]), "Composite numbers"


_BUILDERS: Dict[PatternFamily, Callable[[Dict[str, int]], Tuple[List[Number], str]]] = {
    PatternFamily.ARITHMETIC:          _arithmetic,
    PatternFamily.GEOMETRIC:           _geometric,
    PatternFamily.HARMONIC:            _harmonic,
    PatternFamily.SQUARES:             _squares,
    PatternFamily.CUBES:               _cubes,
    PatternFamily.QUADRATIC:           _quadratic,
    PatternFamily.FIBONACCI:           _fibonacci,
    PatternFamily.FACTORIAL:           _factorial,
    PatternFamily.DOUBLE_FACTORIAL:    _double_factorial_family,
    PatternFamily.ALTERNATING_SIGN:    _alternating_sign,
    PatternFamily.ALTERNATING_MUL_ADD: _alternating_mul_add,
    PatternFamily.POWERS_OF_TEN:       _powers_of_ten,
    PatternFamily.POWERS_OF_TWO:       _powers_of_two,
    PatternFamily.SQUARE_MINUS_ONE:    _square_minus_one,
    PatternFamily.MIRRORED:            _mirrored,
    PatternFamily.REPEATING_DIGIT:     _repeating_digit,
    PatternFamily.TRIANGULAR:          _triangular,
    PatternFamily.PENTAGONAL:          _pentagonal,
    PatternFamily.CENTERED_HEXAGONAL:  _centered_hexagonal,
    PatternFamily.PRIMES:              _primes,
    PatternFamily.COMPOSITES:          _composites,
}


# ── Public API ────────────────────────────────────────────────────────────────

def families() -> List[PatternFamily]:
    return list(PatternFamily)


def make_puzzle(family: PatternFamily, **params: int) -> Puzzle:
    """Instantiate ``family`` with explicit parameters (no randomness)."""
    builder = _BUILDERS.get(family)
    if builder is None:
        raise UnreachableState(f"No builder registered for pattern family {family!r}")

    expected = set(PARAM_RANGES[family.value])
    if set(params) != expected:
        raise InvalidArgument(
            f"{family.value} takes parameters {sorted(expected)}, got {sorted(params)}"
        )

    terms, rule = builder(params)
    if len(terms) != SEQUENCE_LENGTH + 1:
        raise InvalidArgument(f"{family.value} parameters {params} run past the lookup table")
    return Puzzle(
        sequence=tuple(terms[:SEQUENCE_LENGTH]),
        answer=terms[SEQUENCE_LENGTH],
        rule=rule,
        family=family,
        params=dict(params),
        decimals=HARMONIC_DECIMALS if family is PatternFamily.HARMONIC else None,
    )


def build_pattern(family: PatternFamily, rng: Optional[random.Random] = None) -> Puzzle:
    """Instantiate ``family`` with parameters drawn from ``rng``."""
    rng = rng or random.Random()
    ranges = PARAM_RANGES.get(getattr(family, "value", None))
    if ranges is None:
        raise UnreachableState(f"No parameter ranges for pattern family {family!r}")
    params = {name: rng.randint(low, high) for name, (low, high) in ranges.items()}
    return make_puzzle(family, **params)


def generate_pattern(rng: Optional[random.Random] = None) -> Puzzle:
    rng = rng or random.Random()
    return build_pattern(rng.choice(families()), rng)


def generate_patterns(count: int, rng: Optional[random.Random] = None) -> List[Puzzle]:
    """``count`` independent puzzles; repeats of a family or sequence are allowed."""
    if isinstance(count, bool) or not isinstance(count, int) or count <= 0:
        raise InvalidArgument(f"count must be a positive integer, got {count!r}")
    rng = rng or random.Random()
    return [generate_pattern(rng) for _ in range(count)]


def is_correct(puzzle: Puzzle, value) -> bool:
    """Judge ``value`` against the puzzle, rounding the way the answer was rounded."""
    if value is None or isinstance(value, bool):
        return False
    try:
        number = float(value)
    except (TypeError, ValueError):
        return False
    if math.isnan(number) or math.isinf(number):
        return False
    if puzzle.decimals is None:
        return number == puzzle.answer
    return round_half_up(number, puzzle.decimals) == puzzle.answer
