"""
patternpro/patterns/data.py
Constants for the pattern engine: display sizes, lookup tables and the
parameter ranges each family draws from.
"""

SEQUENCE_LENGTH  = 4       # terms shown to the player; the 5th is the answer
HARMONIC_DECIMALS = 2

PRIMES = (2, 3, 5, 7, 11, 13, 17, 19, 23, 29, 31, 37, 41, 43, 47)

COMPOSITES = (4, 6, 8, 9, 10, 12, 14, 15, 16, 18, 20, 21, 22, 24, 25, 26, 27, 28)

# Inclusive (low, high) bounds for every randomized parameter, keyed by
# family value then parameter name.
PARAM_RANGES = {
    "arithmetic":          {"start": (1, 10), "diff": (2, 6)},
    "geometric":           {"start": (2, 4), "ratio": (2, 4)},
    "harmonic":            {"start": (1, 6)},
    "squares":             {"start": (1, 5)},
    "cubes":               {"start": (1, 3)},
    "quadratic":           {"a": (1, 3), "b": (-3, 3), "c": (-5, 5), "start": (1, 3)},
    "fibonacci":           {"a": (1, 5), "b": (1, 5)},
    "factorial":           {"start": (1, 3)},
    "double_factorial":    {"start": (1, 4)},
    "alternating_sign":    {"start": (1, 5), "step": (1, 3)},
    "alternating_mul_add": {"start": (1, 5), "factor": (2, 3), "addend": (1, 5)},
    "powers_of_ten":       {"start": (0, 2)},
    "powers_of_two":       {"start": (0, 6)},
    "square_minus_one":    {"start": (2, 6)},
    "mirrored":            {"start": (1, 9), "step": (1, 5)},
    "repeating_digit":     {"digit": (1, 9)},
    "triangular":          {"start": (1, 5)},
    "pentagonal":          {"start": (1, 5)},
    "centered_hexagonal":  {"start": (1, 5)},
    "primes":              {"index": (0, len(PRIMES) - SEQUENCE_LENGTH - 1)},
    "composites":          {"index": (0, len(COMPOSITES) - SEQUENCE_LENGTH - 1)},
}
