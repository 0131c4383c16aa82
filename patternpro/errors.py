"""
patternpro/errors.py
Exceptions raised by the pattern engine and the training model.
"""


class PatternProError(Exception):
    """Base class for every error the game core raises."""


class InvalidArgument(PatternProError, ValueError):
    """A caller passed a value outside the range an operation accepts."""


class UnreachableState(PatternProError, RuntimeError):
    """Dispatch hit a case the closed family catalog should make impossible."""
