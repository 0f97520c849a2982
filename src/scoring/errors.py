"""
Exceptions raised by the scoring core.
"""


class ScoringError(Exception):
    """Base class for all scoring errors."""


class InvalidInputError(ScoringError, ValueError):
    """An operation was rejected before any state changed."""
