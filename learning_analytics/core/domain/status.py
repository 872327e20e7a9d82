"""Analysis and evaluation status flags.

Statuses are combined with bitwise OR: evaluation callers check whether a
returned status *contains* a flag rather than comparing for equality.
"""

from __future__ import annotations

from enum import IntFlag


class AnalysisStatus(IntFlag):
    """Status of one (analysable x time splitting) cell or one evaluation."""

    OK = 0
    GENERAL_ERROR = 1
    NO_DATASET = 2
    EVALUATE_LOW_SCORE = 4
    EVALUATE_NOT_ENOUGH_DATA = 8
    ANALYSABLE_REJECTED_TIME_SPLITTING_METHOD = 16
    ANALYSABLE_STATUS_INVALID_FOR_TARGET = 32

    def contains(self, flag: AnalysisStatus) -> bool:
        """Return True if every bit of ``flag`` is set in this status."""
        return (self & flag) == flag
