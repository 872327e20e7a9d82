"""Canonical rejection reasons.

Rejections are expected, non-fatal outcomes of the analysis pipeline. They
are reported as messages next to an ``AnalysisStatus`` and never raised.
"""

from __future__ import annotations


class RejectReason:
    """String constants describing why a cell produced no dataset."""

    INVALID_FOR_TARGET = "ANALYSABLE_NOT_VALID_FOR_TARGET"
    INVALID_FOR_TIME_SPLITTING = "ANALYSABLE_NOT_VALID_FOR_TIME_SPLITTING"
    NO_DATA = "NO_DATA"
    NO_NEW_DATA = "NO_NEW_DATA"
    NO_NEW_TIME_RANGES = "NO_NEW_TIME_RANGES"
    ANALYSIS_IN_PROGRESS = "ANALYSIS_IN_PROGRESS"
    NO_VALID_SAMPLES = "NO_VALID_SAMPLES"
    NO_VALID_DATA = "NO_VALID_DATA"
    NO_DATASET_FOR_TIME_SPLITTING = "NO_DATASET_FOR_TIME_SPLITTING"
    MODEL_IS_STATIC = "MODEL_IS_STATIC"
    PROCESSOR_NOT_READY = "PROCESSOR_NOT_READY"
