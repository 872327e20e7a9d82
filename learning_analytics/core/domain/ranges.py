"""Time ranges and composite sample identifiers."""

from __future__ import annotations

from dataclasses import dataclass

# Separator between the sample id and the range index of a unique sample id.
UNIQUE_SAMPLE_ID_SEPARATOR: str = "-"


@dataclass(frozen=True, slots=True)
class TimeRange:
    """One slice of an analysable's duration produced by a time splitting method."""

    index: int
    start: int
    end: int

    def contains(self, timestamp: int) -> bool:
        return self.start <= timestamp <= self.end


def append_range_index(sample_id: int, range_index: int) -> str:
    """Build the ``uniquesampleid`` of a sample in a given range."""
    return f"{sample_id}{UNIQUE_SAMPLE_ID_SEPARATOR}{range_index}"


def infer_sample_info(unique_sample_id: str) -> tuple[int, int]:
    """Decode a ``uniquesampleid`` back into ``(sample_id, range_index)``."""
    sample_part, sep, range_part = unique_sample_id.rpartition(UNIQUE_SAMPLE_ID_SEPARATOR)
    if not sep or not sample_part:
        raise ValueError(f"Malformed unique sample id: {unique_sample_id!r}")
    return int(sample_part), int(range_part)
