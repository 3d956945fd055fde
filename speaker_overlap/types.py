"""Speaker segment types.

Contains the value objects shared between the resolver, the file loaders
and the output formatters.
"""

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class TimedSpeakerSegment:
    """A time span attributed to one speaker by the diarizer."""

    speaker_id: str
    start_time_seconds: float
    end_time_seconds: float
    embedding: Any = field(default=(), compare=False, repr=False)
    """Speaker embedding vector. Carried through untouched, never compared."""

    quality_score: float = 1.0

    @property
    def duration(self) -> float:
        return self.end_time_seconds - self.start_time_seconds

    def overlaps(self, other: "TimedSpeakerSegment") -> bool:
        """True if the two spans share any time (touching ends do not count)."""
        return (
            self.start_time_seconds < other.end_time_seconds
            and other.start_time_seconds < self.end_time_seconds
        )


@dataclass(frozen=True)
class OverlapRegion:
    """A span of time where two or more distinct speakers are active."""

    start: float  # seconds
    end: float  # seconds
    speakers: tuple[str, ...]

    @property
    def duration(self) -> float:
        return self.end - self.start
