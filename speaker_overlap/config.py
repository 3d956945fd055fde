"""Resolver configuration."""

import math
from dataclasses import dataclass

# Resolved fragments shorter than this are dropped (seconds)
DEFAULT_MIN_SEGMENT_DURATION = 0.3


@dataclass(frozen=True)
class ResolverConfig:
    """Settings for the overlap resolution step.

    Mirrors the two fields the diarization pipeline exposes for it.
    """

    min_segment_duration: float = DEFAULT_MIN_SEGMENT_DURATION
    """Minimum duration (seconds) a resolved segment must reach to be kept."""

    resolve_overlaps: bool = True
    """Whether cross-speaker overlaps are resolved at all."""

    def __post_init__(self) -> None:
        if not math.isfinite(self.min_segment_duration) or self.min_segment_duration < 0:
            raise ValueError(
                f"min_segment_duration must be a finite value >= 0, got {self.min_segment_duration}"
            )
