"""Speaker overlap resolution for diarization output."""

__version__ = "0.1.0"

from .config import ResolverConfig
from .resolver import (
    OverlapResolver,
    find_overlap_regions,
    has_cross_speaker_overlap,
    resolve_overlaps,
)
from .types import OverlapRegion, TimedSpeakerSegment

__all__ = [
    "OverlapRegion",
    "OverlapResolver",
    "ResolverConfig",
    "TimedSpeakerSegment",
    "find_overlap_regions",
    "has_cross_speaker_overlap",
    "resolve_overlaps",
]
