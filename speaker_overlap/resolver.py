"""Cross-speaker overlap resolution for diarization output.

A diarizer may attribute the same stretch of audio to more than one
speaker. The resolver turns such output into a time-ordered sequence of
non-overlapping segments:

1. Break the timeline at every segment start and end.
2. Give each elementary interval to the covering segment with the longest
   original duration (earliest input index on ties).
3. Merge contiguous intervals won by the same speaker into one segment,
   averaging quality scores by interval duration.
4. Drop resolved segments shorter than the minimum duration.

Input without any cross-speaker overlap is returned as-is, only sorted by
start time.
"""

import math
import warnings
from collections import Counter
from collections.abc import Callable, Iterable, Sequence
from typing import Any, NamedTuple

import numpy as np

from .config import DEFAULT_MIN_SEGMENT_DURATION, ResolverConfig
from .types import OverlapRegion, TimedSpeakerSegment


class OwnedInterval(NamedTuple):
    """An elementary interval and the input index of the segment that owns it."""

    start: float
    end: float
    owner: int

    @property
    def duration(self) -> float:
        return self.end - self.start


OwnerKey = Callable[[int, TimedSpeakerSegment], Any]


def longest_segment_first(index: int, segment: TimedSpeakerSegment) -> tuple[float, int]:
    """Owner ranking: longest original segment wins, then earliest input index."""
    return (-segment.duration, index)


def _start_time(segment: TimedSpeakerSegment) -> float:
    return segment.start_time_seconds


def _check_min_duration(min_duration: float) -> None:
    if not math.isfinite(min_duration) or min_duration < 0:
        raise ValueError(f"min_duration must be a finite value >= 0, got {min_duration}")


def validate_segments(segments: Iterable[TimedSpeakerSegment]) -> None:
    """Check every segment has finite timestamps and a positive duration.

    Raises:
        ValueError: On the first malformed segment, naming its input index.
    """
    for i, seg in enumerate(segments):
        start, end = seg.start_time_seconds, seg.end_time_seconds
        if not (math.isfinite(start) and math.isfinite(end)):
            raise ValueError(
                f"Segment {i} ({seg.speaker_id}) has a non-finite timestamp: {start} - {end}"
            )
        if start >= end:
            raise ValueError(
                f"Segment {i} ({seg.speaker_id}) must have start < end, got {start} - {end}"
            )


def has_cross_speaker_overlap(segments: Iterable[TimedSpeakerSegment]) -> bool:
    """True if two segments with different speaker ids share any time."""
    ordered = sorted(segments, key=_start_time)
    for i, seg in enumerate(ordered):
        for other in ordered[i + 1:]:
            if not seg.overlaps(other):
                break  # sorted by start, so nothing later overlaps seg either
            if other.speaker_id != seg.speaker_id:
                return True
    return False


def find_overlap_regions(segments: Iterable[TimedSpeakerSegment]) -> list[OverlapRegion]:
    """Find the maximal spans where two or more distinct speakers are active.

    Adjacent spans with the same set of speakers are reported as one region.
    A speaker overlapping only itself does not produce a region.
    """
    events = []
    for seg in segments:
        events.append((seg.start_time_seconds, 1, seg.speaker_id))
        events.append((seg.end_time_seconds, 0, seg.speaker_id))
    # Ends sort before starts so touching segments never form a region
    events.sort(key=lambda e: (e[0], e[1]))

    active: Counter = Counter()
    regions: list[OverlapRegion] = []
    last_time = None

    for time, is_start, speaker in events:
        if last_time is not None and time > last_time and len(active) > 1:
            speakers = tuple(sorted(active))
            prev = regions[-1] if regions else None
            if prev is not None and prev.end == last_time and prev.speakers == speakers:
                regions[-1] = OverlapRegion(start=prev.start, end=time, speakers=speakers)
            else:
                regions.append(OverlapRegion(start=last_time, end=time, speakers=speakers))

        if is_start:
            active[speaker] += 1
        else:
            active[speaker] -= 1
            if not active[speaker]:
                del active[speaker]
        last_time = time

    return regions


def partition_intervals(
    segments: Sequence[TimedSpeakerSegment],
    owner_key: OwnerKey = longest_segment_first,
) -> list[OwnedInterval]:
    """
    Split the covered timeline into elementary intervals and pick an owner for each.

    Args:
        segments: Segments in their original input order.
        owner_key: Ranking function over (input index, segment); the covering
                   segment with the smallest key owns the interval.

    Returns:
        Owned intervals in time order. Gaps no segment covers are omitted.
    """
    breakpoints = sorted(
        {t for seg in segments for t in (seg.start_time_seconds, seg.end_time_seconds)}
    )

    intervals = []
    for lo, hi in zip(breakpoints, breakpoints[1:]):
        covering = [
            i for i, seg in enumerate(segments)
            if seg.start_time_seconds <= lo and seg.end_time_seconds >= hi
        ]
        if not covering:
            continue  # silence between segments
        owner = min(covering, key=lambda i: owner_key(i, segments[i]))
        intervals.append(OwnedInterval(start=lo, end=hi, owner=owner))

    return intervals


def _build_run(
    segments: Sequence[TimedSpeakerSegment], run: list[OwnedInterval]
) -> TimedSpeakerSegment:
    """Collapse one same-speaker run of intervals into a segment."""
    durations = np.array([iv.duration for iv in run], dtype=np.float64)
    scores = np.array([segments[iv.owner].quality_score for iv in run], dtype=np.float64)
    quality = np.average(scores, weights=durations)
    # Keep rounding from nudging the mean outside its inputs
    quality = float(np.clip(quality, scores.min(), scores.max()))

    longest = min(run, key=lambda iv: (-iv.duration, iv.owner))

    return TimedSpeakerSegment(
        speaker_id=segments[run[0].owner].speaker_id,
        start_time_seconds=run[0].start,
        end_time_seconds=run[-1].end,
        embedding=segments[longest.owner].embedding,
        quality_score=quality,
    )


def merge_runs(
    segments: Sequence[TimedSpeakerSegment], intervals: Iterable[OwnedInterval]
) -> list[TimedSpeakerSegment]:
    """Merge contiguous intervals owned by the same speaker into segments.

    Runs are keyed on speaker id, so intervals won by two different input
    segments of one speaker still merge. A coverage gap always ends a run.
    """
    resolved = []
    run: list[OwnedInterval] = []

    for interval in intervals:
        if run:
            prev = run[-1]
            same_speaker = segments[interval.owner].speaker_id == segments[prev.owner].speaker_id
            if not same_speaker or interval.start != prev.end:
                resolved.append(_build_run(segments, run))
                run = []
        run.append(interval)

    if run:
        resolved.append(_build_run(segments, run))

    return resolved


def resolve_overlaps(
    segments: Iterable[TimedSpeakerSegment],
    min_duration: float = DEFAULT_MIN_SEGMENT_DURATION,
    enabled: bool = True,
) -> list[TimedSpeakerSegment]:
    """
    Resolve cross-speaker overlaps into non-overlapping segments.

    Args:
        segments: Diarized segments, in any order.
        min_duration: Resolved segments shorter than this (seconds) are dropped.
                      Not applied when no resolution takes place.
        enabled: If False, only sort the input by start time.

    Returns:
        Segments sorted by start time. When no two speakers overlap (or
        resolution is disabled) these are the input objects themselves.

    Raises:
        ValueError: If min_duration is negative or non-finite, or any segment
                    has a non-finite timestamp or start >= end.
    """
    _check_min_duration(min_duration)
    segments = list(segments)
    validate_segments(segments)

    if not enabled or not has_cross_speaker_overlap(segments):
        return sorted(segments, key=_start_time)

    resolved = merge_runs(segments, partition_intervals(segments))
    kept = [seg for seg in resolved if seg.duration >= min_duration]

    if not kept:
        warnings.warn(
            f"All {len(resolved)} resolved segment(s) are shorter than "
            f"min_duration={min_duration}s; nothing kept"
        )

    return kept


class OverlapResolver:
    """
    Overlap resolution step of the diarization pipeline.

    Holds the configuration so the same settings apply to every call.
    Stateless otherwise and safe to share between threads.
    """

    def __init__(self, config: ResolverConfig | None = None):
        self.config = config if config is not None else ResolverConfig()

    def resolve(self, segments: Iterable[TimedSpeakerSegment]) -> list[TimedSpeakerSegment]:
        """Resolve overlaps using the configured minimum duration and toggle."""
        return resolve_overlaps(
            segments,
            min_duration=self.config.min_segment_duration,
            enabled=self.config.resolve_overlaps,
        )

    def overlap_regions(self, segments: Iterable[TimedSpeakerSegment]) -> list[OverlapRegion]:
        return find_overlap_regions(segments)
