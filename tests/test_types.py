"""Tests for segment types and resolver configuration."""

import dataclasses
import math

import numpy as np
import pytest

from speaker_overlap.config import DEFAULT_MIN_SEGMENT_DURATION, ResolverConfig
from speaker_overlap.types import OverlapRegion, TimedSpeakerSegment


class TestTimedSpeakerSegment:
    """Tests for TimedSpeakerSegment dataclass."""

    def test_duration(self):
        seg = TimedSpeakerSegment(speaker_id="S1", start_time_seconds=1.5, end_time_seconds=4.0)
        assert seg.duration == pytest.approx(2.5)

    def test_default_quality(self):
        seg = TimedSpeakerSegment(speaker_id="S1", start_time_seconds=0.0, end_time_seconds=1.0)
        assert seg.quality_score == pytest.approx(1.0)

    def test_is_frozen(self):
        seg = TimedSpeakerSegment(speaker_id="S1", start_time_seconds=0.0, end_time_seconds=1.0)
        with pytest.raises(dataclasses.FrozenInstanceError):
            seg.start_time_seconds = 2.0

    def test_equality_ignores_embedding(self):
        a = TimedSpeakerSegment("S1", 0.0, 1.0, embedding=np.ones(4))
        b = TimedSpeakerSegment("S1", 0.0, 1.0, embedding=np.zeros(4))
        assert a == b

    def test_overlaps(self):
        a = TimedSpeakerSegment("S1", 0.0, 5.0)
        b = TimedSpeakerSegment("S2", 4.0, 6.0)
        c = TimedSpeakerSegment("S2", 5.0, 6.0)
        assert a.overlaps(b)
        assert b.overlaps(a)
        assert not a.overlaps(c)


class TestOverlapRegion:
    """Tests for OverlapRegion dataclass."""

    def test_duration(self):
        region = OverlapRegion(start=2.0, end=3.5, speakers=("A", "B"))
        assert region.duration == pytest.approx(1.5)


class TestResolverConfig:
    """Tests for ResolverConfig."""

    def test_defaults(self):
        config = ResolverConfig()
        assert config.min_segment_duration == pytest.approx(DEFAULT_MIN_SEGMENT_DURATION)
        assert config.resolve_overlaps is True

    def test_can_be_disabled(self):
        config = ResolverConfig(resolve_overlaps=False)
        assert config.resolve_overlaps is False

    def test_zero_min_duration_allowed(self):
        assert ResolverConfig(min_segment_duration=0.0).min_segment_duration == 0.0

    def test_negative_min_duration_raises(self):
        with pytest.raises(ValueError, match="min_segment_duration"):
            ResolverConfig(min_segment_duration=-1.0)

    def test_non_finite_min_duration_raises(self):
        with pytest.raises(ValueError, match="min_segment_duration"):
            ResolverConfig(min_segment_duration=math.inf)
