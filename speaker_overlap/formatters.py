"""Output formatters for resolved segments."""

import json
from datetime import datetime, timezone

from .types import OverlapRegion, TimedSpeakerSegment

# Schema version for JSON output (for future compatibility)
JSON_SCHEMA_VERSION = "1.0"


def _format_timestamp_simple(seconds: float) -> str:
    """Format seconds as simple timestamp: MM:SS.mm or HH:MM:SS.mm for longer audio."""
    hours = int(seconds // 3600)
    minutes = int((seconds % 3600) // 60)
    secs = seconds % 60
    if hours > 0:
        return f"{hours:02d}:{minutes:02d}:{secs:05.2f}"
    return f"{minutes:02d}:{secs:05.2f}"


def format_txt(segments: list[TimedSpeakerSegment]) -> str:
    """
    Format segments as plain text, one speaker turn per line.

    Returns:
        Lines of the form "[00:01.50 - 00:04.00] S1"
    """
    lines = []
    for seg in segments:
        start_ts = _format_timestamp_simple(seg.start_time_seconds)
        end_ts = _format_timestamp_simple(seg.end_time_seconds)
        lines.append(f"[{start_ts} - {end_ts}] {seg.speaker_id}")
    return "\n".join(lines)


def format_rttm(segments: list[TimedSpeakerSegment], file_id: str = "audio") -> str:
    """
    Format segments as RTTM SPEAKER lines.

    The quality score is written to the confidence column.
    """
    lines = []
    for seg in segments:
        lines.append(
            f"SPEAKER {file_id} 1 {seg.start_time_seconds:.3f} {seg.duration:.3f} "
            f"<NA> <NA> {seg.speaker_id} {seg.quality_score:.3f} <NA>"
        )
    return "\n".join(lines) + ("\n" if lines else "")


def _segment_to_dict(seg: TimedSpeakerSegment) -> dict:
    data = {
        "speaker": seg.speaker_id,
        "start": round(seg.start_time_seconds, 3),
        "end": round(seg.end_time_seconds, 3),
        "duration": round(seg.duration, 3),
        "quality": round(seg.quality_score, 3),
    }
    embedding = [float(x) for x in seg.embedding]
    if embedding:
        data["embedding"] = embedding
    return data


def format_json(
    segments: list[TimedSpeakerSegment],
    regions: list[OverlapRegion] | None = None,
    source_path: str = "",
) -> str:
    """
    Format segments as structured JSON.

    Args:
        segments: Segments to write
        regions: Overlap regions found in the input, included when given
        source_path: Input file the segments came from

    Returns:
        JSON formatted string with metadata
    """
    data = {
        "schema_version": JSON_SCHEMA_VERSION,
        "generated_at": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        "source_path": source_path,
        "segments": [_segment_to_dict(seg) for seg in segments],
    }
    if regions is not None:
        data["overlap_regions"] = [
            {
                "start": round(region.start, 3),
                "end": round(region.end, 3),
                "speakers": list(region.speakers),
            }
            for region in regions
        ]
    return json.dumps(data, indent=2, ensure_ascii=False)


# Mapping of format names to formatter functions
FORMATTERS = {
    "json": format_json,
    "rttm": format_rttm,
    "txt": format_txt,
}

# File extensions for each format
EXTENSIONS = {
    "json": ".json",
    "rttm": ".rttm",
    "txt": ".txt",
}
