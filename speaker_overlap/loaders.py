"""Segment file discovery and parsing utilities."""

import json
from pathlib import Path

import numpy as np

from .types import TimedSpeakerSegment

# Diarization output formats we can read
SUPPORTED_EXTENSIONS = frozenset({".json", ".rttm"})

# Stem marker for files we wrote; directory scans leave them out
RESOLVED_SUFFIX = ".resolved"


def is_supported_segment_file(path: Path) -> bool:
    """Check if a file has a readable segment format."""
    return path.suffix.lower() in SUPPORTED_EXTENSIONS


def is_resolved_output(path: Path) -> bool:
    """Check if a file name marks it as output of an earlier run."""
    return path.stem.endswith(RESOLVED_SUFFIX)


def _scan_directory(directory: Path, recursive: bool) -> list[Path]:
    pattern = "**/*" if recursive else "*"
    return [
        p for p in directory.glob(pattern)
        if p.is_file() and is_supported_segment_file(p) and not is_resolved_output(p)
    ]


def discover_segment_files(paths: list[Path], recursive: bool = False) -> list[Path]:
    """
    Collect segment files from files and directories.

    Files named explicitly are taken as long as their format is supported,
    including earlier ".resolved" output. Directory scans skip that output
    so repeated runs do not feed on themselves.

    Args:
        paths: List of file or directory paths
        recursive: If True, search directories recursively

    Returns:
        Sorted, de-duplicated list of segment file paths
    """
    found: set[Path] = set()

    for path in paths:
        if path.is_dir():
            found.update(_scan_directory(path, recursive))
        elif path.is_file() and is_supported_segment_file(path):
            found.add(path)

    return sorted(found)


def parse_rttm(text: str) -> list[TimedSpeakerSegment]:
    """
    Parse RTTM text into segments.

    Only SPEAKER lines are read:
    TYPE FILE CHAN START DUR ORTHO STYPE NAME CONF SLAT

    The CONF field, when numeric, becomes the quality score. RTTM has no
    embeddings, so every segment gets an empty one.

    Raises:
        ValueError: If a SPEAKER line is truncated or has non-numeric timing
    """
    segments = []

    for line_no, line in enumerate(text.splitlines(), start=1):
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        parts = line.split()
        if parts[0].upper() != "SPEAKER":
            continue
        if len(parts) < 8:
            raise ValueError(f"RTTM line {line_no}: expected at least 8 fields, got {len(parts)}")

        try:
            start = float(parts[3])
            duration = float(parts[4])
        except ValueError:
            raise ValueError(f"RTTM line {line_no}: invalid start/duration {parts[3]!r} {parts[4]!r}")

        quality = 1.0
        if len(parts) > 8 and parts[8] != "<NA>":
            try:
                quality = float(parts[8])
            except ValueError:
                raise ValueError(f"RTTM line {line_no}: invalid confidence {parts[8]!r}")

        segments.append(
            TimedSpeakerSegment(
                speaker_id=parts[7],
                start_time_seconds=start,
                end_time_seconds=start + duration,
                embedding=np.zeros(0, dtype=np.float32),
                quality_score=quality,
            )
        )

    return segments


def _segment_from_dict(item: dict, index: int) -> TimedSpeakerSegment:
    speaker = item.get("speaker", item.get("speaker_id"))
    if speaker is None:
        raise ValueError(f"Segment {index}: missing 'speaker'")
    for key in ("start", "end"):
        if key not in item:
            raise ValueError(f"Segment {index}: missing '{key}'")

    return TimedSpeakerSegment(
        speaker_id=str(speaker),
        start_time_seconds=float(item["start"]),
        end_time_seconds=float(item["end"]),
        embedding=np.asarray(item.get("embedding", []), dtype=np.float32),
        quality_score=float(item.get("quality", 1.0)),
    )


def parse_json(text: str) -> list[TimedSpeakerSegment]:
    """
    Parse JSON segment data.

    Accepts either a bare list of segment objects or a document with a
    "segments" list (such as our own JSON output). Each object needs
    "speaker" (or "speaker_id"), "start" and "end"; "quality" and
    "embedding" are optional.

    Raises:
        ValueError: If the document shape is wrong or a segment lacks a field
    """
    data = json.loads(text)
    if isinstance(data, dict):
        data = data.get("segments")
    if not isinstance(data, list):
        raise ValueError("Expected a list of segments or an object with a 'segments' list")

    return [_segment_from_dict(item, i) for i, item in enumerate(data)]


PARSERS = {
    ".json": parse_json,
    ".rttm": parse_rttm,
}


def load_segments(path: Path) -> list[TimedSpeakerSegment]:
    """Load segments from a JSON or RTTM file, chosen by extension."""
    parser = PARSERS.get(path.suffix.lower())
    if parser is None:
        raise ValueError(
            f"Unsupported segment file '{path.name}'. "
            f"Use one of: {', '.join(sorted(SUPPORTED_EXTENSIONS))}"
        )
    return parser(path.read_text(encoding="utf-8"))
