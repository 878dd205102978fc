"""Caption timing from a words-per-second estimate, and SRT serialization."""

from __future__ import annotations

import math
from typing import List

from core import CaptionSegment, CaptionTrack


MIN_WORDS_PER_SEGMENT = 2
MAX_WORDS_PER_SEGMENT = 4


def split_words(script: str) -> List[str]:
    return str(script or "").split()


def words_per_segment(words_per_second: float) -> int:
    """``clamp(round(wps * 2), 2, 4)`` with half-up rounding."""
    size = int(math.floor(words_per_second * 2 + 0.5))
    return max(MIN_WORDS_PER_SEGMENT, min(MAX_WORDS_PER_SEGMENT, size))


def format_srt_timestamp(seconds: float) -> str:
    """``HH:MM:SS,mmm`` with milliseconds truncated, never rounded up."""
    total_ms = int(math.floor(max(0.0, float(seconds)) * 1000 + 1e-6))
    hours, remainder = divmod(total_ms, 3_600_000)
    minutes, remainder = divmod(remainder, 60_000)
    secs, millis = divmod(remainder, 1000)
    return f"{hours:02d}:{minutes:02d}:{secs:02d},{millis:03d}"


def compute_captions(script: str, duration_seconds: float) -> CaptionTrack:
    """
    Split a narration script into timed caption segments.

    Segment ``k`` ends at ``duration * words_so_far / total_words``, which
    equals the running sum of ``len(segment) / wps`` and makes the last end
    exactly ``duration_seconds``.
    """
    duration = float(duration_seconds)
    if duration <= 0:
        raise ValueError("duration_seconds must be positive")

    words = split_words(script)
    if not words:
        return CaptionTrack(duration_seconds=duration, words_per_second=0.0, words_per_segment=MIN_WORDS_PER_SEGMENT)

    total = len(words)
    wps = total / duration
    size = words_per_segment(wps)

    segments = []
    start = 0.0
    consumed = 0
    for index, offset in enumerate(range(0, total, size), start=1):
        group = words[offset : offset + size]
        consumed += len(group)
        end = duration if consumed == total else duration * consumed / total
        segments.append(CaptionSegment(index=index, start_seconds=start, end_seconds=end, text=" ".join(group)))
        start = end

    return CaptionTrack(duration_seconds=duration, words_per_second=wps, words_per_segment=size, segments=segments)


def to_srt(track: CaptionTrack) -> str:
    blocks = [
        f"{segment.index}\n"
        f"{format_srt_timestamp(segment.start_seconds)} --> {format_srt_timestamp(segment.end_seconds)}\n"
        f"{segment.text}\n"
        for segment in track.segments
    ]
    return "\n".join(blocks)
