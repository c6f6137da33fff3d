"""Stitch played segments into a single journey recap."""

from pydub import AudioSegment

from journey_narrator.constants import PAUSE_BETWEEN_SEGMENTS_MS
from journey_narrator.models import Segment


def assemble(segments: list[Segment], pause_ms: int = PAUSE_BETWEEN_SEGMENTS_MS) -> AudioSegment:
    """Concatenate segment audio in index order with a pause between segments.

    Segments without audio are skipped.
    """
    ordered = sorted((s for s in segments if s.audio is not None), key=lambda s: s.index)
    if not ordered:
        return AudioSegment.silent(duration=0)

    result = ordered[0].audio
    for segment in ordered[1:]:
        result += AudioSegment.silent(duration=pause_ms) + segment.audio
    return result
