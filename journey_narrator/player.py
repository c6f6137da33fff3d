"""Playback surface for the command line: consumes segments in order."""

import asyncio
import logging

from journey_narrator.artifacts import write_segment
from journey_narrator.constants import OUTPUT_FORMAT, PLAYBACK_POLL_SECONDS, PLAYBACK_STALL_SECONDS
from journey_narrator.models import JourneyPhase, Segment

logger = logging.getLogger(__name__)


def segment_seconds(segment: Segment) -> float:
    """Playing time of a segment's audio (pydub lengths are in ms)."""
    if segment.audio is None:
        return 0.0
    try:
        return len(segment.audio) / 1000
    except TypeError:
        return 0.0


class Listener:
    """Plays a journey's segments one after another, reporting position as it goes.

    "Playing" means saving the segment under the session directory and then
    waiting out its duration, scaled by `speed` (speed <= 0 skips the wait).
    If the next segment isn't buffered, the listener waits and re-reports its
    position; after `stall_seconds` without new audio it stops and sets
    `stalled`.
    """

    def __init__(
        self,
        journey,
        session_dir: str | None = None,
        speed: float = 1.0,
        fmt: str = OUTPUT_FORMAT,
        poll_seconds: float = PLAYBACK_POLL_SECONDS,
        stall_seconds: float = PLAYBACK_STALL_SECONDS,
        on_segment=None,
    ):
        self.journey = journey
        self.session_dir = session_dir
        self.speed = speed
        self.fmt = fmt
        self.poll_seconds = poll_seconds
        self.stall_seconds = stall_seconds
        self.on_segment = on_segment
        self.played: list[Segment] = []
        self.stalled = False

    async def listen(self) -> list[Segment]:
        index = 1
        waited = 0.0
        while self.journey.phase >= JourneyPhase.READY_TO_PLAY:
            timeline = self.journey.timeline
            if timeline is None or index > timeline.total_segments_estimate:
                break

            segment = timeline.get(index)
            if segment is None:
                if waited >= self.stall_seconds:
                    logger.error("No audio for segment %d after %.0fs, stopping playback", index, waited)
                    self.stalled = True
                    break
                self.journey.report_playback(index - 1)
                await asyncio.sleep(self.poll_seconds)
                waited += self.poll_seconds
                continue

            waited = 0.0
            self.journey.report_playback(index)
            if self.session_dir:
                write_segment(self.session_dir, segment, fmt=self.fmt)
            if self.on_segment is not None:
                self.on_segment(segment, timeline.total_segments_estimate)
            if self.speed > 0:
                await asyncio.sleep(segment_seconds(segment) / self.speed)
            self.played.append(segment)
            index += 1

        return self.played
