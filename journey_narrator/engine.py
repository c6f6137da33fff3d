"""Buffering engine: keeps generated segments ahead of playback, one pipeline at a time."""

import asyncio
import logging
import time

from journey_narrator.constants import (
    BACKGROUND_MAX_RETRIES,
    BACKGROUND_RETRY_BASE_DELAY,
    BACKGROUND_RETRY_MAX_DELAY,
    LOOKAHEAD_SEGMENTS,
)
from journey_narrator.errors import JourneyError
from journey_narrator.models import JourneyPhase
from journey_narrator.pipeline import beat_for, generate_segment, recent_context

logger = logging.getLogger(__name__)


def next_segment_index(
    phase: JourneyPhase,
    generated: int,
    total: int,
    playback_index: int,
    in_flight: bool,
    lookahead: int = LOOKAHEAD_SEGMENTS,
) -> int | None:
    """Index of the segment to generate next, or None if nothing is due."""
    if phase < JourneyPhase.READY_TO_PLAY:
        return None
    needed = playback_index + lookahead
    if generated < needed and generated < total and not in_flight:
        return generated + 1
    return None


class BufferingEngine:
    """Launches generation pipelines in response to state changes.

    evaluate() is the single trigger: call it after any change to the
    timeline, route, phase or playback position. It is synchronous and
    idempotent, so redundant calls while a pipeline is running do nothing.

    Every attach/detach bumps the epoch. A pipeline remembers the epoch it
    started under; if that no longer matches when it finishes, its result is
    dropped and it leaves the lock alone.
    """

    def __init__(
        self,
        backends,
        phase_source,
        lookahead: int = LOOKAHEAD_SEGMENTS,
        retry_base_delay: float = BACKGROUND_RETRY_BASE_DELAY,
        retry_max_delay: float = BACKGROUND_RETRY_MAX_DELAY,
        max_retries: int = BACKGROUND_MAX_RETRIES,
        on_error=None,
        clock=time.monotonic,
    ):
        self.backends = backends
        self.lookahead = lookahead
        self.retry_base_delay = retry_base_delay
        self.retry_max_delay = retry_max_delay
        self.max_retries = max_retries
        self.on_error = on_error
        self._phase_source = phase_source
        self._clock = clock

        self.timeline = None
        self.route = None
        self.playback_index = 0
        self._epoch = 0
        self._in_flight = False
        self._task: asyncio.Task | None = None
        self._failed_index: int | None = None
        self._failures = 0
        self._retry_at = 0.0
        self._retry_handle: asyncio.TimerHandle | None = None

    @property
    def epoch(self) -> int:
        return self._epoch

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    @property
    def failures(self) -> int:
        return self._failures

    def attach(self, timeline, route) -> int | None:
        """Start buffering for a freshly created timeline."""
        self._epoch += 1
        timeline.epoch = self._epoch
        self.timeline = timeline
        self.route = route
        self.playback_index = 0
        self._in_flight = False
        self._clear_backoff()
        return self.evaluate()

    def detach(self) -> None:
        """Forget the current timeline. A pipeline still running will be ignored."""
        self._epoch += 1
        self.timeline = None
        self.route = None
        self.playback_index = 0
        self._in_flight = False
        self._task = None
        self._clear_backoff()

    def update_playback(self, index: int) -> int | None:
        self.playback_index = index
        return self.evaluate()

    def evaluate(self) -> int | None:
        """Launch the next pipeline if one is due. Returns the launched index."""
        if self.timeline is None or self.route is None:
            return None
        if self._retry_at and self._clock() < self._retry_at:
            return None

        index = next_segment_index(
            self._phase_source(),
            len(self.timeline),
            self.timeline.total_segments_estimate,
            self.playback_index,
            self._in_flight,
            self.lookahead,
        )
        if index is None:
            return None

        self._in_flight = True
        loop = asyncio.get_running_loop()
        self._task = loop.create_task(self._generate(index, self._epoch, self.timeline, self.route))
        self._task.add_done_callback(_log_crash)
        return index

    async def settle(self) -> None:
        """Wait until no pipeline is running for the current timeline."""
        while self._task is not None and not self._task.done():
            await asyncio.wait({self._task})

    async def _generate(self, index: int, epoch: int, timeline, route) -> None:
        logger.info("[Buffering] Starting generation for segment %d", index)
        segment = None
        try:
            segment = await generate_segment(
                self.backends,
                route,
                index,
                timeline.total_segments_estimate,
                beat_for(timeline.outline, index),
                recent_context(timeline.texts()),
            )
        except Exception as e:
            if not isinstance(e, JourneyError):
                logger.exception("[Buffering] Unexpected error generating segment %d", index)
            if epoch == self._epoch:
                self._record_failure(index, e)
        finally:
            if epoch == self._epoch:
                self._in_flight = False

        if epoch != self._epoch:
            logger.info("[Buffering] Dropping segment %d from a journey that was reset", index)
            return
        if segment is None:
            return

        self._clear_backoff()
        if timeline.add(segment):
            logger.info("[Buffering] Segment %d ready (%d/%d)", index, len(timeline), timeline.total_segments_estimate)
        else:
            logger.info("[Buffering] Segment %d already present, discarding duplicate", index)
        self.evaluate()

    def _record_failure(self, index: int, exc: Exception) -> None:
        if index == self._failed_index:
            self._failures += 1
        else:
            self._failed_index = index
            self._failures = 1

        delay = min(self.retry_base_delay * (2 ** (self._failures - 1)), self.retry_max_delay)
        self._retry_at = self._clock() + delay
        logger.warning(
            "[Buffering] Failed to generate segment %d (attempt %d): %s",
            index, self._failures, exc,
        )
        if self.on_error is not None:
            self.on_error(index, exc)

        if self._failures <= self.max_retries:
            loop = asyncio.get_running_loop()
            self._retry_handle = loop.call_later(delay, self._retry_due)
        else:
            logger.error("[Buffering] Giving up scheduled retries for segment %d", index)

    def _retry_due(self) -> None:
        self._retry_handle = None
        self._retry_at = 0.0
        self.evaluate()

    def _clear_backoff(self) -> None:
        if self._retry_handle is not None:
            self._retry_handle.cancel()
            self._retry_handle = None
        self._failed_index = None
        self._failures = 0
        self._retry_at = 0.0


def _log_crash(task: asyncio.Task) -> None:
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.error("[Buffering] Pipeline task crashed", exc_info=exc)
