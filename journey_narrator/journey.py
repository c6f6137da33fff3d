"""Journey session: phase tracking, initial generation, and the public surface."""

import logging

from journey_narrator.constants import FIRST_BEAT_FALLBACK
from journey_narrator.engine import BufferingEngine
from journey_narrator.errors import JourneyError, JourneyStartError, StepTimeoutError
from journey_narrator.models import JourneyPhase, RouteDetails
from journey_narrator.pipeline import (
    Backends,
    beat_for,
    calculate_total_segments,
    generate_outline,
    generate_segment,
)
from journey_narrator.routes import validate_route
from journey_narrator.timeline import StoryTimeline

logger = logging.getLogger(__name__)

TIMEOUT_MESSAGE = "Story generation timed out. It might be that your journey is too long. Please try again."
FAILURE_MESSAGE = "Failed to start story stream. Please check your locations/connection and try again."


def _user_message(error: Exception) -> str:
    if isinstance(error, StepTimeoutError) or "timed out" in str(error).lower():
        return TIMEOUT_MESSAGE
    return FAILURE_MESSAGE


class Journey:
    """One listener session, from route planning through continuous playback.

    Phases only move forward (PLANNING -> ROUTE_CONFIRMED ->
    GENERATING_INITIAL_SEGMENT -> READY_TO_PLAY) except for reset() and a
    failed start, which both go straight back to PLANNING.
    """

    def __init__(self, backends: Backends, **engine_options):
        self.backends = backends
        self._phase = JourneyPhase.PLANNING
        self._route: RouteDetails | None = None
        self._timeline: StoryTimeline | None = None
        self._session = 0
        self.engine = BufferingEngine(backends, lambda: self._phase, **engine_options)

    @property
    def phase(self) -> JourneyPhase:
        return self._phase

    @property
    def route(self) -> RouteDetails | None:
        return self._route

    @property
    def timeline(self) -> StoryTimeline | None:
        return self._timeline

    @property
    def is_background_generating(self) -> bool:
        return self.engine.in_flight

    def _set_phase(self, phase: JourneyPhase) -> None:
        logger.debug("Phase %s -> %s", self._phase.name, phase.name)
        self._phase = phase
        self.engine.evaluate()

    async def confirm_route(self, route: RouteDetails) -> StoryTimeline | None:
        """Lock in a route and produce the first segment.

        Returns the new timeline, or None if the journey was reset while the
        first segment was being generated. Raises JourneyStartError (with a
        listener-facing message) if initial generation fails.
        """
        if self._phase > JourneyPhase.PLANNING:
            raise JourneyError("A journey is already in progress. Reset it before starting another.")
        validate_route(route)

        self._session += 1
        session = self._session
        self._route = route
        self._set_phase(JourneyPhase.ROUTE_CONFIRMED)
        self._set_phase(JourneyPhase.GENERATING_INITIAL_SEGMENT)

        try:
            total = calculate_total_segments(route.duration_seconds)
            logger.info("Crafting story arc for %d segments", total)
            outline = await generate_outline(self.backends, route, total)
            logger.info("Writing first chapter")
            first = await generate_segment(
                self.backends, route, 1, total,
                beat_for(outline, 1, FIRST_BEAT_FALLBACK), "",
            )
        except Exception as e:
            if session != self._session:
                logger.info("Initial generation failed after reset, ignoring: %s", e)
                return None
            logger.error("Initial generation failed: %s", e)
            self._discard()
            raise JourneyStartError(_user_message(e)) from e
        except BaseException:
            # cancelled while generating: leave the journey plannable again
            if session == self._session:
                self._discard()
            raise

        if session != self._session:
            logger.info("Journey was reset during initial generation, discarding segment 1")
            return None

        timeline = StoryTimeline(total, outline, [first])
        self._timeline = timeline
        self._phase = JourneyPhase.READY_TO_PLAY
        self.engine.attach(timeline, route)
        return timeline

    def report_playback(self, index: int) -> int | None:
        """Playback surface callback: `index` is the segment now playing."""
        if self._phase < JourneyPhase.READY_TO_PLAY:
            return None
        return self.engine.update_playback(index)

    def reset(self) -> None:
        self._session += 1
        self._discard()

    def _discard(self) -> None:
        self.engine.detach()
        self._route = None
        self._timeline = None
        self._set_phase(JourneyPhase.PLANNING)
