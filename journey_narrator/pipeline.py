"""Generation pipeline: outline lookup, segment text, then audio synthesis."""

import logging
import math
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

from journey_narrator.constants import (
    AUDIO_TIMEOUT_MS,
    BEAT_FALLBACK,
    CONTEXT_WINDOW_CHARS,
    OUTLINE_TIMEOUT_MS,
    SECONDS_PER_SEGMENT,
    TEXT_TIMEOUT_MS,
)
from journey_narrator.errors import GenerationError, JourneyError
from journey_narrator.models import RouteDetails, Segment
from journey_narrator.timeouts import with_timeout

logger = logging.getLogger(__name__)


@dataclass
class Backends:
    """The remote collaborators a pipeline talks to.

    outline_generator(route, total) -> list of beat strings
    text_generator(route, index, total, beat, context) -> segment text
    synthesizer(text, synthesis_context, voice) -> playable audio
    context_provider() -> synthesis context with a close() method
    """

    outline_generator: Callable[[RouteDetails, int], Awaitable[list[str]]]
    text_generator: Callable[[RouteDetails, int, int, str, str], Awaitable[str]]
    synthesizer: Callable[[str, Any, str], Awaitable[Any]]
    context_provider: Callable[[], Any]


def calculate_total_segments(duration_seconds: float, seconds_per_segment: int = SECONDS_PER_SEGMENT) -> int:
    """Number of segments needed to cover the journey, rounded half-up, at least 1."""
    if duration_seconds <= 0:
        return 1
    return max(1, math.floor(duration_seconds / seconds_per_segment + 0.5))


def beat_for(outline, index: int, fallback: str = BEAT_FALLBACK) -> str:
    """Outline beat for a 1-based segment index, or the fallback beat."""
    if 1 <= index <= len(outline):
        beat = outline[index - 1]
        if beat and beat.strip():
            return beat
    return fallback


def recent_context(texts: list[str], limit: int = CONTEXT_WINDOW_CHARS) -> str:
    """Trailing window of everything narrated so far. Older text is cut, not summarized."""
    joined = " ".join(texts)
    return joined[-limit:] if limit > 0 else ""


async def run_step(step: str, index: int | None, ms: float, message: str, func, *args):
    """Run one remote call under its deadline.

    Taxonomy errors pass through; anything else the collaborator raises is
    wrapped as a GenerationError naming the step.
    """
    try:
        return await with_timeout(func(*args), ms, message, step=step, index=index)
    except JourneyError:
        raise
    except Exception as e:
        where = f" for segment {index}" if index is not None else ""
        raise GenerationError(f"{step.capitalize()} generation failed{where}: {e}", step=step, index=index) from e


async def generate_outline(backends: Backends, route: RouteDetails, total: int) -> list[str]:
    outline = await run_step(
        "outline", None, OUTLINE_TIMEOUT_MS,
        "Story outline generation timed out",
        backends.outline_generator, route, total,
    )
    if not isinstance(outline, (list, tuple)):
        raise GenerationError("Outline generator returned no beats", step="outline")
    beats = [str(b).strip() for b in outline if str(b).strip()]
    if len(beats) != total:
        logger.info("Outline has %d beats for %d segments", len(beats), total)
    return beats


async def generate_segment(
    backends: Backends,
    route: RouteDetails,
    index: int,
    total: int,
    beat: str,
    context: str,
) -> Segment:
    """Produce one ready-to-play segment. Does not touch any timeline."""
    text = await run_step(
        "text", index, TEXT_TIMEOUT_MS,
        f"Text generation timed out for segment {index}",
        backends.text_generator, route, index, total, beat, context,
    )
    if not isinstance(text, str) or not text.strip():
        raise GenerationError(f"Text generation returned nothing for segment {index}", step="text", index=index)

    try:
        synthesis_context = backends.context_provider()
    except Exception as e:
        raise GenerationError(
            f"Could not acquire a synthesis context for segment {index}: {e}",
            step="context", index=index,
        ) from e

    try:
        audio = await run_step(
            "audio", index, AUDIO_TIMEOUT_MS,
            f"Audio generation timed out for segment {index}",
            backends.synthesizer, text, synthesis_context, route.voice,
        )
    finally:
        _release(synthesis_context, index)

    return Segment(index=index, text=text.strip(), audio=audio)


def _release(synthesis_context, index: int) -> None:
    try:
        synthesis_context.close()
    except Exception as e:
        raise GenerationError(
            f"Could not release the synthesis context for segment {index}: {e}",
            step="context", index=index,
        ) from e
