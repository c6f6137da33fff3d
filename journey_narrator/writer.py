"""Story writing: outline and segment text prompts on top of the LLM client."""

import asyncio
import re

from journey_narrator.constants import SECONDS_PER_SEGMENT, WORDS_PER_MINUTE
from journey_narrator.models import RouteDetails
from journey_narrator.voices import style_direction

# "1. Beat", "2) Beat", "- Beat", "* Beat", "Beat 3: text"
_BEAT_PREFIX_RE = re.compile(r"^\s*(?:(?:beat|segment|part)\s*\d+\s*[:.\-]|\d+\s*[.):\-]|[-*•])\s*", re.IGNORECASE)

# Stage directions and markdown the narrator shouldn't read aloud
_STAGE_RE = re.compile(r"\[[^\]]*\]|\*\*|__|^#+\s*", re.MULTILINE)


def _travel_verb(route: RouteDetails) -> str:
    return "walk" if route.travel_mode == "WALKING" else "drive"


def target_word_count(seconds: int = SECONDS_PER_SEGMENT) -> int:
    return round(seconds / 60 * WORDS_PER_MINUTE)


def parse_outline(text: str) -> list[str]:
    """Split an LLM outline reply into one beat per non-empty line.

    Numbering and bullet prefixes are stripped; a single paragraph with no
    line breaks is split at sentence boundaries instead.
    """
    lines = [line for line in text.strip().split("\n") if line.strip()]
    if len(lines) == 1:
        lines = re.split(r"(?<=[.!?])\s+", lines[0])
    beats = []
    for line in lines:
        beat = _BEAT_PREFIX_RE.sub("", line).strip()
        beat = _STAGE_RE.sub("", beat).strip()
        if beat:
            beats.append(beat)
    return beats


def clean_segment_text(text: str) -> str:
    """Strip markdown and bracketed stage directions, collapse whitespace."""
    cleaned = _STAGE_RE.sub("", text)
    paragraphs = [re.sub(r"\s+", " ", p).strip() for p in re.split(r"\n\s*\n", cleaned)]
    return "\n\n".join(p for p in paragraphs if p)


def outline_prompt(route: RouteDetails, total_segments: int) -> str:
    return (
        f"You are planning an audio story to accompany a {_travel_verb(route)} "
        f"from {route.start_address} to {route.end_address} "
        f"({route.duration_text or f'{route.duration_seconds // 60} minutes'}).\n"
        f"{style_direction(route.style)}\n\n"
        f"Write an outline of exactly {total_segments} story beats, one per line, "
        f"numbered 1 to {total_segments}. Each beat is one sentence describing what "
        f"happens in that part of the story. The story should begin as the journey "
        f"begins and resolve as the traveller arrives. Reply with the list only."
    )


def segment_prompt(route: RouteDetails, index: int, total: int, beat: str, context: str) -> str:
    position = "the opening" if index == 1 else "the final part" if index >= total else f"part {index} of {total}"
    parts = [
        f"You are narrating a continuous audio story for someone on a {_travel_verb(route)} "
        f"from {route.start_address} to {route.end_address}.",
        style_direction(route.style),
        f"Write {position} of the story, about {target_word_count()} words, to be read aloud.",
        f"This part should cover: {beat}",
    ]
    if context:
        parts.append(f"The story so far ends with:\n\"\"\"{context}\"\"\"\nContinue seamlessly without repeating it.")
    parts.append("Reply with the narration only: no titles, headings, or stage directions.")
    return "\n\n".join(parts)


class StoryWriter:
    """Outline and segment text generators backed by a blocking LLM client."""

    def __init__(self, client):
        self.client = client

    async def outline(self, route: RouteDetails, total_segments: int) -> list[str]:
        reply = await asyncio.to_thread(self.client.complete, outline_prompt(route, total_segments))
        return parse_outline(reply)

    async def segment(self, route: RouteDetails, index: int, total: int, beat: str, context: str) -> str:
        reply = await asyncio.to_thread(self.client.complete, segment_prompt(route, index, total, beat, context))
        return clean_segment_text(reply)
