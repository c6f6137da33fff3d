"""Data models for journey narration."""

from dataclasses import dataclass
from enum import IntEnum
from typing import Any


class JourneyPhase(IntEnum):
    PLANNING = 0
    ROUTE_CONFIRMED = 1
    GENERATING_INITIAL_SEGMENT = 2
    READY_TO_PLAY = 3


@dataclass(frozen=True)
class RouteDetails:
    start_address: str
    end_address: str
    travel_mode: str          # "WALKING" or "DRIVING"
    duration_seconds: int
    voice: str                # edge-tts voice id
    style: str                # key into voices.STORY_STYLES
    distance_text: str = ""   # human-readable, from the resolver
    duration_text: str = ""


@dataclass
class Segment:
    index: int                # 1-based, identity of the segment
    text: str
    audio: Any = None         # pydub.AudioSegment from the shipped synthesizer
