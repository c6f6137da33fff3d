"""Narration voice and story style catalogs."""

import logging

from journey_narrator.constants import DEFAULT_VOICE

logger = logging.getLogger(__name__)

# Hardcoded English edge-tts voices (avoids network call at startup)
VOICES = {
    "en-US-GuyNeural": "Default balanced narration",
    "en-US-AriaNeural": "Warm and resonant",
    "en-GB-RyanNeural": "Clear and analytical",
    "en-US-JennyNeural": "Soft and expressive",
    "en-US-DavisNeural": "Low and unhurried",
    "en-GB-SoniaNeural": "Bright British storyteller",
    "en-AU-WilliamNeural": "Relaxed Australian",
    "en-IE-EmilyNeural": "Gentle Irish",
}

STORY_STYLES = {
    "NOIR": {
        "label": "Noir Thriller",
        "description": "Gritty, mysterious, rain-slicked streets.",
        "direction": "Write in the voice of a hard-boiled detective: terse sentences, "
                     "moody weather, suspicion in every shadow.",
    },
    "CHILDREN": {
        "label": "Children's Story",
        "description": "Whimsical, magical, and full of wonder.",
        "direction": "Write for a young listener: gentle, playful, full of talking "
                     "animals and small marvels. Nothing frightening.",
    },
    "HISTORICAL": {
        "label": "Historical Epic",
        "description": "Grand, dramatic, echoing the past.",
        "direction": "Write as a sweeping historical chronicle, imagining the people "
                     "who walked these places centuries ago.",
    },
    "FANTASY": {
        "label": "Fantasy Adventure",
        "description": "An epic quest through a magical realm.",
        "direction": "Write as a heroic quest: the route is an enchanted road, landmarks "
                     "are ancient wonders, and the destination is the quest's end.",
    },
}


def resolve_voice(voice: str | None) -> str:
    """Map a user-supplied voice (case-insensitive) to a catalog id.

    Unknown or empty voices fall back to the default narrator.
    """
    if not voice:
        return DEFAULT_VOICE
    for voice_id in VOICES:
        if voice_id.lower() == voice.strip().lower():
            return voice_id
    logger.warning("Unknown voice %r, using %s", voice, DEFAULT_VOICE)
    return DEFAULT_VOICE


def style_direction(style: str) -> str:
    """Prompt direction for a story style key."""
    info = STORY_STYLES.get(style.upper())
    if info is None:
        raise KeyError(f"Unknown story style: {style}")
    return info["direction"]
