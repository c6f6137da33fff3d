"""Export the journey recap with metadata tags and a manifest."""

import json
import os
from dataclasses import asdict
from datetime import datetime, timezone

from pydub import AudioSegment

from journey_narrator.constants import OUTPUT_BITRATE, OUTPUT_FORMAT, VERSION
from journey_narrator.models import RouteDetails
from journey_narrator.voices import STORY_STYLES


def export(
    recap: AudioSegment,
    session_dir: str,
    slug: str,
    route: RouteDetails,
    segment_count: int,
    total_segments: int,
    fmt: str = OUTPUT_FORMAT,
) -> str:
    """Write the recap audio and its manifest.

    Creates:
      - output/<slug>/final/<slug>.<fmt> (the recap)
      - output/<slug>/final/output.json (provenance manifest)

    Returns path to the recap file.
    """
    final_dir = os.path.join(session_dir, "final")
    os.makedirs(final_dir, exist_ok=True)

    output_path = os.path.join(final_dir, f"{slug}.{fmt}")
    style_label = STORY_STYLES.get(route.style, {}).get("label", route.style)
    title = f"{route.start_address} to {route.end_address}"

    export_kwargs = {"format": fmt}
    if fmt == "mp3":
        export_kwargs["bitrate"] = OUTPUT_BITRATE
        export_kwargs["tags"] = {"title": title, "album": style_label}
    recap.export(output_path, **export_kwargs)

    manifest = {
        "session": slug,
        "generated_at": datetime.now(timezone.utc).isoformat(),
        "narrator_version": VERSION,
        "route": asdict(route),
        "style": style_label,
        "stats": {
            "segments": segment_count,
            "total_segments_estimate": total_segments,
            "duration_seconds": round(len(recap) / 1000, 1),
        },
    }

    manifest_path = os.path.join(final_dir, "output.json")
    with open(manifest_path, "w") as f:
        json.dump(manifest, f, indent=2)

    return output_path
