"""Session output directory, JSON artifacts, and per-segment files."""

import json
import os
import re
from dataclasses import asdict

from journey_narrator.constants import OUTPUT_DIR, OUTPUT_FORMAT
from journey_narrator.models import RouteDetails, Segment


def _slugify(text: str, limit: int = 30) -> str:
    slug = re.sub(r"[^a-zA-Z0-9]+", "_", text).strip("_").lower()
    return slug[:limit].strip("_")


def slug_from_route(route: RouteDetails) -> str:
    """Turn a route into an output directory slug.

    Only the part before the first comma of each address is used:
    "Union Station, Denver, CO" → "Coors Field" becomes "union_station_to_coors_field"
    """
    start = _slugify(route.start_address.split(",")[0])
    end = _slugify(route.end_address.split(",")[0])
    return f"{start or 'start'}_to_{end or 'end'}"


def init_output_dir(route: RouteDetails, output_base: str = OUTPUT_DIR) -> str:
    """Create output/<slug>/ with segments/ and final/. Returns the session directory."""
    session_dir = os.path.join(output_base, slug_from_route(route))
    for subdir in ["segments", "final"]:
        os.makedirs(os.path.join(session_dir, subdir), exist_ok=True)
    return session_dir


def write_artifact(session_dir: str, filename: str, data) -> str:
    """Write JSON artifact to session_dir/filename. Returns its path."""
    path = os.path.join(session_dir, filename)
    with open(path, "w") as f:
        json.dump(data, f, indent=2)
    return path


def load_artifact(session_dir: str, filename: str):
    """Read JSON artifact. Returns None if file doesn't exist."""
    path = os.path.join(session_dir, filename)
    if not os.path.exists(path):
        return None
    with open(path) as f:
        return json.load(f)


def write_route(session_dir: str, route: RouteDetails, total_segments: int) -> str:
    data = asdict(route)
    data["total_segments_estimate"] = total_segments
    return write_artifact(session_dir, "route.json", data)


def write_outline(session_dir: str, outline) -> str:
    return write_artifact(session_dir, "outline.json", {"beats": list(outline)})


def write_segment(session_dir: str, segment: Segment, fmt: str = OUTPUT_FORMAT) -> str:
    """Save a segment's audio and text under segments/. Returns the audio path."""
    seg_dir = os.path.join(session_dir, "segments")
    os.makedirs(seg_dir, exist_ok=True)
    stem = f"segment_{segment.index:03d}"
    with open(os.path.join(seg_dir, f"{stem}.txt"), "w") as f:
        f.write(segment.text + "\n")
    audio_path = os.path.join(seg_dir, f"{stem}.{fmt}")
    if segment.audio is not None:
        segment.audio.export(audio_path, format=fmt)
    return audio_path


def write_script(session_dir: str, segments: list[Segment], outline) -> str:
    script = {
        "outline": list(outline),
        "segments": [{"index": s.index, "text": s.text} for s in segments],
    }
    return write_artifact(session_dir, "script.json", script)


def list_sessions(output_base: str = OUTPUT_DIR) -> list[str]:
    """Sorted names of session directories that contain a route.json."""
    if not os.path.exists(output_base):
        return []
    sessions = []
    for name in os.listdir(output_base):
        if os.path.exists(os.path.join(output_base, name, "route.json")):
            sessions.append(name)
    return sorted(sessions)
