"""Tests for recap export."""

import json
import os

from pydub import AudioSegment

from journey_narrator.constants import VERSION
from journey_narrator.exporter import export


def _recap(duration_ms=5000):
    return AudioSegment.silent(duration=duration_ms)


def test_export_creates_file(tmp_path, route):
    """Recap lands in final/ under the session slug."""
    session_dir = str(tmp_path / "session")
    path = export(_recap(), session_dir, "union_station_to_coors_field", route, 3, 10, fmt="wav")
    assert path == os.path.join(session_dir, "final", "union_station_to_coors_field.wav")
    assert os.path.getsize(path) > 0


def test_export_manifest(tmp_path, route):
    session_dir = str(tmp_path)
    export(_recap(4500), session_dir, "slug", route, 3, 10, fmt="wav")
    with open(os.path.join(session_dir, "final", "output.json")) as f:
        manifest = json.load(f)

    assert manifest["session"] == "slug"
    assert manifest["narrator_version"] == VERSION
    assert manifest["style"] == "Noir Thriller"
    assert manifest["route"]["end_address"] == route.end_address
    assert manifest["stats"] == {
        "segments": 3,
        "total_segments_estimate": 10,
        "duration_seconds": 4.5,
    }
    assert "generated_at" in manifest


def test_export_overwrites(tmp_path, route):
    """Exporting twice replaces the previous recap."""
    session_dir = str(tmp_path)
    export(_recap(1000), session_dir, "slug", route, 1, 10, fmt="wav")
    path = export(_recap(3000), session_dir, "slug", route, 2, 10, fmt="wav")
    assert abs(len(AudioSegment.from_file(path, format="wav")) - 3000) <= 5
