"""Tests for speech synthesis."""

import asyncio
import os
from unittest.mock import MagicMock, patch

import pytest
from pydub import AudioSegment

from journey_narrator.tts import SynthesisContext, open_synthesis_context, synthesize


@pytest.fixture(autouse=True)
def no_backoff(monkeypatch):
    monkeypatch.setattr("journey_narrator.tts.TTS_RETRY_BASE_DELAY", 0)


def _make_mock_communicate(payload=b"ID3fake-mp3", fail_times=0):
    """edge_tts.Communicate stand-in that writes `payload` to the save path."""
    calls = {"count": 0}

    def factory(text, voice, **kwargs):
        mock = MagicMock()

        async def save(path):
            calls["count"] += 1
            if calls["count"] <= fail_times:
                raise ConnectionError("edge-tts unreachable")
            with open(path, "wb") as f:
                f.write(payload)

        mock.save = save
        return mock

    return factory, calls


# --- SynthesisContext ---

def test_context_paths_and_close():
    context = open_synthesis_context()
    first = context.next_path()
    second = context.next_path(".wav")
    assert os.path.dirname(first) == context.workdir
    assert first != second
    assert second.endswith(".wav")
    assert os.path.isdir(context.workdir)

    context.close()
    context.close()
    assert context.closed
    assert not os.path.exists(context.workdir)
    with pytest.raises(RuntimeError):
        context.next_path()


def test_context_manager_closes():
    with SynthesisContext() as context:
        workdir = context.workdir
    assert context.closed
    assert not os.path.exists(workdir)


# --- synthesize ---

@patch("journey_narrator.tts.AudioSegment.from_file")
@patch("journey_narrator.tts.edge_tts.Communicate")
def test_synthesize_returns_audio(mock_comm, mock_from_file):
    factory, calls = _make_mock_communicate()
    mock_comm.side_effect = factory
    mock_from_file.return_value = AudioSegment.silent(duration=100)

    with SynthesisContext() as context:
        audio = asyncio.run(synthesize("Hello", context, "en-US-GuyNeural", rate="+10%"))

    assert len(audio) == 100
    assert calls["count"] == 1
    mock_comm.assert_called_once_with("Hello", "en-US-GuyNeural", rate="+10%")
    assert mock_from_file.call_args.kwargs["format"] == "mp3"


@patch("journey_narrator.tts.AudioSegment.from_file")
@patch("journey_narrator.tts.edge_tts.Communicate")
def test_synthesize_retries(mock_comm, mock_from_file):
    """Transient failures are retried."""
    factory, calls = _make_mock_communicate(fail_times=2)
    mock_comm.side_effect = factory
    mock_from_file.return_value = AudioSegment.silent(duration=100)

    with SynthesisContext() as context:
        asyncio.run(synthesize("Hello", context, "en-US-GuyNeural"))
    assert calls["count"] == 3


@patch("journey_narrator.tts.edge_tts.Communicate")
def test_synthesize_gives_up(mock_comm):
    factory, calls = _make_mock_communicate(fail_times=99)
    mock_comm.side_effect = factory

    with SynthesisContext() as context:
        with pytest.raises(ConnectionError):
            asyncio.run(synthesize("Hello", context, "en-US-GuyNeural"))
    assert calls["count"] == 3


@patch("journey_narrator.tts.AudioSegment.from_file")
@patch("journey_narrator.tts.edge_tts.Communicate")
def test_synthesize_empty_output_is_failure(mock_comm, mock_from_file):
    """0-byte files count as failures."""
    factory, calls = _make_mock_communicate(payload=b"")
    mock_comm.side_effect = factory

    with SynthesisContext() as context:
        with pytest.raises(Exception, match="0-byte"):
            asyncio.run(synthesize("Hello", context, "en-US-GuyNeural"))
    assert calls["count"] == 3
    mock_from_file.assert_not_called()
