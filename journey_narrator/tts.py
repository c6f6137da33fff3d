"""Audio synthesis via edge-tts with retry logic."""

import asyncio
import logging
import os
import shutil
import tempfile

import edge_tts
from pydub import AudioSegment

from journey_narrator.constants import TTS_RATE, TTS_RETRY_BASE_DELAY, TTS_RETRY_COUNT

logger = logging.getLogger(__name__)


class SynthesisContext:
    """Scratch space for one synthesis call.

    Owns a temporary directory that edge-tts writes into. close() removes it
    and is safe to call more than once.
    """

    def __init__(self):
        self.workdir = tempfile.mkdtemp(prefix="journey_tts_")
        self.closed = False
        self._counter = 0

    def next_path(self, suffix: str = ".mp3") -> str:
        if self.closed:
            raise RuntimeError("Synthesis context is closed")
        self._counter += 1
        return os.path.join(self.workdir, f"clip_{self._counter:03d}{suffix}")

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        shutil.rmtree(self.workdir, ignore_errors=True)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()


def open_synthesis_context() -> SynthesisContext:
    return SynthesisContext()


async def synthesize(text: str, context: SynthesisContext, voice: str, rate: str = TTS_RATE) -> AudioSegment:
    """Synthesize narration into an AudioSegment, retrying transient failures.

    Network errors and 0-byte output both count as failures. Backoff doubles
    from TTS_RETRY_BASE_DELAY between attempts.
    """
    last_error = None
    for attempt in range(TTS_RETRY_COUNT):
        output_path = context.next_path()
        try:
            communicate = edge_tts.Communicate(text, voice, rate=rate)
            await communicate.save(output_path)

            # Validate output: 0-byte file counts as failure
            if os.path.exists(output_path) and os.path.getsize(output_path) > 0:
                return AudioSegment.from_file(output_path, format="mp3")

            last_error = Exception(f"TTS produced 0-byte file for: {text[:50]}...")
        except Exception as e:
            last_error = e

        logger.warning("TTS attempt %d/%d failed: %s", attempt + 1, TTS_RETRY_COUNT, last_error)
        if attempt < TTS_RETRY_COUNT - 1:
            await asyncio.sleep(TTS_RETRY_BASE_DELAY * (2 ** attempt))

    raise last_error
