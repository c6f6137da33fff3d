"""Shared fixtures for journey narrator tests."""

import asyncio

import pytest
from pydub import AudioSegment

from journey_narrator.models import RouteDetails
from journey_narrator.pipeline import Backends


class FakeContext:
    def __init__(self, close_error=None):
        self.closed = False
        self.close_calls = 0
        self.close_error = close_error

    def close(self):
        self.close_calls += 1
        self.closed = True
        if self.close_error is not None:
            raise self.close_error


class StubStory:
    """Scripted collaborators that record what the pipeline asked for.

    fail maps segment index -> number of times its text generation fails
    (-1 for always). gates maps a route's start address to an asyncio.Event
    that text generation waits on. close_error is raised by every synthesis
    context on release.
    """

    def __init__(self, beats=None, delay=0.0, fail=None, gates=None, close_error=None):
        self.close_error = close_error
        self.beats = beats
        self.delay = delay
        self.fail = dict(fail or {})
        self.gates = gates or {}
        self.text_calls = []
        self.contexts = []
        self.active = 0
        self.max_active = 0

    async def outline(self, route, total):
        if self.beats is not None:
            return list(self.beats)
        return [f"Beat {i}" for i in range(1, total + 1)]

    async def text(self, route, index, total, beat, context):
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            self.text_calls.append((index, beat, context))
            gate = self.gates.get(route.start_address)
            if gate is not None:
                await gate.wait()
            await asyncio.sleep(self.delay)
            remaining = self.fail.get(index, 0)
            if remaining:
                self.fail[index] = remaining - 1 if remaining > 0 else remaining
                raise ConnectionError(f"upstream down for segment {index}")
            return f"Segment {index} of {total}. {beat}."
        finally:
            self.active -= 1

    async def audio(self, text, context, voice):
        assert not context.closed
        return AudioSegment.silent(duration=100)

    def context(self):
        ctx = FakeContext(self.close_error)
        self.contexts.append(ctx)
        return ctx

    def backends(self):
        return Backends(
            outline_generator=self.outline,
            text_generator=self.text,
            synthesizer=self.audio,
            context_provider=self.context,
        )


@pytest.fixture
def stub_story():
    """Factory for scripted collaborators."""
    return StubStory


@pytest.fixture
def route():
    """A 20 minute walk: ten segments at the default pace."""
    return RouteDetails(
        start_address="Union Station, Denver, CO",
        end_address="Coors Field, Denver, CO",
        travel_mode="WALKING",
        duration_seconds=1200,
        voice="en-US-GuyNeural",
        style="NOIR",
        distance_text="1.2 km",
        duration_text="20 mins",
    )


@pytest.fixture
def short_route(route):
    """Three segments."""
    return RouteDetails(
        start_address=route.start_address,
        end_address=route.end_address,
        travel_mode="WALKING",
        duration_seconds=360,
        voice=route.voice,
        style=route.style,
    )
