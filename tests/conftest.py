from __future__ import annotations

import asyncio
import random
from typing import Callable, List, Optional

import pytest

from threadtalk.models import Post
from threadtalk.responses import KeywordResponseGenerator
from threadtalk.services.recorder import SimulatedCapture
from threadtalk.services.tts import SimulatedSpeechOutput
from threadtalk.session import ConversationSession


class StubResponder:
    """Returns a fixed reply, or raises, and remembers what it was asked."""

    def __init__(self, reply: str = "stub reply", *, error: Optional[Exception] = None) -> None:
        self.reply = reply
        self.error = error
        self.calls: List[tuple] = []
        self.release: Optional[asyncio.Event] = None

    async def generate(self, message, post, *, message_count):
        self.calls.append((message, post, message_count))
        if self.release is not None:
            await self.release.wait()
        if self.error is not None:
            raise self.error
        return self.reply


class BrokenCapture:
    """Speech input whose device can never be opened."""

    def __init__(self) -> None:
        self.end_calls = 0

    def is_active(self) -> bool:
        return False

    async def begin(self) -> bool:
        return False

    async def end(self):
        self.end_calls += 1
        return None


async def wait_for(predicate: Callable[[], bool], timeout: float = 1.0) -> None:
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not met in time")
        await asyncio.sleep(0.005)


@pytest.fixture()
def post() -> Post:
    return Post(
        title="Remote Work Revolution",
        summary="People debate whether remote work helps or hurts",
        viewpoints=[
            "Remote work boosts productivity",
            "Offices build stronger teams",
            "Hybrid is the sweet spot",
        ],
        id="abc123",
    )


@pytest.fixture()
def speech() -> SimulatedSpeechOutput:
    return SimulatedSpeechOutput(min_seconds=0.02, seconds_per_char=0.0)


@pytest.fixture()
def capture() -> SimulatedCapture:
    return SimulatedCapture(rng=random.Random(7))


@pytest.fixture()
def responder() -> KeywordResponseGenerator:
    return KeywordResponseGenerator(latency=0, rng=random.Random(3))


@pytest.fixture()
def session(speech, capture, responder) -> ConversationSession:
    return ConversationSession(speech_output=speech, speech_input=capture, responder=responder)
