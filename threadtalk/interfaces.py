"""Protocol interfaces for dependency injection."""

from __future__ import annotations

from typing import Callable, Optional, Protocol

from .models import CapturedAudio, Post, SummaryResponse

PlaybackListener = Callable[[bool], None]


class SpeechOutput(Protocol):
    """Narrates assistant text on whatever playback mechanism is available."""

    def speak(self, text: str) -> None:
        """
        Start narrating ``text`` and return immediately.

        Must be called from a running event loop. A new call supersedes any
        narration already in progress.
        """

    def stop(self) -> None:
        """Cancel the current narration. Safe to call when nothing is playing."""

    def is_speaking(self) -> bool:
        """Return True while narration is audible."""

    def add_listener(self, listener: PlaybackListener) -> None:
        """Register a callback receiving True on start and False on end/stop/failure."""


class SpeechInput(Protocol):
    """Manages the recording lifecycle and yields a transcript."""

    async def begin(self) -> bool:
        """
        Start capturing.

        Returns:
            True when capture is active, False when the device could not be
            acquired. Device failures are logged, never raised.
        """

    async def end(self) -> Optional[str]:
        """Stop capturing, release the device and return a best-effort transcript."""

    def is_active(self) -> bool:
        """Return True while a capture is in progress."""


class SpeechToText(Protocol):
    """Transcribes recorded audio into text."""

    def transcribe(self, audio: CapturedAudio, *, language: Optional[str] = None) -> str:
        """Return the transcribed text for the provided audio."""


class ResponseGenerator(Protocol):
    """Produces the assistant reply for a user message."""

    async def generate(self, message: str, post: Optional[Post], *, message_count: int) -> str:
        """
        Return reply text for ``message``.

        Args:
            message: The user's text.
            post: The post under discussion, or None before one is selected.
            message_count: Number of messages in the conversation, including
                the user message being answered.
        """


class SummaryClient(Protocol):
    """Summarizes a Reddit thread."""

    async def summarize(self, reddit_url: str) -> SummaryResponse:
        """Return title, summary and viewpoints for the thread at ``reddit_url``."""
