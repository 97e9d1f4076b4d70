"""STT placeholder that returns a sample question instead of decoding audio."""

from __future__ import annotations

import logging
import random
from typing import Optional, Sequence

from ..interfaces import SpeechToText
from ..models import CapturedAudio

logger = logging.getLogger(__name__)

SAMPLE_QUESTIONS = (
    "What are the main arguments in this discussion?",
    "Can you explain this topic in more detail?",
    "What do you think about the different viewpoints?",
    "How does this relate to current events?",
    "What are the implications of this discussion?",
)


class SimulatedSpeechToText(SpeechToText):
    """
    Minimal STT implementation that ignores the audio.

    It picks one of a fixed set of questions so the rest of the conversation
    can be exercised on machines without a speech model. Replace this class
    with :class:`~threadtalk.services.stt_whisper.WhisperSpeechToText` or a
    cloud STT service without changing the rest of the session.
    """

    def __init__(
        self,
        *,
        questions: Sequence[str] = SAMPLE_QUESTIONS,
        rng: Optional[random.Random] = None,
    ) -> None:
        if not questions:
            raise ValueError("questions must not be empty")
        self.questions = tuple(questions)
        self._rng = rng or random.Random()

    def transcribe(self, audio: CapturedAudio, *, language: Optional[str] = None) -> str:
        logger.debug("Simulating transcription of %.2fs of audio", audio.duration)
        return self._rng.choice(self.questions)
