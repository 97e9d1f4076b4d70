"""Simulated capture for platforms without a microphone."""

from __future__ import annotations

import logging
import random
from typing import Optional, Sequence

from ..interfaces import SpeechInput
from .stt import SAMPLE_QUESTIONS

logger = logging.getLogger(__name__)


class SimulatedCapture(SpeechInput):
    """
    Records nothing and yields a placeholder transcript.

    ``begin()`` succeeds immediately without touching any device, and
    ``end()`` returns one of a fixed set of sample questions.

    Usage:
        capture = SimulatedCapture()
        await capture.begin()
        transcript = await capture.end()
    """

    def __init__(
        self,
        *,
        transcripts: Sequence[str] = SAMPLE_QUESTIONS,
        rng: Optional[random.Random] = None,
    ) -> None:
        if not transcripts:
            raise ValueError("transcripts must not be empty")
        self.transcripts = tuple(transcripts)
        self._rng = rng or random.Random()
        self._active = False

    def is_active(self) -> bool:
        return self._active

    async def begin(self) -> bool:
        logger.debug("Simulated capture started")
        self._active = True
        return True

    async def end(self) -> Optional[str]:
        if not self._active:
            logger.debug("No simulated capture to stop")
            return None
        self._active = False
        transcript = self._rng.choice(self.transcripts)
        logger.debug("Simulated transcript: %s", transcript)
        return transcript
