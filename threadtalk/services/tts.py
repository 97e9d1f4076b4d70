"""Speech output base class and the simulated (timed) implementation."""

from __future__ import annotations

import asyncio
import logging
from typing import List, Optional

from ..interfaces import PlaybackListener, SpeechOutput
from ..utils import estimate_speech_seconds

logger = logging.getLogger(__name__)


class BaseSpeechOutput(SpeechOutput):
    """
    Runs narration as an asyncio task and reports playing-state changes.

    Subclasses implement :meth:`_render`, a coroutine that returns once the
    text has been narrated. They may override :meth:`_interrupt` to silence a
    device when narration is stopped early.
    """

    def __init__(self) -> None:
        self._listeners: List[PlaybackListener] = []
        self._task: Optional[asyncio.Task] = None
        self._speaking = False

    def add_listener(self, listener: PlaybackListener) -> None:
        self._listeners.append(listener)

    def is_speaking(self) -> bool:
        return self._speaking

    def speak(self, text: str) -> None:
        self.stop()
        if not text.strip():
            return

        loop = asyncio.get_running_loop()
        self._set_speaking(True)
        self._task = loop.create_task(self._run(text))

    def stop(self) -> None:
        task, self._task = self._task, None
        if task is not None and not task.done():
            task.cancel()
            self._interrupt()
        self._set_speaking(False)

    async def _run(self, text: str) -> None:
        try:
            await self._render(text)
        except asyncio.CancelledError:
            logger.debug("Narration cancelled")
            raise
        except Exception as exc:
            logger.error("Playback failed: %s", exc)
        finally:
            # A superseding speak() or stop() already reported the change.
            if self._task is asyncio.current_task():
                self._task = None
                self._set_speaking(False)

    async def _render(self, text: str) -> None:
        raise NotImplementedError

    def _interrupt(self) -> None:
        """Silence the underlying device; no-op by default."""

    def _set_speaking(self, speaking: bool) -> None:
        if speaking == self._speaking:
            return
        self._speaking = speaking
        for listener in list(self._listeners):
            try:
                listener(speaking)
            except Exception:
                logger.exception("Playback listener failed")


class SimulatedSpeechOutput(BaseSpeechOutput):
    """
    Pretends to speak for a duration proportional to the text length.

    Used where no synthesizer is available; the playing flag still rises and
    falls so the rest of the session behaves as with real audio.

    Usage:
        tts = SimulatedSpeechOutput(min_seconds=2.0, seconds_per_char=0.05)
        tts.speak("Hello there")
    """

    def __init__(self, *, min_seconds: float = 2.0, seconds_per_char: float = 0.05) -> None:
        super().__init__()
        self.min_seconds = min_seconds
        self.seconds_per_char = seconds_per_char

    async def _render(self, text: str) -> None:
        duration = estimate_speech_seconds(
            text,
            seconds_per_char=self.seconds_per_char,
            min_seconds=self.min_seconds,
        )
        logger.info("Speaking (%.1fs): %s", duration, text)
        await asyncio.sleep(duration)
