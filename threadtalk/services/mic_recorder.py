"""Microphone capture backed by sounddevice, transcribed on stop."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, List, Optional

import numpy as np

from ..interfaces import SpeechInput, SpeechToText
from ..models import CapturedAudio

logger = logging.getLogger(__name__)


class MicrophoneCapture(SpeechInput):
    """
    Records from the default microphone between ``begin()`` and ``end()``.

    The stream callback buffers float32 frames; ``end()`` closes the stream,
    converts the buffer to 16-bit PCM and hands it to the transcriber on a
    worker thread.

    Args:
        stt: Transcriber used when the capture ends.
        sample_rate: Target sample rate (Hz).
        channels: Number of channels to record.
        language: Optional language hint passed to the transcriber.

    Usage:
        capture = MicrophoneCapture(stt=WhisperSpeechToText(model_size="tiny"))
        if await capture.begin():
            text = await capture.end()
    """

    def __init__(
        self,
        *,
        stt: SpeechToText,
        sample_rate: int = 16000,
        channels: int = 1,
        language: Optional[str] = None,
    ) -> None:
        self.stt = stt
        self.sample_rate = sample_rate
        self.channels = channels
        self.language = language
        self._stream: Any = None
        self._chunks: List[np.ndarray] = []

    def is_active(self) -> bool:
        return self._stream is not None

    async def begin(self) -> bool:
        if self._stream is not None:
            logger.warning("Capture already active; restarting it")
            await asyncio.to_thread(self._close_stream)

        self._chunks = []
        try:
            self._stream = await asyncio.to_thread(self._open_stream)
        except Exception as exc:
            logger.error("Failed to start recording: %s", exc)
            self._stream = None
            return False

        logger.info("[rec] Listening... speak now")
        return True

    async def end(self) -> Optional[str]:
        if self._stream is None:
            logger.debug("No active recording to stop")
            return None

        try:
            await asyncio.to_thread(self._close_stream)
        except Exception as exc:
            logger.error("Failed to stop recording: %s", exc)
            self._chunks = []
            return None

        audio = self._collect()
        if not audio.data:
            logger.info("[rec] No audio recorded")
            return None

        logger.info("[rec] Recorded %.2fs of audio", audio.duration)
        try:
            text = await asyncio.to_thread(self.stt.transcribe, audio, language=self.language)
        except Exception as exc:
            logger.error("Transcription failed: %s", exc)
            return None

        text = text.strip()
        return text or None

    def _open_stream(self) -> Any:
        sd = _lazy_import_sounddevice()

        def callback(indata, frames, time_info, status):
            if status:
                logger.debug("[rec] Status: %s", status)
            self._chunks.append(indata.copy())

        stream = sd.InputStream(
            samplerate=self.sample_rate,
            channels=self.channels,
            dtype="float32",
            callback=callback,
        )
        stream.start()
        return stream

    def _close_stream(self) -> None:
        stream, self._stream = self._stream, None
        if stream is None:
            return
        try:
            stream.stop()
        finally:
            stream.close()

    def _collect(self) -> CapturedAudio:
        chunks, self._chunks = self._chunks, []
        if not chunks:
            return CapturedAudio(data=b"", sample_rate=self.sample_rate)

        recording = np.concatenate(chunks, axis=0)
        if recording.ndim > 1:
            recording = recording.mean(axis=1)

        # Convert float32 [-1.0, 1.0] to 16-bit PCM bytes
        pcm = np.clip(recording, -1.0, 1.0)
        pcm_int16 = (pcm * 32767).astype("int16")
        return CapturedAudio(data=pcm_int16.tobytes(), sample_rate=self.sample_rate)


def _lazy_import_sounddevice():
    try:
        import sounddevice as sd  # type: ignore
    except ImportError as exc:  # pragma: no cover - runtime dependency
        raise RuntimeError("sounddevice is required for microphone recording. Install via pip.") from exc
    return sd
