"""Whisper-based STT adapter."""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

import numpy as np

from ..interfaces import SpeechToText
from ..models import CapturedAudio

WHISPER_SAMPLE_RATE = 16000


class WhisperSpeechToText(SpeechToText):
    """
    Speech-to-text implementation using OpenAI Whisper.

    Args:
        model_size: Whisper model name (e.g., "tiny", "base", "small", "medium", "large").
        device: Device string passed to whisper (e.g., "cpu", "cuda").
        default_language: Language used when ``transcribe`` gets none; None lets Whisper detect it.

    Notes:
        - Requires the `openai-whisper` package.
        - Whisper consumes 16 kHz mono PCM, which is what
          :class:`~threadtalk.services.mic_recorder.MicrophoneCapture` records by default.
        - The model is loaded on first use, not at construction.
    """

    def __init__(
        self,
        *,
        model_size: str = "tiny",
        device: Optional[str] = None,
        default_language: Optional[str] = None,
    ) -> None:
        self.model_size = model_size
        self.device = device
        self.default_language = default_language
        self._model = None

    @property
    def model(self):
        if self._model is None:
            self._model = _load_whisper(self.model_size, device=self.device)
        return self._model

    def transcribe(self, audio: CapturedAudio, *, language: Optional[str] = None) -> str:
        if not audio.data:
            raise ValueError("No audio data provided for transcription.")
        if audio.sample_rate != WHISPER_SAMPLE_RATE:
            raise ValueError(
                f"Whisper expects {WHISPER_SAMPLE_RATE} Hz audio, got {audio.sample_rate} Hz."
            )

        samples = np.frombuffer(audio.data, dtype=np.int16).astype(np.float32) / 32768.0
        result = self.model.transcribe(
            samples,
            language=language or self.default_language,
            fp16=self.device == "cuda",
        )
        return str(result.get("text", "")).strip()


@lru_cache(maxsize=1)
def _load_whisper(model_size: str, device: Optional[str]):
    try:
        import whisper  # type: ignore
    except ImportError as exc:  # pragma: no cover - runtime dependency
        raise RuntimeError("openai-whisper is required for WhisperSpeechToText. Install via pip.") from exc

    return whisper.load_model(model_size, device=device)
