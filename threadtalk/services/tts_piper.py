"""Piper TTS adapter that calls the `piper` CLI and plays audio via sounddevice."""

from __future__ import annotations

import asyncio
import logging
import shutil
import subprocess
from typing import Optional

import numpy as np

from ..utils import split_sentences
from .tts import BaseSpeechOutput

logger = logging.getLogger(__name__)


class PiperSpeechOutput(BaseSpeechOutput):
    """
    Text-to-speech using the `piper` command-line binary.

    Text is synthesized and played one sentence at a time so that
    :meth:`stop` takes effect quickly.

    Args:
        model_path: Path to a Piper `.onnx` model.
        binary_path: Piper executable name or path (default: "piper").
        speaker: Optional speaker ID/name, passed via `--speaker`.
        sample_rate: Playback sample rate (Hz); must match the model.
        length_scale: Optional Piper `--length_scale` (>1.0 speaks slower).

    Notes:
        - Requires the Piper binary in PATH (or provide binary_path).
        - Requires `sounddevice` for playback.
    """

    def __init__(
        self,
        *,
        model_path: str,
        binary_path: str = "piper",
        speaker: Optional[str] = None,
        sample_rate: int = 22050,
        length_scale: Optional[float] = None,
    ) -> None:
        super().__init__()
        if not shutil.which(binary_path):
            raise RuntimeError(
                f"Piper binary '{binary_path}' not found. Install Piper and adjust binary_path or PATH."
            )
        self.model_path = model_path
        self.binary_path = binary_path
        self.speaker = speaker
        self.sample_rate = sample_rate
        self.length_scale = length_scale

    async def _render(self, text: str) -> None:
        for sentence in split_sentences(text):
            pcm = await asyncio.to_thread(self._synthesize, sentence)
            if pcm.size == 0:
                continue
            await asyncio.to_thread(self._play, pcm)

    def _interrupt(self) -> None:
        sd = _lazy_import_sounddevice()
        sd.stop()

    def _synthesize(self, text: str) -> np.ndarray:
        cmd = [
            self.binary_path,
            "--model",
            self.model_path,
            "--output-raw",
        ]
        if self.speaker:
            cmd.extend(["--speaker", self.speaker])
        if self.length_scale:
            cmd.extend(["--length_scale", str(self.length_scale)])

        try:
            proc = subprocess.run(
                cmd,
                input=text.encode("utf-8"),
                capture_output=True,
                check=True,
            )
        except subprocess.CalledProcessError as exc:  # pragma: no cover - external tool
            raise RuntimeError(
                f"Piper failed (exit {exc.returncode}): {exc.stderr.decode('utf-8', errors='ignore')}"
            ) from exc

        raw = proc.stdout
        if not raw:
            logger.warning("Piper produced no audio for %r", text)
            return np.zeros(0, dtype=np.float32)

        return np.frombuffer(raw, dtype=np.int16).astype(np.float32) / 32768.0

    def _play(self, pcm: np.ndarray) -> None:
        sd = _lazy_import_sounddevice()
        sd.play(pcm, samplerate=self.sample_rate)
        sd.wait()


def _lazy_import_sounddevice():
    try:
        import sounddevice as sd  # type: ignore
    except ImportError as exc:  # pragma: no cover - runtime dependency
        raise RuntimeError("sounddevice is required for Piper playback. Install via pip.") from exc
    return sd
