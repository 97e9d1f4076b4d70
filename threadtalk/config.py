"""Configuration helpers for ThreadTalk."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

# Load .env file if present
load_dotenv()

MODES = ("console", "audio")
RESPONDERS = ("keyword", "http")
STT_MODES = ("whisper", "simulated")


def _env_float(name: str, default: str) -> float:
    raw = os.environ.get(name, default)
    try:
        return float(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number") from exc


def _env_int(name: str, default: str) -> int:
    raw = os.environ.get(name, default)
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer") from exc


def _env_choice(name: str, default: str, choices: tuple) -> str:
    value = os.environ.get(name, default).strip().lower() or default
    if value not in choices:
        raise ValueError(f"{name} must be one of {', '.join(choices)} (got {value!r})")
    return value


@dataclass
class AppConfig:
    """
    Runtime configuration for the conversation harness.

    Attributes:
        mode: "console" (simulated capture and speech) or "audio" (microphone and Piper).
        responder: "keyword" for the built-in reply policy, "http" for a chat backend.
        api_base_url: Root URL of the chat backend (responder=http).
        api_key: Optional bearer token sent as `Authorization: Bearer <token>`.
        request_timeout: HTTP timeout in seconds.
        response_latency: Simulated reply latency of the keyword responder, in seconds.
        summary_latency: Simulated latency of the mock summarizer, in seconds.
        stt_mode: "whisper" or "simulated" transcription in audio mode.
        whisper_model: Whisper model size.
        whisper_device: Device for Whisper ("cpu"/"cuda"/None).
        language: Optional language hint passed to STT.
        sample_rate: Microphone sample rate in Hz.
        piper_model_path: Path to a Piper `.onnx` model (audio mode).
        piper_binary: Piper binary name/path.
        piper_speaker: Optional speaker id/name for Piper.
        speech_min_seconds: Shortest simulated narration, in seconds.
        speech_seconds_per_char: Simulated narration time per character, in seconds.

    Usage:
        >>> config = AppConfig.from_env()
        >>> config.mode
        'console'
    """

    mode: str = "console"
    responder: str = "keyword"
    api_base_url: str = "http://localhost:8000"
    api_key: Optional[str] = None
    request_timeout: float = 10.0
    response_latency: float = 1.5
    summary_latency: float = 3.0
    stt_mode: str = "whisper"
    whisper_model: str = "tiny"
    whisper_device: Optional[str] = None
    language: Optional[str] = None
    sample_rate: int = 16000
    piper_model_path: Optional[str] = None
    piper_binary: str = "piper"
    piper_speaker: Optional[str] = None
    speech_min_seconds: float = 2.0
    speech_seconds_per_char: float = 0.05

    @classmethod
    def from_env(cls) -> "AppConfig":
        """
        Build an :class:`AppConfig` from environment variables.

        Supported variables:
            - THREADTALK_MODE: "console" (default) or "audio".
            - THREADTALK_RESPONDER: "keyword" (default) or "http".
            - THREADTALK_API_BASE_URL: Chat backend root URL (default: http://localhost:8000).
            - THREADTALK_API_KEY: Optional bearer token for the chat backend.
            - THREADTALK_REQUEST_TIMEOUT: HTTP timeout in seconds (default: 10).
            - THREADTALK_RESPONSE_LATENCY: Keyword responder delay in seconds (default: 1.5).
            - THREADTALK_SUMMARY_LATENCY: Mock summarizer delay in seconds (default: 3).
            - THREADTALK_STT_MODE: "whisper" (default) or "simulated" in audio mode.
            - THREADTALK_WHISPER_MODEL: Whisper model size (default: "tiny").
            - THREADTALK_WHISPER_DEVICE: Whisper device (e.g., "cuda" or "cpu").
            - THREADTALK_LANGUAGE: Language hint for STT (e.g., "en").
            - THREADTALK_SAMPLE_RATE: Microphone sample rate (default: 16000).
            - THREADTALK_PIPER_MODEL: Path to Piper .onnx model (required for audio mode).
            - THREADTALK_PIPER_BINARY: Piper binary name/path (default: "piper").
            - THREADTALK_PIPER_SPEAKER: Optional speaker id/name passed to Piper.
            - THREADTALK_SPEECH_MIN_SECONDS: Shortest simulated narration (default: 2).
            - THREADTALK_SPEECH_SECONDS_PER_CHAR: Simulated narration per character (default: 0.05).
        """

        return cls(
            mode=_env_choice("THREADTALK_MODE", "console", MODES),
            responder=_env_choice("THREADTALK_RESPONDER", "keyword", RESPONDERS),
            api_base_url=os.environ.get("THREADTALK_API_BASE_URL", "http://localhost:8000").rstrip("/"),
            api_key=os.environ.get("THREADTALK_API_KEY") or None,
            request_timeout=_env_float("THREADTALK_REQUEST_TIMEOUT", "10"),
            response_latency=_env_float("THREADTALK_RESPONSE_LATENCY", "1.5"),
            summary_latency=_env_float("THREADTALK_SUMMARY_LATENCY", "3"),
            stt_mode=_env_choice("THREADTALK_STT_MODE", "whisper", STT_MODES),
            whisper_model=os.environ.get("THREADTALK_WHISPER_MODEL", "tiny"),
            whisper_device=os.environ.get("THREADTALK_WHISPER_DEVICE") or None,
            language=os.environ.get("THREADTALK_LANGUAGE") or None,
            sample_rate=_env_int("THREADTALK_SAMPLE_RATE", "16000"),
            piper_model_path=os.environ.get("THREADTALK_PIPER_MODEL") or None,
            piper_binary=os.environ.get("THREADTALK_PIPER_BINARY", "piper"),
            piper_speaker=os.environ.get("THREADTALK_PIPER_SPEAKER") or None,
            speech_min_seconds=_env_float("THREADTALK_SPEECH_MIN_SECONDS", "2"),
            speech_seconds_per_char=_env_float("THREADTALK_SPEECH_SECONDS_PER_CHAR", "0.05"),
        )
