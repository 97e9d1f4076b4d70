"""Custom exceptions for the conversation session."""

from __future__ import annotations


class ResponseGenerationError(RuntimeError):
    """Raised when an assistant reply could not be produced."""


class ChatClientError(ResponseGenerationError):
    """Raised when the chat service responds with an error or invalid payload."""


class SessionBusyError(RuntimeError):
    """Raised when a turn is submitted while another is processing or recording is active."""


class InvalidRedditUrl(ValueError):
    """Raised when a URL does not point at a Reddit comments thread."""
