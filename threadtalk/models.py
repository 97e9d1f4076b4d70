"""Shared dataclasses for the conversation session."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Literal, Optional, Sequence, Tuple

Role = Literal["user", "assistant"]


@dataclass(frozen=True)
class Post:
    """
    Reddit post under discussion.

    Attributes:
        title: Post title, quoted in the session greeting.
        summary: Generated summary of the thread.
        viewpoints: Community viewpoints, in the order the summarizer listed them.
        id: Optional Reddit post id (the ``/comments/<id>`` segment).
        reddit_url: Optional source URL.
    """

    title: str
    summary: str
    viewpoints: Tuple[str, ...] = ()
    id: Optional[str] = None
    reddit_url: Optional[str] = None

    def __post_init__(self) -> None:
        # Accept any sequence but store a tuple so snapshots stay immutable.
        object.__setattr__(self, "viewpoints", tuple(self.viewpoints))

    @classmethod
    def from_summary(
        cls,
        summary: "SummaryResponse",
        *,
        reddit_url: Optional[str] = None,
        post_id: Optional[str] = None,
    ) -> "Post":
        return cls(
            title=summary.title,
            summary=summary.summary,
            viewpoints=tuple(summary.viewpoints),
            id=post_id,
            reddit_url=reddit_url,
        )

    def as_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "reddit_url": self.reddit_url,
            "title": self.title,
            "summary": self.summary,
            "viewpoints": list(self.viewpoints),
        }


@dataclass(frozen=True)
class ConversationMessage:
    """Represents a single conversation turn half (user or assistant)."""

    id: str
    role: Role
    content: str
    timestamp: datetime
    is_audio: bool = False

    def as_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "role": self.role,
            "content": self.content,
            "timestamp": self.timestamp.isoformat(),
            "is_audio": self.is_audio,
        }


@dataclass(frozen=True)
class ConversationState:
    """
    Immutable snapshot of a conversation session.

    Snapshots are handed out by :class:`threadtalk.session.ConversationSession`;
    they never change after creation, even when the session moves on.
    """

    messages: Tuple[ConversationMessage, ...] = ()
    is_recording: bool = False
    is_processing: bool = False
    is_playing: bool = False
    current_post: Optional[Post] = None

    def as_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-friendly dict."""
        return {
            "messages": [message.as_dict() for message in self.messages],
            "is_recording": self.is_recording,
            "is_processing": self.is_processing,
            "is_playing": self.is_playing,
            "current_post": self.current_post.as_dict() if self.current_post else None,
        }


@dataclass
class CapturedAudio:
    """
    Audio blob captured from the microphone.

    Attributes:
        data: Raw PCM bytes.
        sample_rate: Sample rate in Hz (e.g., 16000).
        encoding: Audio encoding label (e.g., "pcm_s16le").
    """

    data: bytes
    sample_rate: int
    encoding: str = "pcm_s16le"

    @property
    def duration(self) -> float:
        """Length in seconds, assuming 16-bit mono samples."""
        if not self.sample_rate:
            return 0.0
        return len(self.data) / 2 / self.sample_rate


@dataclass
class SummaryResponse:
    """Result returned by the summarization backend."""

    title: str
    summary: str
    viewpoints: Sequence[str] = field(default_factory=list)
