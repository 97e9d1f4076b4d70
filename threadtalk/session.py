"""Conversation session: state, turn-taking, recording and playback."""

from __future__ import annotations

import itertools
import logging
from datetime import datetime, timezone
from typing import Callable, List, Optional

from .exceptions import SessionBusyError
from .interfaces import ResponseGenerator, SpeechInput, SpeechOutput
from .models import ConversationMessage, ConversationState, Post, Role

logger = logging.getLogger(__name__)

GREETING = "I'm ready to discuss this Reddit post: \"{title}\". What would you like to know?"

StateListener = Callable[[ConversationState], None]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ConversationSession:
    """
    Owns one conversation about a Reddit post.

    The session sequences user message -> generated reply -> narration and
    exposes its state only as immutable :class:`ConversationState` snapshots,
    either through :meth:`get_state` or pushed to listeners registered with
    :meth:`subscribe` after every change.

    Only one turn may be in flight: :meth:`process_user_message` raises
    :class:`SessionBusyError` while a reply is being generated or while
    recording. A turn that is still in flight when the conversation is cleared
    or switched to another post is discarded when it completes.

    Usage:
        session = ConversationSession(
            speech_output=SimulatedSpeechOutput(),
            speech_input=SimulatedCapture(),
            responder=KeywordResponseGenerator(),
        )
        session.set_active_post(post)
        reply = await session.process_user_message("Give me a summary")
    """

    def __init__(
        self,
        *,
        speech_output: SpeechOutput,
        speech_input: SpeechInput,
        responder: ResponseGenerator,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._speech_output = speech_output
        self._speech_input = speech_input
        self._responder = responder
        self._clock = clock

        self._messages: List[ConversationMessage] = []
        self._current_post: Optional[Post] = None
        self._is_recording = False
        self._is_processing = False
        self._is_playing = False

        self._listeners: List[StateListener] = []
        self._ids = itertools.count(1)
        # Bumped whenever the conversation is replaced; in-flight turns compare against it.
        self._generation = 0
        # Bumped by every stop_recording(); a begin() that completes after a stop is released.
        self._stop_requests = 0

        speech_output.add_listener(self._on_playback_change)

    # ------------------------------------------------------------------ #
    # State access
    # ------------------------------------------------------------------ #
    def get_state(self) -> ConversationState:
        """Return an immutable snapshot of the current state."""
        return ConversationState(
            messages=tuple(self._messages),
            is_recording=self._is_recording,
            is_processing=self._is_processing,
            is_playing=self._is_playing,
            current_post=self._current_post,
        )

    @property
    def state(self) -> ConversationState:
        return self.get_state()

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """
        Call ``listener`` with a fresh snapshot after every state change.

        Returns:
            A callable that removes the listener.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # ------------------------------------------------------------------ #
    # Conversation lifecycle
    # ------------------------------------------------------------------ #
    def set_active_post(self, post: Post) -> None:
        """Start a new conversation about ``post``, discarding the current one."""
        self._generation += 1
        self._current_post = post
        self._messages = [self._new_message("assistant", GREETING.format(title=post.title))]
        self._is_recording = False
        self._is_processing = False
        self._is_playing = False
        logger.info("Active post set: %s", post.title)
        self._emit()

    def clear_conversation(self) -> None:
        """
        Drop the messages and the active post and reset every flag.

        Only flags are reset; a running capture or narration keeps going until
        :meth:`stop_recording` / :meth:`stop_playback` is called. Use
        :meth:`shutdown` to release devices as well.
        """
        self._generation += 1
        self._messages = []
        self._current_post = None
        self._is_recording = False
        self._is_processing = False
        self._is_playing = False
        logger.info("Conversation cleared")
        self._emit()

    async def shutdown(self) -> None:
        """Stop narration and capture, then clear the conversation."""
        self.stop_playback()
        if self._is_recording or self._speech_input.is_active():
            await self.stop_recording()
        self.clear_conversation()

    # ------------------------------------------------------------------ #
    # Recording
    # ------------------------------------------------------------------ #
    async def start_recording(self) -> None:
        """
        Begin capturing voice input.

        Failures are logged and leave ``is_recording`` False; nothing is raised.
        """
        if self._is_processing:
            logger.warning("Cannot record while a message is being processed")
            return
        if self._is_recording:
            logger.debug("Recording already in progress")
            return

        generation = self._generation
        stop_requests = self._stop_requests
        try:
            started = await self._speech_input.begin()
        except Exception as exc:
            logger.error("Failed to start recording: %s", exc)
            started = False

        if started and stop_requests != self._stop_requests:
            logger.info("Recording stopped while the microphone was opening; releasing it")
            await self._release_capture()
            started = False
        elif started and (self._is_processing or generation != self._generation):
            logger.warning("Session changed while the microphone was opening; releasing it")
            await self._release_capture()
            started = False

        self._is_recording = bool(started)
        self._emit()

    async def stop_recording(self) -> Optional[str]:
        """
        Finish capturing and return the transcript.

        Returns:
            The transcript, or None when nothing was being recorded or the
            capture could not be transcribed.
        """
        self._stop_requests += 1
        self._is_recording = False
        self._emit()
        return await self._release_capture()

    async def _release_capture(self) -> Optional[str]:
        try:
            return await self._speech_input.end()
        except Exception as exc:
            logger.error("Failed to stop recording: %s", exc)
            return None

    # ------------------------------------------------------------------ #
    # Turns
    # ------------------------------------------------------------------ #
    async def process_user_message(self, text: str, *, is_audio: bool = False) -> ConversationMessage:
        """
        Append ``text`` as a user message, generate the reply and narrate it.

        The reply is returned once committed; narration continues in the
        background.

        Raises:
            ValueError: If ``text`` is blank.
            SessionBusyError: If a turn is already processing or recording is active.
            Exception: Whatever the response generator raised; nothing is
                committed for the assistant in that case.
        """
        if not text or not text.strip():
            raise ValueError("Message text must not be empty")
        if self._is_processing:
            raise SessionBusyError("A message is already being processed")
        if self._is_recording:
            raise SessionBusyError("Recording in progress; stop it before sending a message")

        generation = self._generation
        post = self._current_post
        self._messages.append(self._new_message("user", text, is_audio=is_audio))
        self._is_processing = True
        self._emit()

        committed = False
        try:
            reply = await self._responder.generate(text, post, message_count=len(self._messages))
            assistant_message = self._new_message("assistant", reply, is_audio=True)
            if generation == self._generation:
                self._messages.append(assistant_message)
                committed = True
            else:
                logger.info("Discarding reply for a conversation that was cleared or replaced")
        finally:
            if generation == self._generation:
                self._is_processing = False
                self._emit()

        if committed:
            self._narrate(reply)
        return assistant_message

    # ------------------------------------------------------------------ #
    # Playback
    # ------------------------------------------------------------------ #
    def stop_playback(self) -> None:
        """Stop any narration. Safe to call when nothing is playing."""
        try:
            self._speech_output.stop()
        except Exception as exc:
            logger.error("Failed to stop playback: %s", exc)
        self._set_playing(False)

    def _narrate(self, text: str) -> None:
        try:
            self._speech_output.speak(text)
        except Exception as exc:
            logger.error("Failed to play response: %s", exc)
            self._set_playing(False)

    def _on_playback_change(self, playing: bool) -> None:
        self._set_playing(playing)

    def _set_playing(self, playing: bool) -> None:
        if playing == self._is_playing:
            return
        self._is_playing = playing
        self._emit()

    # ------------------------------------------------------------------ #
    # Internals
    # ------------------------------------------------------------------ #
    def _new_message(self, role: Role, content: str, *, is_audio: bool = False) -> ConversationMessage:
        timestamp = self._clock()
        return ConversationMessage(
            id=f"{int(timestamp.timestamp() * 1000)}-{next(self._ids)}",
            role=role,
            content=content,
            timestamp=timestamp,
            is_audio=is_audio,
        )

    def _emit(self) -> None:
        if not self._listeners:
            return
        snapshot = self.get_state()
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                logger.exception("State listener failed")
