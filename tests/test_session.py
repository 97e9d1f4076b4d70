import asyncio
import dataclasses

import pytest

from conftest import BrokenCapture, StubResponder, wait_for
from threadtalk.exceptions import ChatClientError, SessionBusyError
from threadtalk.models import Post
from threadtalk.responses import NO_POST_REPLY
from threadtalk.services.stt import SAMPLE_QUESTIONS
from threadtalk.session import ConversationSession


def test_initial_state_is_empty(session):
    state = session.get_state()
    assert state.messages == ()
    assert state.current_post is None
    assert not (state.is_recording or state.is_processing or state.is_playing)


def test_set_active_post_injects_greeting(session, post):
    session.set_active_post(post)

    state = session.get_state()
    assert len(state.messages) == 1
    assert state.messages[0].role == "assistant"
    assert post.title in state.messages[0].content
    assert state.current_post == post


def test_set_active_post_replaces_previous_conversation(session, post):
    session.set_active_post(post)
    other = Post(title="Housing Crisis", summary="Prices are up", viewpoints=[])
    session.set_active_post(other)

    state = session.get_state()
    assert len(state.messages) == 1
    assert "Housing Crisis" in state.messages[0].content
    assert state.current_post is other


def test_snapshot_does_not_follow_later_changes(session, post):
    session.set_active_post(post)
    snapshot = session.get_state()

    session.clear_conversation()

    assert len(snapshot.messages) == 1
    assert snapshot.current_post == post
    with pytest.raises(dataclasses.FrozenInstanceError):
        snapshot.is_playing = True  # type: ignore[misc]


@pytest.mark.asyncio
async def test_process_user_message_round_trip(session, post):
    session.set_active_post(post)

    reply = await session.process_user_message("Can you give me a summary?")

    state = session.get_state()
    assert [m.role for m in state.messages] == ["assistant", "user", "assistant"]
    assert state.messages[1].content == "Can you give me a summary?"
    assert state.messages[2] == reply
    assert post.summary in reply.content
    assert state.is_processing is False
    assert state.is_playing is True

    await wait_for(lambda: not session.get_state().is_playing)


@pytest.mark.asyncio
async def test_message_ids_are_unique_and_ordered(session, post):
    session.set_active_post(post)
    await session.process_user_message("hello")
    session.stop_playback()
    await session.process_user_message("and again")

    messages = session.get_state().messages
    ids = [m.id for m in messages]
    assert len(set(ids)) == len(ids)
    assert [m.timestamp for m in messages] == sorted(m.timestamp for m in messages)
    session.stop_playback()


@pytest.mark.asyncio
async def test_no_post_returns_guidance(session, post):
    reply = await session.process_user_message("What is this about?")

    assert reply.role == "assistant"
    assert reply.content == NO_POST_REPLY
    assert post.title not in reply.content
    session.stop_playback()


@pytest.mark.asyncio
async def test_generation_failure_propagates_without_partial_reply(speech, capture, post):
    responder = StubResponder(error=ChatClientError("backend down"))
    session = ConversationSession(speech_output=speech, speech_input=capture, responder=responder)
    session.set_active_post(post)

    with pytest.raises(ChatClientError):
        await session.process_user_message("hi")

    state = session.get_state()
    assert [m.role for m in state.messages] == ["assistant", "user"]
    assert state.is_processing is False
    assert state.is_playing is False


@pytest.mark.asyncio
async def test_overlapping_turns_are_rejected(speech, capture, post):
    responder = StubResponder()
    responder.release = asyncio.Event()
    session = ConversationSession(speech_output=speech, speech_input=capture, responder=responder)
    session.set_active_post(post)

    first = asyncio.ensure_future(session.process_user_message("first"))
    await wait_for(lambda: session.get_state().is_processing)

    with pytest.raises(SessionBusyError):
        await session.process_user_message("second")

    responder.release.set()
    await first
    assert [m.content for m in session.get_state().messages[1:]] == ["first", "stub reply"]
    session.stop_playback()


@pytest.mark.asyncio
async def test_turn_in_flight_is_discarded_after_clear(speech, capture, post):
    responder = StubResponder()
    responder.release = asyncio.Event()
    session = ConversationSession(speech_output=speech, speech_input=capture, responder=responder)
    session.set_active_post(post)

    pending = asyncio.ensure_future(session.process_user_message("first"))
    await wait_for(lambda: session.get_state().is_processing)
    session.clear_conversation()
    responder.release.set()
    reply = await pending

    state = session.get_state()
    assert reply.content == "stub reply"
    assert state.messages == ()
    assert state.is_processing is False
    assert state.is_playing is False


@pytest.mark.asyncio
async def test_blank_message_is_rejected(session, post):
    session.set_active_post(post)
    with pytest.raises(ValueError):
        await session.process_user_message("   ")
    assert len(session.get_state().messages) == 1


@pytest.mark.asyncio
async def test_clear_resets_everything_at_once(session, post):
    session.set_active_post(post)
    await session.start_recording()
    seen = []
    session.subscribe(seen.append)

    session.clear_conversation()

    state = session.get_state()
    assert state.messages == ()
    assert state.current_post is None
    assert not (state.is_recording or state.is_processing or state.is_playing)
    assert seen == [state]


@pytest.mark.asyncio
async def test_simulated_recording_yields_sample_question(session, post):
    session.set_active_post(post)

    await session.start_recording()
    assert session.get_state().is_recording is True

    transcript = await session.stop_recording()
    assert transcript in SAMPLE_QUESTIONS
    assert session.get_state().is_recording is False


@pytest.mark.asyncio
async def test_recording_flag_cleared_when_device_fails(speech, post):
    capture = BrokenCapture()
    session = ConversationSession(speech_output=speech, speech_input=capture, responder=StubResponder())
    session.set_active_post(post)

    await session.start_recording()
    assert session.get_state().is_recording is False

    assert await session.stop_recording() is None
    assert session.get_state().is_recording is False


@pytest.mark.asyncio
async def test_stop_recording_without_capture_returns_none(session):
    assert await session.stop_recording() is None
    assert session.get_state().is_recording is False


@pytest.mark.asyncio
async def test_cannot_send_text_while_recording(session, post):
    session.set_active_post(post)
    await session.start_recording()

    with pytest.raises(SessionBusyError):
        await session.process_user_message("typed while recording")

    state = session.get_state()
    assert len(state.messages) == 1
    assert state.is_processing is False


@pytest.mark.asyncio
async def test_recording_refused_while_processing(speech, capture, post):
    responder = StubResponder()
    responder.release = asyncio.Event()
    session = ConversationSession(speech_output=speech, speech_input=capture, responder=responder)
    session.set_active_post(post)

    pending = asyncio.ensure_future(session.process_user_message("first"))
    await wait_for(lambda: session.get_state().is_processing)
    await session.start_recording()

    assert session.get_state().is_recording is False
    assert capture.is_active() is False
    responder.release.set()
    await pending
    session.stop_playback()


@pytest.mark.asyncio
async def test_voice_turn_marks_messages_as_audio(session, post):
    session.set_active_post(post)
    await session.start_recording()
    transcript = await session.stop_recording()

    reply = await session.process_user_message(transcript, is_audio=True)

    user_message = session.get_state().messages[-2]
    assert user_message.is_audio and reply.is_audio
    session.stop_playback()


@pytest.mark.asyncio
async def test_stop_playback_is_idempotent(session, post):
    session.set_active_post(post)
    before = session.get_state()

    session.stop_playback()
    session.stop_playback()

    assert session.get_state() == before


@pytest.mark.asyncio
async def test_stop_playback_interrupts_narration(session, post):
    session.set_active_post(post)
    await session.process_user_message("tell me more")
    assert session.get_state().is_playing is True

    session.stop_playback()

    assert session.get_state().is_playing is False
    await asyncio.sleep(0.05)
    assert session.get_state().is_playing is False


@pytest.mark.asyncio
async def test_listeners_see_each_transition(session, post):
    seen = []
    unsubscribe = session.subscribe(seen.append)
    session.set_active_post(post)

    await session.process_user_message("What's the debate?")
    await wait_for(lambda: not session.get_state().is_playing)

    processing = [s.is_processing for s in seen]
    playing = [s.is_playing for s in seen]
    assert True in processing and processing[-1] is False
    assert True in playing and playing[-1] is False

    unsubscribe()
    count = len(seen)
    session.clear_conversation()
    assert len(seen) == count


def test_failing_listener_does_not_break_session(session, post):
    def explode(state):
        raise RuntimeError("listener bug")

    session.subscribe(explode)
    session.set_active_post(post)

    assert len(session.get_state().messages) == 1


@pytest.mark.asyncio
async def test_follow_up_reply_after_several_turns(session, post):
    session.set_active_post(post)
    for text in ("hello", "hi again"):
        await session.process_user_message(text)
        session.stop_playback()

    reply = await session.process_user_message("thanks, go on")

    assert "follow-up" in reply.content
    assert post.title in reply.content
    session.stop_playback()


@pytest.mark.asyncio
async def test_empty_viewpoints_do_not_crash(session):
    session.set_active_post(Post(title="Quiet thread", summary="Nothing much", viewpoints=[]))

    for question in ("Any opinions?", "Explain in detail", "What is the debate?"):
        reply = await session.process_user_message(question)
        assert reply.content
        session.stop_playback()


@pytest.mark.asyncio
async def test_shutdown_releases_capture_and_clears(session, capture, post):
    session.set_active_post(post)
    await session.start_recording()

    await session.shutdown()

    assert capture.is_active() is False
    state = session.get_state()
    assert state.messages == () and state.current_post is None
    assert not state.is_recording


class SlowCapture:
    """Speech input whose device takes a moment to open."""

    def __init__(self) -> None:
        self.active = False

    def is_active(self) -> bool:
        return self.active

    async def begin(self) -> bool:
        await asyncio.sleep(0.05)
        self.active = True
        return True

    async def end(self):
        if not self.active:
            return None
        self.active = False
        return "late transcript"


@pytest.mark.asyncio
async def test_stop_during_device_open_releases_microphone(speech, post):
    capture = SlowCapture()
    session = ConversationSession(speech_output=speech, speech_input=capture, responder=StubResponder())
    session.set_active_post(post)

    start = asyncio.ensure_future(session.start_recording())
    await asyncio.sleep(0)
    transcript = await session.stop_recording()
    await start

    assert transcript is None
    assert session.get_state().is_recording is False
    assert capture.is_active() is False


@pytest.mark.asyncio
async def test_reply_to_typed_message_is_narrated_audio(session, post):
    session.set_active_post(post)

    reply = await session.process_user_message("typed question")

    user_message = session.get_state().messages[-2]
    assert user_message.is_audio is False
    assert reply.is_audio is True
    session.stop_playback()
