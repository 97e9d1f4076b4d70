"""Console harness for talking about a Reddit post."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
from typing import Optional

from .config import AppConfig
from .interfaces import ResponseGenerator, SpeechInput, SpeechOutput
from .models import ConversationState, Post
from .podcast import PodcastNarrator
from .responses import KeywordResponseGenerator
from .services.chat_client import HttpResponseGenerator
from .services.mic_recorder import MicrophoneCapture
from .services.recorder import SimulatedCapture
from .services.stt import SimulatedSpeechToText
from .services.stt_whisper import WhisperSpeechToText
from .services.tts import SimulatedSpeechOutput
from .services.tts_piper import PiperSpeechOutput
from .session import ConversationSession
from .summarizer import MockSummaryClient, extract_post_id, require_reddit_url

logger = logging.getLogger(__name__)

HELP = """Commands:
  <text>            ask about the active post
  /url <reddit-url> summarize a thread and start talking about it
  /record           start recording a question
  /stop             stop recording and send the transcript
  /mute             stop the assistant's narration
  /podcast          play or stop a podcast-style narration of the post
  /state            print the session state as JSON
  /clear            clear the conversation
  /quit             exit"""


def _configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def build_speech_output(config: AppConfig) -> SpeechOutput:
    if config.mode == "audio":
        if not config.piper_model_path:
            raise RuntimeError("THREADTALK_PIPER_MODEL must be set when THREADTALK_MODE=audio.")
        return PiperSpeechOutput(
            model_path=config.piper_model_path,
            binary_path=config.piper_binary,
            speaker=config.piper_speaker,
        )
    return SimulatedSpeechOutput(
        min_seconds=config.speech_min_seconds,
        seconds_per_char=config.speech_seconds_per_char,
    )


def build_speech_input(config: AppConfig) -> SpeechInput:
    if config.mode == "audio":
        if config.stt_mode == "simulated":
            stt = SimulatedSpeechToText()
        else:
            stt = WhisperSpeechToText(
                model_size=config.whisper_model,
                device=config.whisper_device,
                default_language=config.language,
            )
        return MicrophoneCapture(stt=stt, sample_rate=config.sample_rate, language=config.language)
    return SimulatedCapture()


def build_responder(config: AppConfig) -> ResponseGenerator:
    if config.responder == "http":
        return HttpResponseGenerator(
            config.api_base_url,
            api_key=config.api_key,
            timeout=config.request_timeout,
        )
    return KeywordResponseGenerator(latency=config.response_latency)


def build_session(config: AppConfig, *, speech_output: Optional[SpeechOutput] = None) -> ConversationSession:
    """Wire up a session with console or audio implementations."""
    return ConversationSession(
        speech_output=speech_output or build_speech_output(config),
        speech_input=build_speech_input(config),
        responder=build_responder(config),
    )


class ConsoleApp:
    """Reads commands from stdin and drives a :class:`ConversationSession`."""

    def __init__(self, config: AppConfig) -> None:
        speech_output = build_speech_output(config)
        self.session = build_session(config, speech_output=speech_output)
        self.podcast = PodcastNarrator(speech_output)
        self.summarizer = MockSummaryClient(latency=config.summary_latency)
        self.session.subscribe(self._log_state)

    @staticmethod
    def _log_state(state: ConversationState) -> None:
        logger.debug(
            "state: %d messages, recording=%s processing=%s playing=%s",
            len(state.messages),
            state.is_recording,
            state.is_processing,
            state.is_playing,
        )

    async def load_url(self, url: str) -> Post:
        url = require_reddit_url(url)
        print("[summarizer] Summarizing thread...")
        summary = await self.summarizer.summarize(url)
        post = Post.from_summary(summary, reddit_url=url, post_id=extract_post_id(url))
        self.session.set_active_post(post)
        self._print_last_message()
        return post

    async def send(self, text: str, *, is_audio: bool = False) -> None:
        if self.session.state.current_post is None:
            print("[info] Load a post first with /url <reddit-url>.")
            return
        reply = await self.session.process_user_message(text, is_audio=is_audio)
        print(f"Assistant: {reply.content}")

    async def handle(self, line: str) -> bool:
        """Run one command. Returns False when the user asked to quit."""
        command, _, argument = line.partition(" ")
        if command == "/quit":
            return False
        if command == "/help":
            print(HELP)
        elif command == "/url":
            await self.load_url(argument)
        elif command == "/record":
            if self.session.state.current_post is None:
                print("[info] Load a post first with /url <reddit-url>.")
            else:
                await self.session.start_recording()
                print("[rec] Recording." if self.session.state.is_recording else "[rec] Could not start recording.")
        elif command == "/stop":
            transcript = await self.session.stop_recording()
            if transcript:
                print(f"You said: {transcript}")
                await self.send(transcript, is_audio=True)
            else:
                print("[rec] No speech captured.")
        elif command == "/mute":
            self.session.stop_playback()
        elif command == "/podcast":
            post = self.session.state.current_post
            if post is None:
                print("[info] Load a post first with /url <reddit-url>.")
            else:
                started = self.podcast.toggle(post)
                print("[podcast] Playing." if started else "[podcast] Stopped.")
        elif command == "/state":
            print(json.dumps(self.session.get_state().as_dict(), indent=2))
        elif command == "/clear":
            self.podcast.stop()
            self.session.clear_conversation()
            print("[info] Conversation cleared.")
        else:
            await self.send(line)
        return True

    def _print_last_message(self) -> None:
        messages = self.session.state.messages
        if messages:
            print(f"Assistant: {messages[-1].content}")

    async def run(self, initial_url: Optional[str] = None) -> None:
        print(HELP)
        if initial_url:
            await self.load_url(initial_url)
        try:
            while True:
                line = (await asyncio.to_thread(input, "You: ")).strip()
                if not line:
                    continue
                try:
                    if not await self.handle(line):
                        return
                except (RuntimeError, ValueError) as exc:
                    logger.error("Command failed: %s", exc)
                    print(f"[error] {exc}")
        except (EOFError, KeyboardInterrupt):
            print()
        finally:
            await self.session.shutdown()


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Talk with an assistant about a Reddit post.")
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging.",
    )
    parser.add_argument(
        "--mode",
        choices=["console", "audio"],
        help="Override THREADTALK_MODE (console/audio).",
    )
    parser.add_argument(
        "--url",
        help="Reddit post URL to load at startup.",
    )
    return parser.parse_args(argv)


def main(argv: Optional[list[str]] = None) -> None:
    args = parse_args(argv)
    _configure_logging(args.verbose)
    config = AppConfig.from_env()
    if args.mode:
        config.mode = args.mode
    app = ConsoleApp(config)
    asyncio.run(app.run(initial_url=args.url))


if __name__ == "__main__":
    main()
