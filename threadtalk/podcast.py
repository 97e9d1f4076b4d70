"""Podcast-style narration of a summarized post."""

from __future__ import annotations

import logging

from .interfaces import SpeechOutput
from .models import Post

logger = logging.getLogger(__name__)

TRANSITIONS = (
    "First, some users argue that",
    "On the other hand, others believe that",
    "Additionally, there's a perspective that",
    "Another interesting take suggests that",
    "Finally, some community members point out that",
)
FALLBACK_TRANSITION = "Another viewpoint suggests that"

OUTRO = (
    "That's a wrap on today's Reddit digest. These discussions show how complex and nuanced "
    "online conversations can be. Thanks for listening, and keep exploring!"
)

# Longer pause between script sections when read aloud.
SECTION_BREAK = ". ... "


def build_podcast_script(post: Post) -> str:
    """Return a narration script: intro, summary, each viewpoint with a transition, outro."""
    intro = (
        "Welcome to your personalized Reddit digest. Today we're diving into an interesting "
        f"discussion titled: {post.title}."
    )
    summary = f"Let me break this down for you. {post.summary}"
    viewpoints_intro = (
        "Now, what makes this discussion particularly fascinating are the diverse viewpoints "
        "from the community."
    )
    viewpoints = ". ".join(
        f"{TRANSITIONS[index] if index < len(TRANSITIONS) else FALLBACK_TRANSITION} {viewpoint.lower()}"
        for index, viewpoint in enumerate(post.viewpoints)
    )

    sections = [intro, summary, viewpoints_intro, viewpoints, OUTRO]
    return SECTION_BREAK.join(section for section in sections if section)


class PodcastNarrator:
    """Plays or stops the podcast narration of a post on a speech output."""

    def __init__(self, speech: SpeechOutput) -> None:
        self._speech = speech

    def is_playing(self) -> bool:
        return self._speech.is_speaking()

    def toggle(self, post: Post) -> bool:
        """
        Stop the narration if it is playing, otherwise start it.

        Returns:
            True when narration was started, False when it was stopped.
        """
        if self._speech.is_speaking():
            logger.info("Stopping podcast narration")
            self._speech.stop()
            return False

        logger.info("Narrating podcast for %r", post.title)
        self._speech.speak(build_podcast_script(post))
        return True

    def stop(self) -> None:
        self._speech.stop()
