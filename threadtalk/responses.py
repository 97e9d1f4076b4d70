"""Keyword-matched placeholder for assistant replies."""

from __future__ import annotations

import asyncio
import logging
import random
from typing import Callable, Optional, Sequence, Tuple

from .interfaces import ResponseGenerator
from .models import Post

logger = logging.getLogger(__name__)

NO_POST_REPLY = "I don't have a Reddit post loaded to discuss. Please share a Reddit URL first."

# A conversation longer than this gets the follow-up reply instead of a generic one.
FOLLOW_UP_AFTER = 4


def _summary_reply(post: Post, rng: random.Random) -> str:
    return (
        f"Here's a comprehensive summary: {post.summary}. This discussion has generated "
        "significant interest due to its relevance to current trends and diverse perspectives."
    )


def _viewpoint_reply(post: Post, rng: random.Random) -> str:
    if not post.viewpoints:
        return (
            "The discussion didn't surface any distinct viewpoints yet. "
            f"Here's what it covers: {post.summary}"
        )
    viewpoint = rng.choice(post.viewpoints)
    return (
        f"One particularly interesting perspective from the discussion is: {viewpoint}. "
        "This viewpoint reflects a broader trend in how people are thinking about this topic."
    )


def _detail_reply(post: Post, rng: random.Random) -> str:
    themes = ", and ".join(post.viewpoints[:2]) or "no clear consensus yet"
    return (
        f"Let me elaborate on that. {post.summary} The community discussion reveals several "
        f"key themes: {themes}. These perspectives highlight the complexity of the issue."
    )


def _argument_reply(post: Post, rng: random.Random) -> str:
    arguments = ". Another perspective suggests ".join(post.viewpoints) or "no single position dominates"
    return (
        "The main arguments in this discussion center around different approaches to the topic. "
        f"{arguments}. These varying viewpoints create a rich dialogue."
    )


def _implication_reply(post: Post, rng: random.Random) -> str:
    return (
        "The implications of this discussion are quite significant. Based on the Reddit thread, "
        "this could impact how we think about similar issues in the future. The community seems "
        "particularly concerned about the long-term effects."
    )


Rule = Tuple[str, Tuple[str, ...], Callable[[Post, random.Random], str]]

# Checked in order; the first rule with a keyword in the message wins.
KEYWORD_RULES: Tuple[Rule, ...] = (
    ("summary", ("summary", "summarize"), _summary_reply),
    ("viewpoint", ("viewpoint", "opinion", "perspective"), _viewpoint_reply),
    ("detail", ("detail", "more", "explain"), _detail_reply),
    ("argument", ("argument", "debate"), _argument_reply),
    ("implication", ("implication", "impact"), _implication_reply),
)

GENERIC_REPLIES: Tuple[str, ...] = (
    "That's an insightful question about this Reddit discussion. Based on the thread about "
    "{title}, the community seems divided but engaged.",
    "Interesting point. The Reddit post you shared touches on this topic, and the community "
    "responses show there's real depth to this issue.",
    "Good question. From what I can see in the Reddit discussion, this is exactly the kind of "
    "nuanced topic that generates thoughtful debate.",
    "That's worth exploring further. The original Reddit post and community responses suggest "
    "this is a multifaceted issue with valid concerns on different sides.",
)

FOLLOW_UP_REPLY = (
    "That's a great follow-up question. Building on our previous discussion about {title}, "
    "I think this adds another layer to consider. The Reddit community's insights suggest "
    "there are multiple valid approaches to this topic."
)


def match_rule(message: str) -> Optional[Rule]:
    """Return the first keyword rule matching ``message`` (case-insensitive)."""
    lowered = message.lower()
    for rule in KEYWORD_RULES:
        if any(keyword in lowered for keyword in rule[1]):
            return rule
    return None


class KeywordResponseGenerator(ResponseGenerator):
    """
    Placeholder reply policy driven by topical keywords.

    Args:
        latency: Seconds to wait before answering, standing in for a backend round trip.
        rng: Random source for viewpoint and generic-reply picks.
        generic_replies: Pool used when no keyword matches early in the conversation.

    Usage:
        generator = KeywordResponseGenerator(latency=0)
        reply = await generator.generate("Give me a summary", post, message_count=2)
    """

    def __init__(
        self,
        *,
        latency: float = 1.5,
        rng: Optional[random.Random] = None,
        generic_replies: Sequence[str] = GENERIC_REPLIES,
    ) -> None:
        if not generic_replies:
            raise ValueError("generic_replies must not be empty")
        self.latency = latency
        self.generic_replies = tuple(generic_replies)
        self._rng = rng or random.Random()

    async def generate(self, message: str, post: Optional[Post], *, message_count: int) -> str:
        if self.latency > 0:
            await asyncio.sleep(self.latency)
        return self.reply_for(message, post, message_count=message_count)

    def reply_for(self, message: str, post: Optional[Post], *, message_count: int) -> str:
        """Synchronous core of :meth:`generate`."""
        if post is None:
            return NO_POST_REPLY

        rule = match_rule(message)
        if rule is not None:
            logger.debug("Matched %s rule", rule[0])
            return rule[2](post, self._rng)

        if message_count > FOLLOW_UP_AFTER:
            return FOLLOW_UP_REPLY.format(title=post.title)

        return self._rng.choice(self.generic_replies).format(title=post.title)
