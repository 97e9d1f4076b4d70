"""Text helpers shared by the speech adapters."""

from __future__ import annotations

import re
from typing import List

# Matches: . ! ? followed by whitespace or end of text
SENTENCE_END = re.compile(r"[.!?]+(?=\s|$)")


def split_sentences(text: str) -> List[str]:
    """
    Split narration text into sentences, keeping ending punctuation.

    Trailing text without punctuation is returned as the last sentence.

    Example:
        >>> split_sentences("Hello there. How are you? Fine")
        ['Hello there.', 'How are you?', 'Fine']
    """
    sentences: List[str] = []
    remaining = text or ""
    while True:
        match = SENTENCE_END.search(remaining)
        if not match:
            break
        sentence = remaining[: match.end()].strip()
        if sentence:
            sentences.append(sentence)
        remaining = remaining[match.end():].lstrip()

    tail = remaining.strip()
    if tail:
        sentences.append(tail)
    return sentences


def estimate_speech_seconds(text: str, *, seconds_per_char: float, min_seconds: float) -> float:
    """Rough narration length for ``text``; never shorter than ``min_seconds``."""
    return max(min_seconds, len(text) * seconds_per_char)
