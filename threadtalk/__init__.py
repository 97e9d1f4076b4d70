"""
ThreadTalk conversation package.

Holds the conversation session that lets a user talk, by voice or text, with
an assistant about a summarized Reddit post, together with the speech and
reply adapters it is composed from. Run ``python main.py`` for the console
harness.
"""

__all__ = [
    "config",
    "interfaces",
    "models",
    "podcast",
    "responses",
    "session",
    "summarizer",
]
