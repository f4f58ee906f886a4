"""Conversation history helpers"""

import re
from typing import Optional, Sequence

from ..models.chat import ChatMessage

_WHITESPACE = re.compile(r"\s+")


def normalize_text(text: Optional[str]) -> str:
    """Lowercase and collapse whitespace for equality checks"""
    return _WHITESPACE.sub(" ", (text or "").lower()).strip()


def is_duplicate_submission(history: Sequence[ChatMessage], message: ChatMessage) -> bool:
    """
    Check whether an incoming user message was already answered.

    A submission is a duplicate when its id is already in the history, or
    when its normalized text equals the most recent user message and an
    assistant reply follows that message. Only the latest user turn is
    compared, so asking the same question again later in a chat is allowed.
    """
    if any(m.id == message.id for m in history):
        return True

    text = normalize_text(message.text)
    if not text:
        return False

    for index in range(len(history) - 1, -1, -1):
        previous = history[index]
        if previous.role != "user":
            continue
        answered = any(m.role == "assistant" for m in history[index + 1:])
        return answered and normalize_text(previous.text) == text
    return False
