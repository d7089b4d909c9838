"""Conversation memory supplied by the frontend.

There is no server-side memory: every request carries its full history. This
module cleans that history before it reaches the model. System messages and
user turns the frontend reports as blocked are dropped, guardrail notices are
removed together with the user turn right before them, and the result is cut
down to the most recent turns.
"""

from __future__ import annotations

import re
from enum import Enum
from typing import AbstractSet, List, Sequence

from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage


MAX_CONTEXT_MESSAGES = 16

GUARDRAIL_NOTICE_PATTERN = re.compile(r"blocked by guardrails", re.IGNORECASE)


class MessageLabel(str, Enum):
    SKIP_SYSTEM = "skip-system"
    SKIP_BLOCKED_USER = "skip-blocked-user"
    GUARDRAIL_NOTICE = "guardrail-notice"
    KEEP = "keep"


def classify_message(message: BaseMessage, blocked: AbstractSet[str]) -> MessageLabel:
    content = message.content
    if isinstance(message, SystemMessage):
        return MessageLabel.SKIP_SYSTEM
    if isinstance(message, HumanMessage) and isinstance(content, str) and content in blocked:
        return MessageLabel.SKIP_BLOCKED_USER
    if (
        isinstance(message, AIMessage)
        and isinstance(content, str)
        and GUARDRAIL_NOTICE_PATTERN.search(content)
    ):
        return MessageLabel.GUARDRAIL_NOTICE
    return MessageLabel.KEEP


def sanitize_history(
    messages: Sequence[BaseMessage], blocked: AbstractSet[str]
) -> List[BaseMessage]:
    """Drop system, blocked and guardrail-paired turns, preserving order.

    A guardrail notice takes out at most the one user turn directly before
    it in the cleaned history; consecutive notices never cascade further.
    """
    cleaned: List[BaseMessage] = []
    for message in messages:
        label = classify_message(message, blocked)
        if label is MessageLabel.KEEP:
            cleaned.append(message)
        elif label is MessageLabel.GUARDRAIL_NOTICE:
            if cleaned and isinstance(cleaned[-1], HumanMessage):
                cleaned.pop()
    return cleaned


def window_history(
    messages: Sequence[BaseMessage], limit: int = MAX_CONTEXT_MESSAGES
) -> List[BaseMessage]:
    if limit <= 0:
        return []
    return list(messages[-limit:])
