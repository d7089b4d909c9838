"""Text extraction from Workers AI replies.

The reply shape is not fixed across model versions and gateways, so each
known shape gets a probe and the first probe that yields text wins. Replies
that match none of them are classified as ``UNRECOGNIZED`` and answered with
a fixed fallback text instead of failing the request.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, List, Optional, Tuple


logger = logging.getLogger(__name__)

PARSE_FAILURE_TEXT = "Error: Could not parse AI response"


class ReplyShape(str, Enum):
    PLAIN_TEXT = "plain_text"
    OUTPUT_MESSAGE = "output_message"
    RESPONSE_FIELD = "response_field"
    CONTENT_FIELD = "content_field"
    CHAT_COMPLETION = "chat_completion"
    NESTED_RESULT = "nested_result"
    UNRECOGNIZED = "unrecognized"


@dataclass(frozen=True)
class ParsedReply:
    shape: ReplyShape
    text: str = ""


def _non_empty_text(value: Any) -> Optional[str]:
    if isinstance(value, str) and value:
        return value
    return None


def _first_of_type(items: Any, item_type: str) -> Optional[dict]:
    if not isinstance(items, list):
        return None
    for item in items:
        if isinstance(item, dict) and item.get("type") == item_type:
            return item
    return None


def _plain_text(reply: Any) -> Optional[str]:
    return reply if isinstance(reply, str) else None


def _output_message(reply: dict) -> Optional[str]:
    # Responses API: output[type=message].content[type=output_text].text
    message = _first_of_type(reply.get("output"), "message")
    if message is None:
        return None
    text_part = _first_of_type(message.get("content"), "output_text")
    if text_part is None:
        return None
    return _non_empty_text(text_part.get("text"))


def _response_field(reply: dict) -> Optional[str]:
    return _non_empty_text(reply.get("response"))


def _content_field(reply: dict) -> Optional[str]:
    return _non_empty_text(reply.get("content"))


def _chat_completion(reply: dict) -> Optional[str]:
    choices = reply.get("choices")
    if not isinstance(choices, list) or not choices or not isinstance(choices[0], dict):
        return None
    message = choices[0].get("message")
    if not isinstance(message, dict):
        return None
    return _non_empty_text(message.get("content"))


def _nested_result(reply: dict) -> Optional[str]:
    result = reply.get("result")
    if not isinstance(result, dict):
        return None
    return _non_empty_text(result.get("response"))


_OBJECT_PROBES: List[Tuple[ReplyShape, Callable[[dict], Optional[str]]]] = [
    (ReplyShape.OUTPUT_MESSAGE, _output_message),
    (ReplyShape.RESPONSE_FIELD, _response_field),
    (ReplyShape.CONTENT_FIELD, _content_field),
    (ReplyShape.CHAT_COMPLETION, _chat_completion),
    (ReplyShape.NESTED_RESULT, _nested_result),
]


def classify_reply(reply: Any) -> ParsedReply:
    text = _plain_text(reply)
    if text is not None:
        return ParsedReply(ReplyShape.PLAIN_TEXT, text)

    if isinstance(reply, dict):
        for shape, probe in _OBJECT_PROBES:
            text = probe(reply)
            if text is not None:
                return ParsedReply(shape, text)

    return ParsedReply(ReplyShape.UNRECOGNIZED)


def extract_reply_text(reply: Any) -> str:
    parsed = classify_reply(reply)
    if parsed.shape is ReplyShape.UNRECOGNIZED:
        logger.error("Could not extract text from model reply: %r", reply)
        return PARSE_FAILURE_TEXT
    logger.debug("Model reply matched shape=%s", parsed.shape.value)
    return parsed.text
