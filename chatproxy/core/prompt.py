from __future__ import annotations

from typing import Sequence

from langchain_core.messages import AIMessage, BaseMessage, HumanMessage
from pydantic import BaseModel


SYSTEM_PROMPT = (
    "You are a helpful, friendly assistant. Provide concise and accurate responses."
)
SAFETY_SHIM = (
    "If a user asks for illegal, violent, or harmful instructions, refuse briefly "
    "and suggest safer, educational alternatives."
)

INSTRUCTIONS = f"{SYSTEM_PROMPT}\n\nSafety: {SAFETY_SHIM}"

TURN_SEPARATOR = "\n\n"


class ModelRequest(BaseModel):
    """The only request shape the remote model accepts."""

    instructions: str
    input: str


def _render_turn(message: BaseMessage) -> str:
    if isinstance(message, HumanMessage):
        return f"User: {message.content}"
    if isinstance(message, AIMessage):
        return f"Assistant: {message.content}"
    return ""


def format_model_request(messages: Sequence[BaseMessage]) -> ModelRequest:
    """Serialize windowed history into instructions plus a single input string.

    A lone user turn is sent verbatim; anything else becomes a
    ``User:``/``Assistant:`` transcript separated by blank lines.
    """
    if len(messages) == 1 and isinstance(messages[0], HumanMessage):
        return ModelRequest(instructions=INSTRUCTIONS, input=str(messages[0].content))

    rendered = [_render_turn(m) for m in messages]
    conversation_text = TURN_SEPARATOR.join(turn for turn in rendered if turn)
    return ModelRequest(instructions=INSTRUCTIONS, input=conversation_text)
