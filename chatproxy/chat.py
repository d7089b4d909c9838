from __future__ import annotations

from typing import Any, Dict, Iterable, List

from langchain_core.messages import AIMessage, BaseMessage, ChatMessage, HumanMessage, SystemMessage

from chatproxy.core.memory import sanitize_history, window_history
from chatproxy.core.prompt import ModelRequest, format_model_request


def to_lc_messages(history: List[Dict[str, Any]]) -> List[BaseMessage]:
    messages: List[BaseMessage] = []
    for item in history or []:
        role = item.get("role") or ""
        content = item.get("content") or ""
        if role == "user":
            messages.append(HumanMessage(content=content))
        elif role == "assistant":
            messages.append(AIMessage(content=content))
        elif role == "system":
            messages.append(SystemMessage(content=content))
        else:
            # Unknown roles survive sanitizing but render to nothing in the prompt
            messages.append(ChatMessage(role=role, content=content))
    return messages


def build_model_input(
    history: List[Dict[str, Any]], blocked_user_contents: Iterable[str]
) -> ModelRequest:
    """Sanitize, window and format a frontend-supplied conversation."""
    blocked = frozenset(blocked_user_contents)
    cleaned = sanitize_history(to_lc_messages(history), blocked)
    return format_model_request(window_history(cleaned))
