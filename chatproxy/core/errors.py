from __future__ import annotations

import json
import re
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


PROMPT_BLOCKED_CODE = 2016
RESPONSE_BLOCKED_CODE = 2017

GENERIC_ERROR_MESSAGE = "Failed to process request"

_JSON_OBJECT_PATTERN = re.compile(r"\{.*\}")


class ModelConfigurationError(RuntimeError):
    """Raised when Workers AI credentials are not configured."""


class ModelInvocationError(RuntimeError):
    """Raised when the remote model call fails.

    The message embeds the gateway's JSON error body when one was returned.
    """

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ErrorKind(str, Enum):
    PROMPT_BLOCKED = "prompt_blocked"
    RESPONSE_BLOCKED = "response_blocked"


class GatewayErrorDescriptor(BaseModel):
    code: Optional[int] = None
    message: Optional[str] = None


class NormalizedError(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    http_status: int = Field(400, exclude=True)
    error_label: str = Field(..., alias="error")
    error_kind: ErrorKind = Field(..., alias="errorType")
    details: str
    using_gateway: bool = Field(..., alias="usingGateway")

    def to_body(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")


_BLOCK_RESPONSES = {
    PROMPT_BLOCKED_CODE: (
        "Prompt Blocked by Security Policy",
        ErrorKind.PROMPT_BLOCKED,
        "Your message was blocked by your organization's AI Gateway security policy. "
        "This may be due to content that violates safety guidelines including: hate "
        "speech, violence, self-harm, explicit content, or other harmful material.",
        "Your message was blocked due to security policy.",
    ),
    RESPONSE_BLOCKED_CODE: (
        "Response Blocked by Security Policy",
        ErrorKind.RESPONSE_BLOCKED,
        "The AI's response was blocked by your organization's AI Gateway security "
        "policy. The model attempted to generate content that violates safety "
        "guidelines. Please rephrase your question or try a different topic.",
        "The AI's response was blocked due to security policy.",
    ),
}


def _descriptor_from_entries(entries: Any) -> Optional[GatewayErrorDescriptor]:
    if not isinstance(entries, list) or not entries or not isinstance(entries[0], dict):
        return None
    first = entries[0]
    code = first.get("code")
    message = first.get("message")
    return GatewayErrorDescriptor(
        code=code if isinstance(code, int) and not isinstance(code, bool) else None,
        message=message if isinstance(message, str) else None,
    )


def parse_gateway_error(body: Any) -> Optional[GatewayErrorDescriptor]:
    """Read an error descriptor out of a Workers AI / AI Gateway error body.

    Accepts ``error`` or ``errors`` lists and falls back to plain string
    ``error``, ``message`` or ``detail`` fields. Returns None if nothing
    matches.
    """
    if not isinstance(body, dict):
        return None
    for key in ("error", "errors"):
        descriptor = _descriptor_from_entries(body.get(key))
        if descriptor is not None:
            return descriptor
    for key in ("error", "message", "detail"):
        value = body.get(key)
        if isinstance(value, str):
            return GatewayErrorDescriptor(message=value)
    return None


def extract_gateway_error(message: str) -> Optional[GatewayErrorDescriptor]:
    """Find the gateway descriptor embedded in a failure message.

    Only the ``error`` list of the first ``{...}`` span is considered. Never
    raises: anything unparsable means there is no structured error.
    """
    if not isinstance(message, str):
        return None
    match = _JSON_OBJECT_PATTERN.search(message)
    if not match:
        return None
    try:
        parsed = json.loads(match.group(0))
    except ValueError:
        return None
    if not isinstance(parsed, dict):
        return None
    return _descriptor_from_entries(parsed.get("error"))


def normalize_gateway_error(
    exc: BaseException, using_gateway: bool
) -> Optional[NormalizedError]:
    """Map a gateway block (2016/2017) to a 400 error; None for anything else."""
    descriptor = extract_gateway_error(str(exc))
    if descriptor is None or descriptor.code not in _BLOCK_RESPONSES:
        return None

    label, kind, gateway_details, direct_details = _BLOCK_RESPONSES[descriptor.code]
    return NormalizedError(
        http_status=400,
        error_label=label,
        error_kind=kind,
        details=gateway_details if using_gateway else direct_details,
        using_gateway=using_gateway,
    )
