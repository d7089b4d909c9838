from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional

import httpx

from chatproxy.core.errors import (
    ModelConfigurationError,
    ModelInvocationError,
    parse_gateway_error,
)
from chatproxy.core.prompt import ModelRequest
from config.settings import Settings


logger = logging.getLogger(__name__)

GATEWAY_BASE_URL = "https://gateway.ai.cloudflare.com/v1"
WORKERS_AI_BASE_URL = "https://api.cloudflare.com/client/v4"


def build_endpoint(settings: Settings) -> str:
    account_id = settings.cloudflare_account_id
    if settings.ai_gateway_id:
        return f"{GATEWAY_BASE_URL}/{account_id}/{settings.ai_gateway_id}/workers-ai/{settings.model_id}"
    return f"{WORKERS_AI_BASE_URL}/accounts/{account_id}/ai/run/{settings.model_id}"


def build_headers(settings: Settings) -> Dict[str, str]:
    headers = {
        "Authorization": f"Bearer {settings.cloudflare_api_token}",
        "Content-Type": "application/json",
    }
    if settings.ai_gateway_id:
        headers["cf-aig-skip-cache"] = "true" if settings.gateway_skip_cache else "false"
        headers["cf-aig-cache-ttl"] = str(settings.gateway_cache_ttl)
    return headers


def build_payload(model_request: ModelRequest, settings: Settings) -> Dict[str, Any]:
    return {
        "instructions": model_request.instructions,
        "input": model_request.input,
        "reasoning": {
            "effort": settings.reasoning_effort,
            "summary": settings.reasoning_summary,
        },
    }


def _decode_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text


def _failure(status_code: int, body: Any) -> ModelInvocationError:
    descriptor = parse_gateway_error(body)
    if descriptor is not None:
        logger.warning(
            "Workers AI error status=%s code=%s message=%s",
            status_code,
            descriptor.code,
            descriptor.message,
        )
    detail = json.dumps(body) if isinstance(body, (dict, list)) else str(body)
    return ModelInvocationError(
        f"Workers AI request failed with status {status_code}: {detail}",
        status_code=status_code,
    )


def _unwrap_envelope(status_code: int, body: Any) -> Any:
    # REST API replies are wrapped as {"success": ..., "result": ..., "errors": [...]}
    if isinstance(body, dict) and "success" in body and "result" in body:
        if body.get("success") is False:
            raise _failure(status_code, body)
        return body["result"]
    return body


def run_model(
    model_request: ModelRequest,
    settings: Settings,
    client: Optional[httpx.Client] = None,
) -> Any:
    """Run one Workers AI inference call and return the untyped reply.

    No retries. Failures raise ModelInvocationError carrying the error body so
    gateway policy blocks can be recognized upstream.
    """
    if not settings.cloudflare_account_id or not settings.cloudflare_api_token:
        raise ModelConfigurationError(
            "CLOUDFLARE_ACCOUNT_ID and CLOUDFLARE_API_TOKEN must be set in environment or .env"
        )

    endpoint = build_endpoint(settings)
    headers = build_headers(settings)
    payload = build_payload(model_request, settings)

    try:
        if client is None:
            with httpx.Client(timeout=settings.request_timeout) as owned:
                response = owned.post(endpoint, headers=headers, json=payload)
        else:
            response = client.post(endpoint, headers=headers, json=payload)
    except httpx.HTTPError as exc:
        raise ModelInvocationError(f"Workers AI call failed: {exc}") from exc

    logger.info(
        "Workers AI responded: status=%s gateway=%s",
        response.status_code,
        bool(settings.ai_gateway_id),
    )
    body = _decode_body(response)
    if response.is_error:
        raise _failure(response.status_code, body)
    return _unwrap_envelope(response.status_code, body)
