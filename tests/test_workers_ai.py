"""
Tests for the Workers AI client using httpx mock transports
"""
import json

import httpx
import pytest

from chatproxy.clients.workers_ai import build_endpoint, run_model
from chatproxy.core.errors import (
    ModelConfigurationError,
    ModelInvocationError,
    extract_gateway_error,
)
from chatproxy.core.prompt import ModelRequest

MODEL_REQUEST = ModelRequest(instructions="be helpful", input="2+2?")


def _client(handler):
    return httpx.Client(transport=httpx.MockTransport(handler))


def test_gateway_endpoint_and_headers(make_settings):
    seen = {}

    def handler(request):
        seen["url"] = str(request.url)
        seen["headers"] = request.headers
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"response": "4"})

    settings = make_settings(gateway_cache_ttl=120)
    reply = run_model(MODEL_REQUEST, settings, client=_client(handler))

    assert reply == {"response": "4"}
    assert build_endpoint(settings) == (
        "https://gateway.ai.cloudflare.com/v1/acct-123/gpt-oss-gateway/workers-ai/@cf/openai/gpt-oss-120b"
    )
    assert seen["url"].startswith("https://gateway.ai.cloudflare.com/v1/acct-123/gpt-oss-gateway/workers-ai/")
    assert seen["url"].endswith("/openai/gpt-oss-120b")
    assert seen["headers"]["authorization"] == "Bearer token-abc"
    assert seen["headers"]["cf-aig-skip-cache"] == "false"
    assert seen["headers"]["cf-aig-cache-ttl"] == "120"
    assert seen["body"] == {
        "instructions": "be helpful",
        "input": "2+2?",
        "reasoning": {"effort": "medium", "summary": "auto"},
    }


def test_direct_endpoint_without_gateway(make_settings):
    seen = {}

    def handler(request):
        seen["url"] = str(request.url)
        seen["headers"] = request.headers
        return httpx.Response(200, json={"success": True, "result": {"response": "4"}})

    settings = make_settings(ai_gateway_id="")
    assert build_endpoint(settings).startswith("https://api.cloudflare.com/client/v4/accounts/acct-123/ai/run/")
    reply = run_model(MODEL_REQUEST, settings, client=_client(handler))

    assert reply == {"response": "4"}
    assert "cf-aig-cache-ttl" not in seen["headers"]


def test_plain_text_body_is_returned(make_settings):
    def handler(request):
        return httpx.Response(200, text="just text")

    assert run_model(MODEL_REQUEST, make_settings(), client=_client(handler)) == "just text"


def test_error_body_is_embedded_in_failure(make_settings):
    body = {"success": False, "result": {}, "messages": [], "error": [{"code": 2016, "message": "Prompt blocked"}]}

    def handler(request):
        return httpx.Response(424, json=body)

    with pytest.raises(ModelInvocationError) as excinfo:
        run_model(MODEL_REQUEST, make_settings(), client=_client(handler))

    assert excinfo.value.status_code == 424
    descriptor = extract_gateway_error(str(excinfo.value))
    assert descriptor.code == 2016


def test_unsuccessful_envelope_raises(make_settings):
    def handler(request):
        return httpx.Response(200, json={"success": False, "result": None, "errors": [{"code": 5006, "message": "bad input"}]})

    with pytest.raises(ModelInvocationError):
        run_model(MODEL_REQUEST, make_settings(), client=_client(handler))


def test_transport_error_is_wrapped(make_settings):
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(ModelInvocationError) as excinfo:
        run_model(MODEL_REQUEST, make_settings(), client=_client(handler))

    assert isinstance(excinfo.value.__cause__, httpx.ConnectError)
    assert excinfo.value.status_code is None


def test_missing_credentials(make_settings):
    def handler(request):
        raise AssertionError("no request expected")

    settings = make_settings(cloudflare_api_token=None)
    with pytest.raises(ModelConfigurationError):
        run_model(MODEL_REQUEST, settings, client=_client(handler))
