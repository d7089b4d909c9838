from __future__ import annotations

from typing import Any, Dict, List, Optional

from fastapi import Body, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import logging
from pydantic import BaseModel, Field, field_validator, model_validator

from chatproxy.chat import build_model_input
from chatproxy.clients import run_model
from chatproxy.core.errors import GENERIC_ERROR_MESSAGE, normalize_gateway_error
from chatproxy.core.reply import extract_reply_text
from config.settings import get_settings


settings = get_settings()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="[%(asctime)s] %(levelname)s - %(message)s",
)
logger = logging.getLogger("chatproxy")

app = FastAPI(title="Guarded Chat Proxy", version="1.0.0")

# CORS: allow local frontend during development
if settings.app_env.lower() in {"dev", "development", "local"}:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


class ChatTurn(BaseModel):
    role: str = Field("", description="'system', 'user' or 'assistant'")
    content: str = ""

    @model_validator(mode="before")
    @classmethod
    def _coerce_fields(cls, values):
        if not isinstance(values, dict):
            return values
        coerced = dict(values)
        for key in ("role", "content"):
            value = coerced.get(key)
            if value is None:
                coerced[key] = ""
            elif not isinstance(value, str):
                coerced[key] = str(value)
        return coerced


class ChatRequest(BaseModel):
    messages: List[ChatTurn] = Field(
        default_factory=list,
        description="Full conversation so far (frontend-managed, no server memory)",
    )
    blockedUserContents: List[str] = Field(
        default_factory=list,
        description="Exact user messages the frontend saw blocked earlier",
    )

    @model_validator(mode="before")
    @classmethod
    def _coerce_body(cls, values):
        # Missing or malformed fields fall back to empty instead of failing
        return values if isinstance(values, dict) else {}

    @field_validator("messages", mode="before")
    @classmethod
    def _object_turns(cls, value):
        if not isinstance(value, list):
            return []
        # Non-object entries stay in place as role-less turns
        return [item if isinstance(item, dict) else {} for item in value]

    @field_validator("blockedUserContents", mode="before")
    @classmethod
    def _only_strings(cls, value):
        if not isinstance(value, list):
            return []
        return [item for item in value if isinstance(item, str)]


def _generic_failure() -> JSONResponse:
    return JSONResponse({"error": GENERIC_ERROR_MESSAGE}, status_code=500)


@app.exception_handler(RequestValidationError)
async def _invalid_body(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.warning("Rejected unparsable chat body on %s: %s", request.url.path, exc.errors())
    return _generic_failure()


@app.post("/api/chat")
def chat(req: Optional[ChatRequest] = Body(None)) -> JSONResponse:
    settings = get_settings()
    if req is None:
        req = ChatRequest()

    try:
        logger.info(
            "Incoming chat: turns=%s blocked=%s",
            len(req.messages),
            len(req.blockedUserContents),
        )
        model_request = build_model_input(
            [t.model_dump() for t in req.messages],
            req.blockedUserContents,
        )
        logger.info(
            "Model request prepared: model=%s input_len=%s gateway=%s",
            settings.model_id,
            len(model_request.input),
            settings.ai_gateway_id or "-",
        )
        reply = run_model(model_request, settings)
        response_text = extract_reply_text(reply)
        logger.info("Model responded: %s chars", len(response_text))
        return JSONResponse({"response": response_text, "success": True})
    except Exception as e:
        logger.exception("Error processing chat request: %s", e)
        normalized = normalize_gateway_error(e, using_gateway=settings.using_gateway)
        if normalized is not None:
            logger.warning("Gateway blocked request: %s", normalized.error_kind.value)
            return JSONResponse(normalized.to_body(), status_code=normalized.http_status)
        return _generic_failure()


@app.get("/health")
def health() -> Dict[str, Any]:
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("app.main:app", host="0.0.0.0", port=8000, reload=True)
