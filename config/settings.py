from __future__ import annotations

import os
from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv


load_dotenv()


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


class Settings:
    """Application settings loaded from environment variables.

    Keep all credentials and config centralized here. Model identifiers and
    gateway routing are read-only for the lifetime of the process.
    """

    app_env: str = os.getenv("APP_ENV", "development")
    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    cloudflare_account_id: Optional[str] = os.getenv("CLOUDFLARE_ACCOUNT_ID")
    cloudflare_api_token: Optional[str] = os.getenv("CLOUDFLARE_API_TOKEN")

    model_id: str = os.getenv("MODEL_ID", "@cf/openai/gpt-oss-120b")
    reasoning_effort: str = os.getenv("REASONING_EFFORT", "medium")  # low, medium, high
    reasoning_summary: str = os.getenv("REASONING_SUMMARY", "auto")  # auto, concise, detailed

    # Empty AI_GATEWAY_ID bypasses the gateway and calls Workers AI directly
    ai_gateway_id: str = os.getenv("AI_GATEWAY_ID", "gpt-oss-gateway")
    gateway_skip_cache: bool = _env_flag("AI_GATEWAY_SKIP_CACHE")
    gateway_cache_ttl: int = int(os.getenv("AI_GATEWAY_CACHE_TTL", "3600"))

    request_timeout: float = float(os.getenv("MODEL_REQUEST_TIMEOUT", "60"))

    @property
    def using_gateway(self) -> bool:
        return bool(self.ai_gateway_id)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
