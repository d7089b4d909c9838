"""
Pytest configuration and fixtures
"""
import os
import sys
from pathlib import Path

import pytest

# Ensure project root is on sys.path for imports in tests
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

# Never pick up real Workers AI credentials from a local .env during tests
os.environ["CLOUDFLARE_ACCOUNT_ID"] = ""
os.environ["CLOUDFLARE_API_TOKEN"] = ""

from config.settings import Settings


@pytest.fixture
def make_settings():
    """Build a Settings instance with per-test overrides"""

    def _make(**overrides) -> Settings:
        settings = Settings()
        settings.cloudflare_account_id = "acct-123"
        settings.cloudflare_api_token = "token-abc"
        settings.model_id = "@cf/openai/gpt-oss-120b"
        settings.ai_gateway_id = "gpt-oss-gateway"
        settings.gateway_skip_cache = False
        settings.gateway_cache_ttl = 3600
        settings.reasoning_effort = "medium"
        settings.reasoning_summary = "auto"
        for key, value in overrides.items():
            setattr(settings, key, value)
        return settings

    return _make
