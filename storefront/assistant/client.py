from functools import lru_cache

from openai import AsyncOpenAI

from storefront.core.config import get_settings
from storefront.core.exceptions import AppError

MAX_TOKENS = 1000


class AssistantNotConfiguredError(AppError):
    def __init__(self) -> None:
        super().__init__("Assistant is not configured", code="ASSISTANT_NOT_CONFIGURED", status_code=503)


@lru_cache
def get_llm_client() -> AsyncOpenAI:
    """Client for the OpenAI-compatible endpoint (OpenRouter by default)."""
    s = get_settings()
    if not s.llm_api_key:
        raise AssistantNotConfiguredError()
    return AsyncOpenAI(
        api_key=s.llm_api_key,
        base_url=s.llm_base_url,
        timeout=s.llm_timeout_seconds,
        default_headers={"X-Title": s.llm_app_title},
    )
