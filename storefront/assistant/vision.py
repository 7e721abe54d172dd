import base64
import json
from typing import Any

from openai import AsyncOpenAI
from pydantic import BaseModel, Field

from storefront.assistant import parsing, prompts
from storefront.assistant.client import MAX_TOKENS, get_llm_client
from storefront.core.config import get_settings
from storefront.core.logging import get_logger

log = get_logger(__name__)

APOLOGY = "Sorry, I had trouble analyzing the image. Please try again or provide details manually."
TEMPERATURE = 0.3


class VisionResult(BaseModel):
    extracted_data: dict[str, Any] = Field(default_factory=dict)
    message: str
    needs_more_info: list[str] = Field(default_factory=list)
    is_complete: bool = False


def data_url(image_bytes: bytes, mime_type: str | None) -> str:
    encoded = base64.b64encode(image_bytes).decode("ascii")
    return f"data:{mime_type or 'image/jpeg'};base64,{encoded}"


def result_from_content(content: str) -> VisionResult:
    parsed = parsing.parse_json_block(content)
    if parsed is None:
        return VisionResult(message=content, extracted_data=parsing.vision_fallback(content))
    return VisionResult(
        extracted_data=parsed.get("extractedData") or {},
        message=parsed.get("message") or content,
        needs_more_info=parsed.get("needsMoreInfo") or [],
        is_complete=bool(parsed.get("isComplete")),
    )


async def analyze_product_image(
    image_bytes: bytes,
    mime_type: str | None = None,
    history: list[dict[str, str]] | None = None,
    existing_data: dict[str, Any] | None = None,
    client: AsyncOpenAI | None = None,
) -> VisionResult:
    """Ask the vision model for product fields in a photo. Never raises."""
    text = (
        prompts.UPDATED_IMAGE_TEXT.format(existing=json.dumps(existing_data))
        if existing_data
        else prompts.NEW_IMAGE_TEXT
    )
    messages: list[dict[str, Any]] = [{"role": "system", "content": prompts.VISION_SYSTEM_PROMPT}]
    messages += [{"role": m.get("role", "user"), "content": m.get("content", "")} for m in history or []]
    messages.append(
        {
            "role": "user",
            "content": [
                {"type": "text", "text": text},
                {"type": "image_url", "image_url": {"url": data_url(image_bytes, mime_type)}},
            ],
        }
    )
    try:
        llm = client or get_llm_client()
        response = await llm.chat.completions.create(
            model=get_settings().llm_model,
            messages=messages,
            max_tokens=MAX_TOKENS,
            temperature=TEMPERATURE,
        )
        content = response.choices[0].message.content or ""
        return result_from_content(content)
    except Exception as e:
        log.error("assistant_vision_failed", error=str(e))
        return VisionResult(message=APOLOGY)
