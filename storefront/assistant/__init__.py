"""Admin assistant: product image analysis and tool-calling chat over a hosted LLM."""

from storefront.assistant.chat import AssistantReply, ToolCallRecord, ask
from storefront.assistant.tools import AssistantTools
from storefront.assistant.vision import VisionResult, analyze_product_image

__all__ = [
    "AssistantReply",
    "AssistantTools",
    "ToolCallRecord",
    "VisionResult",
    "analyze_product_image",
    "ask",
]
