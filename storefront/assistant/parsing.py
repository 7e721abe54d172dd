"""Pull product fields out of model replies: a JSON block first, regexes second."""

import json
import re
from typing import Any

JSON_BLOCK = re.compile(r"\{[\s\S]*\}")

VISION_TITLE = re.compile(r"(?:title|name)[:：]?\s*([^\n]+)", re.I)
VISION_PRICE = re.compile(r"(?:price|₹|INR)[:：]?\s*([\d,]+)", re.I)

TITLE_PATTERNS = (
    re.compile(r"(?:named|called|titled?)\s*[:：]?\s*[\"']([^\"'\n]+)[\"']", re.I),
    re.compile(r"[\"']([^\"'\n]+)[\"']"),
    re.compile(
        r"(?:named|called|name|title)\s*[:：]?\s*([^\"'\n,]+?)(?=\s+(?:price|priced|for|at|with|costing)\b|[,\n]|$)",
        re.I,
    ),
)
PRICE_PATTERNS = (
    re.compile(r"(?:\bprice[ds]?|₹|\bINR|\brs\.?)\s*(?:at|of|is)?\s*[:：]?\s*([\d,]+(?:\.\d+)?)", re.I),
    re.compile(r"([\d,]+(?:\.\d+)?)\s*(?:rupees?|₹|inr|rs\b)", re.I),
)
DISCOUNT_PATTERNS = (
    re.compile(r"(\d+(?:\.\d+)?)\s*%\s*(?:discount|off|less|reduction)", re.I),
    re.compile(r"(?:discount|off)\s+of\s+(\d+(?:\.\d+)?)\s*%", re.I),
)
BRAND_PATTERNS = (
    re.compile(r"brand\s*[:：]?\s*([^\n,.]+)", re.I),
    re.compile(r"\b(Nike|Adidas|Jordan|Puma|Reebok|Converse|Vans|New Balance|Asics)\b", re.I),
)
NOT_TITLES = {"product", "these", "all", "one", "the", "a", "an", "it"}

DEFAULT_CATEGORY = "street-fashion"
DEFAULT_COLLECTION = "mens-collection"


def parse_json_block(content: str) -> dict[str, Any] | None:
    """Parse the outermost {...} span of the reply; None when absent or invalid."""
    m = JSON_BLOCK.search(content or "")
    if not m:
        return None
    try:
        parsed = json.loads(m.group(0))
    except json.JSONDecodeError:
        return None
    return parsed if isinstance(parsed, dict) else None


def _first_match(patterns, *texts: str) -> re.Match | None:
    for pattern in patterns:
        for text in texts:
            m = pattern.search(text or "")
            if m and m.group(1).strip():
                return m
    return None


def _to_number(raw: str) -> float:
    return float(raw.replace(",", ""))


def vision_fallback(content: str) -> dict[str, Any]:
    data: dict[str, Any] = {}
    if m := VISION_TITLE.search(content):
        data["title"] = m.group(1).strip()
    if m := VISION_PRICE.search(content):
        data["price"] = _to_number(m.group(1))
    return data


def extract_product_fallback(
    content: str,
    question: str,
    current_data: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Best-effort product fields from free text, filling the usual defaults."""
    data: dict[str, Any] = {}

    if m := _first_match(TITLE_PATTERNS, question, content):
        title = m.group(1).strip()
        if title.lower() not in NOT_TITLES:
            data["title"] = title[0].upper() + title[1:]

    if m := _first_match(PRICE_PATTERNS, question, content):
        price = _to_number(m.group(1))
        if d := _first_match(DISCOUNT_PATTERNS, question, content):
            price = price * (1 - float(d.group(1)) / 100)
        data["price"] = round(price)

    if m := _first_match(BRAND_PATTERNS, question, content):
        data["brand"] = m.group(1).strip()

    if not data.get("title") and not data.get("price"):
        return dict(current_data or {})

    data = {**(current_data or {}), **data}
    data.setdefault("category", DEFAULT_CATEGORY)
    data.setdefault("collection", DEFAULT_COLLECTION)
    if not data.get("description") and data.get("title"):
        brand = f" from {data['brand']}" if data.get("brand") else ""
        data["description"] = f"{data['title']}{brand} - Premium sneakers"
    if not data.get("tags"):
        tags = data["title"].lower().split() if data.get("title") else []
        if data.get("brand"):
            tags.append(data["brand"].lower())
        tags.append("sneakers")
        data["tags"] = tags
    return data
