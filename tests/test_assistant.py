import json
from types import SimpleNamespace

from storefront.assistant import AssistantTools, analyze_product_image, ask
from storefront.assistant.chat import FALLBACK_MESSAGE
from storefront.assistant.parsing import extract_product_fallback, parse_json_block, vision_fallback
from storefront.assistant.tools import run_tool
from storefront.assistant.vision import APOLOGY


def _message(content=None, tool_calls=None):
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content, tool_calls=tool_calls))])


def _tool_call(call_id, name, args):
    return SimpleNamespace(id=call_id, function=SimpleNamespace(name=name, arguments=json.dumps(args)))


class FakeLLM:
    """Returns the queued replies in order and records every request."""

    def __init__(self, *replies):
        self.replies = list(replies)
        self.requests = []
        self.chat = SimpleNamespace(completions=SimpleNamespace(create=self._create))

    async def _create(self, **kwargs):
        self.requests.append(kwargs)
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


def test_parse_json_block():
    assert parse_json_block('Sure! {"message": "hi", "extractedData": {"title": "X"}} done') == {
        "message": "hi",
        "extractedData": {"title": "X"},
    }
    assert parse_json_block("no json here") is None
    assert parse_json_block("{not json}") is None


def test_extract_fallback_applies_discount_and_defaults():
    data = extract_product_fallback("", "product named 'green alpha' price 2200 rupees with 10% discount")
    assert data["title"] == "Green alpha"
    assert data["price"] == 1980
    assert data["category"] == "street-fashion"
    assert data["collection"] == "mens-collection"
    assert data["description"] == "Green alpha - Premium sneakers"
    assert data["tags"] == ["green", "alpha", "sneakers"]


def test_extract_fallback_brand_and_current_data():
    data = extract_product_fallback("", 'add "Court Low" by Nike at ₹4,500', {"collection": "womens-collection"})
    assert data["title"] == "Court Low"
    assert data["price"] == 4500
    assert data["brand"] == "Nike"
    assert data["collection"] == "womens-collection"
    assert data["description"] == "Court Low from Nike - Premium sneakers"


def test_extract_fallback_nothing_found_returns_current():
    assert extract_product_fallback("hello", "how are you", {"title": "Kept"}) == {"title": "Kept"}
    assert extract_product_fallback("hello", "how are you") == {}


def test_vision_fallback():
    assert vision_fallback("Title: Retro High\nPrice: 3,999") == {"title": "Retro High", "price": 3999}


async def test_run_tool_update_product_maps_images():
    seen = {}

    async def update(product_id, updates):
        seen["id"], seen["updates"] = product_id, updates

    tools = AssistantTools(update_product=update)
    result = await run_tool(
        tools, "updateProduct", {"id": "abc", "title": "New", "images": [{"url": "/a.jpg", "altText": "side"}]}
    )
    assert result == {"success": True, "message": "Product updated successfully"}
    assert seen["id"] == "abc"
    assert seen["updates"] == {"title": "New", "images": [{"url": "/a.jpg", "alt_text": "side"}]}


async def test_tools_mode_runs_tool_then_answers():
    searched = []

    async def search(query):
        searched.append(query)
        return [{"id": "p1", "title": "Air Runner"}]

    llm = FakeLLM(
        _message(tool_calls=[_tool_call("c1", "searchProducts", {"query": "runner"})]),
        _message(content="Found Air Runner."),
    )
    reply = await ask("find runners", client=llm, tools=AssistantTools(search_products=search))

    assert reply.message == "Found Air Runner."
    assert searched == ["runner"]
    assert reply.tool_calls[0].name == "searchProducts"
    assert reply.tool_calls[0].result == [{"id": "p1", "title": "Air Runner"}]
    assert reply.extracted_data is None
    assert llm.requests[0]["tool_choice"] == "auto"
    assert "tools" not in llm.requests[1]
    tool_message = llm.requests[1]["messages"][-1]
    assert tool_message["role"] == "tool"
    assert tool_message["tool_call_id"] == "c1"


async def test_tools_mode_without_tool_calls_is_one_completion():
    llm = FakeLLM(_message(content="Hello!"))
    reply = await ask("hi", client=llm)
    assert reply.message == "Hello!"
    assert reply.tool_calls == []
    assert len(llm.requests) == 1


async def test_tool_error_is_fed_back_to_model():
    async def broken(query):
        raise RuntimeError("search index offline")

    llm = FakeLLM(
        _message(tool_calls=[_tool_call("c1", "searchProducts", {"query": "x"})]),
        _message(content="Search is unavailable right now."),
    )
    reply = await ask("find x", client=llm, tools=AssistantTools(search_products=broken))
    assert reply.message == "Search is unavailable right now."
    assert reply.tool_calls[0].result == {"error": "search index offline"}


async def test_extract_mode_reads_json_and_offers_no_tools():
    content = 'Got it. {"message": "Added", "extractedData": {"title": "Retro High", "price": 3999}}'
    llm = FakeLLM(_message(content=content))
    reply = await ask("Retro High for 3999", mode="extract", client=llm)
    assert reply.extracted_data == {"title": "Retro High", "price": 3999}
    assert "tools" not in llm.requests[0]


async def test_extract_mode_falls_back_to_patterns():
    llm = FakeLLM(_message(content="Sure, I will add that sneaker."))
    reply = await ask("product named 'green alpha' price 2200 rupees with 10% discount", mode="extract", client=llm)
    assert reply.extracted_data["title"] == "Green alpha"
    assert reply.extracted_data["price"] == 1980


async def test_llm_failure_returns_fallback_message():
    reply = await ask("hi", client=FakeLLM(RuntimeError("upstream 502")))
    assert reply.message == FALLBACK_MESSAGE
    assert reply.tool_calls == []


async def test_vision_reads_json_reply():
    content = '{"extractedData": {"title": "Retro High"}, "message": "Price?", "needsMoreInfo": ["price"], "isComplete": false}'
    llm = FakeLLM(_message(content=content))
    result = await analyze_product_image(b"\x89PNG", "image/png", client=llm)
    assert result.extracted_data == {"title": "Retro High"}
    assert result.needs_more_info == ["price"]
    assert result.is_complete is False
    image_part = llm.requests[0]["messages"][-1]["content"][1]
    assert image_part["image_url"]["url"].startswith("data:image/png;base64,")


async def test_vision_falls_back_to_patterns_and_apologizes_on_error():
    result = await analyze_product_image(b"img", client=FakeLLM(_message(content="Title: Retro High\nPrice: 3999")))
    assert result.extracted_data == {"title": "Retro High", "price": 3999}
    assert result.message.startswith("Title:")

    result = await analyze_product_image(b"img", client=FakeLLM(RuntimeError("timeout")))
    assert result.message == APOLOGY
    assert result.extracted_data == {}
