"""Admin chat turn: one completion, optional tool round trip, final completion.

The UI picks the mode. "tools" offers the catalog/homepage tools to the model;
"extract" disables tools and reads product fields out of the reply.
"""

import json
from typing import Any, Literal, TypedDict

from langgraph.graph import END, START, StateGraph
from openai import AsyncOpenAI
from pydantic import BaseModel, Field

from storefront.assistant import parsing, prompts
from storefront.assistant.client import MAX_TOKENS, get_llm_client
from storefront.assistant.tools import AssistantTools, run_tool
from storefront.core.config import get_settings
from storefront.core.logging import get_logger

log = get_logger(__name__)

AssistantMode = Literal["tools", "extract"]
FALLBACK_MESSAGE = "I had trouble processing that. Could you rephrase?"
TEMPERATURE = 0.7


class ToolCallRecord(BaseModel):
    name: str
    args: dict[str, Any] = Field(default_factory=dict)
    result: Any = None


class AssistantReply(BaseModel):
    message: str
    extracted_data: dict[str, Any] | None = None
    tool_calls: list[ToolCallRecord] = Field(default_factory=list)


class AskState(TypedDict):
    messages: list[dict[str, Any]]
    tools_enabled: bool
    pending_calls: list[dict[str, Any]]
    tool_calls: list[dict[str, Any]]
    content: str


def _assistant_entry(message) -> dict[str, Any]:
    entry: dict[str, Any] = {"role": "assistant", "content": message.content or ""}
    if message.tool_calls:
        entry["tool_calls"] = [
            {
                "id": c.id,
                "type": "function",
                "function": {"name": c.function.name, "arguments": c.function.arguments},
            }
            for c in message.tool_calls
        ]
    return entry


def _parse_args(raw: str | None) -> dict[str, Any]:
    try:
        args = json.loads(raw or "{}")
    except json.JSONDecodeError:
        return {}
    return args if isinstance(args, dict) else {}


def build_ask_graph(client: AsyncOpenAI, tools: AssistantTools):
    model = get_settings().llm_model

    async def _complete(state: AskState) -> dict:
        kwargs: dict[str, Any] = {}
        if state["tools_enabled"]:
            kwargs = {"tools": prompts.TOOL_SPECS, "tool_choice": "auto"}
        response = await client.chat.completions.create(
            model=model,
            messages=state["messages"],
            max_tokens=MAX_TOKENS,
            temperature=TEMPERATURE,
            **kwargs,
        )
        entry = _assistant_entry(response.choices[0].message)
        return {
            "messages": state["messages"] + [entry],
            "pending_calls": entry.get("tool_calls", []),
            "content": entry["content"],
        }

    async def _run_tools(state: AskState) -> dict:
        messages = list(state["messages"])
        records = list(state["tool_calls"])
        for call in state["pending_calls"]:
            name = call["function"]["name"]
            args = _parse_args(call["function"]["arguments"])
            try:
                result = await run_tool(tools, name, args)
            except Exception as e:
                log.warning("assistant_tool_failed", tool=name, error=str(e))
                result = {"error": str(e)}
            records.append({"name": name, "args": args, "result": result})
            messages.append({"role": "tool", "tool_call_id": call["id"], "content": json.dumps(result, default=str)})
        return {"messages": messages, "tool_calls": records, "pending_calls": []}

    async def _finalize(state: AskState) -> dict:
        response = await client.chat.completions.create(
            model=model,
            messages=state["messages"],
            max_tokens=MAX_TOKENS,
            temperature=TEMPERATURE,
        )
        return {"content": response.choices[0].message.content or ""}

    def _after_complete(state: AskState) -> str:
        return "run_tools" if state["pending_calls"] else END

    builder = StateGraph(AskState)
    builder.add_node("complete", _complete)
    builder.add_node("run_tools", _run_tools)
    builder.add_node("finalize", _finalize)
    builder.add_edge(START, "complete")
    builder.add_conditional_edges("complete", _after_complete, ["run_tools", END])
    builder.add_edge("run_tools", "finalize")
    builder.add_edge("finalize", END)
    return builder.compile()


def _initial_messages(
    question: str,
    history: list[dict[str, str]],
    current_data: dict[str, Any] | None,
    mode: AssistantMode,
) -> list[dict[str, Any]]:
    system = prompts.EXTRACT_SYSTEM_PROMPT if mode == "extract" else prompts.TOOLS_SYSTEM_PROMPT
    messages: list[dict[str, Any]] = [{"role": "system", "content": system}]
    if current_data:
        messages.append({"role": "system", "content": prompts.CURRENT_DATA_TEXT.format(current=json.dumps(current_data))})
    for m in history:
        messages.append({"role": "user" if m.get("role") == "user" else "assistant", "content": m.get("content", "")})
    content = question + prompts.EXTRACT_USER_SUFFIX if mode == "extract" else question
    messages.append({"role": "user", "content": content})
    return messages


def _extracted_from(content: str, question: str, current_data: dict[str, Any] | None) -> dict[str, Any] | None:
    parsed = parsing.parse_json_block(content)
    if parsed and isinstance(parsed.get("extractedData"), dict) and parsed["extractedData"]:
        return parsed["extractedData"]
    data = parsing.extract_product_fallback(content, question, current_data)
    return data or None


async def ask(
    question: str,
    history: list[dict[str, str]] | None = None,
    current_data: dict[str, Any] | None = None,
    mode: AssistantMode = "tools",
    tools: AssistantTools | None = None,
    client: AsyncOpenAI | None = None,
) -> AssistantReply:
    """Answer one admin message. Never raises; failures become FALLBACK_MESSAGE."""
    try:
        graph = build_ask_graph(client or get_llm_client(), tools or AssistantTools())
        initial: AskState = {
            "messages": _initial_messages(question, history or [], current_data, mode),
            "tools_enabled": mode == "tools",
            "pending_calls": [],
            "tool_calls": [],
            "content": "",
        }
        result = await graph.ainvoke(initial)
        reply = AssistantReply(
            message=result["content"],
            tool_calls=[ToolCallRecord(**r) for r in result["tool_calls"]],
        )
        if mode == "extract":
            reply.extracted_data = _extracted_from(result["content"], question, current_data)
        log.info("assistant_reply", mode=mode, tools=[r.name for r in reply.tool_calls])
        return reply
    except Exception as e:
        log.error("assistant_failed", mode=mode, error=str(e))
        return AssistantReply(message=FALLBACK_MESSAGE)
