"""Normalisation of provider-native tool invocations into ToolCall records.

Order is preserved: calls come back in the order the model emitted them.
Arguments stay raw JSON text; nothing here parses them.
"""

from __future__ import annotations

import json
from typing import Any, Callable, Iterable, List, Mapping, Optional

from .types import ToolCall, ToolFunction


def normalize_tool_calls(
    items: Optional[Iterable[Any]],
    *,
    id_of: Callable[[Any], str],
    name_of: Callable[[Any], str],
    arguments_of: Callable[[Any], str],
    type_of: Callable[[Any], str] = lambda _item: "function",
) -> List[ToolCall]:
    if not items:
        return []
    return [
        ToolCall(
            id=id_of(item),
            type=type_of(item) or "function",
            function=ToolFunction(name=name_of(item), arguments=arguments_of(item)),
        )
        for item in items
    ]


def _raw_arguments(value: Any) -> str:
    # OpenAI sends arguments as a JSON string; pass it through byte-for-byte.
    if isinstance(value, str):
        return value
    if value is None:
        return "{}"
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False)


def _function_of(tc: Mapping[str, Any]) -> Mapping[str, Any]:
    fn = tc.get("function")
    return fn if isinstance(fn, Mapping) else {}


def from_openai(tool_calls: Optional[Iterable[Mapping[str, Any]]]) -> List[ToolCall]:
    """Chat Completions `message.tool_calls` -> ToolCall list.

    Items that are not objects are skipped.
    """

    items = [tc for tc in (tool_calls or []) if isinstance(tc, Mapping)]
    return normalize_tool_calls(
        items,
        id_of=lambda tc: str(tc.get("id", "")),
        type_of=lambda tc: str(tc.get("type") or "function"),
        name_of=lambda tc: str(_function_of(tc).get("name", "")),
        arguments_of=lambda tc: _raw_arguments(_function_of(tc).get("arguments")),
    )


def from_anthropic(content: Optional[Iterable[Mapping[str, Any]]]) -> List[ToolCall]:
    """Messages API content blocks -> ToolCall list (only `tool_use` blocks).

    The wire carries `input` as an object, so it is rendered back to compact JSON.
    """

    blocks = [
        b
        for b in (content or [])
        if isinstance(b, Mapping) and b.get("type") == "tool_use"
    ]
    return normalize_tool_calls(
        blocks,
        id_of=lambda b: str(b.get("id", "")),
        name_of=lambda b: str(b.get("name", "")),
        arguments_of=lambda b: _raw_arguments(b.get("input")),
    )


def to_openai(tool_call: ToolCall) -> dict[str, Any]:
    return tool_call.to_dict()


def to_anthropic(tool_call: ToolCall) -> dict[str, Any]:
    try:
        tool_input = json.loads(tool_call.arguments) if tool_call.arguments else {}
    except ValueError:
        # Replaying a call whose arguments were never valid JSON; send them as-is.
        tool_input = {"arguments": tool_call.arguments}
    return {
        "type": "tool_use",
        "id": tool_call.id,
        "name": tool_call.name,
        "input": tool_input,
    }
