from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence, Tuple

import httpx

from unillm import config
from unillm import logger as logger_mod

from .._json import decode_json, json_instruction
from ..base import PROVIDER_ANTHROPIC
from ..context import CallContext
from ..errors import InvalidUpstreamReplyError, NoToolsSpecifiedError
from ..options import Config
from ..tool_calls import from_anthropic, to_anthropic
from ..types import (
    ROLE_ASSISTANT,
    ROLE_SYSTEM,
    ROLE_TOOL,
    FunctionDefinition,
    Message,
    ToolCall,
)
from ._http import HTTPProvider

log = logger_mod.get_logger()


def convert_messages(messages: Sequence[Message]) -> Tuple[List[Dict[str, Any]], str]:
    """Neutral messages -> (Messages API turns, system prompt).

    System messages are hoisted out of the conversation; several are joined by
    a blank line. Consecutive tool results share one user turn.
    """

    system_parts: List[str] = []
    out: List[Dict[str, Any]] = []

    for m in messages:
        if m.role == ROLE_SYSTEM:
            system_parts.append(m.content)
            continue

        if m.role == ROLE_TOOL:
            block = {
                "type": "tool_result",
                "tool_use_id": m.tool_call_id,
                "content": m.content,
            }
            prev = out[-1] if out else None
            if (
                prev is not None
                and prev["role"] == "user"
                and isinstance(prev["content"], list)
                and all(b.get("type") == "tool_result" for b in prev["content"])
            ):
                prev["content"].append(block)
            else:
                out.append({"role": "user", "content": [block]})
            continue

        if m.role == ROLE_ASSISTANT and m.tool_calls:
            blocks: List[Dict[str, Any]] = []
            if m.content:
                blocks.append({"type": "text", "text": m.content})
            blocks.extend(to_anthropic(tc) for tc in m.tool_calls)
            out.append({"role": "assistant", "content": blocks})
            continue

        out.append({"role": m.role, "content": m.content})

    return out, "\n\n".join(p for p in system_parts if p)


def convert_tools(tools: Sequence[FunctionDefinition]) -> List[Dict[str, Any]]:
    return [
        {
            "name": t.name,
            "description": t.description,
            "input_schema": t.to_dict()["parameters"],
        }
        for t in tools
    ]


class AnthropicProvider(HTTPProvider):
    """Anthropic Messages API adapter."""

    name = PROVIDER_ANTHROPIC

    def __init__(
        self,
        *,
        api_key: str = "",
        api_url: str = config.ANTHROPIC_API_URL,
        http_client: Optional[httpx.Client] = None,
        timeout_s: float = config.REQUEST_TIMEOUT_S,
        version: str = config.ANTHROPIC_VERSION,
    ) -> None:
        super().__init__(
            api_key=api_key,
            api_url=api_url,
            http_client=http_client,
            timeout_s=timeout_s,
        )
        self.version = version

    def _headers(self) -> Dict[str, str]:
        return {
            "Content-Type": "application/json",
            "x-api-key": self.api_key,
            "anthropic-version": self.version,
        }

    def _body(self, cfg: Config, system: Optional[str] = None) -> Dict[str, Any]:
        messages, hoisted = convert_messages(cfg.messages)
        system = hoisted if system is None else system

        body: Dict[str, Any] = {
            "model": cfg.model,
            "messages": messages,
            # max_tokens is mandatory for this API
            "max_tokens": cfg.max_tokens if cfg.max_tokens > 0 else config.DEFAULT_MAX_TOKENS,
            "temperature": cfg.temperature,
        }
        if system:
            body["system"] = system
        return body

    def _content(self, data: Dict[str, Any]) -> List[Dict[str, Any]]:
        content = data.get("content")
        if not isinstance(content, list):
            raise InvalidUpstreamReplyError(self.name, "no content returned")
        return [b for b in content if isinstance(b, dict)]

    def _text(self, data: Dict[str, Any]) -> str:
        text = "".join(
            b.get("text") or "" for b in self._content(data) if b.get("type") == "text"
        )
        if not text:
            raise InvalidUpstreamReplyError(self.name, "empty text content")
        return text

    def get_text(self, ctx: CallContext, config: Config) -> str:
        self._require_key()
        return self._text(self._post(ctx, self._body(config)))

    def get_object(self, ctx: CallContext, config: Config, target: Any) -> Any:
        self._require_key()

        _, existing = convert_messages(config.messages)
        system = json_instruction(target)
        if existing:
            system = existing + "\n\n" + system

        raw = self._text(self._post(ctx, self._body(config, system=system)))
        return decode_json(raw, target)

    def get_tool_calls(self, ctx: CallContext, config: Config) -> List[ToolCall]:
        self._require_key()
        if not config.tools:
            raise NoToolsSpecifiedError()

        body = self._body(config)
        body["tools"] = convert_tools(config.tools)

        calls = from_anthropic(self._content(self._post(ctx, body)))
        log.debug("%s returned %d tool call(s)", self.name, len(calls))
        return calls
