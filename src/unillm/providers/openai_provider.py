from __future__ import annotations

from dataclasses import replace
from typing import Any, Dict, List, Optional, Sequence

import httpx

from unillm import config
from unillm import logger as logger_mod

from .._json import decode_json, json_instruction
from ..base import PROVIDER_OPENAI
from ..context import CallContext
from ..errors import InvalidUpstreamReplyError, NoToolsSpecifiedError
from ..options import Config
from ..tool_calls import from_openai, to_openai
from ..types import ROLE_SYSTEM, FunctionDefinition, Message, ToolCall, system_message
from ._http import HTTPProvider

log = logger_mod.get_logger()


def convert_messages(messages: Sequence[Message]) -> List[Dict[str, Any]]:
    """Neutral messages -> Chat Completions messages."""

    out: List[Dict[str, Any]] = []
    for m in messages:
        item: Dict[str, Any] = {"role": m.role, "content": m.content}
        if m.tool_calls:
            item["tool_calls"] = [to_openai(tc) for tc in m.tool_calls]
            # An assistant turn that only calls tools has null content on the wire.
            if not m.content:
                item["content"] = None
        if m.tool_call_id:
            item["tool_call_id"] = m.tool_call_id
        out.append(item)
    return out


def convert_tools(tools: Sequence[FunctionDefinition]) -> List[Dict[str, Any]]:
    return [{"type": "function", "function": t.to_dict()} for t in tools]


class OpenAIProvider(HTTPProvider):
    """OpenAI Chat Completions adapter.

    Works against any OpenAI-compatible endpoint via `api_url`.
    """

    name = PROVIDER_OPENAI

    def __init__(
        self,
        *,
        api_key: str = "",
        api_url: str = config.OPENAI_API_URL,
        http_client: Optional[httpx.Client] = None,
        timeout_s: float = config.REQUEST_TIMEOUT_S,
    ) -> None:
        super().__init__(
            api_key=api_key,
            api_url=api_url,
            http_client=http_client,
            timeout_s=timeout_s,
        )

    def _headers(self) -> Dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.api_key}",
        }

    def _body(self, cfg: Config) -> Dict[str, Any]:
        body: Dict[str, Any] = {
            "model": cfg.model,
            "messages": convert_messages(cfg.messages),
            "temperature": cfg.temperature,
        }
        if cfg.max_tokens > 0:
            body["max_tokens"] = cfg.max_tokens
        return body

    def _first_message(self, data: Dict[str, Any]) -> Dict[str, Any]:
        choices = data.get("choices")
        if not isinstance(choices, list) or not choices:
            raise InvalidUpstreamReplyError(self.name, "no choices returned")
        first = choices[0]
        if not isinstance(first, dict):
            raise InvalidUpstreamReplyError(self.name, "choice is not an object")
        message = first.get("message")
        if not isinstance(message, dict):
            raise InvalidUpstreamReplyError(self.name, "choice has no message")
        return message

    def get_text(self, ctx: CallContext, config: Config) -> str:
        self._require_key()

        data = self._post(ctx, self._body(config))
        content = self._first_message(data).get("content")
        if not isinstance(content, str) or not content:
            raise InvalidUpstreamReplyError(self.name, "empty message content")
        return content

    def get_object(self, ctx: CallContext, config: Config, target: Any) -> Any:
        self._require_key()

        messages = tuple(config.messages)
        if not any(m.role == ROLE_SYSTEM for m in messages):
            messages = (system_message(json_instruction(target)),) + messages

        # Tools are not offered when asking for a plain JSON answer.
        raw = self.get_text(ctx, replace(config, messages=messages, tools=()))
        return decode_json(raw, target)

    def get_tool_calls(self, ctx: CallContext, config: Config) -> List[ToolCall]:
        self._require_key()
        if not config.tools:
            raise NoToolsSpecifiedError()

        body = self._body(config)
        body["tools"] = convert_tools(config.tools)

        data = self._post(ctx, body)
        message = self._first_message(data)
        calls = from_openai(message.get("tool_calls"))
        log.debug("%s returned %d tool call(s)", self.name, len(calls))
        return calls
