from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional, Sequence

from .._json import decode_json
from ..base import PROVIDER_STUB
from ..context import CallContext
from ..options import Config
from ..types import ToolCall


class StubProvider:
    """In-process provider for tests and offline runs.

    Returns canned text (or the result of `text_fn(config)`) and canned tool
    calls, and records every call. If `error` is set, every capability raises it.
    """

    name = PROVIDER_STUB

    def __init__(
        self,
        *,
        text: str = "",
        tool_calls: Sequence[ToolCall] = (),
        text_fn: Optional[Callable[[Config], str]] = None,
        error: Optional[Exception] = None,
    ) -> None:
        self.text = text
        self.tool_calls = list(tool_calls)
        self.text_fn = text_fn
        self.error = error
        self.calls: List[Dict[str, Any]] = []

    def _record(self, capability: str, ctx: CallContext, config: Config, **extra) -> None:
        self.calls.append({"capability": capability, "config": config, **extra})
        ctx.check()
        if self.error is not None:
            raise self.error

    def _reply(self, config: Config) -> str:
        if self.text_fn is not None:
            return self.text_fn(config)
        return self.text

    def get_text(self, ctx: CallContext, config: Config) -> str:
        self._record("text", ctx, config)
        return self._reply(config)

    def get_object(self, ctx: CallContext, config: Config, target: Any) -> Any:
        self._record("object", ctx, config, target=target)
        return decode_json(self._reply(config), target)

    def get_tool_calls(self, ctx: CallContext, config: Config) -> List[ToolCall]:
        self._record("tool_calls", ctx, config)
        return list(self.tool_calls)
