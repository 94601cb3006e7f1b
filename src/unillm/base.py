from __future__ import annotations

import threading
from typing import Any, Dict, List, Optional, Protocol

from .context import CallContext
from .options import Config
from .types import ToolCall

PROVIDER_OPENAI = "openai"
PROVIDER_ANTHROPIC = "anthropic"
PROVIDER_STUB = "stub"


class LLMProvider(Protocol):
    """Capabilities every backend adapter implements.

    `get_object` may delegate to `get_text` plus unillm._json.decode_json, or use
    a provider-native structured mode; only inputs and outputs are fixed.
    """

    def get_text(self, ctx: CallContext, config: Config) -> str:
        raise NotImplementedError

    def get_object(self, ctx: CallContext, config: Config, target: Any) -> Any:
        raise NotImplementedError

    def get_tool_calls(self, ctx: CallContext, config: Config) -> List[ToolCall]:
        raise NotImplementedError


class ProviderRegistry:
    """Provider id -> implementation. Entries are overwritten, never removed."""

    def __init__(self) -> None:
        self._providers: Dict[str, LLMProvider] = {}
        self._lock = threading.Lock()

    def register(self, provider_id: str, provider: LLMProvider) -> None:
        with self._lock:
            self._providers[provider_id] = provider

    def lookup(self, provider_id: str) -> Optional[LLMProvider]:
        with self._lock:
            return self._providers.get(provider_id)

    def ids(self) -> List[str]:
        with self._lock:
            return list(self._providers)

    def __contains__(self, provider_id: object) -> bool:
        with self._lock:
            return provider_id in self._providers

    def __len__(self) -> int:
        with self._lock:
            return len(self._providers)
