from __future__ import annotations

from typing import Any, List, Optional, Tuple, Type, TypeVar, overload

from unillm import logger as logger_mod

from .base import LLMProvider, ProviderRegistry
from .context import CallContext
from .errors import (
    ModelNotSpecifiedError,
    NoToolsSpecifiedError,
    ProviderNotSupportedError,
)
from .options import Config, Option, merge_config
from .types import ToolCall

log = logger_mod.get_logger()

T = TypeVar("T")


class LLMClient:
    """Provider-agnostic entry point.

    Usage:
        client = LLMClient(with_temperature(0.2))
        client.register_provider(PROVIDER_OPENAI, OpenAIProvider(api_key="..."))

        text = client.get_text(
            None,
            with_provider(PROVIDER_OPENAI),
            with_model("gpt-4o"),
            with_messages(user_message("Hello!")),
        )

    Every call merges its options over the client defaults, checks that a model
    is set and the provider is registered, then hands the effective Config to
    the provider. Provider errors are raised unchanged.
    """

    def __init__(self, *options: Option, registry: Optional[ProviderRegistry] = None):
        self._defaults = merge_config(Config(), *options)
        self._registry = registry if registry is not None else ProviderRegistry()

    @property
    def defaults(self) -> Config:
        return self._defaults

    @property
    def registry(self) -> ProviderRegistry:
        return self._registry

    def register_provider(self, provider_id: str, provider: LLMProvider) -> None:
        """Register a backend; an existing entry under the same id is replaced."""
        self._registry.register(provider_id, provider)

    def _resolve(
        self, capability: str, options: Tuple[Option, ...]
    ) -> Tuple[Config, LLMProvider]:
        cfg = merge_config(self._defaults, *options)

        if not cfg.model:
            raise ModelNotSpecifiedError()

        provider = self._registry.lookup(cfg.provider)
        if provider is None:
            raise ProviderNotSupportedError(cfg.provider)

        log.debug(
            "dispatch %s provider=%s model=%s messages=%d tools=%d",
            capability,
            cfg.provider,
            cfg.model,
            len(cfg.messages),
            len(cfg.tools),
        )
        return cfg, provider

    def get_text(self, ctx: Optional[CallContext], *options: Option) -> str:
        cfg, provider = self._resolve("text", options)
        return provider.get_text(ctx or CallContext.background(), cfg)

    @overload
    def get_object(
        self, ctx: Optional[CallContext], target: Type[T], *options: Option
    ) -> T: ...

    @overload
    def get_object(
        self, ctx: Optional[CallContext], target: Any, *options: Option
    ) -> Any: ...

    def get_object(self, ctx, target, *options):
        """Ask for structured output decoded into `target`.

        `target` is a type (pydantic model, dataclass, TypedDict, builtin or
        generic alias), a JSON Schema mapping, or None for plain JSON data.
        """
        cfg, provider = self._resolve("object", options)
        return provider.get_object(ctx or CallContext.background(), cfg, target)

    def get_tool_calls(
        self, ctx: Optional[CallContext], *options: Option
    ) -> List[ToolCall]:
        cfg, provider = self._resolve("tool_calls", options)
        if not cfg.tools:
            raise NoToolsSpecifiedError()
        return provider.get_tool_calls(ctx or CallContext.background(), cfg)
