from __future__ import annotations

import os
from typing import Any, Iterable, Optional

from unillm import config
from unillm import logger as logger_mod

from .base import PROVIDER_ANTHROPIC, PROVIDER_OPENAI, PROVIDER_STUB, LLMProvider
from .client import LLMClient
from .errors import ProviderNotSupportedError
from .options import Option
from .providers import AnthropicProvider, OpenAIProvider, StubProvider

log = logger_mod.get_logger()

_KEY_ENV = {
    PROVIDER_OPENAI: config.OPENAI_API_KEY_ENV,
    PROVIDER_ANTHROPIC: config.ANTHROPIC_API_KEY_ENV,
}


def build_provider(
    provider: str, *, api_key: Optional[str] = None, **kwargs: Any
) -> LLMProvider:
    """Factory for provider adapters.

    Providers:
    - openai
    - anthropic
    - stub

    Without an explicit api_key the key is read from the provider's env var.
    A missing key is not an error here; the adapter raises EmptyCredentialError
    when it is first used.
    """

    p = provider.lower().strip()
    if p == PROVIDER_STUB:
        return StubProvider(**kwargs)

    if p not in _KEY_ENV:
        raise ProviderNotSupportedError(provider)

    key = api_key if api_key is not None else os.getenv(_KEY_ENV[p], "")
    if not key:
        log.warning("No API key for %s; set %s", p, _KEY_ENV[p])

    if p == PROVIDER_OPENAI:
        return OpenAIProvider(api_key=key, **kwargs)
    return AnthropicProvider(api_key=key, **kwargs)


def build_client(
    *options: Option, providers: Optional[Iterable[str]] = None
) -> LLMClient:
    """Client with the given defaults and the named providers registered.

    By default every HTTP provider is registered.
    """

    client = LLMClient(*options)
    for name in providers if providers is not None else _KEY_ENV:
        client.register_provider(name.lower().strip(), build_provider(name))
    return client
