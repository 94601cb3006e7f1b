from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Callable, Tuple

from . import config
from .types import FunctionDefinition, Message


@dataclass(frozen=True)
class Config:
    """Request parameters for one dispatch.

    The client keeps a base Config; each call folds its options over it to get
    the effective Config handed to the provider. Validation happens at dispatch,
    so partially filled configs are legal here.
    """

    provider: str = ""
    model: str = ""
    messages: Tuple[Message, ...] = ()
    max_tokens: int = config.DEFAULT_MAX_TOKENS
    temperature: float = config.DEFAULT_TEMPERATURE
    tools: Tuple[FunctionDefinition, ...] = ()


Option = Callable[[Config], Config]


def with_provider(provider: str) -> Option:
    def _apply(c: Config) -> Config:
        return replace(c, provider=provider)

    return _apply


def with_model(model: str) -> Option:
    def _apply(c: Config) -> Config:
        return replace(c, model=model)

    return _apply


def with_messages(*messages: Message) -> Option:
    """Replace the conversation; earlier messages are not kept."""
    frozen = tuple(messages)

    def _apply(c: Config) -> Config:
        return replace(c, messages=frozen)

    return _apply


def with_max_tokens(max_tokens: int) -> Option:
    def _apply(c: Config) -> Config:
        return replace(c, max_tokens=max_tokens)

    return _apply


def with_temperature(temperature: float) -> Option:
    def _apply(c: Config) -> Config:
        return replace(c, temperature=temperature)

    return _apply


def with_tools(*tools: FunctionDefinition) -> Option:
    """Replace the declared tool set."""
    frozen = tuple(tools)

    def _apply(c: Config) -> Config:
        return replace(c, tools=frozen)

    return _apply


def merge_config(base: Config, *options: Option) -> Config:
    """Apply options to base in order; the last write to a field wins."""
    cfg = base
    for opt in options:
        cfg = opt(cfg)
    return cfg
