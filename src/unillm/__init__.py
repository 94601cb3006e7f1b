"""Provider-agnostic client for LLM services (OpenAI / Anthropic, etc.).

Design goals:
- One contract for text completion, structured extraction and tool calls.
- Keep provider wire formats isolated in adapters under unillm.providers.
- Reconcile JSON wrapped in prose or code fences the same way for every provider.
"""

from .base import (
    PROVIDER_ANTHROPIC,
    PROVIDER_OPENAI,
    PROVIDER_STUB,
    LLMProvider,
    ProviderRegistry,
)
from .client import LLMClient
from .context import CallContext
from .errors import (
    DeadlineExceededError,
    DecodeFailureError,
    EmptyCredentialError,
    InvalidUpstreamReplyError,
    LLMError,
    LLMValidationError,
    ModelNotSpecifiedError,
    NoToolsSpecifiedError,
    ProviderNotSupportedError,
    RequestCancelledError,
    TransportError,
    UpstreamError,
)
from .factory import build_client, build_provider
from .options import (
    Config,
    Option,
    merge_config,
    with_max_tokens,
    with_messages,
    with_model,
    with_provider,
    with_temperature,
    with_tools,
)
from .types import (
    FunctionDefinition,
    Message,
    ToolCall,
    ToolFunction,
    assistant_message,
    system_message,
    tool_result_message,
    user_message,
)

__all__ = [
    "PROVIDER_ANTHROPIC",
    "PROVIDER_OPENAI",
    "PROVIDER_STUB",
    "CallContext",
    "Config",
    "DeadlineExceededError",
    "DecodeFailureError",
    "EmptyCredentialError",
    "FunctionDefinition",
    "InvalidUpstreamReplyError",
    "LLMClient",
    "LLMError",
    "LLMProvider",
    "LLMValidationError",
    "Message",
    "ModelNotSpecifiedError",
    "NoToolsSpecifiedError",
    "Option",
    "ProviderNotSupportedError",
    "ProviderRegistry",
    "RequestCancelledError",
    "ToolCall",
    "ToolFunction",
    "TransportError",
    "UpstreamError",
    "assistant_message",
    "build_client",
    "build_provider",
    "merge_config",
    "system_message",
    "tool_result_message",
    "user_message",
    "with_max_tokens",
    "with_messages",
    "with_model",
    "with_provider",
    "with_temperature",
    "with_tools",
]
