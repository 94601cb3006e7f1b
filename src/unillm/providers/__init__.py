"""Provider adapters.

- OpenAIProvider: OpenAI Chat Completions (and compatible endpoints)
- AnthropicProvider: Anthropic Messages API
- StubProvider: in-process canned replies for tests
"""

from .anthropic_provider import AnthropicProvider
from .openai_provider import OpenAIProvider
from .stub_provider import StubProvider

__all__ = ["AnthropicProvider", "OpenAIProvider", "StubProvider"]
