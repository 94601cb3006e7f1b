from __future__ import annotations

import copy
import json
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Literal, Mapping, Sequence

Role = Literal["system", "user", "assistant", "tool"]

ROLE_SYSTEM: Role = "system"
ROLE_USER: Role = "user"
ROLE_ASSISTANT: Role = "assistant"
ROLE_TOOL: Role = "tool"

_ROLES = frozenset({ROLE_SYSTEM, ROLE_USER, ROLE_ASSISTANT, ROLE_TOOL})


@dataclass(frozen=True)
class ToolFunction:
    """Name and raw JSON arguments of a requested tool invocation.

    `arguments` is kept exactly as the provider sent it; callers decode it
    into whatever shape the named function expects.
    """

    name: str
    arguments: str = "{}"


@dataclass(frozen=True)
class ToolCall:
    id: str
    function: ToolFunction
    type: str = "function"

    @property
    def name(self) -> str:
        return self.function.name

    @property
    def arguments(self) -> str:
        return self.function.arguments

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "function": {
                "name": self.function.name,
                "arguments": self.function.arguments,
            },
        }


@dataclass(frozen=True)
class Message:
    """Provider-neutral conversation message.

    Invariants:
    - `tool` messages carry the id of the call they answer
    - only `tool` messages carry a `tool_call_id`
    - only `assistant` messages carry `tool_calls`
    """

    role: Role
    content: str = ""
    tool_calls: Sequence[ToolCall] = ()
    tool_call_id: str = ""

    def __post_init__(self) -> None:
        if self.role not in _ROLES:
            raise ValueError(f"Unknown message role: {self.role!r}")

        object.__setattr__(self, "tool_calls", tuple(self.tool_calls or ()))

        if self.role == ROLE_TOOL and not self.tool_call_id:
            raise ValueError("tool messages require a tool_call_id")
        if self.role != ROLE_TOOL and self.tool_call_id:
            raise ValueError(f"{self.role} messages cannot carry a tool_call_id")
        if self.tool_calls and self.role != ROLE_ASSISTANT:
            raise ValueError(f"{self.role} messages cannot carry tool_calls")

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {"role": self.role, "content": self.content}
        if self.tool_calls:
            d["tool_calls"] = [tc.to_dict() for tc in self.tool_calls]
        if self.tool_call_id:
            d["tool_call_id"] = self.tool_call_id
        return d


@dataclass(frozen=True)
class FunctionDefinition:
    """A function the model may ask the caller to invoke.

    `parameters` is a JSON Schema; a JSON string is decoded once here.
    """

    name: str
    description: str = ""
    parameters: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        params = self.parameters
        if isinstance(params, (str, bytes)):
            params = json.loads(params)
        if not isinstance(params, Mapping):
            raise ValueError(
                f"parameters for {self.name!r} must be a JSON object schema"
            )
        # Own a deep copy; the caller may keep editing its schema.
        params = MappingProxyType(copy.deepcopy(dict(params)))
        object.__setattr__(self, "parameters", params)

    def __hash__(self) -> int:
        return hash((self.name, self.description))

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "parameters": copy.deepcopy(dict(self.parameters)),
        }


def system_message(content: str) -> Message:
    return Message(role=ROLE_SYSTEM, content=content)


def user_message(content: str) -> Message:
    return Message(role=ROLE_USER, content=content)


def assistant_message(content: str, tool_calls: Sequence[ToolCall] = ()) -> Message:
    return Message(role=ROLE_ASSISTANT, content=content, tool_calls=tool_calls)


def tool_result_message(tool_call_id: str, content: str) -> Message:
    """Answer a ToolCall; the result is fed back to the model on the next turn."""
    return Message(role=ROLE_TOOL, content=content, tool_call_id=tool_call_id)
