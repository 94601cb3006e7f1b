from __future__ import annotations

import json
import re
from typing import Any, Mapping, Optional

from jsonschema import validate
from jsonschema.exceptions import ValidationError as _SchemaValidationError
from pydantic import TypeAdapter
from pydantic import ValidationError as _ModelValidationError
from pydantic.errors import PydanticInvalidForJsonSchema, PydanticSchemaGenerationError

from .errors import DecodeFailureError, LLMValidationError

_FENCE = "```"
_JSON_FENCE = "```json"
# Opener with a language tag, e.g. ```javascript followed by a newline
_TAGGED_FENCE = re.compile(r"```[\w.+-]*(?=\s)")


def extract_json(raw: str) -> str:
    """Isolate the JSON payload of a model reply.

    Handles replies wrapped in a fenced code block. Only a fence at the very
    start is recognised, and everything from the *last* fence marker onward is
    dropped, so trailing prose after a closing fence is discarded too.
    """

    text = raw.strip()

    if text.startswith(_FENCE):
        if text.startswith(_JSON_FENCE):
            text = text[len(_JSON_FENCE) :]
        else:
            m = _TAGGED_FENCE.match(text)
            text = text[m.end() :] if m else text[len(_FENCE) :]

        idx = text.rfind(_FENCE)
        if idx != -1:
            text = text[:idx]

    return text.strip()


def parse_json(text: str) -> Any:
    """Decode an already-extracted candidate; failures keep the candidate."""

    try:
        return json.loads(text)
    except ValueError as e:
        raise DecodeFailureError(text, e) from e


def validate_json(instance: Any, schema: Mapping[str, Any], candidate: str) -> None:
    try:
        validate(instance=instance, schema=dict(schema))
    except _SchemaValidationError as e:
        raise LLMValidationError(candidate, e) from e


def _is_untyped(target: Any) -> bool:
    return target is None or target in (Any, object, dict, list)


def decode_json(raw: str, target: Any = None) -> Any:
    """Extract, decode and shape a model reply.

    target:
    - None / Any / object / bare dict or list: plain decoded JSON, unchecked
    - a mapping: treated as a JSON Schema, result is the validated plain data
    - any other type: validated and converted with a pydantic TypeAdapter
      (models, dataclasses, TypedDicts, builtins and generics)
    """

    candidate = extract_json(raw)
    data = parse_json(candidate)

    if _is_untyped(target):
        return data

    if isinstance(target, Mapping):
        validate_json(data, target, candidate)
        return data

    try:
        return TypeAdapter(target).validate_python(data)
    except _ModelValidationError as e:
        raise LLMValidationError(candidate, e) from e


def target_name(target: Any) -> str:
    if _is_untyped(target):
        return "object"
    if isinstance(target, Mapping):
        return str(target.get("title") or "object")
    return getattr(target, "__name__", None) or str(target)


def target_schema(target: Any) -> Optional[dict[str, Any]]:
    """JSON Schema for a target shape, or None when none can be derived."""

    if _is_untyped(target):
        return None
    if isinstance(target, Mapping):
        return dict(target)
    try:
        return TypeAdapter(target).json_schema()
    except (PydanticSchemaGenerationError, PydanticInvalidForJsonSchema):
        return None


def json_instruction(target: Any) -> str:
    """System instruction asking the model for JSON matching the target."""

    text = (
        "You are a helpful assistant that responds with JSON matching the "
        f"{target_name(target)} type. Your response should be valid JSON and nothing else."
    )
    schema = target_schema(target)
    if schema:
        text += "\n\nJSON Schema:\n" + json.dumps(schema, indent=2, sort_keys=True)
    return text
