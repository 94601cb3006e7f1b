import threading
import time

import httpx
import pytest
from pydantic import BaseModel

from unillm.context import CallContext
from unillm.errors import (
    DeadlineExceededError,
    DecodeFailureError,
    EmptyCredentialError,
    InvalidUpstreamReplyError,
    NoToolsSpecifiedError,
    RequestCancelledError,
    TransportError,
    UpstreamError,
)
from unillm.options import Config
from unillm.providers.openai_provider import OpenAIProvider, convert_messages
from unillm.types import (
    FunctionDefinition,
    ToolCall,
    ToolFunction,
    assistant_message,
    system_message,
    tool_result_message,
    user_message,
)

URL = "https://openai.test/v1/chat/completions"
WEATHER = FunctionDefinition(
    name="get_weather",
    description="Gets weather information",
    parameters={"type": "object"},
)


class Person(BaseModel):
    name: str
    age: int


def _reply(content=None, tool_calls=None, finish_reason="stop"):
    message = {"role": "assistant", "content": content}
    if tool_calls is not None:
        message["tool_calls"] = tool_calls
    return {
        "id": "chatcmpl-1",
        "object": "chat.completion",
        "choices": [{"index": 0, "message": message, "finish_reason": finish_reason}],
    }


def _provider(http_client, **kwargs):
    return OpenAIProvider(api_key="test-key", api_url=URL, http_client=http_client, **kwargs)


def test_defaults():
    p = OpenAIProvider()
    assert p.api_key == ""
    assert p.api_url == "https://api.openai.com/v1/chat/completions"
    assert p.http_client is None


@pytest.mark.parametrize("method", ["get_text", "get_tool_calls"])
def test_missing_api_key_fails_before_network(mock_http, method):
    client, seen = mock_http(payload=_reply("x"))
    p = OpenAIProvider(api_url=URL, http_client=client)

    with pytest.raises(EmptyCredentialError):
        getattr(p, method)(CallContext(), Config(model="m", tools=(WEATHER,)))
    assert seen == []


def test_get_text_sends_request_and_returns_content(mock_http):
    client, seen = mock_http(payload=_reply("Hello, world!"))
    cfg = Config(
        model="test-model",
        messages=(user_message("Hello"),),
        temperature=0.2,
        max_tokens=50,
    )

    assert _provider(client).get_text(CallContext(), cfg) == "Hello, world!"

    req = seen[0]
    assert req.method == "POST"
    assert str(req.url) == URL
    assert req.headers["Authorization"] == "Bearer test-key"
    assert req.body_json == {
        "model": "test-model",
        "messages": [{"role": "user", "content": "Hello"}],
        "temperature": 0.2,
        "max_tokens": 50,
    }


def test_get_text_empty_content_is_invalid_reply(mock_http):
    client, _ = mock_http(payload=_reply(""))
    with pytest.raises(InvalidUpstreamReplyError):
        _provider(client).get_text(CallContext(), Config(model="m"))

    client, _ = mock_http(payload={"choices": []})
    with pytest.raises(InvalidUpstreamReplyError):
        _provider(client).get_text(CallContext(), Config(model="m"))


def test_upstream_error_message_is_verbatim(mock_http):
    client, _ = mock_http(
        status=400,
        payload={"error": {"message": "Invalid model", "type": "invalid_request_error"}},
    )
    with pytest.raises(UpstreamError) as ei:
        _provider(client).get_text(CallContext(), Config(model="bad"))

    assert ei.value.status_code == 400
    assert ei.value.message == "Invalid model"
    assert ei.value.provider == "openai"


def test_upstream_error_without_json_keeps_body(mock_http):
    client, _ = mock_http(status=502, text="Bad Gateway")
    with pytest.raises(UpstreamError) as ei:
        _provider(client).get_text(CallContext(), Config(model="m"))
    assert ei.value.message == "Bad Gateway"


def test_malformed_success_body_is_invalid_reply(mock_http):
    client, _ = mock_http(text="<html>")
    with pytest.raises(InvalidUpstreamReplyError):
        _provider(client).get_text(CallContext(), Config(model="m"))


@pytest.mark.parametrize(
    "payload",
    [
        {"choices": ["oops"]},
        {"choices": [None]},
        {"choices": [{"index": 0, "message": "hello"}]},
    ],
)
def test_malformed_choice_is_invalid_reply(mock_http, payload):
    client, _ = mock_http(payload=payload)
    with pytest.raises(InvalidUpstreamReplyError):
        _provider(client).get_text(CallContext(), Config(model="m"))


def test_get_tool_calls_skips_items_that_are_not_objects(mock_http):
    good = {
        "id": "call_1",
        "type": "function",
        "function": {"name": "get_weather", "arguments": "{}"},
    }
    client, _ = mock_http(payload=_reply(tool_calls=["junk", good, 7]))
    cfg = Config(model="m", tools=(WEATHER,))

    calls = _provider(client).get_tool_calls(CallContext(), cfg)

    assert [c.id for c in calls] == ["call_1"]


def test_transport_failure_is_wrapped(mock_http):
    def boom(request):
        raise httpx.ConnectError("connection refused", request=request)

    client, _ = mock_http(handler=boom)
    with pytest.raises(TransportError) as ei:
        _provider(client).get_text(CallContext(), Config(model="m"))
    assert isinstance(ei.value.__cause__, httpx.ConnectError)


def test_timeout_maps_to_deadline_exceeded(mock_http):
    def slow(request):
        raise httpx.ReadTimeout("timed out", request=request)

    client, _ = mock_http(handler=slow)
    with pytest.raises(DeadlineExceededError):
        _provider(client).get_text(CallContext(timeout_s=5), Config(model="m"))


def test_cancelled_context_sends_nothing(mock_http):
    client, seen = mock_http(payload=_reply("x"))
    ctx = CallContext()
    ctx.cancel()

    with pytest.raises(RequestCancelledError):
        _provider(client).get_text(ctx, Config(model="m"))
    assert seen == []


def test_cancel_during_request_is_reported(mock_http):
    ctx = CallContext()

    def cancel_midway(request):
        ctx.cancel()
        return httpx.Response(200, json=_reply("late"))

    client, _ = mock_http(handler=cancel_midway)
    with pytest.raises(RequestCancelledError):
        _provider(client).get_text(ctx, Config(model="m"))


def test_cancel_aborts_request_in_flight_promptly(mock_http):
    ctx = CallContext()
    unblock = threading.Event()

    def stalled(request):
        unblock.wait(5)
        return httpx.Response(200, json=_reply("too late"))

    client, _ = mock_http(handler=stalled)
    timer = threading.Timer(0.1, ctx.cancel)
    timer.start()
    started = time.monotonic()
    try:
        with pytest.raises(RequestCancelledError):
            _provider(client).get_text(ctx, Config(model="m"))
        assert time.monotonic() - started < 1.0
    finally:
        unblock.set()
        timer.cancel()


def test_deadline_aborts_request_in_flight_promptly(mock_http):
    unblock = threading.Event()

    def stalled(request):
        unblock.wait(5)
        return httpx.Response(200, json=_reply("too late"))

    client, _ = mock_http(handler=stalled)
    started = time.monotonic()
    try:
        with pytest.raises(DeadlineExceededError):
            _provider(client).get_text(CallContext(timeout_s=0.2), Config(model="m"))
        assert time.monotonic() - started < 1.0
    finally:
        unblock.set()


def test_get_object_adds_json_instruction_and_strips_fence(mock_http):
    client, seen = mock_http(payload=_reply('```json\n{"name":"John Doe","age":30}\n```'))
    cfg = Config(model="m", messages=(user_message("Who?"),))

    person = _provider(client).get_object(CallContext(), cfg, Person)

    assert person == Person(name="John Doe", age=30)
    sent = seen[0].body_json["messages"]
    assert sent[0]["role"] == "system"
    assert "Person" in sent[0]["content"]
    assert sent[1] == {"role": "user", "content": "Who?"}


def test_get_object_keeps_existing_system_message(mock_http):
    client, seen = mock_http(payload=_reply('{"name":"A","age":1}'))
    cfg = Config(model="m", messages=(system_message("Be terse"), user_message("Who?")))

    _provider(client).get_object(CallContext(), cfg, Person)

    sent = seen[0].body_json["messages"]
    assert [m["role"] for m in sent] == ["system", "user"]
    assert sent[0]["content"] == "Be terse"


def test_get_object_decode_failure_keeps_candidate(mock_http):
    client, _ = mock_http(payload=_reply("```json\n{oops}\n```"))
    with pytest.raises(DecodeFailureError) as ei:
        _provider(client).get_object(CallContext(), Config(model="m"), Person)
    assert ei.value.candidate == "{oops}"


def test_get_tool_calls_requires_tools(mock_http):
    client, seen = mock_http(payload=_reply("x"))
    with pytest.raises(NoToolsSpecifiedError):
        _provider(client).get_tool_calls(CallContext(), Config(model="m"))
    assert seen == []


def test_get_tool_calls_normalizes_reply(mock_http):
    raw_args = '{"location":"San Francisco","unit":"celsius"}'
    client, seen = mock_http(
        payload=_reply(
            None,
            tool_calls=[
                {
                    "id": "call_abc123",
                    "type": "function",
                    "function": {"name": "get_weather", "arguments": raw_args},
                },
                {
                    "id": "call_def456",
                    "type": "function",
                    "function": {"name": "get_time", "arguments": "{}"},
                },
            ],
            finish_reason="tool_calls",
        )
    )
    cfg = Config(
        model="m",
        messages=(user_message("What's the weather in San Francisco?"),),
        tools=(WEATHER,),
    )

    calls = _provider(client).get_tool_calls(CallContext(), cfg)

    assert [c.id for c in calls] == ["call_abc123", "call_def456"]
    assert calls[0].type == "function"
    assert calls[0].name == "get_weather"
    assert calls[0].arguments == raw_args
    assert seen[0].body_json["tools"] == [
        {
            "type": "function",
            "function": {
                "name": "get_weather",
                "description": "Gets weather information",
                "parameters": {"type": "object"},
            },
        }
    ]


def test_get_tool_calls_without_calls_is_empty(mock_http):
    client, _ = mock_http(payload=_reply("I don't need a tool for this.", tool_calls=[]))
    cfg = Config(model="m", tools=(WEATHER,))
    assert _provider(client).get_tool_calls(CallContext(), cfg) == []


def test_convert_messages_round_trips_tool_history():
    tc = ToolCall(id="call_1", function=ToolFunction(name="get_weather", arguments='{"l":"SF"}'))
    out = convert_messages(
        [
            user_message("weather?"),
            assistant_message("", tool_calls=[tc]),
            tool_result_message("call_1", '{"temperature":22}'),
        ]
    )

    assert out[1] == {
        "role": "assistant",
        "content": None,
        "tool_calls": [
            {
                "id": "call_1",
                "type": "function",
                "function": {"name": "get_weather", "arguments": '{"l":"SF"}'},
            }
        ],
    }
    assert out[2] == {"role": "tool", "content": '{"temperature":22}', "tool_call_id": "call_1"}
