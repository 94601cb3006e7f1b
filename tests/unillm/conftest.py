import json
import sys
from pathlib import Path

import httpx
import pytest

# This repo uses a src/ layout; make the package importable without an
# editable install.
_SRC = str(Path(__file__).resolve().parents[2] / "src")
if _SRC not in sys.path:
    sys.path.insert(0, _SRC)


class RecordingProvider:
    """Provider that records calls and returns preset values per capability."""

    def __init__(self, *, text="", obj=None, tool_calls=()):
        self.text = text
        self.obj = obj
        self.tool_calls = list(tool_calls)
        self.calls = []

    def get_text(self, ctx, config):
        self.calls.append(("text", config))
        return self.text

    def get_object(self, ctx, config, target):
        self.calls.append(("object", config, target))
        return self.obj

    def get_tool_calls(self, ctx, config):
        self.calls.append(("tool_calls", config))
        return list(self.tool_calls)


@pytest.fixture
def recording_provider():
    """Fixture: factory for RecordingProvider instances."""

    def _factory(**kwargs):
        return RecordingProvider(**kwargs)

    return _factory


@pytest.fixture
def mock_http():
    """Fixture: factory for an httpx.Client backed by a MockTransport.

    Returns (client, requests) where `requests` collects every request sent,
    with its JSON body decoded into `request.body_json`.
    """

    def _factory(*, status: int = 200, payload=None, text=None, handler=None):
        seen = []

        def _handle(request: httpx.Request) -> httpx.Response:
            request.body_json = json.loads(request.content or b"null")
            seen.append(request)
            if handler is not None:
                return handler(request)
            if text is not None:
                return httpx.Response(status, text=text)
            return httpx.Response(status, json=payload if payload is not None else {})

        return httpx.Client(transport=httpx.MockTransport(_handle)), seen

    return _factory
