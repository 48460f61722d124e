"""GeminiApiClient request building, buffered and streaming calls, model listing."""

from __future__ import annotations

import json

import httpx
import pytest

from gemini_chat.base.errors import ErrorCode, ResponseDecodeError, TransportError
from gemini_chat.base.models import Role, Turn
from gemini_chat.gemini import choose_model
from gemini_chat.gemini.helpers import model_path, normalize_model_id
from gemini_chat.tests.helpers import API_KEY, SYSTEM_CONTEXT, StaticContext, make_client, sse, unit


def test_build_request_generates_context_every_time():
    context = StaticContext()
    client = make_client(lambda r: httpx.Response(200), context=context)
    turns = [Turn(Role.USER, "Hi")]
    first = client.build_request(turns)
    client.build_request(turns)
    assert context.calls == 2  # nosec B101 - pytest assert in tests
    assert first.system_context == SYSTEM_CONTEXT and first.history == tuple(turns)  # nosec B101


def test_generate_content_posts_history_and_returns_text(log_events):
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, text=unit("Hello"))

    client = make_client(handler)
    text = client.generate_content("models/gemini-test", client.build_request([Turn(Role.USER, "Hi")]))

    assert text == "Hello"  # nosec B101
    assert seen["path"] == "/v1beta/models/gemini-test:generateContent"  # nosec B101
    assert seen["body"]["contents"] == [{"role": "user", "parts": [{"text": "Hi"}]}]  # nosec B101
    assert seen["body"]["systemInstruction"]["parts"][0]["text"] == SYSTEM_CONTEXT  # nosec B101
    events = [e["event"] for e in log_events]
    assert "chat.start" in events and "chat.end" in events  # nosec B101
    assert all(API_KEY not in json.dumps(e) for e in log_events)  # nosec B101


def test_generate_content_without_text_returns_none():
    client = make_client(lambda r: httpx.Response(200, json={"candidates": []}))
    assert client.generate_content("m", client.build_request([Turn(Role.USER, "q")])) is None  # nosec B101


def test_generate_content_decode_failure(log_events):
    client = make_client(lambda r: httpx.Response(200, text="<html>oops</html>"))
    with pytest.raises(ResponseDecodeError) as info:
        client.generate_content("m", client.build_request([Turn(Role.USER, "q")]))
    assert info.value.model == "m"  # nosec B101
    errors = [e for e in log_events if e["event"] == "chat.error"]
    assert errors and errors[-1]["error_code"] == ErrorCode.DECODE.value  # nosec B101


def test_stream_generate_content_yields_deltas(log_events):
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = request.url
        return httpx.Response(200, text=": ping\n\n" + sse(unit("Hel"), unit("lo")) + "data: [DONE]\n\n")

    client = make_client(handler)
    deltas = list(client.stream_generate_content("gemini-test", client.build_request([Turn(Role.USER, "Hi")])))

    assert deltas == ["Hel", "lo"]  # nosec B101
    assert seen["url"].path == "/v1beta/models/gemini-test:streamGenerateContent"  # nosec B101
    assert seen["url"].params["alt"] == "sse"  # nosec B101
    finalize = [e for e in log_events if e["event"] == "stream.finalize"][-1]
    assert finalize["deltas"] == 2 and finalize["done_sentinel"] is True  # nosec B101


def test_stream_transport_error_surfaces_before_any_delta(log_events):
    client = make_client(lambda r: httpx.Response(500, text="internal"))
    stream = client.stream_generate_content("m", client.build_request([Turn(Role.USER, "q")]))
    with pytest.raises(TransportError) as info:
        next(stream)
    assert info.value.status_code == 500 and info.value.model == "m"  # nosec B101
    assert any(e["event"] == "stream.error" for e in log_events)  # nosec B101


def test_list_models_filters_and_pages():
    pages = {
        None: {
            "models": [
                {"name": "models/gemini-a", "supportedGenerationMethods": ["generateContent"]},
                {"name": "models/embed", "supportedGenerationMethods": ["embedContent"]},
            ],
            "nextPageToken": "two",
        },
        "two": {"models": [{"name": "models/gemini-b", "supportedGenerationMethods": ["generateContent"]}]},
    }

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=pages[request.url.params.get("pageToken")])

    models = make_client(handler).list_models()
    assert [m.model_id for m in models] == ["gemini-a", "gemini-b"]  # nosec B101


def test_model_helpers():
    assert normalize_model_id(" models/gemini-x ") == "gemini-x"  # nosec B101
    assert model_path("gemini-x", "generateContent") == "/v1beta/models/gemini-x:generateContent"  # nosec B101


def test_choose_model_order():
    from gemini_chat.base.dto import ModelInfoDTO

    listed = [ModelInfoDTO(name="models/gemini-a"), ModelInfoDTO(name="models/gemini-pro-b")]
    assert choose_model(listed, configured="gemini-a", preference="pro") == "gemini-a"  # nosec B101
    assert choose_model(listed, configured="other", preference="pro") == "gemini-pro-b"  # nosec B101
    assert choose_model(listed, configured="other") == "other"  # nosec B101
    assert choose_model(listed) == "gemini-a"  # nosec B101
    assert choose_model([]) == "gemini-2.5-flash"  # nosec B101
