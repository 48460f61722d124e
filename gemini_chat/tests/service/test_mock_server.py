"""Mock Gemini API served in-process through FastAPI's TestClient."""

from __future__ import annotations

import random
from typing import Iterator

import pytest
from fastapi.testclient import TestClient

from gemini_chat.base.models import Role
from gemini_chat.conversation import ConversationEngine
from gemini_chat.gemini import GeminiApiClient, HttpxTransport
from gemini_chat.service.mock_server import WORDS, MockStreamConfig, create_app, lorem
from gemini_chat.tests.helpers import StaticContext, make_settings

SMALL = MockStreamConfig(chunks=3, chunk_words=4, delay_ms=0, buffered_words=12)


@pytest.fixture()
def http() -> Iterator[TestClient]:
    with TestClient(create_app(SMALL)) as client:
        yield client


def _request(text: str = "Hi") -> dict:
    return {"contents": [{"role": "user", "parts": [{"text": text}]}]}


def test_lorem_uses_vocabulary():
    text = lorem(25, random.Random(7))  # nosec B311 - deterministic filler
    words = text.split()
    assert len(words) == 25 and set(words) <= set(WORDS)  # nosec B101 - pytest assert in tests


def test_models_listing(http):
    body = http.get("/v1beta/models").json()
    assert body["models"][0]["name"] == "models/gemini-mock-turbo"  # nosec B101
    assert body["models"][0]["supportedGenerationMethods"] == ["generateContent"]  # nosec B101


def test_generate_content_returns_filler(http):
    response = http.post("/v1beta/models/gemini-mock-turbo:generateContent", json=_request())
    assert response.status_code == 200  # nosec B101
    text = response.json()["candidates"][0]["content"]["parts"][0]["text"]
    assert len(text.split()) == SMALL.buffered_words  # nosec B101


def test_generate_content_rejects_invalid_body(http):
    response = http.post("/v1beta/models/gemini-mock-turbo:generateContent", json={"contents": "nope"})
    assert response.status_code == 422  # nosec B101


def test_stream_emits_numbered_records(http):
    response = http.post("/v1beta/models/gemini-mock-turbo:streamGenerateContent", json=_request())
    assert response.headers["content-type"].startswith("text/event-stream")  # nosec B101
    records = [line for line in response.text.splitlines() if line.startswith("data: ")]
    assert len(records) == SMALL.chunks  # nosec B101
    assert "[1/3]" in records[0] and "[3/3]" in records[-1]  # nosec B101


def test_stream_can_end_with_done_sentinel():
    cfg = MockStreamConfig(chunks=1, chunk_words=1, delay_ms=0, send_done=True)
    with TestClient(create_app(cfg)) as client:
        response = client.post("/v1beta/models/m:streamGenerateContent", json=_request())
    assert response.text.rstrip().endswith("data: [DONE]")  # nosec B101


def test_engine_round_trip_against_mock(http):
    settings = make_settings(base_url=str(http.base_url))
    client = GeminiApiClient(settings, transport=HttpxTransport(settings, client=http), context_provider=StaticContext())
    engine = ConversationEngine(client)

    models = client.list_models()
    assert [m.model_id for m in models] == ["gemini-mock-turbo"]  # nosec B101

    deltas = list(engine.stream_with_history("gemini-mock-turbo", "Hi"))
    assert len(deltas) == SMALL.chunks  # nosec B101
    assert deltas[0].startswith("[1/3]")  # nosec B101

    text = engine.send_with_history("gemini-mock-turbo", "again")
    assert text and len(text.split()) == SMALL.buffered_words  # nosec B101
    assert [t.role for t in engine.history] == [Role.USER, Role.MODEL, Role.USER, Role.MODEL]  # nosec B101
    assert engine.history[1].text == "".join(deltas)  # nosec B101

