"""Local mock of the Gemini REST API.

Serves the three endpoints the client uses so the shell and the engine can
be exercised offline and under load:

- ``GET  /v1beta/models``: one model, ``models/gemini-mock-turbo``;
- ``POST /v1beta/models/{model}:generateContent``: a block of filler words;
- ``POST /v1beta/models/{model}:streamGenerateContent``: filler chunks as
  ``data: {json}`` event-stream records, optionally closed by ``[DONE]``.

``create_app`` takes the stream shape (chunk count, words per chunk, delay)
so tests can build a small, fast instance. ``run`` serves it with uvicorn.
"""

from __future__ import annotations

import random
import time
from dataclasses import dataclass
from typing import Iterator, Optional

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import StreamingResponse

from ..base.dto.gemini import (
    CandidateDTO,
    ContentDTO,
    GenerateContentRequestDTO,
    GenerateContentResponseDTO,
    ModelInfoDTO,
    ModelListResponseDTO,
    PartDTO,
)
from ..base.logging import LogContext, get_logger, log_event
from ..base.streaming import DONE_SENTINEL
from ..config.defaults import (
    MOCK_BUFFERED_WORDS,
    MOCK_CHUNK_DELAY_MS,
    MOCK_CHUNK_WORDS,
    MOCK_MODEL_NAME,
    MOCK_SERVER_DEFAULT_HOST,
    MOCK_SERVER_DEFAULT_PORT,
    MOCK_STREAM_CHUNKS,
)

WORDS = (
    "lorem", "ipsum", "dolor", "sit", "amet", "consectetur", "adipiscing", "elit",
    "performance", "testing", "stream", "buffer", "latency", "throughput", "python",
    "generator", "httpx", "socket", "memory", "allocation",
)


@dataclass(frozen=True)
class MockStreamConfig:
    """Shape of the mock event stream.

    Attributes:
        chunks: Number of ``data:`` records per stream.
        chunk_words: Filler words per record (after the ``[i/n]`` marker).
        delay_ms: Pause before each record.
        send_done: Append a ``data: [DONE]`` record at the end.
        buffered_words: Words in the ``generateContent`` response.
    """

    chunks: int = MOCK_STREAM_CHUNKS
    chunk_words: int = MOCK_CHUNK_WORDS
    delay_ms: int = MOCK_CHUNK_DELAY_MS
    send_done: bool = False
    buffered_words: int = MOCK_BUFFERED_WORDS


def lorem(word_count: int, rng: Optional[random.Random] = None) -> str:
    picker = rng or random
    return " ".join(picker.choice(WORDS) for _ in range(word_count))  # nosec B311 - filler text


def _response(text: str) -> GenerateContentResponseDTO:
    return GenerateContentResponseDTO(
        candidates=[CandidateDTO(content=ContentDTO(role="model", parts=[PartDTO(text=text)]))]
    )


def _sse_records(model: str, cfg: MockStreamConfig) -> Iterator[str]:
    logger = get_logger("service.mock_server")
    log_event(logger, "mock.stream.start", LogContext(model=model), chunks=cfg.chunks)
    for i in range(cfg.chunks):
        if cfg.delay_ms > 0:
            time.sleep(cfg.delay_ms / 1000.0)
        unit = _response(f"[{i + 1}/{cfg.chunks}]" + lorem(cfg.chunk_words))
        yield f"data: {unit.model_dump_json(by_alias=True, exclude_none=True)}\n\n"
    if cfg.send_done:
        yield f"data: {DONE_SENTINEL}\n\n"
    log_event(logger, "mock.stream.complete", LogContext(model=model), chunks=cfg.chunks)


def create_app(config: Optional[MockStreamConfig] = None) -> FastAPI:
    """Build the mock API application."""
    cfg = config or MockStreamConfig()
    logger = get_logger("service.mock_server")
    app = FastAPI(title="Gemini Mock API", version="0.1.0")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/v1beta/models")
    def list_models() -> dict:
        log_event(logger, "mock.models", LogContext())
        listing = ModelListResponseDTO(
            models=[
                ModelInfoDTO(
                    name=MOCK_MODEL_NAME,
                    display_name="Gemini Mock Turbo (Local)",
                    description="High-throughput local simulation for stress testing streaming pipelines.",
                    supported_generation_methods=["generateContent"],
                )
            ]
        )
        return listing.model_dump(by_alias=True, exclude_none=True)

    @app.post("/v1beta/models/{model}:generateContent")
    def generate_content(model: str, body: GenerateContentRequestDTO) -> dict:
        log_event(logger, "mock.generate", LogContext(model=model, history_items=len(body.contents)))
        return _response(lorem(cfg.buffered_words)).model_dump(by_alias=True, exclude_none=True)

    @app.post("/v1beta/models/{model}:streamGenerateContent")
    def stream_generate_content(model: str, body: GenerateContentRequestDTO) -> StreamingResponse:
        return StreamingResponse(
            _sse_records(model, cfg),
            media_type="text/event-stream",
            headers={"Cache-Control": "no-cache", "Connection": "keep-alive"},
        )

    return app


def run(
    host: str = MOCK_SERVER_DEFAULT_HOST,
    port: int = MOCK_SERVER_DEFAULT_PORT,
    config: Optional[MockStreamConfig] = None,
) -> None:
    """Serve the mock API until interrupted."""
    log_event(get_logger("service.mock_server"), "mock.serve", LogContext(), host=host, port=port)
    uvicorn.run(create_app(config), host=host, port=port)


__all__ = ["MockStreamConfig", "create_app", "lorem", "run"]
