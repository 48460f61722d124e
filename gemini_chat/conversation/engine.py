"""Conversation engine.

``ConversationEngine`` owns the ``History`` of one conversation and turns
each prompt into exactly one API call with transactional history semantics:

1. validate the model id and prompt (no state change on rejection);
2. append a provisional user turn and remember its position;
3. build the request from the whole history with a fresh system context;
4. execute it (buffered, or streaming with deltas forwarded as they decode);
5. on text, append the model turn; on no text, drop the provisional turn;
6. on any exception, including cancellation and an abandoned stream, drop
   the provisional turn and re-raise.

After every call the history ends with a model turn or is unchanged, so a
caller may retry the same prompt without cleaning up.

One call per engine at a time; the engine takes no lock.
"""

from __future__ import annotations

import logging
from contextlib import closing
from typing import Iterator, List, Optional

from ..base.cancellation import CancellationToken, CancelledError
from ..base.errors import ErrorCode, classify_exception
from ..base.logging import LogContext, get_logger, log_event
from ..base.models import CallResult, History, Role, Turn
from ..gemini.client import GeminiApiClient
from ..gemini.helpers import require_model_id, require_prompt


class ConversationEngine:
    """Stateful multi-turn conversation over a :class:`GeminiApiClient`.

    Parameters:
        client: Client used for every call.
        history: Optional pre-existing history; a new empty one by default.
        logger: Optional logger; defaults to ``gemini_chat.conversation``.
    """

    def __init__(
        self,
        client: GeminiApiClient,
        history: Optional[History] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._client = client
        self._history = history if history is not None else History()
        self._logger = logger or get_logger("conversation")
        self.last_result: Optional[CallResult] = None

    @property
    def history(self) -> History:
        return self._history

    @property
    def client(self) -> GeminiApiClient:
        return self._client

    def reset(self) -> None:
        """Forget every turn."""
        self._history.clear()
        self.last_result = None
        log_event(self._logger, "conversation.reset", LogContext())

    # ---- single turn (history untouched) ----

    def send_single_turn(
        self,
        model_id: str,
        prompt: str,
        cancellation_token: Optional[CancellationToken] = None,
    ) -> Optional[str]:
        """Ask ``prompt`` alone, without reading or writing history."""
        _validate(model_id, prompt)
        request = self._client.build_request([Turn(Role.USER, prompt)])
        try:
            text = self._client.generate_content(model_id, request, cancellation_token)
            if cancellation_token is not None:
                cancellation_token.raise_if_cancelled()
        except BaseException as exc:
            self.last_result = _failure(exc)
            raise
        self.last_result = CallResult.success(text) if text else CallResult.empty()
        return text or None

    def stream_single_turn(
        self,
        model_id: str,
        prompt: str,
        cancellation_token: Optional[CancellationToken] = None,
    ) -> Iterator[str]:
        """Stream the answer to ``prompt`` alone. Validation happens now."""
        _validate(model_id, prompt)
        return self._stream_single(model_id, prompt, cancellation_token)

    def _stream_single(
        self,
        model_id: str,
        prompt: str,
        cancellation_token: Optional[CancellationToken],
    ) -> Iterator[str]:
        request = self._client.build_request([Turn(Role.USER, prompt)])
        parts: List[str] = []
        try:
            with closing(self._client.stream_generate_content(model_id, request, cancellation_token)) as stream:
                for delta in stream:
                    parts.append(delta)
                    yield delta
        except BaseException as exc:
            self.last_result = _failure(exc)
            raise
        text = "".join(parts)
        self.last_result = CallResult.success(text) if text else CallResult.empty()

    # ---- with history ----

    def send_with_history(
        self,
        model_id: str,
        prompt: str,
        cancellation_token: Optional[CancellationToken] = None,
    ) -> Optional[str]:
        """Buffered call with the whole history.

        Returns:
            The response text, or ``None`` when the model produced none (the
            prompt is then not kept in history).

        Raises:
            ChatValidationError: blank model id or prompt; history untouched.
            ChatError / CancelledError: after the provisional turn is removed.
        """
        _validate(model_id, prompt)
        turn = Turn(Role.USER, prompt)
        index = self._history.append(turn)
        try:
            if cancellation_token is not None:
                cancellation_token.raise_if_cancelled()
            request = self._client.build_request(self._history.snapshot())
            text = self._client.generate_content(model_id, request, cancellation_token)
            if cancellation_token is not None:
                cancellation_token.raise_if_cancelled()
        except BaseException as exc:
            self._rollback(model_id, index, turn, exc)
            raise
        return self._commit(model_id, index, turn, text)

    def stream_with_history(
        self,
        model_id: str,
        prompt: str,
        cancellation_token: Optional[CancellationToken] = None,
    ) -> Iterator[str]:
        """Streaming call with the whole history.

        Input is validated immediately; the provisional turn is written when
        iteration starts. Deltas are yielded as they decode. The model turn is
        committed only after the stream completes; closing the generator
        early rolls the prompt back.
        """
        _validate(model_id, prompt)
        return self._stream_turn(model_id, prompt, cancellation_token)

    def _stream_turn(
        self,
        model_id: str,
        prompt: str,
        cancellation_token: Optional[CancellationToken],
    ) -> Iterator[str]:
        turn = Turn(Role.USER, prompt)
        index = self._history.append(turn)
        parts: List[str] = []
        try:
            if cancellation_token is not None:
                cancellation_token.raise_if_cancelled()
            request = self._client.build_request(self._history.snapshot())
            with closing(self._client.stream_generate_content(model_id, request, cancellation_token)) as stream:
                for delta in stream:
                    parts.append(delta)
                    yield delta
        except BaseException as exc:
            self._rollback(model_id, index, turn, exc)
            raise
        self._commit(model_id, index, turn, "".join(parts))

    # ---- commit / rollback ----

    def _commit(self, model_id: str, index: int, turn: Turn, text: Optional[str]) -> Optional[str]:
        ctx = LogContext(model=model_id, history_items=len(self._history))
        if not text:
            self._history.remove_at(index, turn)
            self.last_result = CallResult.empty()
            log_event(self._logger, "conversation.empty", ctx, level=logging.WARNING)
            return None
        self._history.append(Turn(Role.MODEL, text))
        self.last_result = CallResult.success(text)
        log_event(
            self._logger,
            "conversation.commit",
            ctx,
            history_items=len(self._history),
            response_chars=len(text),
        )
        return text

    def _rollback(self, model_id: str, index: int, turn: Turn, exc: BaseException) -> None:
        removed = self._history.remove_at(index, turn)
        self.last_result = _failure(exc)
        log_event(
            self._logger,
            "conversation.rollback",
            LogContext(model=model_id, history_items=len(self._history)),
            level=logging.WARNING,
            error_code=self.last_result.error_code.value if self.last_result.error_code else None,
            removed=removed,
            error=self.last_result.message,
        )


def _validate(model_id: Optional[str], prompt: Optional[str]) -> None:
    require_model_id(model_id)
    require_prompt(prompt, model=model_id)


def _failure(exc: BaseException) -> CallResult:
    if isinstance(exc, (GeneratorExit, KeyboardInterrupt, CancelledError)):
        return CallResult.failure(ErrorCode.CANCELLED, str(exc) or type(exc).__name__)
    return CallResult.failure(classify_exception(exc), str(exc) or type(exc).__name__)


__all__ = ["ConversationEngine"]
