"""Token-at-a-time generation loop."""

from __future__ import annotations

import contextlib
import json
from collections.abc import Generator
from typing import Any, Protocol

from loguru import logger

from llamastream.core.outcome import (
    CONTEXT_FULL_NOTICE,
    PROMPT_TOO_LONG_NOTICE,
    ContextOverflow,
    EndOfSequence,
    Failure,
    Outcome,
    PromptTooLong,
    Token,
    classify_signal,
    is_overflow,
)
from llamastream.core.types import GenerationResult
from llamastream.engine.base import METADATA_TENSOR, PROMPT_TENSOR, Graph, Session
from llamastream.errors import BackendError, InputRejectedError

# Room for 4096 tokens of 6 bytes on average. Longer tokens are truncated.
MAX_OUTPUT_BUFFER_SIZE = 4096 * 6


class StreamOutput(Protocol):
    """Where the loop sends tokens and notices."""

    def stream_token(self, text: str) -> None: ...

    def notice(self, message: str) -> None: ...

    def failure(self, message: str) -> None: ...


@contextlib.contextmanager
def open_session(graph: Graph) -> Generator[Session, None, None]:
    """Create a session and release it on every exit path."""
    session = graph.create_session()
    try:
        yield session
    finally:
        session.release()
        logger.debug("generation.session.released")


def read_output_text(session: Session, buffer: bytearray, *, index: int = PROMPT_TENSOR, single: bool = True) -> str:
    size = min(len(buffer), session.read_output(index, buffer, single=single))
    return bytes(buffer[:size]).decode("utf-8", errors="replace")


class GenerationLoop:
    """Runs one engine session per turn and streams its tokens."""

    def __init__(
        self,
        graph: Graph,
        output: StreamOutput,
        *,
        metadata_payload: bytes | None = None,
        collect_metadata: bool = False,
        buffer_size: int = MAX_OUTPUT_BUFFER_SIZE,
    ) -> None:
        self._graph = graph
        self._output = output
        self._metadata_payload = metadata_payload
        self._collect_metadata = collect_metadata
        self._buffer_size = buffer_size

    def run(self, prompt: bytes) -> GenerationResult:
        buffer = bytearray(self._buffer_size)
        parts: list[str] = []
        overflow = False
        error: str | None = None
        metadata: dict[str, Any] = {}

        with open_session(self._graph) as session:
            self._submit(session, prompt)
            logger.debug("generation.start prompt_bytes={}", len(prompt))
            while True:
                outcome = self._step(session, buffer)
                match outcome:
                    case Token(text=text):
                        self._output.stream_token(text)
                        parts.append(text)
                        continue
                    case EndOfSequence():
                        pass
                    case ContextOverflow():
                        self._output.notice(CONTEXT_FULL_NOTICE)
                    case PromptTooLong():
                        self._output.notice(PROMPT_TOO_LONG_NOTICE)
                    case Failure(message=message):
                        self._output.failure(f"[ERROR] {message}")
                        error = message
                overflow = is_overflow(outcome)
                break
            if self._collect_metadata:
                metadata = self._read_metadata(session, buffer)

        logger.debug("generation.finish tokens={} overflow={} error={}", len(parts), overflow, error)
        return GenerationResult(
            text="".join(parts),
            overflow=overflow,
            error=error,
            tokens=len(parts),
            metadata=metadata,
        )

    def _submit(self, session: Session, prompt: bytes) -> None:
        try:
            if self._metadata_payload is not None:
                session.set_input(METADATA_TENSOR, self._metadata_payload)
            session.set_input(PROMPT_TENSOR, prompt)
        except BackendError as exc:
            raise InputRejectedError(f"engine rejected input: {exc}") from exc

    def _step(self, session: Session, buffer: bytearray) -> Outcome:
        try:
            session.compute_step()
            return Token(read_output_text(session, buffer))
        except BackendError as exc:
            outcome = classify_signal(exc)
            if not isinstance(outcome, EndOfSequence):
                logger.warning("generation.step.signal kind={} message={}", exc.kind.value, exc.message)
            return outcome

    def _read_metadata(self, session: Session, buffer: bytearray) -> dict[str, Any]:
        try:
            raw = read_output_text(session, buffer, index=METADATA_TENSOR, single=False)
            metadata = json.loads(raw)
        except (BackendError, ValueError) as exc:
            logger.warning("generation.metadata.error error={}", exc)
            return {}
        return metadata if isinstance(metadata, dict) else {}
