"""One conversation over a growing transcript."""

from __future__ import annotations

from contextvars import ContextVar

from loguru import logger

from llamastream.core.generation import GenerationLoop
from llamastream.core.transcript import Transcript
from llamastream.core.types import TurnResult

_turn_context: ContextVar[int] = ContextVar("turn")


def current_turn() -> str:
    """Get the number of the turn in progress, for log records."""
    turn = _turn_context.get(None)
    if turn is None:
        return "-"
    return str(turn)


class Conversation:
    """Appends user turns and replies, resetting the transcript on overflow."""

    def __init__(self, transcript: Transcript, loop: GenerationLoop) -> None:
        self.transcript = transcript
        self._loop = loop
        self._turns = 0

    @property
    def turns(self) -> int:
        return self._turns

    def turn(self, text: str) -> TurnResult:
        self._turns += 1
        reset_token = _turn_context.set(self._turns)
        try:
            return self._run_turn(text)
        finally:
            _turn_context.reset(reset_token)

    def reset(self) -> None:
        self.transcript.reset()
        logger.info("conversation.reset")

    def _run_turn(self, text: str) -> TurnResult:
        self.transcript.append_user_turn(text)
        prompt = self.transcript.text
        result = self._loop.run(self.transcript.as_bytes())

        reply = result.text.strip()
        if result.overflow:
            self.reset()
        else:
            self.transcript.append_reply(reply)
        return TurnResult(
            prompt=prompt,
            reply=reply,
            overflow=result.overflow,
            error=result.error,
            tokens=result.tokens,
            metadata=result.metadata,
        )
