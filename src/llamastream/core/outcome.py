"""Outcome of one generation step."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TypeAlias

from llamastream.errors import BackendError, BackendErrorKind

CONTEXT_FULL_NOTICE = "[INFO] Context full, we'll reset the context and continue."
PROMPT_TOO_LONG_NOTICE = "[INFO] Prompt too long, we'll reset the context and continue."


@dataclass(frozen=True)
class Token:
    text: str


@dataclass(frozen=True)
class EndOfSequence:
    pass


@dataclass(frozen=True)
class ContextOverflow:
    pass


@dataclass(frozen=True)
class PromptTooLong:
    pass


@dataclass(frozen=True)
class Failure:
    message: str


Outcome: TypeAlias = Token | EndOfSequence | ContextOverflow | PromptTooLong | Failure


def classify_signal(error: BackendError) -> Outcome:
    """Map a backend signal raised by a compute step to an outcome."""
    match error.kind:
        case BackendErrorKind.END_OF_SEQUENCE:
            return EndOfSequence()
        case BackendErrorKind.CONTEXT_FULL:
            return ContextOverflow()
        case BackendErrorKind.PROMPT_TOO_LONG:
            return PromptTooLong()
        case _:
            return Failure(error.message)


def is_overflow(outcome: Outcome) -> bool:
    return isinstance(outcome, (ContextOverflow, PromptTooLong))
