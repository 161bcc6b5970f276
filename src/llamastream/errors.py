"""Application-level exception types for llamastream."""

from __future__ import annotations

from enum import Enum


class LlamaStreamError(Exception):
    """Base exception for llamastream."""


class ConfigurationError(LlamaStreamError):
    """Base exception for configuration and startup validation errors."""


class EngineError(LlamaStreamError):
    """Base exception for fatal inference engine setup errors."""


class ModelLoadError(EngineError):
    """Raised when the engine cannot load the requested model graph."""


class SessionInitError(EngineError):
    """Raised when the engine cannot create an execution session."""


class InputRejectedError(EngineError):
    """Raised when the engine rejects an input tensor submission."""


class BackendErrorKind(Enum):
    END_OF_SEQUENCE = "end_of_sequence"
    CONTEXT_FULL = "context_full"
    PROMPT_TOO_LONG = "prompt_too_long"
    OTHER = "other"


class BackendError(LlamaStreamError):
    """Signal raised by an engine session call."""

    def __init__(self, kind: BackendErrorKind, message: str = "") -> None:
        self.kind = kind
        self.message = message or kind.value
        super().__init__(self.message)

    def __str__(self) -> str:
        return f"{self.kind.value}: {self.message}"
