from __future__ import annotations

import json
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, TypeAlias

import pytest

from llamastream.errors import BackendError, BackendErrorKind

Step: TypeAlias = str | bytes | BackendError


def signal(kind: BackendErrorKind, message: str = "") -> BackendError:
    return BackendError(kind, message)


@dataclass
class FakeSession:
    steps: list[Step]
    log: list[str]
    metadata: dict[str, Any] = field(default_factory=dict)
    reject_input: bool = False
    inputs: dict[int, bytes] = field(default_factory=dict)
    released: int = 0
    _current: bytes = b""

    def set_input(self, index: int, payload: bytes) -> None:
        self.log.append(f"set_input:{index}")
        if self.reject_input:
            raise BackendError(BackendErrorKind.OTHER, "invalid tensor shape")
        self.inputs[index] = payload

    def compute_step(self) -> None:
        self.log.append("compute")
        step = self.steps.pop(0) if self.steps else BackendError(BackendErrorKind.END_OF_SEQUENCE)
        if isinstance(step, BackendError):
            raise step
        self._current = step.encode("utf-8") if isinstance(step, str) else step

    def read_output(self, index: int, buffer: bytearray, *, single: bool) -> int:
        self.log.append(f"read:{index}")
        data = self._current if index == 0 else json.dumps(self.metadata).encode("utf-8")
        written = min(len(data), len(buffer))
        buffer[:written] = data[:written]
        return len(data)

    def release(self) -> None:
        self.released += 1
        self.log.append("release")


@dataclass
class FakeGraph:
    """Hands out one scripted session per turn."""

    scripts: list[list[Step]]
    log: list[str] = field(default_factory=list)
    sessions: list[FakeSession] = field(default_factory=list)
    metadata: dict[str, Any] = field(default_factory=dict)
    reject_input: bool = False

    def create_session(self) -> FakeSession:
        steps = list(self.scripts.pop(0)) if self.scripts else []
        session = FakeSession(steps, self.log, metadata=self.metadata, reject_input=self.reject_input)
        self.sessions.append(session)
        return session

    @property
    def released(self) -> int:
        return sum(session.released for session in self.sessions)


@dataclass
class FakeEngine:
    graph: FakeGraph
    loaded: list[tuple[str, Any]] = field(default_factory=list)
    error: Exception | None = None

    def load_graph(self, model: str, options: Any) -> FakeGraph:
        self.loaded.append((model, options))
        if self.error is not None:
            raise self.error
        return self.graph


@dataclass
class RecordingOutput:
    log: list[str]
    tokens: list[str] = field(default_factory=list)
    notices: list[str] = field(default_factory=list)
    failures: list[str] = field(default_factory=list)

    def stream_token(self, text: str) -> None:
        self.tokens.append(text)
        self.log.append(f"token:{text}")

    def notice(self, message: str) -> None:
        self.notices.append(message)
        self.log.append("notice")

    def failure(self, message: str) -> None:
        self.failures.append(message)
        self.log.append("failure")


@pytest.fixture
def make_graph() -> Callable[..., FakeGraph]:
    def _make(*scripts: list[Step], **kwargs: Any) -> FakeGraph:
        return FakeGraph(list(scripts), **kwargs)

    return _make


@pytest.fixture
def make_output() -> Callable[[FakeGraph], RecordingOutput]:
    def _make(graph: FakeGraph) -> RecordingOutput:
        return RecordingOutput(graph.log)

    return _make


@pytest.fixture
def make_engine() -> Callable[..., FakeEngine]:
    def _make(graph: FakeGraph, error: Exception | None = None) -> FakeEngine:
        return FakeEngine(graph, error=error)

    return _make


@pytest.fixture
def eos() -> BackendError:
    return signal(BackendErrorKind.END_OF_SEQUENCE)


@pytest.fixture
def context_full() -> BackendError:
    return signal(BackendErrorKind.CONTEXT_FULL, "context is full")


@pytest.fixture
def prompt_too_long() -> BackendError:
    return signal(BackendErrorKind.PROMPT_TOO_LONG, "prompt is too long")
