"""Capability interface of the inference engine."""

from __future__ import annotations

from typing import Protocol

from pydantic import BaseModel, ConfigDict, Field

PROMPT_TENSOR = 0
METADATA_TENSOR = 1


class GraphOptions(BaseModel):
    """Options passed to the backend when a graph is built.

    The backend expects the hyphenated keys, so serialization goes through
    the field aliases.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    enable_log: bool = Field(default=False, alias="enable-log")
    gpu_layers: int = Field(default=0, ge=0, alias="n-gpu-layers")
    context_size: int = Field(default=512, gt=0, alias="ctx-size")

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)


class Session(Protocol):
    """One execution context bound to a loaded graph.

    ``compute_step`` raises ``BackendError`` for every non-success signal,
    including end-of-sequence.
    """

    def set_input(self, index: int, payload: bytes) -> None: ...

    def compute_step(self) -> None: ...

    def read_output(self, index: int, buffer: bytearray, *, single: bool) -> int: ...

    def release(self) -> None: ...


class Graph(Protocol):
    def create_session(self) -> Session: ...


class Engine(Protocol):
    def load_graph(self, model: str, options: GraphOptions) -> Graph: ...
