"""Engine adapter backed by llama-cpp-python."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from loguru import logger

from llamastream.engine.base import METADATA_TENSOR, PROMPT_TENSOR, GraphOptions
from llamastream.errors import BackendError, BackendErrorKind, ModelLoadError, SessionInitError

if TYPE_CHECKING:
    from llama_cpp import Llama


class LlamaCppSession:
    """Single-token execution session over a shared ``Llama`` instance."""

    def __init__(self, llm: Llama) -> None:
        self._llm = llm
        self._prompt_tokens: list[int] = []
        self._metadata: dict[str, Any] = {}
        self._pending: int | None = None
        self._evaluated = False
        self._last_piece = b""
        self._output = bytearray()
        self._output_tokens = 0

    def set_input(self, index: int, payload: bytes) -> None:
        if index == PROMPT_TENSOR:
            self._prompt_tokens = self._llm.tokenize(payload, add_bos=True)
            self._evaluated = False
            self._pending = None
            return
        if index == METADATA_TENSOR:
            try:
                metadata = json.loads(payload)
            except ValueError as exc:
                raise BackendError(BackendErrorKind.OTHER, f"invalid metadata: {exc}") from exc
            if not isinstance(metadata, dict):
                raise BackendError(BackendErrorKind.OTHER, "metadata must be a JSON object")
            self._metadata = metadata
            return
        raise BackendError(BackendErrorKind.OTHER, f"unknown input tensor index {index}")

    def compute_step(self) -> None:
        n_ctx = self._llm.n_ctx()
        if not self._evaluated:
            if not self._prompt_tokens:
                raise BackendError(BackendErrorKind.OTHER, "prompt is empty")
            if len(self._prompt_tokens) > n_ctx:
                raise BackendError(
                    BackendErrorKind.PROMPT_TOO_LONG,
                    f"prompt has {len(self._prompt_tokens)} tokens, context holds {n_ctx}",
                )
            self._llm.reset()
            self._eval(self._prompt_tokens)
            self._evaluated = True
        elif self._pending is not None:
            if self._llm.n_tokens >= n_ctx:
                raise BackendError(BackendErrorKind.CONTEXT_FULL, f"context of {n_ctx} tokens is full")
            self._eval([self._pending])

        token = self._llm.sample()
        if token == self._llm.token_eos():
            self._pending = None
            raise BackendError(BackendErrorKind.END_OF_SEQUENCE)
        self._pending = token
        self._last_piece = self._llm.detokenize([token])
        self._output += self._last_piece
        self._output_tokens += 1

    def read_output(self, index: int, buffer: bytearray, *, single: bool) -> int:
        if index == PROMPT_TENSOR:
            data = self._last_piece if single else bytes(self._output)
        elif index == METADATA_TENSOR:
            data = json.dumps(self._report()).encode("utf-8")
        else:
            raise BackendError(BackendErrorKind.OTHER, f"unknown output tensor index {index}")
        written = min(len(data), len(buffer))
        buffer[:written] = data[:written]
        return len(data)

    def release(self) -> None:
        self._llm.reset()
        self._pending = None
        self._evaluated = False
        self._last_piece = b""
        self._output.clear()
        self._output_tokens = 0

    def _eval(self, tokens: list[int]) -> None:
        try:
            self._llm.eval(tokens)
        except RuntimeError as exc:
            raise BackendError(BackendErrorKind.OTHER, str(exc)) from exc

    def _report(self) -> dict[str, Any]:
        report: dict[str, Any] = {
            "input_tokens": len(self._prompt_tokens),
            "output_tokens": self._output_tokens,
        }
        if self._metadata:
            report["options"] = self._metadata
        return report


class LlamaCppGraph:
    def __init__(self, llm: Llama) -> None:
        self.llm = llm

    def create_session(self) -> LlamaCppSession:
        if self.llm is None:
            raise SessionInitError("graph has no loaded model")
        return LlamaCppSession(self.llm)


class LlamaCppEngine:
    """Loads GGUF models with llama-cpp-python."""

    def load_graph(self, model: str, options: GraphOptions) -> LlamaCppGraph:
        # Import here to make llama-cpp-python optional
        try:
            from llama_cpp import Llama
        except ImportError as exc:
            raise ModelLoadError("llama-cpp-python is not installed; install the 'llama' extra") from exc

        logger.info(
            "engine.load model={} ctx_size={} gpu_layers={}", model, options.context_size, options.gpu_layers
        )
        try:
            llm = Llama(
                model_path=model,
                n_ctx=options.context_size,
                n_gpu_layers=options.gpu_layers,
                verbose=options.enable_log,
            )
        except (OSError, RuntimeError, ValueError) as exc:
            raise ModelLoadError(f"failed to load model {model!r}: {exc}") from exc
        return LlamaCppGraph(llm)
