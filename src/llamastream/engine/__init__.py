"""Inference engine boundary."""

from llamastream.engine.base import METADATA_TENSOR, PROMPT_TENSOR, Engine, Graph, GraphOptions, Session

__all__ = ["METADATA_TENSOR", "PROMPT_TENSOR", "Engine", "Graph", "GraphOptions", "Session"]
