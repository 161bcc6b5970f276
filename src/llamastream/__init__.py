"""llamastream - stream chat replies from a local model."""

from .core import Conversation, GenerationLoop, Transcript

__version__ = "0.1.0"

__all__ = ["Conversation", "GenerationLoop", "Transcript"]
