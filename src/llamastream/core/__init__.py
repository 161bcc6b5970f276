from llamastream.core.conversation import Conversation
from llamastream.core.generation import GenerationLoop
from llamastream.core.transcript import Transcript

__all__ = ["Conversation", "GenerationLoop", "Transcript"]
