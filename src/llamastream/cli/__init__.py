"""Interactive command line interface."""

from .live import read_input, run_chat
from .render import Renderer

__all__ = [
    "Renderer",
    "read_input",
    "run_chat",
]
