"""Interactive chat loop."""

from __future__ import annotations

from typing import Callable, Protocol

from loguru import logger

from llamastream.core.conversation import Conversation


class ChatRenderer(Protocol):
    def question(self) -> None: ...

    def answer(self) -> None: ...

    def end_answer(self) -> None: ...

    def info(self, message: str) -> None: ...

    def metadata(self, metadata: dict) -> None: ...

    def get_user_input(self) -> str: ...


def read_input(read_line: Callable[[], str]) -> str:
    """Read lines until one is not blank, and return it trimmed."""
    while True:
        line = read_line()
        if line.strip():
            return line.strip()


def run_chat(conversation: Conversation, renderer: ChatRenderer, *, show_metadata: bool = False) -> None:
    while True:
        renderer.question()
        try:
            user_input = read_input(renderer.get_user_input)
        except (KeyboardInterrupt, EOFError):
            logger.info("chat.end turns={}", conversation.turns)
            renderer.info("Goodbye!")
            return
        renderer.answer()
        result = conversation.turn(user_input)
        renderer.end_answer()
        if show_metadata and result.metadata:
            renderer.metadata(result.metadata)
