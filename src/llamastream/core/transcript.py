"""Conversation transcript in the Llama-2 chat template."""

from __future__ import annotations

DEFAULT_SYSTEM_PROMPT = (
    "You are a helpful, respectful and honest assistant. Always answer as short as possible, while being safe."
)
INST_OPEN = "[INST]"
INST_CLOSE = "[/INST]"


def system_preamble(system_prompt: str) -> str:
    return f"<<SYS>> {system_prompt} <</SYS>> "


SYSTEM_PREAMBLE = system_preamble(DEFAULT_SYSTEM_PROMPT)


class Transcript:
    """Accumulated prompt text submitted to the model on every turn.

    An empty transcript means the system preamble has not been emitted yet.
    The text only ever grows by whole turns or is cleared in full.
    """

    def __init__(self, system_prompt: str = DEFAULT_SYSTEM_PROMPT) -> None:
        self.preamble = system_preamble(system_prompt.strip())
        self._text = ""

    @property
    def text(self) -> str:
        return self._text

    def append_user_turn(self, text: str) -> None:
        if not self._text:
            self._text = f"{self.preamble}{INST_OPEN} {text} {INST_CLOSE}"
            return
        self._text = f"{self._text} {INST_OPEN} {text} {INST_CLOSE}"

    def append_reply(self, text: str) -> None:
        self._text = f"{self._text} {text}"

    def reset(self) -> None:
        self._text = ""

    def as_bytes(self) -> bytes:
        return self._text.encode("utf-8")

    def __str__(self) -> str:
        return self._text

    def __len__(self) -> int:
        return len(self._text)

    def __bool__(self) -> bool:
        return bool(self._text)
