"""CLI renderer for llamastream."""

from __future__ import annotations

from typing import Any

from prompt_toolkit import PromptSession
from rich.console import Console
from rich.markup import escape


class Renderer:
    """CLI renderer using Rich for terminal output."""

    def __init__(self, console: Console | None = None) -> None:
        self.console: Console = console or Console()
        self._prompt_session: PromptSession[str] | None = None

    def question(self) -> None:
        self._print("Question:")

    def answer(self) -> None:
        self._print("Answer:")

    def end_answer(self) -> None:
        self._print("")

    def stream_token(self, text: str) -> None:
        """Write one token and flush so it is visible before the next step."""
        self.console.file.write(text)
        self.console.file.flush()

    def notice(self, message: str) -> None:
        """Render a recoverable backend notice on a fresh line."""
        self._print(f"\n{message}", style="yellow")

    def failure(self, message: str) -> None:
        """Render a backend step error on a fresh line."""
        self._print(f"\n{message}", style="red")

    def info(self, message: str) -> None:
        self._print(message)

    def error(self, message: str) -> None:
        """Render a fatal error message."""
        self.console.print(f"[bold red]Error:[/bold red] {escape(message)}")

    def usage_info(self, model: str, ctx_size: int, gpu_layers: int) -> None:
        self.console.print(f"[bold]Model:[/bold] [magenta]{escape(model)}[/magenta]")
        self.console.print(f"[bold]Context size:[/bold] [cyan]{ctx_size}[/cyan] [bold]GPU layers:[/bold] {gpu_layers}")

    def metadata(self, metadata: dict[str, Any]) -> None:
        """Render per-turn token counts reported by the backend."""
        for key in ("input_tokens", "output_tokens"):
            if key in metadata:
                self._print(f"[INFO] {key.replace('_', ' ').capitalize()}: {metadata[key]}", style="dim")

    def get_user_input(self) -> str:
        """Read one line from the terminal."""
        if self._prompt_session is None:
            self._prompt_session = PromptSession()
        return self._prompt_session.prompt("")

    def _print(self, message: str, *, style: str | None = None) -> None:
        self.console.print(message, style=style, markup=False, highlight=False, emoji=False)


def create_cli_renderer() -> Renderer:
    """Create and return a Renderer instance."""
    return Renderer()
