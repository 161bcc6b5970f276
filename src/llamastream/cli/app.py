"""CLI main module for llamastream."""

from __future__ import annotations

from typing import Optional

import typer
from loguru import logger

from llamastream.cli.live import run_chat
from llamastream.cli.render import Renderer, create_cli_renderer
from llamastream.config import Settings, get_settings
from llamastream.core.conversation import Conversation
from llamastream.core.generation import GenerationLoop
from llamastream.core.transcript import Transcript
from llamastream.engine.base import Engine
from llamastream.engine.llama import LlamaCppEngine
from llamastream.errors import LlamaStreamError
from llamastream.logging_utils import configure_logging

app = typer.Typer(
    name="llamastream",
    help="Stream chat replies from a local model, one token at a time.",
    add_completion=False,
)


def create_engine() -> Engine:
    return LlamaCppEngine()


def _create_conversation(engine: Engine, model: str, settings: Settings, renderer: Renderer) -> Conversation:
    options = settings.graph_options()
    graph = engine.load_graph(model, options)
    loop = GenerationLoop(
        graph,
        renderer,
        metadata_payload=options.to_json().encode("utf-8") if settings.metadata_input else None,
        collect_metadata=settings.show_metadata,
    )
    return Conversation(Transcript(settings.system_prompt), loop)


@app.command()
def chat(
    model: str = typer.Argument(..., help="Model to load, e.g. a path to a GGUF file."),
    ctx_size: Optional[int] = typer.Option(None, "--ctx-size", min=1, help="Context window size in tokens."),
    n_gpu_layers: Optional[int] = typer.Option(None, "--n-gpu-layers", min=0, help="Layers to offload to the GPU."),
    enable_log: Optional[bool] = typer.Option(None, "--enable-log/--no-enable-log", help="Verbose backend logging."),
    system_prompt: Optional[str] = typer.Option(None, "--system-prompt", help="Override the system prompt."),
    metadata_input: Optional[bool] = typer.Option(
        None, "--metadata-input/--no-metadata-input", help="Also pass options through input tensor 1."
    ),
    show_metadata: Optional[bool] = typer.Option(
        None, "--show-metadata/--no-show-metadata", help="Report token counts after each turn."
    ),
) -> None:
    """Start an interactive chat with MODEL."""
    renderer = create_cli_renderer()
    try:
        settings = get_settings(
            ctx_size=ctx_size,
            n_gpu_layers=n_gpu_layers,
            enable_log=enable_log,
            system_prompt=system_prompt,
            metadata_input=metadata_input,
            show_metadata=show_metadata,
        )
        configure_logging(profile="chat", level=settings.log_level)
        conversation = _create_conversation(create_engine(), model, settings, renderer)
        renderer.usage_info(model, settings.ctx_size, settings.n_gpu_layers)
        run_chat(conversation, renderer, show_metadata=settings.show_metadata)
    except LlamaStreamError as exc:
        logger.error("chat.fatal error={}", exc)
        renderer.error(str(exc))
        raise typer.Exit(1) from exc


if __name__ == "__main__":
    app()
