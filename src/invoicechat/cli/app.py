"""CLI main module for invoicechat."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Optional

import typer
from loguru import logger

from invoicechat.cli.render import Renderer, TranscriptView
from invoicechat.config import Settings, load_settings
from invoicechat.core.session import SessionController
from invoicechat.errors import InvoiceChatError
from invoicechat.logging_utils import configure_logging
from invoicechat.transport.base import ChatTransport
from invoicechat.transport.http import HttpChatTransport
from invoicechat.transport.replay import DEFAULT_CHUNK_SIZE, ReplayTransport

EXIT_COMMANDS = frozenset({"quit", "exit", "q"})

app = typer.Typer(
    name="invoicechat",
    help="Chat with an invoice assistant and see tool results in a side panel.",
    add_completion=False,
    rich_markup_mode="rich",
)


def build_controller(settings: Settings, transport: ChatTransport, renderer: Renderer) -> SessionController:
    controller = SessionController(
        transport,
        on_structured_result=renderer.structured_result,
        on_turn_end=renderer.console.line,
        reveal_interval=settings.reveal_interval_seconds,
        confirmation_message=settings.confirmation_message,
    )
    TranscriptView(renderer).attach(controller.transcript)
    return controller


async def _chat_loop(controller: SessionController, renderer: Renderer) -> None:
    while True:
        await controller.wait_idle()
        try:
            user_input = await renderer.get_user_input()
        except (KeyboardInterrupt, EOFError):
            renderer.info("Goodbye!")
            return
        if user_input.strip().lower() in EXIT_COMMANDS:
            renderer.info("Goodbye!")
            return
        await controller.submit(user_input)


@app.command()
def chat(
    url: Optional[str] = typer.Option(None, help="Streaming chat endpoint URL."),
    timeout: Optional[float] = typer.Option(None, help="Request timeout in seconds."),
) -> None:
    """Start an interactive invoice chat."""
    try:
        settings = load_settings(chat_url=url, request_timeout_seconds=timeout)
    except InvoiceChatError as exc:
        Renderer().error(str(exc))
        raise typer.Exit(1) from exc

    configure_logging(profile="chat", level=settings.log_level)
    renderer = Renderer()
    transport = HttpChatTransport(settings.chat_url, timeout=settings.request_timeout_seconds)
    controller = build_controller(settings, transport, renderer)
    renderer.welcome(settings.chat_url)
    asyncio.run(_chat_loop(controller, renderer))


async def _replay(controller: SessionController, renderer: Renderer, prompt: str) -> None:
    renderer.info(f"[bold cyan]You:[/bold cyan] {prompt}")
    outcome = await controller.submit(prompt)
    await controller.wait_idle()
    if outcome is not None:
        logger.info("replay.outcome state={} disposition={}", outcome.state.value, outcome.disposition.value)


@app.command()
def replay(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="Recorded response stream."),
    prompt: str = typer.Option("show my invoices", help="User input the stream answers."),
    chunk_size: int = typer.Option(DEFAULT_CHUNK_SIZE, min=1, help="Characters per replayed chunk."),
) -> None:
    """Feed a recorded response stream through the interpreter."""
    try:
        settings = load_settings()
        transport = ReplayTransport.from_file(path, chunk_size=chunk_size)
    except InvoiceChatError as exc:
        Renderer().error(str(exc))
        raise typer.Exit(1) from exc

    configure_logging(profile="chat", level=settings.log_level)
    renderer = Renderer()
    controller = build_controller(settings, transport, renderer)
    asyncio.run(_replay(controller, renderer, prompt))
