"""CLI commands for warelay."""

import asyncio
import sys
import time

import typer
from rich.console import Console
from rich.markup import escape

from warelay import __version__

app = typer.Typer(
    name="warelay",
    help="warelay - auto-reply to WhatsApp messages with a local command",
    no_args_is_help=True,
)

console = Console()


def version_callback(value: bool):
    if value:
        console.print(f"warelay v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        None, "--version", "-v", callback=version_callback, is_eager=True
    ),
):
    """warelay - WhatsApp auto-reply relay."""
    pass


def _load():
    """Load config and set up logging from it."""
    from warelay.config import load_config
    from warelay.logger import setup_logging

    config = load_config()
    setup_logging(config.logging)
    return config


def _require_reply(config) -> None:
    if config.reply is None:
        console.print("[red]Error: No reply configured.[/red]")
        console.print("Add an [cyan]inbound.reply[/cyan] section to the config file.")
        raise typer.Exit(1)


def _print_result(result) -> None:
    if result is None:
        console.print("[yellow]No reply (sender not in allowFrom).[/yellow]")
        return
    console.print(result.text, markup=False)
    if result.media_url:
        console.print(f"[dim]media:[/dim] {escape(result.media_url)}")


# ============================================================================
# Reply Command
# ============================================================================


@app.command()
def reply(
    message: str = typer.Option("", "--message", "-m", help="Message body"),
    sender: str = typer.Option("+10000000000", "--from", help="Sender address"),
    recipient: str = typer.Option("warelay", "--to", help="Recipient address"),
    media_path: str = typer.Option(None, "--media-path", help="Local attachment path"),
    media_type: str = typer.Option(None, "--media-type", help="Attachment MIME type"),
    media_url: str = typer.Option(None, "--media-url", help="Attachment URL"),
):
    """Compute the auto-reply for one message and print it."""
    from warelay.bus import MessageBus
    from warelay.relay import AutoReplyLoop

    config = _load()
    _require_reply(config)

    loop = AutoReplyLoop(MessageBus(), config)
    result = asyncio.run(
        loop.process_direct(
            message,
            sender=sender,
            recipient=recipient,
            media_path=media_path,
            media_type=media_type,
            media_url=media_url,
        )
    )
    _print_result(result)


# ============================================================================
# Chat Command
# ============================================================================


@app.command()
def chat(
    sender: str = typer.Option("+10000000000", "--from", help="Sender address"),
):
    """Talk to the configured reply pipeline interactively."""
    from warelay.bus import MessageBus
    from warelay.relay import AutoReplyLoop

    config = _load()
    _require_reply(config)

    loop = AutoReplyLoop(MessageBus(), config)
    console.print("Interactive mode (Ctrl+C to exit)\n")

    async def run_interactive():
        while True:
            try:
                user_input = console.input("[bold blue]You:[/bold blue] ")
                if not user_input.strip():
                    continue

                result = await loop.process_direct(user_input, sender=sender)
                console.print()
                _print_result(result)
                console.print()
            except (KeyboardInterrupt, EOFError):
                console.print("\nGoodbye!")
                break

    asyncio.run(run_interactive())


# ============================================================================
# Relay Command
# ============================================================================


@app.command()
def relay():
    """Answer JSON messages read line by line from stdin.

    Replies are written to stdout, one JSON object per line.
    """
    from warelay.bus import MessageBus
    from warelay.relay import AutoReplyLoop, run_stdio_relay

    config = _load()
    _require_reply(config)

    loop = AutoReplyLoop(MessageBus(), config)

    async def read_line() -> str:
        return await asyncio.to_thread(sys.stdin.readline)

    try:
        asyncio.run(run_stdio_relay(loop, read_line, typer.echo))
    except KeyboardInterrupt:
        pass


# ============================================================================
# Sessions Command
# ============================================================================


@app.command()
def sessions():
    """List stored conversation sessions."""
    from warelay.config import CommandReplyConfig
    from warelay.session import load_session_store, resolve_store_path

    config = _load()
    reply_config = config.reply
    if not isinstance(reply_config, CommandReplyConfig) or reply_config.session is None:
        console.print("[yellow]Sessions are not configured.[/yellow]")
        return

    store_path = resolve_store_path(reply_config.session.store)
    store = load_session_store(store_path)
    console.print(f"Store: {store_path}\n")

    if not store:
        console.print("[dim]No sessions yet.[/dim]")
        return

    now = time.time() * 1000
    for key, entry in sorted(store.items(), key=lambda item: -item[1].updated_at):
        idle = int((now - entry.updated_at) / 60000)
        system = "[green]yes[/green]" if entry.system_sent else "[dim]no[/dim]"
        console.print(
            f"  [cyan]{key}[/cyan]  {entry.session_id}  idle {idle}m  system sent: {system}"
        )


# ============================================================================
# Status Command
# ============================================================================


@app.command()
def status():
    """Show status and configuration."""
    from warelay.config import CommandReplyConfig, get_config_path
    from warelay.session import load_session_store, resolve_store_path

    config_path = get_config_path()
    config = _load()

    console.print("warelay Status\n")

    console.print(
        f"Config:     {config_path} "
        f"{'[green]>[/green]' if config_path.exists() else '[red]x[/red]'}"
    )

    reply_config = config.reply
    if reply_config is None:
        console.print("Reply:      [dim]not configured[/dim]")
    elif isinstance(reply_config, CommandReplyConfig):
        console.print(f"Reply:      [cyan]command[/cyan] {escape(' '.join(reply_config.command))}")
        console.print(f"Timeout:    {reply_config.timeout_seconds}s")
        if reply_config.session:
            store_path = resolve_store_path(reply_config.session.store)
            count = len(load_session_store(store_path))
            console.print(
                f"Sessions:   {reply_config.session.scope}, idle {reply_config.session.idle_minutes}m, "
                f"{count} stored"
            )
            console.print(f"Store:      {store_path}")
        else:
            console.print("Sessions:   [dim]disabled[/dim]")
    else:
        console.print("Reply:      [cyan]text[/cyan]")

    allow_from = config.inbound.allow_from
    console.print(f"Allow from: {', '.join(allow_from) if allow_from else '[dim]everyone[/dim]'}")
    console.print(
        f"Transcribe: "
        f"{'[green]enabled[/green]' if config.inbound.transcribe_audio else '[dim]disabled[/dim]'}"
    )

    if reply_config is None:
        console.print(
            f"\n[yellow]Add an [cyan]inbound.reply[/cyan] section to {config_path} to enable replies.[/yellow]"
        )


if __name__ == "__main__":
    app()
