"""
chatbridge channels - Manage chat channels.

Usage:
    chatbridge channels list
    chatbridge channels send JID TEXT
    chatbridge channels run
"""

import asyncio
from typing import Annotated, Optional

import typer
from rich.markup import escape
from rich.table import Table

from chatbridge.audit import get_audit_logger
from chatbridge.channels.errors import ChannelConnectionError, NoChannelError
from chatbridge.channels.models import ChatMetadata, InboundMessage, split_jid
from chatbridge.channels.protocol import Channel, OnChatMetadata, OnChatName, OnInboundMessage
from chatbridge.channels.router import ChannelRouter
from chatbridge.config import Config, ConfigurationError, get_config, resolve_env_reference
from chatbridge.cli.output import console, print_error, print_success, print_warning

app = typer.Typer(
    name="channels",
    help="Manage chat channel adapters.",
    no_args_is_help=True,
)


def _noop(*args, **kwargs) -> None:
    pass


def _load_config() -> Config:
    try:
        return get_config()
    except ConfigurationError as e:
        print_error(str(e))
        raise typer.Exit(1)


def build_channels(
    config: Config,
    on_message: OnInboundMessage = _noop,
    on_chat_metadata: OnChatMetadata = _noop,
    on_chat_name: Optional[OnChatName] = None,
) -> list[Channel]:
    """Create channel adapters for every enabled and configured channel.

    Args:
        config: Chatbridge configuration
        on_message: Inbound message callback
        on_chat_metadata: Chat discovery callback
        on_chat_name: Optional channel name callback

    Returns:
        Channels in registration order
    """
    channels: list[Channel] = []

    slack = config.channels.slack
    if slack.enable:
        bot_token = resolve_env_reference(slack.bot_token)
        app_token = resolve_env_reference(slack.app_token)
        if bot_token and app_token:
            from chatbridge.channels.adapters.slack import SlackChannel

            channels.append(
                SlackChannel(
                    on_message=on_message,
                    on_chat_metadata=on_chat_metadata,
                    registered_groups=config.registered_groups,
                    bot_token=bot_token,
                    app_token=app_token,
                    assistant_name=config.general.assistant_name,
                    groups_dir=config.general.groups_dir,
                    on_chat_name=on_chat_name,
                    sync_on_connect=slack.sync_on_connect,
                    sync_limit=slack.sync_limit,
                    download_files=slack.download_files,
                    attachment_mount=slack.attachment_mount,
                )
            )
        else:
            print_warning("Slack enabled but bot_token/app_token not configured")

    return channels


def _build_router(config: Config, channels: list[Channel]) -> ChannelRouter:
    router = ChannelRouter(audit_logger=get_audit_logger(config.audit))
    for channel in channels:
        router.register(channel)
    return router


@app.command("list")
def list_channels() -> None:
    """List known channels and their configuration status."""
    config = _load_config()

    table = Table(title="Channels")
    table.add_column("Channel", style="cyan")
    table.add_column("Status", style="bold")
    table.add_column("Mode", style="dim")
    table.add_column("Configuration", style="dim")

    slack = config.channels.slack
    if slack.enable:
        status = "[green]Enabled[/green]"
        configured = resolve_env_reference(slack.bot_token) and resolve_env_reference(slack.app_token)
        config_status = "[green]✓ Configured[/green]" if configured else "[yellow]⚠ Missing token[/yellow]"
    else:
        status = "[dim]Disabled[/dim]"
        config_status = "[dim]Not enabled[/dim]"
    table.add_row("slack", status, "Socket Mode", config_status)

    console.print(table)
    console.print(f"\n[dim]Registered groups: {len(config.groups)}[/dim]")


async def _send(config: Config, jid: str, text: str) -> bool:
    channels = build_channels(config)
    if not channels:
        print_error("No channels configured")
        raise typer.Exit(1)

    router = _build_router(config, channels)
    try:
        await router.connect_all()
        return await router.send(jid, text)
    finally:
        await router.disconnect_all()
        get_audit_logger().flush()


@app.command()
def send(
    jid: Annotated[str, typer.Argument(help="Destination, e.g. slack:C12345")],
    text: Annotated[str, typer.Argument(help="Message text; internal blocks are stripped")],
) -> None:
    """Send one message through the channel that owns JID."""
    config = _load_config()

    try:
        sent = asyncio.run(_send(config, jid, text))
    except NoChannelError as e:
        print_error(str(e))
        raise typer.Exit(1)
    except ChannelConnectionError as e:
        print_error(f"Connection failed: {e}")
        raise typer.Exit(1)

    if sent:
        print_success(f"Sent to {jid}")
    else:
        print_warning("Nothing to send after sanitization")


def _print_message(jid: str, message: InboundMessage) -> None:
    console.print(f"[cyan]{jid}[/cyan] | [bold]{escape(message.sender_name)}:[/bold] {escape(message.content[:80])}")
    get_audit_logger().log_message_received(split_jid(jid)[0], jid, message.sender, message.content)


def _print_metadata(jid: str, timestamp: str, name: Optional[str], channel: str, is_group: bool) -> None:
    meta = ChatMetadata(chat_jid=jid, timestamp=timestamp, name=name, channel=channel, is_group=is_group)
    kind = "group" if meta.is_group else "direct"
    label = f" ({escape(meta.name)})" if meta.name else ""
    console.print(f"[dim]{meta.timestamp} seen {kind} chat {meta.chat_jid}{label} on {meta.channel}[/dim]")


def _print_chat_name(jid: str, name: str) -> None:
    console.print(f"[dim]{jid} is {escape(name)}[/dim]")


async def _run(config: Config) -> None:
    channels = build_channels(config, _print_message, _print_metadata, _print_chat_name)
    if not channels:
        print_error("No channels configured")
        raise typer.Exit(1)

    router = _build_router(config, channels)
    try:
        await router.connect_all()
        connected = [name for name, ok in router.status().items() if ok]
        print_success(f"Listening on {', '.join(connected)}. Press Ctrl+C to stop")
        await asyncio.Event().wait()
    finally:
        await router.disconnect_all()
        get_audit_logger().flush()


@app.command()
def run() -> None:
    """Connect all configured channels and print inbound traffic."""
    config = _load_config()

    try:
        asyncio.run(_run(config))
    except KeyboardInterrupt:
        console.print("\n[yellow]Stopped by user[/yellow]")
    except ChannelConnectionError as e:
        print_error(f"Connection failed: {e}")
        raise typer.Exit(1)
