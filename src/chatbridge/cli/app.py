"""
Main Typer application for the chatbridge CLI.

This module defines the root CLI application and registers all command groups.
"""

import json
import logging
import sys
from pathlib import Path
from typing import Annotated, Optional

import typer
from pydantic import TypeAdapter, ValidationError
from rich.logging import RichHandler

from chatbridge import __version__
from chatbridge.channels.formatter import format_messages
from chatbridge.channels.models import InboundMessage
from chatbridge.channels.sanitizer import format_outbound
from chatbridge.cli.commands import channels
from chatbridge.cli.output import console, err_console, print_error

app = typer.Typer(
    name="chatbridge",
    help="Bridge chat platforms to an agent: route replies, sanitize output, render history.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    pretty_exceptions_show_locals=False,
)

_messages_adapter = TypeAdapter(list[InboundMessage])


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"chatbridge version [green]{__version__}[/green]")
        raise typer.Exit()


# noinspection PyUnusedLocal
@app.callback()
def main_callback(
    version: Annotated[
        Optional[bool],
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Log debug output to stderr.",
        ),
    ] = False,
) -> None:
    """
    [bold blue]chatbridge[/bold blue] - multi-channel chat bridge
    """
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            handlers=[RichHandler(console=err_console, show_path=False)],
        )


def _read_input(path: Optional[Path]) -> str:
    if path is None:
        return sys.stdin.read()
    try:
        return path.read_text(encoding="utf-8")
    except OSError as e:
        print_error(f"Cannot read {path}: {e}")
        raise typer.Exit(1)


@app.command()
def sanitize(
    file: Annotated[
        Optional[Path],
        typer.Argument(help="File with agent output. Reads stdin when omitted."),
    ] = None,
) -> None:
    """Strip internal blocks from agent output and print what would be sent."""
    text = format_outbound(_read_input(file))
    if text:
        console.print(text, markup=False, highlight=False, emoji=False, soft_wrap=True)


@app.command()
def transcript(
    file: Annotated[
        Optional[Path],
        typer.Argument(help="JSON array of inbound messages. Reads stdin when omitted."),
    ] = None,
) -> None:
    """Render a JSON array of messages as an agent transcript."""
    try:
        messages = _messages_adapter.validate_python(json.loads(_read_input(file)))
    except json.JSONDecodeError as e:
        print_error(f"Invalid JSON: {e}")
        raise typer.Exit(1)
    except ValidationError as e:
        print_error(f"Invalid messages: {e}")
        raise typer.Exit(1)

    console.print(format_messages(messages), markup=False, highlight=False, emoji=False, soft_wrap=True)


# Register command groups
app.add_typer(channels.app, name="channels")


if __name__ == "__main__":
    app()
