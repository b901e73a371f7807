"""CLI command modules."""

from chatbridge.cli.commands import channels

__all__ = ["channels"]
