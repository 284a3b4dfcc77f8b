"""Custom Click group with automatic help display on errors.

This module provides a custom Click Group class that automatically
displays contextual help when syntax errors occur.
"""

import sys
from typing import Any

import click

USAGE_ERRORS = (
    click.exceptions.UsageError,
    click.exceptions.BadParameter,
    click.exceptions.MissingParameter,
)


class AzlhGroup(click.Group):
    """Click group that shows the failing command's help on usage errors."""

    def main(self, *args: Any, **kwargs: Any) -> Any:
        """Override main to auto-display help on errors."""
        try:
            return super().main(*args, **kwargs)
        except USAGE_ERRORS as e:
            click.echo(f"Error: {e.format_message()}", err=True)

            ctx = e.ctx if hasattr(e, "ctx") and e.ctx else None
            if ctx:
                click.echo("")
                click.echo(ctx.get_help())
                # ctx.exit() keeps Click's testing mode working
                ctx.exit(e.exit_code if hasattr(e, "exit_code") else 1)
                return None
            sys.exit(e.exit_code if hasattr(e, "exit_code") else 1)
            return None

    def invoke(self, ctx: click.Context) -> Any:
        """Handle usage errors raised by subcommands with auto-help."""
        try:
            return super().invoke(ctx)
        except USAGE_ERRORS as e:
            click.echo(f"Error: {e.format_message()}", err=True)

            # Most specific context: the subcommand's, if available
            error_ctx = e.ctx if hasattr(e, "ctx") and e.ctx else ctx

            click.echo("")
            click.echo(error_ctx.get_help())
            error_ctx.exit(e.exit_code if hasattr(e, "exit_code") else 1)


__all__ = ["AzlhGroup"]
