"""Shared helper functions for CLI commands."""

import functools
import logging
import sys
from collections.abc import Callable
from typing import Any

import click
from rich.console import Console

from azlh.config_manager import AzlhConfig
from azlh.exceptions import AzlhError, MissingArgumentError

logger = logging.getLogger(__name__)

console = Console()


def get_config(ctx: click.Context) -> AzlhConfig:
    """Configuration loaded once by the root command."""
    obj = ctx.find_root().obj or {}
    config = obj.get("config")
    if config is None:
        # Commands invoked without the root group (e.g. in isolation)
        config = AzlhConfig()
    return config


def handle_errors(func: Callable[..., Any]) -> Callable[..., Any]:
    """Report azlh errors the way operators expect and exit non-zero.

    Missing positional arguments print the numbered parameter list;
    everything else prints "Error: <message>" on stderr.
    """

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except MissingArgumentError as e:
            click.echo(str(e))
            sys.exit(e.exit_code)
        except AzlhError as e:
            logger.debug("Command failed", exc_info=True)
            click.echo(f"Error: {e}", err=True)
            sys.exit(e.exit_code)

    return wrapper


__all__ = ["console", "get_config", "handle_errors"]
