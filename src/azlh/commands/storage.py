"""Storage account CLI commands."""

import click

from azlh.click_group import AzlhGroup
from azlh.commands.cli_helpers import get_config, handle_errors
from azlh.storage import StorageManager


@click.group(name="storage", cls=AzlhGroup)
def storage_group():
    """Manage storage accounts.

    \b
    EXAMPLES:
        $ azlh storage create myvm20261019174000
    """
    pass


@storage_group.command(name="create")
@click.argument("name", required=False)
@click.pass_context
@handle_errors
def create_storage(ctx: click.Context, name: str | None):
    """Create StorageV2 account NAME in the resource group of the same name.

    NAME is lower-cased first; Azure account names must be 3-24 lowercase
    letters and numbers.
    """
    config = get_config(ctx)
    account = StorageManager.create_storage_account(name, config.region)
    click.echo(f"Created storage account: {account}")
