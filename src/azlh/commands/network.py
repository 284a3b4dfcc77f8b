"""Network CLI commands."""

import click

from azlh.click_group import AzlhGroup
from azlh.commands.cli_helpers import console, get_config, handle_errors
from azlh.formatting import public_ip_table
from azlh.network import NetworkManager


@click.group(name="network", cls=AzlhGroup)
def network_group():
    """Inspect network resources."""
    pass


@network_group.command(name="public-ip-list")
@click.pass_context
@handle_errors
def list_public_ips(ctx: click.Context):
    """List public IP addresses whose name starts with AZLH_PREFIX."""
    config = get_config(ctx)
    config.require("prefix")

    ips = NetworkManager.list_public_ips(config.prefix)
    if not ips:
        click.echo(f"No public IPs found with prefix '{config.prefix}'.")
        return

    console.print(public_ip_table(ips))
