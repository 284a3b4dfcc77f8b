"""CLI entry point for azlh.

Commands:
    azlh group ...     # Resource group lifecycle
    azlh vm ...        # VM provisioning, SSH/SCP, package installs
    azlh storage ...   # Storage accounts
    azlh network ...   # Public IPs
    azlh image ...     # Custom images
    azlh config ...    # Settings
"""

import logging
import sys

import click

from azlh import __version__
from azlh.click_group import AzlhGroup
from azlh.commands import (
    config_group,
    group_group,
    image_group,
    network_group,
    storage_group,
    vm_group,
)
from azlh.config_manager import ConfigManager
from azlh.exceptions import ConfigError

logger = logging.getLogger(__name__)


@click.group(
    cls=AzlhGroup,
    context_settings={"help_option_names": ["--help", "-h"]},
)
@click.option("--verbose", "-v", is_flag=True, help="Show delegate commands and debug output")
@click.option("--config", "config_path", help="Config file path (default ~/.azlh/config.toml)")
@click.version_option(version=__version__)
@click.pass_context
def main(ctx: click.Context, verbose: bool, config_path: str | None) -> None:
    """azlh - Azure CLI lifecycle helpers.

    Thin wrappers around az, ssh and scp for day-to-day operator tasks.

    \b
    CONFIGURATION (environment or ~/.azlh/config.toml):
        AZLH_PREFIX                   Prefix of every resource azlh creates
        AZLH_ADMIN_USERNAME           VM admin user (also used on the jump host)
        AZLH_REGION                   Azure region, e.g. eastus
        AZLH_DEFAULT_IMAGE_NAME       Image for 'vm create-default'
        AZLH_SSH_KEY_FILE             Public key for new VMs
        AZLH_PROXY_SERVER_PRIVATE_IP  Jump host private IP
        AZLH_IGNORE                   Regex of groups 'group delete-all' keeps

    \b
    EXAMPLES:
        $ azlh group list
        $ azlh vm create-default "trying a fix"
        $ azlh vm ssh myvm20261019174000
        $ azlh image create-from-vm myvm20261019174000
    """
    logging.basicConfig(level=logging.DEBUG if verbose else logging.INFO, format="%(message)s")

    try:
        config = ConfigManager.load_config(config_path)
    except ConfigError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    ctx.obj = {"config": config, "config_path": config_path}


main.add_command(group_group)
main.add_command(vm_group)
main.add_command(storage_group)
main.add_command(network_group)
main.add_command(image_group)
main.add_command(config_group)


if __name__ == "__main__":
    main()
