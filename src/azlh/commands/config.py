"""Configuration CLI commands."""

import click

from azlh.click_group import AzlhGroup
from azlh.commands.cli_helpers import get_config, handle_errors
from azlh.config_manager import AzlhConfig, ConfigManager


@click.group(name="config", cls=AzlhGroup)
def config_group():
    """Show and persist azlh settings.

    Settings live in ~/.azlh/config.toml; AZLH_* environment variables
    take precedence over the file.

    \b
    KEYS:
        prefix          (AZLH_PREFIX)
        admin_username  (AZLH_ADMIN_USERNAME)
        region          (AZLH_REGION)
        default_image   (AZLH_DEFAULT_IMAGE_NAME)
        ssh_key_file    (AZLH_SSH_KEY_FILE)
        proxy_ip        (AZLH_PROXY_SERVER_PRIVATE_IP)
        ignore_pattern  (AZLH_IGNORE)
    """
    pass


@config_group.command(name="show")
@click.pass_context
def show_config(ctx: click.Context):
    """Show the effective configuration."""
    config = get_config(ctx)
    for name, env_var in AzlhConfig.ENV_VARS.items():
        value = getattr(config, name)
        click.echo(f"{name:<16}{value if value else '(unset)':<40} [{env_var}]")


@config_group.command(name="path")
@click.pass_context
def config_path(ctx: click.Context):
    """Show the config file path."""
    custom_path = (ctx.find_root().obj or {}).get("config_path")
    click.echo(str(ConfigManager.get_config_path(custom_path)))


@config_group.command(name="set")
@click.argument("key")
@click.argument("value")
@click.pass_context
@handle_errors
def set_config(ctx: click.Context, key: str, value: str):
    """Persist KEY=VALUE to the config file."""
    custom_path = (ctx.find_root().obj or {}).get("config_path")
    path = ConfigManager.set_value(key, value, custom_path)
    click.echo(f"Set {key} in {path}")
