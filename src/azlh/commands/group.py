"""Resource group CLI commands.

This module provides commands for managing resource groups:
- Create a tagged resource group
- List the operator's resource groups
- Delete one or all of them (non-blocking)
"""

import logging

import click

from azlh.click_group import AzlhGroup
from azlh.commands.cli_helpers import console, get_config, handle_errors
from azlh.formatting import resource_group_table
from azlh.resource_groups import ResourceGroupManager

logger = logging.getLogger(__name__)


@click.group(name="group", cls=AzlhGroup)
def group_group():
    """Manage resource groups.

    \b
    COMMANDS:
        create       Create a tagged resource group
        list         List resource groups starting with AZLH_PREFIX
        delete       Delete a resource group (no wait)
        delete-all   Delete every prefixed group not matching AZLH_IGNORE

    \b
    EXAMPLES:
        $ azlh group create test-rg "demo environment"
        $ azlh group list
        $ azlh group delete test-rg
        $ azlh group delete-all --dry-run
    """
    pass


@group_group.command(name="create")
@click.argument("name", required=False)
@click.argument("notes", required=False)
@click.pass_context
@handle_errors
def create_group(ctx: click.Context, name: str | None, notes: str | None):
    """Create resource group NAME tagged with created_on and NOTES.

    Prints the resource group name on success.
    """
    config = get_config(ctx)
    created = ResourceGroupManager.create_group(name, config.region, notes)
    click.echo(created)


@group_group.command(name="list")
@click.pass_context
@handle_errors
def list_groups(ctx: click.Context):
    """List resource groups whose name starts with AZLH_PREFIX."""
    config = get_config(ctx)
    config.require("prefix")

    groups = ResourceGroupManager.list_groups(config.prefix)
    if not groups:
        click.echo(f"No resource groups found with prefix '{config.prefix}'.")
        return

    console.print(resource_group_table(groups))


@group_group.command(name="delete")
@click.argument("name", required=False)
@handle_errors
def delete_group(name: str | None):
    """Delete resource group NAME without waiting for completion."""
    ResourceGroupManager.delete_group(name)
    click.echo(f"Deletion requested: {name}")


@group_group.command(name="delete-all")
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation prompt")
@click.option("--dry-run", is_flag=True, help="Show what would be deleted")
@click.pass_context
@handle_errors
def delete_all_groups(ctx: click.Context, yes: bool, dry_run: bool):
    """Delete every group starting with AZLH_PREFIX.

    Groups matching the AZLH_IGNORE regular expression are kept. One
    non-blocking delete is requested per group.

    \b
    Examples:
        $ azlh group delete-all --dry-run
        $ AZLH_IGNORE=keep azlh group delete-all --yes
    """
    config = get_config(ctx)
    config.require("prefix")

    if yes and not dry_run:
        deleted = ResourceGroupManager.delete_all_groups(config.prefix, config.ignore_pattern)
        if not deleted:
            click.echo(f"No resource groups to delete with prefix '{config.prefix}'.")
            return
        click.echo(f"Deletion requested for {len(deleted)} resource group(s):")
        for name in deleted:
            click.echo(f"  {name}")
        return

    targets = ResourceGroupManager.find_groups_for_deletion(config.prefix, config.ignore_pattern)
    if not targets:
        click.echo(f"No resource groups to delete with prefix '{config.prefix}'.")
        return

    click.echo(f"Resource groups to delete ({len(targets)}):")
    for name in targets:
        click.echo(f"  {name}")

    if dry_run:
        click.echo("\nDry run, nothing deleted.")
        return

    if not click.confirm("\nDelete these resource groups?", default=False):
        click.echo("Cancelled.")
        return

    ResourceGroupManager.delete_groups(targets)
    click.echo(f"\nDeletion requested for {len(targets)} resource group(s).")
