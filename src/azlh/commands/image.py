"""Custom image CLI commands.

This module provides commands for managing custom images:
- List the operator's images
- Capture a VM as a reusable image
"""

import logging

import click

from azlh.click_group import AzlhGroup
from azlh.commands.cli_helpers import get_config, handle_errors
from azlh.config_manager import ImageCreateOverrides
from azlh.exceptions import require_args
from azlh.images import ImageManager

logger = logging.getLogger(__name__)


@click.group(name="image", cls=AzlhGroup)
def image_group():
    """Manage custom images.

    \b
    EXAMPLES:
        $ azlh image list
        $ azlh image create-from-vm myvm20261019174000 --generation V2
    """
    pass


@image_group.command(name="list")
@click.pass_context
@handle_errors
def list_images(ctx: click.Context):
    """List custom images whose name starts with AZLH_PREFIX."""
    config = get_config(ctx)
    config.require("prefix")

    images = ImageManager.list_images(config.prefix)
    if not images:
        click.echo(f"No images found with prefix '{config.prefix}'.")
        return

    for image in images:
        click.echo(image.display())


@image_group.command(name="create-from-vm")
@click.argument("vm_name", required=False)
@click.option(
    "--generation",
    type=click.Choice(["V1", "V2"]),
    help="Hyper-V generation (env VM_GEN, default V1)",
)
@click.option(
    "--no-deprovision",
    is_flag=True,
    help="Skip waagent deprovisioning (env NO_DEPROVISION)",
)
@click.pass_context
@handle_errors
def create_from_vm(
    ctx: click.Context, vm_name: str | None, generation: str | None, no_deprovision: bool
):
    """Capture VM_NAME as an image of the same name.

    The VM is deprovisioned over SSH (unless skipped), deallocated and
    generalized first; it cannot be started again afterwards. The resource
    group is assumed to have the VM's name.
    """
    require_args(ImageManager.CREATE_USAGE, vm_name, hints=ImageManager.CREATE_HINTS)
    overrides = ImageCreateOverrides.from_env()
    overrides = ImageCreateOverrides(
        generation=generation or overrides.generation,
        deprovision=overrides.deprovision and not no_deprovision,
    )

    image = ImageManager.create_image_from_vm(get_config(ctx), vm_name, overrides)
    click.echo(f"Created image: {image}")
