"""Virtual machine CLI commands.

This module provides commands for the VM lifecycle:
- Provision VMs under a timestamped name
- Browse Ubuntu marketplace SKUs and versions
- SSH, copy files and install packages through the jump host
- Dump the OVF environment and boot diagnostics log
"""

import logging
import sys
from dataclasses import replace

import click

from azlh.click_group import AzlhGroup
from azlh.commands.cli_helpers import console, get_config, handle_errors
from azlh.config_manager import AzlhConfig, VMCreateOverrides, parse_disk_size
from azlh.exceptions import require_args
from azlh.formatting import sku_table, version_table
from azlh.remote import JumpHostConfig, RemoteManager
from azlh.vm_manager import VMCreateResult, VMManager

logger = logging.getLogger(__name__)


@click.group(name="vm", cls=AzlhGroup)
def vm_group():
    """Provision, access and inspect virtual machines.

    \b
    COMMANDS:
        create                      Provision a VM from an image
        create-default              Provision from AZLH_DEFAULT_IMAGE_NAME
        create-default-custom-data  Same, with a cloud-init payload
        list-skus                   List Ubuntu Server SKUs in AZLH_REGION
        list-versions               List versions of an Ubuntu Server SKU
        ssh                         SSH to a VM through the jump host
        scp-out                     Copy local files to a VM
        install-deb                 Copy and install a .deb package
        install-yum                 Copy and install an .rpm with yum
        install-rpm                 Copy and install an .rpm with rpm -ivh
        update-rpm                  Copy and force-upgrade an .rpm
        ovf-dump                    Show the VM's OVF provisioning environment
        boot-log                    Show the boot diagnostics log

    \b
    EXAMPLES:
        $ azlh vm create Canonical:UbuntuServer:18.04-LTS:latest "test box"
        $ VM_SIZE=Standard_D4s_v3 azlh vm create-default
        $ azlh vm ssh myvm20261019174000 "uptime"
        $ azlh vm install-deb myvm20261019174000 ./build/pkg.deb
    """
    pass


def _vm_overrides(
    size: str | None,
    admin_password: str | None,
    accelerated_networking: bool,
    os_disk_size: str | None,
    msi: bool,
) -> VMCreateOverrides:
    """Environment overrides with explicit options on top."""
    overrides = VMCreateOverrides.from_env()
    if size:
        overrides = replace(overrides, size=size)
    if admin_password:
        overrides = replace(overrides, admin_password=admin_password)
    if accelerated_networking:
        overrides = replace(overrides, accelerated_networking=True)
    if os_disk_size:
        overrides = replace(overrides, os_disk_size_gb=parse_disk_size(os_disk_size))
    if msi:
        overrides = replace(overrides, managed_identity=True)
    return overrides


def _report(result: VMCreateResult) -> None:
    for line in result.summary_lines():
        click.echo(line)
    if not result.succeeded:
        click.echo(
            f"\nWarning: az vm create exited with code {result.returncode}: {result.error}",
            err=True,
        )


def vm_create_options(func):
    """Options shared by the create commands."""
    options = [
        click.option("--size", help="VM size (env VM_SIZE, default Standard_DS1_v2)"),
        click.option(
            "--admin-password", help="Admin password; enables password auth (env ADMIN_PASSWORD)"
        ),
        click.option(
            "--accelerated-networking",
            is_flag=True,
            help="Enable accelerated networking (env ACCEL_NET)",
        ),
        click.option("--os-disk-size", help="OS disk size in GB (env OSDISK_SIZE, default 32)"),
        click.option(
            "--msi", is_flag=True, help="Assign a managed identity scoped to the group (env MSI)"
        ),
        click.option("--strict", is_flag=True, help="Fail if az vm create fails"),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _create(ctx: click.Context, create, *args, strict: bool, **override_args) -> None:
    config = get_config(ctx)
    overrides = _vm_overrides(**override_args)
    result = create(config, *args, overrides=overrides, best_effort=not strict)
    _report(result)
    if not result.succeeded:
        sys.exit(1)


@vm_group.command(name="create")
@click.argument("image", required=False)
@click.argument("notes", required=False)
@click.argument("custom_data", required=False)
@vm_create_options
@click.pass_context
@handle_errors
def create_vm(ctx: click.Context, image, notes, custom_data, strict, **override_args):
    """Provision a VM from IMAGE.

    IMAGE is the name of one of your custom images (looked up in the
    resource group of the same name) or a marketplace URN/alias. NOTES is
    stored as a tag on the new resource group. CUSTOM_DATA is a cloud-init
    payload or a path to one.

    The VM, its resource group, DNS label and boot-diagnostics storage
    account share the name AZLH_PREFIX + timestamp.
    """
    require_args(VMManager.CREATE_USAGE, image, hints=VMManager.CREATE_HINTS)
    _create(ctx, VMManager.create_vm, image, notes, custom_data, strict=strict, **override_args)


@vm_group.command(name="create-default")
@click.argument("notes", required=False)
@vm_create_options
@click.pass_context
@handle_errors
def create_vm_default(ctx: click.Context, notes, strict, **override_args):
    """Provision a VM from AZLH_DEFAULT_IMAGE_NAME."""
    _create(ctx, VMManager.create_vm_default, notes, strict=strict, **override_args)


@vm_group.command(name="create-default-custom-data")
@click.argument("custom_data", required=False)
@click.argument("notes", required=False)
@vm_create_options
@click.pass_context
@handle_errors
def create_vm_default_custom_data(ctx: click.Context, custom_data, notes, strict, **override_args):
    """Provision a VM from AZLH_DEFAULT_IMAGE_NAME with CUSTOM_DATA."""
    require_args(VMManager.CUSTOM_DATA_USAGE, custom_data)
    _create(
        ctx,
        VMManager.create_vm_default_custom_data,
        custom_data,
        notes,
        strict=strict,
        **override_args,
    )


@vm_group.command(name="list-skus")
@click.pass_context
@handle_errors
def list_skus(ctx: click.Context):
    """List Canonical UbuntuServer SKUs available in AZLH_REGION."""
    config = get_config(ctx)
    config.require("region")
    console.print(sku_table(VMManager.list_ubuntu_skus(config.region)))


@vm_group.command(name="list-versions")
@click.argument("sku", required=False)
@click.pass_context
@handle_errors
def list_versions(ctx: click.Context, sku: str | None):
    """List all versions of Canonical UbuntuServer SKU in AZLH_REGION."""
    config = get_config(ctx)
    if sku:
        config.require("region")
    console.print(version_table(VMManager.list_ubuntu_versions(config.region, sku)))


def _jump(config: AzlhConfig, *required: str | None, labels: list[str]) -> JumpHostConfig:
    """Jump host settings, after checking positional arguments."""
    require_args(labels, *required)
    return JumpHostConfig.from_config(config)


@vm_group.command(name="ssh")
@click.argument("vm_name", required=False)
@click.argument("command", required=False)
@click.pass_context
@handle_errors
def ssh(ctx: click.Context, vm_name: str | None, command: str | None):
    """SSH to VM_NAME through the jump host, optionally running COMMAND."""
    jump = _jump(get_config(ctx), vm_name, labels=RemoteManager.SSH_USAGE)
    result = RemoteManager.ssh(jump, vm_name, command)
    sys.exit(result.returncode)


@vm_group.command(name="scp-out")
@click.argument("vm_name", required=False)
@click.argument("source", required=False)
@click.argument("destination", required=False)
@click.pass_context
@handle_errors
def scp_out(ctx: click.Context, vm_name, source, destination):
    """Copy local SOURCE (recursively) to DESTINATION on VM_NAME."""
    jump = _jump(get_config(ctx), vm_name, source, destination, labels=RemoteManager.SCP_USAGE)
    result = RemoteManager.scp_out(jump, vm_name, source, destination)
    sys.exit(result.returncode)


def _install_command(name: str, installer, label: str, summary: str):
    @click.argument("vm_name", required=False)
    @click.argument("package_path", required=False)
    @click.pass_context
    @handle_errors
    def command(ctx: click.Context, vm_name, package_path):
        jump = _jump(get_config(ctx), vm_name, package_path, labels=["Target server", label])
        sys.exit(installer(jump, vm_name, package_path))

    command.__doc__ = summary
    return vm_group.command(name=name)(command)


install_deb = _install_command(
    "install-deb",
    RemoteManager.install_deb,
    "Source deb file",
    "Copy PACKAGE_PATH to VM_NAME's home directory and install it with apt.",
)
install_yum = _install_command(
    "install-yum",
    RemoteManager.install_via_yum,
    "Source rpm file",
    "Copy PACKAGE_PATH to VM_NAME's home directory and install it with yum.",
)
install_rpm = _install_command(
    "install-rpm",
    RemoteManager.install_rpm,
    "Source rpm file",
    "Copy PACKAGE_PATH to VM_NAME's home directory and install it with rpm -ivh.",
)
update_rpm = _install_command(
    "update-rpm",
    RemoteManager.update_rpm,
    "Source rpm file",
    "Copy PACKAGE_PATH to VM_NAME's home directory and upgrade with rpm -Uvh --force.",
)


@vm_group.command(name="ovf-dump")
@click.argument("vm_name", required=False)
@click.pass_context
@handle_errors
def ovf_dump(ctx: click.Context, vm_name: str | None):
    """Print VM_NAME's OVF provisioning environment as indented XML."""
    jump = _jump(get_config(ctx), vm_name, labels=RemoteManager.OVF_USAGE)
    click.echo(RemoteManager.ovf_dump(jump, vm_name))


@vm_group.command(name="boot-log")
@click.argument("vm_name", required=False)
@handle_errors
def boot_log(vm_name: str | None):
    """Print VM_NAME's boot diagnostics log (resource group = VM name)."""
    click.echo(VMManager.get_boot_log(vm_name))
