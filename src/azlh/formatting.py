"""Rich tables for listing commands."""

from rich.table import Table

from azlh.network import PublicIPInfo
from azlh.resource_groups import ResourceGroupInfo
from azlh.vm_manager import ImageSku, ImageVersion


def friendly_created_on(value: str | None) -> str:
    """Undo the underscore encoding of the created_on tag."""
    if not value:
        return "-"
    return value.replace("_", " ")


def resource_group_table(groups: list[ResourceGroupInfo]) -> Table:
    """Resource groups with decoded created_on and notes tags."""
    table = Table(title="Resource Groups", show_header=True)
    table.add_column("Name", style="cyan", no_wrap=True)
    table.add_column("Location", style="white")
    table.add_column("Created On", style="yellow")
    table.add_column("Notes", style="green")

    for group in groups:
        table.add_row(
            group.name,
            group.location,
            friendly_created_on(group.created_on),
            group.notes or "",
        )
    return table


def public_ip_table(ips: list[PublicIPInfo]) -> Table:
    table = Table(title="Public IP Addresses", show_header=True)
    table.add_column("Name", style="cyan", no_wrap=True)
    table.add_column("Resource Group", style="magenta")
    table.add_column("IP Address", style="blue")
    table.add_column("FQDN", style="white")

    for ip in ips:
        table.add_row(ip.name, ip.resource_group, ip.ip_address or "N/A", ip.fqdn or "")
    return table


def sku_table(skus: list[ImageSku]) -> Table:
    table = Table(title="Ubuntu Server SKUs", show_header=True)
    table.add_column("SKU", style="cyan", no_wrap=True)
    table.add_column("Location", style="white")

    for sku in skus:
        table.add_row(sku.name, sku.location)
    return table


def version_table(versions: list[ImageVersion]) -> Table:
    table = Table(title="Ubuntu Server Versions", show_header=True)
    table.add_column("URN", style="cyan", no_wrap=True)
    table.add_column("SKU", style="white")
    table.add_column("Version", style="yellow")

    for version in versions:
        table.add_row(version.urn, version.sku, version.version)
    return table


__all__ = [
    "friendly_created_on",
    "public_ip_table",
    "resource_group_table",
    "sku_table",
    "version_table",
]
