"""Command groups for azlh CLI."""

from azlh.commands.config import config_group
from azlh.commands.group import group_group
from azlh.commands.image import image_group
from azlh.commands.network import network_group
from azlh.commands.storage import storage_group
from azlh.commands.vm import vm_group

__all__ = [
    "config_group",
    "group_group",
    "image_group",
    "network_group",
    "storage_group",
    "vm_group",
]
