"""Resource group lifecycle.

Creates tagged resource groups, lists the operator's groups (those whose
name starts with the configured prefix) and issues non-blocking deletes.

Deletes are requested with --no-wait and never polled; bulk delete sends one
request per matching group, sequentially, and reports only which names it
asked Azure to delete.
"""

import logging
import re
from dataclasses import dataclass
from datetime import datetime

from azlh.command_runner import run_az_json, run_command
from azlh.exceptions import AzlhError, ConfigError, ValidationError, require_args
from azlh.naming import created_on_tag

logger = logging.getLogger(__name__)


class ResourceGroupError(AzlhError):
    """Raised when resource group operations fail."""

    pass


@dataclass
class ResourceGroupInfo:
    """Resource group as shown by list_groups()."""

    name: str
    location: str
    created_on: str | None = None
    notes: str | None = None


GROUP_LIST_QUERY = "[*].{name:name,location:location,created_on:tags.created_on,notes:tags.notes}"


class ResourceGroupManager:
    """Create, list and delete resource groups via az group."""

    CREATE_USAGE = ["Resource group name", "(Optional) Notes"]
    DELETE_USAGE = ["Resource group name"]

    @classmethod
    def create_group(
        cls,
        name: str,
        region: str,
        notes: str | None = None,
        now: datetime | None = None,
    ) -> str:
        """Create a resource group tagged with created_on and optional notes.

        Args:
            name: Resource group name
            region: Azure region
            notes: Free text stored in the notes tag
            now: Creation time for the created_on tag (default: now)

        Returns:
            The resource group name

        Raises:
            MissingArgumentError: If name is empty
            ConfigError: If region is empty
            CommandError: If az group create fails
        """
        require_args(cls.CREATE_USAGE, name)
        if not region:
            raise ConfigError("You must define AZLH_REGION")

        tags = [f"created_on={created_on_tag(now)}"]
        if notes:
            tags.append(f"notes={notes}")

        logger.info(f"Creating resource group: {name} in {region}")
        run_command(
            ["az", "group", "create", "-n", name, "-l", region, "--tags", *tags, "--output", "none"]
        )
        return name

    @classmethod
    def list_groups(cls, prefix: str) -> list[ResourceGroupInfo]:
        """List resource groups whose name starts with prefix."""
        data = run_az_json(["az", "group", "list", "--query", GROUP_LIST_QUERY]) or []

        groups = [
            ResourceGroupInfo(
                name=item.get("name", ""),
                location=item.get("location", ""),
                created_on=item.get("created_on"),
                notes=item.get("notes"),
            )
            for item in data
        ]
        return [group for group in groups if group.name.startswith(prefix)]

    @classmethod
    def get_group_id(cls, name: str) -> str:
        """Resource ID of a group, used as a managed identity scope."""
        result = run_command(["az", "group", "show", "-n", name, "--query", "id", "-o", "tsv"])
        group_id = result.stdout.strip()
        if not group_id:
            raise ResourceGroupError(f"Resource group '{name}' has no resource ID")
        return group_id

    @classmethod
    def delete_group(cls, name: str) -> None:
        """Request deletion of a resource group without waiting."""
        require_args(cls.DELETE_USAGE, name)

        logger.info(f"Deleting resource group: {name} (no wait)")
        run_command(["az", "group", "delete", "-n", name, "-y", "--no-wait"])

    @classmethod
    def select_groups_for_deletion(
        cls, names: list[str], prefix: str, ignore: str | None = None
    ) -> list[str]:
        """Filter group names for bulk deletion.

        A name is selected when it starts with prefix and does not match the
        ignore regular expression. An unset ignore pattern excludes nothing.

        Raises:
            ValidationError: If the ignore pattern is not a valid regex
        """
        ignore_re = None
        if ignore:
            try:
                ignore_re = re.compile(ignore)
            except re.error as e:
                raise ValidationError(f"Invalid ignore pattern '{ignore}': {e}") from e

        selected = []
        for name in names:
            if not name.startswith(prefix):
                continue
            if ignore_re and ignore_re.search(name):
                logger.debug(f"Ignoring resource group: {name}")
                continue
            selected.append(name)
        return selected

    @classmethod
    def find_groups_for_deletion(cls, prefix: str, ignore: str | None = None) -> list[str]:
        """Names of prefixed groups not matching ignore. Read-only."""
        names = run_az_json(["az", "group", "list", "--query", "[].name"]) or []
        return cls.select_groups_for_deletion(names, prefix, ignore)

    @classmethod
    def delete_groups(cls, names: list[str]) -> None:
        """Request deletion of each group in turn, without waiting."""
        for name in names:
            cls.delete_group(name)

    @classmethod
    def delete_all_groups(cls, prefix: str, ignore: str | None = None) -> list[str]:
        """Request deletion of every prefixed group not matching ignore.

        Returns:
            Names a delete was requested for
        """
        targets = cls.find_groups_for_deletion(prefix, ignore)
        cls.delete_groups(targets)
        return targets


__all__ = ["ResourceGroupError", "ResourceGroupInfo", "ResourceGroupManager"]
