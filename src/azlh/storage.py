"""Storage account creation.

Boot diagnostics for each provisioned VM go to a general purpose v2 storage
account named after (and living in) the VM's resource group. Azure account
names are lowercase, so the name is normalized before validation.
"""

import logging
import re

from azlh.command_runner import run_command
from azlh.exceptions import ConfigError, ValidationError, require_args

logger = logging.getLogger(__name__)


class StorageManager:
    """Create storage accounts via az storage account."""

    # Storage account naming rules (Azure constraints)
    MIN_NAME_LENGTH = 3
    MAX_NAME_LENGTH = 24
    VALID_NAME_PATTERN = re.compile(r"^[a-z0-9]+$")

    CREATE_USAGE = ["Storage account name (same as resource group)"]

    @classmethod
    def normalize_name(cls, name: str) -> str:
        """Lowercase and validate a storage account name.

        Raises:
            ValidationError: If the name breaks Azure naming rules
        """
        normalized = name.lower()
        if not cls.MIN_NAME_LENGTH <= len(normalized) <= cls.MAX_NAME_LENGTH:
            raise ValidationError(
                f"Storage account name '{normalized}' must be "
                f"{cls.MIN_NAME_LENGTH}-{cls.MAX_NAME_LENGTH} characters"
            )
        if not cls.VALID_NAME_PATTERN.match(normalized):
            raise ValidationError(
                f"Storage account name '{normalized}' must contain only "
                "lowercase letters and numbers"
            )
        return normalized

    @classmethod
    def create_storage_account(cls, name: str, region: str) -> str:
        """Create a StorageV2 account in the resource group of the same name.

        Returns:
            The normalized account name

        Raises:
            MissingArgumentError: If name is empty
            ConfigError: If region is empty
            ValidationError: If the name is invalid
            CommandError: If az storage account create fails
        """
        require_args(cls.CREATE_USAGE, name)
        if not region:
            raise ConfigError("You must define AZLH_REGION")
        account = cls.normalize_name(name)

        logger.info(f"Creating storage account: {account}")
        run_command(
            [
                "az",
                "storage",
                "account",
                "create",
                "--name",
                account,
                "-l",
                region,
                "--kind",
                "StorageV2",
                "-g",
                account,
                "--output",
                "none",
            ]
        )
        return account


__all__ = ["StorageManager"]
