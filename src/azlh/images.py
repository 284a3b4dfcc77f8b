"""Custom image lifecycle.

Images are captured from a VM into the VM's own resource group (resource
group name equals VM name, as for every VM azlh provisions) and keep the
VM's name. Capturing is destructive for the source VM: the guest is
deprovisioned, deallocated and generalized before `az image create`.
"""

import logging
from dataclasses import dataclass

from azlh.command_runner import run_az_json, run_command
from azlh.config_manager import AzlhConfig, ImageCreateOverrides
from azlh.exceptions import AzlhError, require_args
from azlh.remote import JumpHostConfig, RemoteManager

logger = logging.getLogger(__name__)

DEPROVISION_COMMAND = "sudo waagent -deprovision+user -force"


class ImageError(AzlhError):
    """Raised when image operations fail."""

    pass


@dataclass
class ImageInfo:
    """Custom image."""

    name: str
    resource_group: str
    location: str

    def display(self) -> str:
        return f"{self.name} ({self.location})"


class ImageManager:
    """List and capture custom images via az image."""

    CREATE_USAGE = ["VM name"]
    CREATE_HINTS = [
        "Optionally set VM_GEN env var for a non-default generation "
        "(default V1, allowed V1 or V2).",
        "Optionally set NO_DEPROVISION so waagent does not deprovision "
        "(set to anything, does not matter).",
    ]

    @classmethod
    def list_images(cls, prefix: str) -> list[ImageInfo]:
        """List custom images whose name starts with prefix."""
        data = run_az_json(["az", "image", "list"]) or []
        images = [
            ImageInfo(
                name=item.get("name", ""),
                resource_group=item.get("resourceGroup", ""),
                location=item.get("location", ""),
            )
            for item in data
        ]
        return [image for image in images if image.name.startswith(prefix)]

    @classmethod
    def find_image_id(cls, name: str) -> str | None:
        """Resource ID of the operator's custom image called name, if any.

        Looks in the resource group of the same name. A failed lookup means
        "not a custom image" and is not an error.
        """
        result = run_command(
            ["az", "image", "show", "-n", name, "-g", name, "--query", "id", "-o", "tsv"],
            check=False,
        )
        image_id = result.stdout.strip().strip('"')
        if result.returncode != 0 or not image_id:
            return None
        return image_id

    @classmethod
    def create_image_from_vm(
        cls,
        config: AzlhConfig,
        vm_name: str,
        overrides: ImageCreateOverrides | None = None,
    ) -> str:
        """Capture a VM as a reusable image.

        Steps:
        1. Deprovision the guest over SSH (skipped when overrides.deprovision is False)
        2. az vm deallocate
        3. az vm generalize
        4. az image create with the requested Hyper-V generation

        Returns:
            The image name (same as the VM name)

        Raises:
            MissingArgumentError: If vm_name is empty
            ConfigError: If region (or, when deprovisioning, SSH settings) are unset
            ImageError: If deprovisioning fails
            CommandError: If an az step fails
        """
        require_args(cls.CREATE_USAGE, vm_name, hints=cls.CREATE_HINTS)
        config.require("region")
        overrides = overrides or ImageCreateOverrides()
        resource_group = vm_name

        if overrides.deprovision:
            jump = JumpHostConfig.from_config(config)
            logger.info(f"Deprovisioning {vm_name}")
            result = RemoteManager.ssh(jump, vm_name, DEPROVISION_COMMAND)
            if result.returncode != 0:
                raise ImageError(
                    f"Deprovisioning {vm_name} failed with exit code {result.returncode}"
                )

        logger.info(f"Deallocating {vm_name}")
        run_command(
            ["az", "vm", "deallocate", "--resource-group", resource_group, "--name", vm_name]
        )

        logger.info(f"Generalizing {vm_name}")
        run_command(
            ["az", "vm", "generalize", "--resource-group", resource_group, "--name", vm_name]
        )

        logger.info(f"Creating {overrides.generation} image {vm_name}")
        run_command(
            [
                "az",
                "image",
                "create",
                "--resource-group",
                resource_group,
                "--source",
                vm_name,
                "-l",
                config.region,
                "--hyper-v-generation",
                overrides.generation,
                "--name",
                vm_name,
                "--output",
                "none",
            ]
        )
        return vm_name


__all__ = ["ImageError", "ImageInfo", "ImageManager"]
