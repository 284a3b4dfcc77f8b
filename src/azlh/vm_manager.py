"""Virtual machine lifecycle.

create_vm() provisions a VM under a fresh timestamped name shared by its
resource group, DNS label and boot-diagnostics storage account:

1. Create the resource group (tagged with created_on and notes)
2. Create the boot-diagnostics storage account
3. Resolve the image: the operator's custom image of that name wins,
   otherwise the argument is passed through as a marketplace URN/alias
4. Build a VMCreateRequest from config and overrides
5. Optionally scope a managed identity to the resource group
6. Run az vm create

Nothing is rolled back when a later step fails; the group and storage
account stay behind and must be deleted by the operator.

Security:
- Admin password and custom data are redacted from logs
- No shell=True
"""

import logging
from dataclasses import dataclass
from datetime import datetime

from azlh.command_runner import run_az_json, run_command
from azlh.config_manager import AzlhConfig, VMCreateOverrides
from azlh.exceptions import CommandError, require_args
from azlh.images import ImageManager
from azlh.naming import full_dns_name, resource_name
from azlh.resource_groups import ResourceGroupManager
from azlh.storage import StorageManager

logger = logging.getLogger(__name__)

UBUNTU_PUBLISHER = "Canonical"
UBUNTU_OFFER = "UbuntuServer"


@dataclass
class VMCreateRequest:
    """Arguments of one az vm create call."""

    resource_group: str
    name: str
    location: str
    image: str
    admin_username: str
    dns_name: str
    boot_diagnostics_storage: str
    size: str
    os_disk_size_gb: int
    accelerated_networking: bool = False
    ssh_key_file: str | None = None
    admin_password: str | None = None
    custom_data: str | None = None
    identity_scope: str | None = None

    @property
    def authentication_type(self) -> str:
        """'all' (password and key) when a password is set, else 'ssh'."""
        return "all" if self.admin_password else "ssh"

    def to_az_args(self) -> list[str]:
        """Translate to the az vm create argument list."""
        cmd = [
            "az",
            "vm",
            "create",
            "-g",
            self.resource_group,
            "-n",
            self.name,
            "-l",
            self.location,
            "--admin-username",
            self.admin_username,
            "--authentication-type",
            self.authentication_type,
        ]

        if self.ssh_key_file:
            cmd.extend(["--ssh-key-values", self.ssh_key_file])
        else:
            cmd.append("--generate-ssh-keys")

        if self.admin_password:
            cmd.extend(["--admin-password", self.admin_password])

        cmd.extend(["--public-ip-address-dns-name", self.dns_name])

        if self.custom_data:
            cmd.extend(["--custom-data", self.custom_data])

        cmd.extend(
            [
                "--image",
                self.image,
                "--size",
                self.size,
                "--accelerated-networking",
                "true" if self.accelerated_networking else "false",
                "--os-disk-size-gb",
                str(self.os_disk_size_gb),
                "--boot-diagnostics-storage",
                self.boot_diagnostics_storage,
            ]
        )

        if self.identity_scope:
            cmd.extend(["--assign-identity", "--scope", self.identity_scope])

        cmd.extend(["--output", "none"])
        return cmd


@dataclass
class VMCreateResult:
    """Outcome of create_vm()."""

    resource_group: str
    name: str
    size: str
    admin_username: str
    ssh_key_file: str | None
    fqdn: str
    image: str
    returncode: int = 0
    error: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.returncode == 0

    def summary_lines(self) -> list[str]:
        """Operator-facing summary of the new VM."""
        return [
            f"Resource group:  {self.resource_group}",
            f"VM name:         {self.name}",
            f"Size:            {self.size}",
            f"Admin:           {self.admin_username}",
            f"SSH key file:    {self.ssh_key_file or '(generated by az)'}",
            f"DNS name:        {self.fqdn}",
            f"Image:           {self.image}",
        ]


@dataclass
class ImageSku:
    """Marketplace image SKU."""

    name: str
    location: str


@dataclass
class ImageVersion:
    """Marketplace image version."""

    urn: str
    sku: str
    version: str


class VMManager:
    """Provision and query VMs via az vm."""

    CREATE_USAGE = ["Image name", "(Optional) Notes", "(Optional) Custom data"]
    CREATE_HINTS = [
        "Optionally set VM_SIZE env var for a non-default size (default Standard_DS1_v2).",
        "Optionally set ADMIN_PASSWORD env var for admin password (default none).",
        "Optionally set ACCEL_NET env var to enable accelerated networking.",
        "Optionally set OSDISK_SIZE env var to os disk size in GB (default 32 GB).",
        "Optionally set MSI env var to enable managed service identity.",
    ]
    CUSTOM_DATA_USAGE = ["Custom data", "(Optional) Notes"]
    VERSIONS_USAGE = ["SKU name"]
    BOOT_LOG_USAGE = ["VM name"]

    @classmethod
    def resolve_image(cls, image: str) -> str:
        """Prefer the operator's custom image of this name over a marketplace image."""
        image_id = ImageManager.find_image_id(image)
        if image_id:
            logger.debug(f"Using custom image {image_id}")
            return image_id
        return image

    @classmethod
    def create_vm(
        cls,
        config: AzlhConfig,
        image: str,
        notes: str | None = None,
        custom_data: str | None = None,
        overrides: VMCreateOverrides | None = None,
        best_effort: bool = True,
        now: datetime | None = None,
    ) -> VMCreateResult:
        """Provision a VM from image under a new timestamped name.

        Args:
            config: Operator configuration (prefix, region, admin_username required)
            image: Custom image name, marketplace URN or alias
            notes: Stored in the resource group's notes tag
            custom_data: cloud-init payload or file path
            overrides: Size, password, networking, disk and identity settings
            best_effort: Report a failed az vm create in the result instead of raising
            now: Time used for naming (default: now)

        Returns:
            VMCreateResult; check .succeeded in best-effort mode

        Raises:
            MissingArgumentError: If image is empty
            ConfigError: If required configuration is unset
            ValidationError: If the derived name is not a valid storage account name
            CommandError: If a prerequisite fails, or az vm create fails with best_effort=False
        """
        require_args(cls.CREATE_USAGE, image, hints=cls.CREATE_HINTS)
        config.require("prefix", "region", "admin_username")
        overrides = overrides or VMCreateOverrides()

        name = resource_name(config.prefix, now)
        # also the storage account name, so validate it before any az call
        StorageManager.normalize_name(name)
        resource_group = ResourceGroupManager.create_group(name, config.region, notes, now=now)
        storage_account = StorageManager.create_storage_account(name, config.region)

        request = VMCreateRequest(
            resource_group=resource_group,
            name=name,
            location=config.region,
            image=cls.resolve_image(image),
            admin_username=config.admin_username,
            dns_name=name,
            boot_diagnostics_storage=storage_account,
            size=overrides.size,
            os_disk_size_gb=overrides.os_disk_size_gb,
            accelerated_networking=overrides.accelerated_networking,
            ssh_key_file=config.ssh_key_file,
            admin_password=overrides.admin_password,
            custom_data=custom_data,
        )

        if overrides.managed_identity:
            request.identity_scope = ResourceGroupManager.get_group_id(resource_group)

        result = VMCreateResult(
            resource_group=resource_group,
            name=name,
            size=request.size,
            admin_username=request.admin_username,
            ssh_key_file=request.ssh_key_file,
            fqdn=full_dns_name(name, config.region),
            image=request.image,
        )

        logger.info(f"Creating VM: {name}")
        try:
            run_command(request.to_az_args())
        except CommandError as e:
            if not best_effort:
                raise
            logger.warning(f"VM creation for {name} failed: {e}")
            result.returncode = e.returncode
            result.error = e.stderr.strip() or str(e)

        return result

    @classmethod
    def create_vm_default(
        cls, config: AzlhConfig, notes: str | None = None, **kwargs
    ) -> VMCreateResult:
        """create_vm() with the configured default image."""
        config.require("default_image")
        return cls.create_vm(config, config.default_image, notes, **kwargs)

    @classmethod
    def create_vm_default_custom_data(
        cls, config: AzlhConfig, custom_data: str, notes: str | None = None, **kwargs
    ) -> VMCreateResult:
        """create_vm() with the configured default image and a cloud-init payload."""
        require_args(cls.CUSTOM_DATA_USAGE, custom_data)
        config.require("default_image")
        return cls.create_vm(config, config.default_image, notes, custom_data, **kwargs)

    @classmethod
    def list_ubuntu_skus(cls, region: str) -> list[ImageSku]:
        """Ubuntu Server SKUs published by Canonical in region."""
        data = run_az_json(
            [
                "az",
                "vm",
                "image",
                "list-skus",
                "--publisher",
                UBUNTU_PUBLISHER,
                "--offer",
                UBUNTU_OFFER,
                "-l",
                region,
            ]
        )
        return [
            ImageSku(name=item.get("name", ""), location=item.get("location", region))
            for item in data or []
        ]

    @classmethod
    def list_ubuntu_versions(cls, region: str, sku: str) -> list[ImageVersion]:
        """All published versions of an Ubuntu Server SKU in region."""
        require_args(cls.VERSIONS_USAGE, sku)
        data = run_az_json(
            [
                "az",
                "vm",
                "image",
                "list",
                "--publisher",
                UBUNTU_PUBLISHER,
                "--offer",
                UBUNTU_OFFER,
                "-l",
                region,
                "--sku",
                sku,
                "--all",
            ]
        )
        return [
            ImageVersion(
                urn=item.get("urn", ""),
                sku=item.get("sku", sku),
                version=item.get("version", ""),
            )
            for item in data or []
        ]

    @classmethod
    def get_boot_log(cls, vm_name: str) -> str:
        """Boot diagnostics serial log. Resource group is assumed to equal the VM name."""
        require_args(cls.BOOT_LOG_USAGE, vm_name)
        result = run_command(
            ["az", "vm", "boot-diagnostics", "get-boot-log", "--name", vm_name, "-g", vm_name]
        )
        return result.stdout


__all__ = [
    "ImageSku",
    "ImageVersion",
    "VMCreateRequest",
    "VMCreateResult",
    "VMManager",
]
