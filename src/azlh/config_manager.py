"""Configuration management module.

Operator settings come from two places, read once at process start:
- ~/.azlh/config.toml (optional, written by `azlh config set`)
- AZLH_* environment variables, which take precedence

The resulting AzlhConfig is passed explicitly to every operation. Operations
call AzlhConfig.require() for the fields they need and fail fast before any
delegate command runs.

Per-invocation overrides for VM and image creation (VM_SIZE, ADMIN_PASSWORD,
ACCEL_NET, OSDISK_SIZE, MSI, VM_GEN, NO_DEPROVISION) are parsed into
VMCreateOverrides and ImageCreateOverrides.

Security:
- Config file permissions: 0600 (owner read/write only)
- Admin passwords are never written to the config file
"""

import logging
import os
from collections.abc import Mapping
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, ClassVar

import tomli
import tomlkit

from azlh.exceptions import ConfigError, ValidationError

logger = logging.getLogger(__name__)

DEFAULT_VM_SIZE = "Standard_DS1_v2"
DEFAULT_OS_DISK_SIZE_GB = 32
DEFAULT_VM_GENERATION = "V1"
VALID_VM_GENERATIONS = ("V1", "V2")


@dataclass
class AzlhConfig:
    """Operator configuration."""

    prefix: str | None = None
    admin_username: str | None = None
    region: str | None = None
    default_image: str | None = None
    ssh_key_file: str | None = None  # public key handed to az vm create
    proxy_ip: str | None = None  # private IP of the SSH jump host
    ignore_pattern: str | None = None  # regex excluded from bulk delete

    # field name -> environment variable
    ENV_VARS: ClassVar[dict[str, str]] = {
        "prefix": "AZLH_PREFIX",
        "admin_username": "AZLH_ADMIN_USERNAME",
        "region": "AZLH_REGION",
        "default_image": "AZLH_DEFAULT_IMAGE_NAME",
        "ssh_key_file": "AZLH_SSH_KEY_FILE",
        "proxy_ip": "AZLH_PROXY_SERVER_PRIVATE_IP",
        "ignore_pattern": "AZLH_IGNORE",
    }

    def require(self, *names: str) -> None:
        """Ensure the named fields are set.

        Raises:
            ConfigError: Naming every missing setting, e.g. "You must define AZLH_PREFIX"
        """
        missing = [name for name in names if not getattr(self, name)]
        if missing:
            env_names = " and ".join(self.ENV_VARS[name] for name in missing)
            raise ConfigError(f"You must define {env_names}")

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary, excluding None values."""
        # TOML has no null
        return {k: v for k, v in asdict(self).items() if v is not None}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "AzlhConfig":
        """Create from dictionary, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        return cls(**{k: str(v) for k, v in data.items() if k in known and v is not None})

    def with_env(self, env: Mapping[str, str]) -> "AzlhConfig":
        """Return a copy with AZLH_* environment values applied on top."""
        data = asdict(self)
        for name, env_var in self.ENV_VARS.items():
            value = env.get(env_var)
            if value:
                data[name] = value
        return AzlhConfig(**data)


def _flag(env: Mapping[str, str], name: str) -> bool:
    """Shell-style flag: any non-empty value means enabled."""
    return bool(env.get(name))


@dataclass
class VMCreateOverrides:
    """Optional settings for VM creation."""

    size: str = DEFAULT_VM_SIZE
    admin_password: str | None = None
    accelerated_networking: bool = False
    os_disk_size_gb: int = DEFAULT_OS_DISK_SIZE_GB
    managed_identity: bool = False

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> "VMCreateOverrides":
        """Read VM_SIZE, ADMIN_PASSWORD, ACCEL_NET, OSDISK_SIZE and MSI.

        Raises:
            ValidationError: If OSDISK_SIZE is not a positive integer
        """
        env = os.environ if env is None else env
        disk_size = env.get("OSDISK_SIZE") or str(DEFAULT_OS_DISK_SIZE_GB)
        return cls(
            size=env.get("VM_SIZE") or DEFAULT_VM_SIZE,
            admin_password=env.get("ADMIN_PASSWORD") or None,
            accelerated_networking=_flag(env, "ACCEL_NET"),
            os_disk_size_gb=parse_disk_size(disk_size),
            managed_identity=_flag(env, "MSI"),
        )


@dataclass
class ImageCreateOverrides:
    """Optional settings for capturing an image from a VM."""

    generation: str = DEFAULT_VM_GENERATION
    deprovision: bool = True

    def __post_init__(self) -> None:
        if self.generation not in VALID_VM_GENERATIONS:
            raise ValidationError(
                f"Invalid VM generation '{self.generation}' (allowed: V1 or V2)"
            )

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> "ImageCreateOverrides":
        """Read VM_GEN and NO_DEPROVISION."""
        env = os.environ if env is None else env
        return cls(
            generation=env.get("VM_GEN") or DEFAULT_VM_GENERATION,
            deprovision=not _flag(env, "NO_DEPROVISION"),
        )


def parse_disk_size(value: str | int) -> int:
    """Parse an OS disk size in GB.

    Raises:
        ValidationError: If the value is not a positive integer
    """
    try:
        size = int(value)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"OS disk size must be an integer number of GB, got '{value}'") from e
    if size <= 0:
        raise ValidationError("OS disk size must be greater than zero")
    return size


class ConfigManager:
    """Load and persist azlh configuration.

    Configuration is stored at ~/.azlh/config.toml with secure permissions.
    """

    DEFAULT_CONFIG_DIR = Path.home() / ".azlh"
    DEFAULT_CONFIG_FILE = DEFAULT_CONFIG_DIR / "config.toml"

    @classmethod
    def get_config_path(cls, custom_path: str | None = None) -> Path:
        """Get configuration file path."""
        if custom_path:
            return Path(custom_path).expanduser()
        return cls.DEFAULT_CONFIG_FILE

    @classmethod
    def load_file(cls, custom_path: str | None = None) -> AzlhConfig:
        """Load configuration from the TOML file only.

        Returns:
            AzlhConfig (all fields unset if the file does not exist)

        Raises:
            ConfigError: If the file exists but cannot be parsed
        """
        config_path = cls.get_config_path(custom_path)

        if not config_path.exists():
            logger.debug("Config file not found, using environment only")
            return AzlhConfig()

        try:
            mode = config_path.stat().st_mode & 0o777
            if mode & 0o077:
                logger.warning(
                    f"Config file has insecure permissions: {oct(mode)}. Fixing to 0600..."
                )
                os.chmod(config_path, 0o600)

            with open(config_path, "rb") as f:
                data = tomli.load(f)

            logger.debug(f"Loaded config from: {config_path}")
            return AzlhConfig.from_dict(data)

        except (OSError, tomli.TOMLDecodeError) as e:
            raise ConfigError(f"Failed to load config: {e}") from e

    @classmethod
    def load_config(
        cls,
        custom_path: str | None = None,
        env: Mapping[str, str] | None = None,
    ) -> AzlhConfig:
        """Load configuration: TOML file first, AZLH_* environment on top.

        Args:
            custom_path: Custom config file path (optional)
            env: Environment mapping (default: os.environ)

        Raises:
            ConfigError: If the config file cannot be parsed
        """
        env = os.environ if env is None else env
        return cls.load_file(custom_path).with_env(env)

    @classmethod
    def set_value(cls, key: str, value: str, custom_path: str | None = None) -> Path:
        """Persist one setting to the config file.

        Uses tomlkit so existing comments and formatting survive.

        Returns:
            Path of the written file

        Raises:
            ConfigError: If the key is unknown or writing fails
        """
        if key not in AzlhConfig.ENV_VARS:
            allowed = ", ".join(sorted(AzlhConfig.ENV_VARS))
            raise ConfigError(f"Unknown config key '{key}' (allowed: {allowed})")

        config_path = cls.get_config_path(custom_path)
        temp_path = config_path.with_suffix(".tmp")
        try:
            config_path.parent.mkdir(parents=True, exist_ok=True)

            if config_path.exists():
                with open(config_path) as f:
                    doc = tomlkit.load(f)
            else:
                doc = tomlkit.document()

            doc[key] = value

            with open(temp_path, "w") as f:
                tomlkit.dump(doc, f)

            os.chmod(temp_path, 0o600)
            temp_path.replace(config_path)

            logger.debug(f"Saved {key} to: {config_path}")
            return config_path

        except OSError as e:
            if temp_path.exists():
                temp_path.unlink()
            raise ConfigError(f"Failed to save config: {e}") from e


__all__ = [
    "AzlhConfig",
    "ConfigError",
    "ConfigManager",
    "ImageCreateOverrides",
    "VMCreateOverrides",
    "parse_disk_size",
]
