"""Remote access to VMs through an SSH jump host.

VMs are reached by their public DNS name (<vm>.<region>.cloudapp.azure.com)
via a jump host identified by its private IP. The admin user is the same on
both hops. Key selection is left to ~/.ssh/config, e.g.:

    Host *.cloudapp.azure.com
        IdentityFile ~/.ssh/id_rsa_az_vm

Public API:
    JumpHostConfig: Connection settings derived from AzlhConfig
    PackageManager: Remote package install flavours
    RemoteManager: ssh, scp, OVF dump and package installs
    RemoteError: Raised when a remote step fails
"""

import logging
import shlex
import subprocess
from dataclasses import dataclass
from enum import Enum
from pathlib import PurePosixPath
from xml.dom import minidom
from xml.parsers.expat import ExpatError

from azlh.command_runner import run_command
from azlh.config_manager import AzlhConfig
from azlh.exceptions import AzlhError, require_args
from azlh.naming import full_dns_name

logger = logging.getLogger(__name__)

OVF_ENV_PATH = "/var/lib/waagent/ovf-env.xml"


class RemoteError(AzlhError):
    """Raised when a remote operation fails."""

    pass


@dataclass
class JumpHostConfig:
    """SSH settings for reaching VMs through the jump host."""

    user: str
    proxy_ip: str
    region: str

    @classmethod
    def from_config(cls, config: AzlhConfig) -> "JumpHostConfig":
        """Build from operator config.

        Raises:
            ConfigError: If admin user, jump host IP or region is unset
        """
        config.require("admin_username", "proxy_ip", "region")
        return cls(user=config.admin_username, proxy_ip=config.proxy_ip, region=config.region)

    @property
    def jump_spec(self) -> str:
        return f"{self.user}@{self.proxy_ip}"

    def target(self, vm_name: str) -> str:
        return f"{self.user}@{full_dns_name(vm_name, self.region)}"


class PackageManager(Enum):
    """Remote install command per package flavour."""

    DEB = "sudo apt install -y"
    YUM = "sudo yum install -y"
    RPM = "sudo rpm -ivh"
    RPM_UPDATE = "sudo rpm -Uvh --force"

    def install_command(self, filename: str) -> str:
        """Command that installs ~/<filename> on the VM."""
        # ~ must stay unquoted so the remote shell expands it
        return f"{self.value} ~/{shlex.quote(filename)}"


class RemoteManager:
    """Run ssh and scp against VMs through the jump host."""

    SSH_USAGE = ["VM name", "(Optional) SSH command"]
    SCP_USAGE = ["Target server", "Source local file path", "Destination remote file path"]
    OVF_USAGE = ["VM name"]

    @classmethod
    def build_ssh_command(
        cls, jump: JumpHostConfig, vm_name: str, command: str | None = None
    ) -> list[str]:
        """Build an ssh argument list hopping through the jump host.

        Example:
            >>> jump = JumpHostConfig(user="ops", proxy_ip="10.0.0.4", region="eastus")
            >>> RemoteManager.build_ssh_command(jump, "myvm", "uptime")
            ['ssh', '-J', 'ops@10.0.0.4', 'ops@myvm.eastus.cloudapp.azure.com', 'uptime']
        """
        args = ["ssh", "-J", jump.jump_spec, jump.target(vm_name)]
        if command:
            args.append(command)
        return args

    @classmethod
    def build_scp_command(
        cls, jump: JumpHostConfig, vm_name: str, source: str, destination: str
    ) -> list[str]:
        """Build a recursive scp argument list copying a local path to the VM."""
        return [
            "scp",
            "-r",
            "-o",
            f"ProxyJump={jump.jump_spec}",
            source,
            f"{jump.target(vm_name)}:{destination}",
        ]

    @classmethod
    def ssh(
        cls,
        jump: JumpHostConfig,
        vm_name: str,
        command: str | None = None,
        capture: bool = False,
    ) -> subprocess.CompletedProcess[str]:
        """Open an SSH session, or run one command, on the VM.

        Without capture the session is attached to the terminal. The exit
        status is returned rather than raised.

        Raises:
            MissingArgumentError: If vm_name is empty
        """
        require_args(cls.SSH_USAGE, vm_name)

        logger.debug(f"Connecting to {jump.target(vm_name)} via {jump.proxy_ip}")
        return run_command(
            cls.build_ssh_command(jump, vm_name, command), capture=capture, check=False
        )

    @classmethod
    def scp_out(
        cls, jump: JumpHostConfig, vm_name: str, source: str, destination: str
    ) -> subprocess.CompletedProcess[str]:
        """Copy a local file or directory to the VM.

        Raises:
            MissingArgumentError: If any argument is empty
        """
        require_args(cls.SCP_USAGE, vm_name, source, destination)

        logger.info(f"Copying {source} to {vm_name}:{destination}")
        return run_command(
            cls.build_scp_command(jump, vm_name, source, destination), capture=False, check=False
        )

    @classmethod
    def ovf_dump(cls, jump: JumpHostConfig, vm_name: str) -> str:
        """Return the VM's provisioning OVF environment, pretty-printed.

        Raises:
            MissingArgumentError: If vm_name is empty
            RemoteError: If the file cannot be read or is not XML
        """
        require_args(cls.OVF_USAGE, vm_name)

        result = cls.ssh(jump, vm_name, f"sudo cat {OVF_ENV_PATH}", capture=True)
        if result.returncode != 0:
            raise RemoteError(
                f"Failed to read {OVF_ENV_PATH} on {vm_name}: {result.stderr.strip()}"
            )
        return pretty_xml(result.stdout)

    @classmethod
    def install_package(
        cls,
        jump: JumpHostConfig,
        vm_name: str,
        package_path: str,
        manager: PackageManager,
    ) -> int:
        """Copy a package to the VM's home directory and install it.

        Returns:
            Exit code of the remote install command

        Raises:
            MissingArgumentError: If vm_name or package_path is empty
            RemoteError: If the copy fails (nothing is installed)
        """
        label = "Source deb file" if manager is PackageManager.DEB else "Source rpm file"
        require_args(["Target server", label], vm_name, package_path)

        copied = cls.scp_out(jump, vm_name, package_path, "~")
        if copied.returncode != 0:
            raise RemoteError(f"Failed to copy {package_path} to {vm_name}")

        filename = PurePosixPath(package_path).name
        logger.info(f"Installing {filename} on {vm_name}")
        result = cls.ssh(jump, vm_name, manager.install_command(filename))
        return result.returncode

    @classmethod
    def install_deb(cls, jump: JumpHostConfig, vm_name: str, package_path: str) -> int:
        return cls.install_package(jump, vm_name, package_path, PackageManager.DEB)

    @classmethod
    def install_via_yum(cls, jump: JumpHostConfig, vm_name: str, package_path: str) -> int:
        return cls.install_package(jump, vm_name, package_path, PackageManager.YUM)

    @classmethod
    def install_rpm(cls, jump: JumpHostConfig, vm_name: str, package_path: str) -> int:
        return cls.install_package(jump, vm_name, package_path, PackageManager.RPM)

    @classmethod
    def update_rpm(cls, jump: JumpHostConfig, vm_name: str, package_path: str) -> int:
        return cls.install_package(jump, vm_name, package_path, PackageManager.RPM_UPDATE)


def pretty_xml(text: str) -> str:
    """Indent an XML document.

    Raises:
        RemoteError: If text is not well-formed XML
    """
    try:
        document = minidom.parseString(text.strip())
    except ExpatError as e:
        raise RemoteError(f"Remote output is not valid XML: {e}") from e

    pretty = document.toprettyxml(indent="  ")
    # minidom keeps whitespace text nodes of already-indented input as blank lines
    return "\n".join(line for line in pretty.splitlines() if line.strip())


__all__ = ["JumpHostConfig", "PackageManager", "RemoteError", "RemoteManager", "pretty_xml"]
