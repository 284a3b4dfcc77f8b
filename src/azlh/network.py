"""Public IP listing."""

import logging
from dataclasses import dataclass

from azlh.command_runner import run_az_json

logger = logging.getLogger(__name__)

PUBLIC_IP_LIST_QUERY = (
    "[].{name:name,resourceGroup:resourceGroup,"
    "ipAddress:ipAddress,fqdn:dnsSettings.fqdn}"
)


@dataclass
class PublicIPInfo:
    """Public IP address resource."""

    name: str
    resource_group: str
    ip_address: str | None = None
    fqdn: str | None = None


class NetworkManager:
    """Query network resources via az network."""

    @classmethod
    def list_public_ips(cls, prefix: str) -> list[PublicIPInfo]:
        """List public IP resources whose name starts with prefix."""
        data = run_az_json(["az", "network", "public-ip", "list", "--query", PUBLIC_IP_LIST_QUERY])

        ips = [
            PublicIPInfo(
                name=item.get("name", ""),
                resource_group=item.get("resourceGroup", ""),
                ip_address=item.get("ipAddress"),
                fqdn=item.get("fqdn"),
            )
            for item in data or []
        ]
        matched = [ip for ip in ips if ip.name.startswith(prefix)]
        logger.debug(f"Found {len(matched)} of {len(ips)} public IPs with prefix '{prefix}'")
        return matched


__all__ = ["NetworkManager", "PublicIPInfo"]
