"""Resource naming helpers.

A provisioning run shares one name across the resource group, VM, DNS label
and storage account: the configured prefix followed by a second-resolution
timestamp. Two runs started within the same second produce the same name;
the platform rejects the duplicate.
"""

from datetime import datetime

from azlh.exceptions import require_args

NAMING_FORMAT = "%Y%m%d%H%M%S"
CREATED_ON_FORMAT = "%a %b %d %H:%M:%S %Z %Y"
CLOUDAPP_DOMAIN = "cloudapp.azure.com"


def current_date_for_naming(now: datetime | None = None) -> str:
    """Timestamp used in resource names, e.g. 20261019174000."""
    return (now or datetime.now()).strftime(NAMING_FORMAT)


def resource_name(prefix: str, now: datetime | None = None) -> str:
    """Build a timestamped resource name from the configured prefix."""
    return f"{prefix}{current_date_for_naming(now)}"


def created_on_tag(now: datetime | None = None) -> str:
    """Value of the created_on tag: a date(1)-style stamp without spaces."""
    stamp = (now or datetime.now().astimezone()).strftime(CREATED_ON_FORMAT)
    return "_".join(stamp.split())


def full_dns_name(vm_name: str, region: str) -> str:
    """Public DNS name Azure assigns to a VM's DNS label.

    Example:
        >>> full_dns_name("myvm", "eastus")
        'myvm.eastus.cloudapp.azure.com'
    """
    require_args(["VM name"], vm_name)
    return f"{vm_name}.{region}.{CLOUDAPP_DOMAIN}"


__all__ = ["created_on_tag", "current_date_for_naming", "full_dns_name", "resource_name"]
