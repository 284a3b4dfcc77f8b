"""azlh - Azure CLI lifecycle helpers

Philosophy:
- Thin wrappers around az, ssh and scp
- Explicit configuration object, no hidden globals
- Fail fast with helpful guidance

azlh streamlines everyday operator tasks: resource groups, timestamped VMs,
file copies through a jump host, remote package installs and image capture.
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
