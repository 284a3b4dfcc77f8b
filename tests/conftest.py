"""
Shared test fixtures for azlh tests.

This module provides common fixtures used across all test types:
- A complete operator configuration
- Captured subprocess execution (no real az/ssh/scp)
- A jump host configuration
"""

from unittest.mock import patch

import pytest

from azlh.config_manager import AzlhConfig
from azlh.remote import JumpHostConfig
from tests.mocks.subprocess_mock import SubprocessCallCapture

# ============================================================================
# CONFIGURATION FIXTURES
# ============================================================================

OPERATOR_ENV = {
    "AZLH_PREFIX": "ops",
    "AZLH_ADMIN_USERNAME": "opsadmin",
    "AZLH_REGION": "eastus",
    "AZLH_DEFAULT_IMAGE_NAME": "Canonical:UbuntuServer:18.04-LTS:latest",
    "AZLH_SSH_KEY_FILE": "~/.ssh/id_rsa_az_vm.pub",
    "AZLH_PROXY_SERVER_PRIVATE_IP": "10.0.0.4",
}


@pytest.fixture
def operator_env():
    """Environment of a fully configured operator."""
    return dict(OPERATOR_ENV)


@pytest.fixture
def config():
    """Fully populated AzlhConfig."""
    return AzlhConfig(
        prefix="ops",
        admin_username="opsadmin",
        region="eastus",
        default_image="Canonical:UbuntuServer:18.04-LTS:latest",
        ssh_key_file="~/.ssh/id_rsa_az_vm.pub",
        proxy_ip="10.0.0.4",
    )


@pytest.fixture
def jump():
    """Jump host settings matching the config fixture."""
    return JumpHostConfig(user="opsadmin", proxy_ip="10.0.0.4", region="eastus")


# ============================================================================
# SUBPROCESS FIXTURES
# ============================================================================


@pytest.fixture
def subprocess_capture():
    """Replace subprocess.run in azlh.command_runner with a recorder.

    Every delegate command azlh issues goes through command_runner, so
    this captures all az, ssh and scp invocations.
    """
    capture = SubprocessCallCapture()
    with patch("azlh.command_runner.subprocess.run", side_effect=capture.capture):
        yield capture
