"""Pytest configuration and fixtures for azlh tests.

CRITICAL: Protects the operator's real configuration from tests.
"""

import pytest

from azlh.config_manager import AzlhConfig, ConfigManager

# Variables that change azlh behaviour when set in the developer's shell
OVERRIDE_ENV_VARS = [
    "VM_SIZE",
    "ADMIN_PASSWORD",
    "ACCEL_NET",
    "OSDISK_SIZE",
    "MSI",
    "VM_GEN",
    "NO_DEPROVISION",
]


@pytest.fixture(autouse=True)
def isolated_azlh_environment(tmp_path, monkeypatch):
    """Keep tests away from ~/.azlh/config.toml and the caller's AZLH_* settings.

    Tests that need configuration set it explicitly through environment
    variables (monkeypatch or CliRunner env) or an AzlhConfig object.
    """
    config_file = tmp_path / ".azlh" / "config.toml"
    monkeypatch.setattr(ConfigManager, "DEFAULT_CONFIG_FILE", config_file)

    for env_var in [*AzlhConfig.ENV_VARS.values(), *OVERRIDE_ENV_VARS]:
        monkeypatch.delenv(env_var, raising=False)

    return config_file
