"""Tests for vm_manager module.

Covers the az vm create argument list built from config and overrides,
the provisioning call order, best-effort versus strict failure handling,
and the marketplace image queries.
"""

import json
from datetime import datetime

import pytest

from azlh.config_manager import AzlhConfig, VMCreateOverrides
from azlh.exceptions import CommandError, ConfigError, MissingArgumentError, ValidationError
from azlh.vm_manager import VMCreateRequest, VMCreateResult, VMManager

NOW = datetime(2026, 10, 19, 17, 40, 0)
NAME = "ops20261019174000"
IMAGE = "Canonical:UbuntuServer:18.04-LTS:latest"


def _option(cmd: list[str], flag: str) -> str:
    return cmd[cmd.index(flag) + 1]


def _vm_create(capture) -> list[str]:
    calls = capture.get_calls_matching("vm create")
    assert len(calls) == 1
    return calls[0]


class TestVMCreateRequest:
    def _request(self, **kwargs) -> VMCreateRequest:
        defaults = {
            "resource_group": NAME,
            "name": NAME,
            "location": "eastus",
            "image": IMAGE,
            "admin_username": "opsadmin",
            "dns_name": NAME,
            "boot_diagnostics_storage": NAME,
            "size": "Standard_DS1_v2",
            "os_disk_size_gb": 32,
        }
        defaults.update(kwargs)
        return VMCreateRequest(**defaults)

    def test_minimal_args(self):
        assert self._request(ssh_key_file="~/.ssh/id.pub").to_az_args() == [
            "az",
            "vm",
            "create",
            "-g",
            NAME,
            "-n",
            NAME,
            "-l",
            "eastus",
            "--admin-username",
            "opsadmin",
            "--authentication-type",
            "ssh",
            "--ssh-key-values",
            "~/.ssh/id.pub",
            "--public-ip-address-dns-name",
            NAME,
            "--image",
            IMAGE,
            "--size",
            "Standard_DS1_v2",
            "--accelerated-networking",
            "false",
            "--os-disk-size-gb",
            "32",
            "--boot-diagnostics-storage",
            NAME,
            "--output",
            "none",
        ]

    def test_password_enables_all_auth(self):
        cmd = self._request(admin_password="Secret123!").to_az_args()

        assert _option(cmd, "--authentication-type") == "all"
        assert _option(cmd, "--admin-password") == "Secret123!"

    def test_generates_keys_without_key_file(self):
        cmd = self._request().to_az_args()

        assert "--generate-ssh-keys" in cmd
        assert "--ssh-key-values" not in cmd

    def test_optional_flags(self):
        cmd = self._request(
            custom_data="cloud-init.txt",
            accelerated_networking=True,
            identity_scope="/subscriptions/1/resourceGroups/x",
        ).to_az_args()

        assert _option(cmd, "--custom-data") == "cloud-init.txt"
        assert _option(cmd, "--accelerated-networking") == "true"
        assert _option(cmd, "--scope") == "/subscriptions/1/resourceGroups/x"
        assert "--assign-identity" in cmd


class TestCreateVM:
    def test_defaults(self, subprocess_capture, config):
        result = VMManager.create_vm(config, IMAGE, "demo", now=NOW)

        assert result.succeeded
        assert result.name == NAME
        assert result.resource_group == NAME
        assert result.fqdn == f"{NAME}.eastus.cloudapp.azure.com"

        cmd = _vm_create(subprocess_capture)
        assert _option(cmd, "-g") == NAME
        assert _option(cmd, "-n") == NAME
        assert _option(cmd, "--public-ip-address-dns-name") == NAME
        assert _option(cmd, "--boot-diagnostics-storage") == NAME
        assert _option(cmd, "--size") == "Standard_DS1_v2"
        assert _option(cmd, "--os-disk-size-gb") == "32"
        assert _option(cmd, "--authentication-type") == "ssh"
        assert _option(cmd, "--accelerated-networking") == "false"
        assert _option(cmd, "--ssh-key-values") == "~/.ssh/id_rsa_az_vm.pub"
        assert _option(cmd, "--image") == IMAGE
        assert "--admin-password" not in cmd
        assert "--custom-data" not in cmd
        assert "--assign-identity" not in cmd

    def test_call_order(self, subprocess_capture, config):
        VMManager.create_vm(config, IMAGE, now=NOW)

        assert [cmd[:3] for cmd in subprocess_capture.commands] == [
            ["az", "group", "create"],
            ["az", "storage", "account"],
            ["az", "image", "show"],
            ["az", "vm", "create"],
        ]

    def test_notes_tag_on_group(self, subprocess_capture, config):
        VMManager.create_vm(config, IMAGE, "trying a fix", now=NOW)

        group_create = subprocess_capture.get_calls_matching("group create")[0]
        assert "notes=trying a fix" in group_create

    def test_overrides(self, subprocess_capture, config):
        overrides = VMCreateOverrides(
            size="Standard_D4s_v3",
            admin_password="Secret123!",
            accelerated_networking=True,
            os_disk_size_gb=128,
        )

        result = VMManager.create_vm(config, IMAGE, overrides=overrides, now=NOW)

        cmd = _vm_create(subprocess_capture)
        assert _option(cmd, "--size") == "Standard_D4s_v3"
        assert _option(cmd, "--authentication-type") == "all"
        assert _option(cmd, "--admin-password") == "Secret123!"
        assert _option(cmd, "--accelerated-networking") == "true"
        assert _option(cmd, "--os-disk-size-gb") == "128"
        assert result.size == "Standard_D4s_v3"

    def test_custom_image_wins(self, subprocess_capture, config):
        image_id = "/subscriptions/1/resourceGroups/ops1/providers/Microsoft.Compute/images/ops1"
        subprocess_capture.configure_response("image show", stdout=f"{image_id}\n")

        result = VMManager.create_vm(config, "ops1", now=NOW)

        assert _option(_vm_create(subprocess_capture), "--image") == image_id
        assert result.image == image_id

    def test_managed_identity_scoped_to_group(self, subprocess_capture, config):
        group_id = f"/subscriptions/1/resourceGroups/{NAME}"
        subprocess_capture.configure_response("group show", stdout=group_id)

        VMManager.create_vm(
            config, IMAGE, overrides=VMCreateOverrides(managed_identity=True), now=NOW
        )

        assert [cmd[:3] for cmd in subprocess_capture.commands][-2:] == [
            ["az", "group", "show"],
            ["az", "vm", "create"],
        ]
        cmd = _vm_create(subprocess_capture)
        assert "--assign-identity" in cmd
        assert _option(cmd, "--scope") == group_id

    def test_custom_data(self, subprocess_capture, config):
        VMManager.create_vm(config, IMAGE, None, "#cloud-config", now=NOW)

        assert _option(_vm_create(subprocess_capture), "--custom-data") == "#cloud-config"

    def test_best_effort_reports_failure(self, subprocess_capture, config):
        subprocess_capture.configure_response("vm create", 1, stderr="QuotaExceeded")

        result = VMManager.create_vm(config, IMAGE, now=NOW)

        assert not result.succeeded
        assert result.returncode == 1
        assert result.error == "QuotaExceeded"

    def test_strict_raises(self, subprocess_capture, config):
        subprocess_capture.configure_response("vm create", 1, stderr="QuotaExceeded")

        with pytest.raises(CommandError, match="QuotaExceeded"):
            VMManager.create_vm(config, IMAGE, best_effort=False, now=NOW)

    def test_prerequisite_failure_always_raises(self, subprocess_capture, config):
        subprocess_capture.configure_response("group create", 1, stderr="AuthorizationFailed")

        with pytest.raises(CommandError):
            VMManager.create_vm(config, IMAGE, now=NOW)

        subprocess_capture.assert_call_count(1)

    def test_missing_image_makes_no_calls(self, subprocess_capture, config):
        with pytest.raises(MissingArgumentError) as exc_info:
            VMManager.create_vm(config, "")

        message = str(exc_info.value)
        assert message.startswith("Param1: Image name\nParam2: (Optional) Notes")
        assert "VM_SIZE" in message
        subprocess_capture.assert_call_count(0)

    @pytest.mark.parametrize("prefix", ["ops-dev", "azlhtesting"])
    def test_invalid_storage_name_makes_no_calls(self, subprocess_capture, config, prefix):
        config.prefix = prefix

        with pytest.raises(ValidationError):
            VMManager.create_vm(config, IMAGE, now=NOW)

        subprocess_capture.assert_call_count(0)

    def test_missing_config_makes_no_calls(self, subprocess_capture):
        with pytest.raises(ConfigError, match="AZLH_PREFIX"):
            VMManager.create_vm(AzlhConfig(region="eastus", admin_username="a"), IMAGE)

        subprocess_capture.assert_call_count(0)


class TestCreateVMDefault:
    def test_uses_default_image(self, subprocess_capture, config):
        VMManager.create_vm_default(config, "demo", now=NOW)

        assert _option(_vm_create(subprocess_capture), "--image") == IMAGE

    def test_requires_default_image(self, subprocess_capture, config):
        config.default_image = None

        with pytest.raises(ConfigError, match="AZLH_DEFAULT_IMAGE_NAME"):
            VMManager.create_vm_default(config)

        subprocess_capture.assert_call_count(0)

    def test_custom_data_variant(self, subprocess_capture, config):
        VMManager.create_vm_default_custom_data(config, "init.yaml", "demo", now=NOW)

        cmd = _vm_create(subprocess_capture)
        assert _option(cmd, "--custom-data") == "init.yaml"
        assert _option(cmd, "--image") == IMAGE

    def test_custom_data_required(self, subprocess_capture, config):
        with pytest.raises(MissingArgumentError, match="Param1: Custom data"):
            VMManager.create_vm_default_custom_data(config, "")

        subprocess_capture.assert_call_count(0)


class TestVMCreateResult:
    def test_summary(self):
        result = VMCreateResult(
            resource_group=NAME,
            name=NAME,
            size="Standard_DS1_v2",
            admin_username="opsadmin",
            ssh_key_file=None,
            fqdn=f"{NAME}.eastus.cloudapp.azure.com",
            image=IMAGE,
        )

        lines = result.summary_lines()
        assert f"VM name:         {NAME}" in lines
        assert "SSH key file:    (generated by az)" in lines


class TestMarketplaceQueries:
    def test_list_skus(self, subprocess_capture):
        subprocess_capture.configure_response(
            "list-skus",
            stdout=json.dumps([{"name": "18.04-LTS", "location": "eastus"}, {"name": "19.04"}]),
        )

        skus = VMManager.list_ubuntu_skus("eastus")

        assert [s.name for s in skus] == ["18.04-LTS", "19.04"]
        assert skus[1].location == "eastus"
        subprocess_capture.assert_called_with_command(
            "az vm image list-skus --publisher Canonical --offer UbuntuServer -l eastus"
        )

    def test_list_versions(self, subprocess_capture):
        subprocess_capture.configure_response(
            "vm image list ",
            stdout=json.dumps(
                [
                    {
                        "urn": "Canonical:UbuntuServer:18.04-LTS:18.04.202401010",
                        "sku": "18.04-LTS",
                        "version": "18.04.202401010",
                    }
                ]
            ),
        )

        versions = VMManager.list_ubuntu_versions("eastus", "18.04-LTS")

        assert versions[0].version == "18.04.202401010"
        cmd = subprocess_capture.commands[0]
        assert _option(cmd, "--sku") == "18.04-LTS"
        assert "--all" in cmd

    def test_list_versions_requires_sku(self, subprocess_capture):
        with pytest.raises(MissingArgumentError, match="Param1: SKU name"):
            VMManager.list_ubuntu_versions("eastus", "")

        subprocess_capture.assert_call_count(0)


class TestBootLog:
    def test_boot_log(self, subprocess_capture):
        subprocess_capture.configure_response("get-boot-log", stdout="[    0.000000] Linux")

        assert VMManager.get_boot_log("ops1") == "[    0.000000] Linux"
        assert subprocess_capture.commands[0] == [
            "az",
            "vm",
            "boot-diagnostics",
            "get-boot-log",
            "--name",
            "ops1",
            "-g",
            "ops1",
        ]
