"""Tests for dependency and libvirt checks."""

import subprocess
from unittest.mock import patch

import pytest

from conftest import completed
from vhd_spinner.environment import DEPENDENCIES, check_dependencies, check_libvirt
from vhd_spinner.errors import ProvisionError


class TestCheckDependencies:
    """Tests for check_dependencies."""

    def test_all_present(self, log) -> None:
        with (
            patch("vhd_spinner.environment.command_exists", return_value=True),
            patch("vhd_spinner.environment.run_command") as mock_run,
        ):
            missing = check_dependencies(log)

        assert missing == []
        mock_run.assert_not_called()

    def test_dry_run_only_reports(self, log, console_output) -> None:
        """Test simulate mode never calls apt-get."""
        with (
            patch("vhd_spinner.environment.command_exists", side_effect=lambda c: c != "virsh"),
            patch("vhd_spinner.environment.run_command") as mock_run,
        ):
            missing = check_dependencies(log, dry_run=True)

        assert missing == ["libvirt-clients"]
        mock_run.assert_not_called()
        assert "Would install missing dependency: libvirt-clients" in console_output.getvalue()

    def test_installs_missing(self, log) -> None:
        with (
            patch("vhd_spinner.environment.command_exists", side_effect=lambda c: c != "qemu-img"),
            patch("vhd_spinner.environment.run_command", return_value=completed()) as mock_run,
        ):
            missing = check_dependencies(log)

        assert missing == ["qemu-utils"]
        commands = [call.args[0] for call in mock_run.call_args_list]
        assert commands == [["apt-get", "update"], ["apt-get", "install", "-y", "qemu-utils"]]
        assert all(call.kwargs["sudo"] for call in mock_run.call_args_list)

    def test_install_failure_is_fatal(self, log) -> None:
        with (
            patch("vhd_spinner.environment.command_exists", return_value=False),
            patch(
                "vhd_spinner.environment.run_command",
                side_effect=subprocess.CalledProcessError(100, ["apt-get"]),
            ),
        ):
            with pytest.raises(ProvisionError, match="Failed to install qemu-utils"):
                check_dependencies(log)

    def test_dependency_table(self) -> None:
        commands = [cmd for cmd, _ in DEPENDENCIES]
        assert commands == ["qemu-img", "cloud-localds", "virt-install", "virsh"]


class TestCheckLibvirt:
    """Tests for check_libvirt."""

    def test_not_installed(self, log) -> None:
        with patch("vhd_spinner.environment.command_exists", return_value=False):
            with pytest.raises(ProvisionError, match="libvirtd is not installed"):
                check_libvirt(log)

    def test_not_running(self, log) -> None:
        with (
            patch("vhd_spinner.environment.command_exists", return_value=True),
            patch("vhd_spinner.environment.run_command", return_value=completed(returncode=3)),
        ):
            with pytest.raises(ProvisionError, match="not running"):
                check_libvirt(log)

    def test_not_reachable(self, log) -> None:
        with (
            patch("vhd_spinner.environment.command_exists", return_value=True),
            patch(
                "vhd_spinner.environment.run_command",
                side_effect=[completed(), completed(returncode=1)],
            ),
        ):
            with pytest.raises(ProvisionError, match="Cannot connect to libvirt"):
                check_libvirt(log)

    def test_healthy(self, log, console_output) -> None:
        with (
            patch("vhd_spinner.environment.command_exists", return_value=True),
            patch("vhd_spinner.environment.run_command", return_value=completed()) as mock_run,
        ):
            check_libvirt(log)

        assert mock_run.call_args_list[0].args[0] == ["systemctl", "is-active", "--quiet", "libvirtd"]
        assert mock_run.call_args_list[1].args[0] == ["virsh", "list"]
        assert "libvirtd is installed, running, and accessible." in console_output.getvalue()
