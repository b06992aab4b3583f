"""Tests for the command-line entry points."""

from unittest.mock import patch

import pytest
from click.testing import CliRunner

from conftest import ISO_DESCRIPTION, completed, write_iso
from vhd_spinner.cli import changelog, provision


@pytest.fixture
def runner(base_dir, monkeypatch) -> CliRunner:
    """CliRunner with the base directory pointed at a temp dir."""
    monkeypatch.setenv("VHD_SPINNER_HOME", str(base_dir))
    monkeypatch.delenv("VHD_SPINNER_CONFIG", raising=False)
    return CliRunner()


class TestProvisionCli:
    """Tests for the provision command."""

    def test_no_arguments_prints_help(self, runner, settings) -> None:
        write_iso(settings.images_dir, "ubuntu-22.04.iso")

        result = runner.invoke(provision, [])

        assert result.exit_code == 0
        assert "Provision a VM using available profiles." in result.output
        assert "- ubuntu-22.04" in result.output

    def test_help_lists_profiles(self, runner, settings) -> None:
        write_iso(settings.images_dir, "debian-12.iso")

        result = runner.invoke(provision, ["--help"])

        assert result.exit_code == 0
        assert "--dry-run" in result.output
        assert "- debian-12" in result.output

    def test_list(self, runner, settings) -> None:
        write_iso(settings.images_dir, "ubuntu-22.04.iso")
        write_iso(settings.images_dir, "windows10.iso")

        result = runner.invoke(provision, ["--list"])

        assert result.exit_code == 0
        assert "Available VM profiles (ISO found):" in result.output
        assert "  - ubuntu-22.04" in result.output
        assert "  - windows10" in result.output

    def test_list_details(self, runner, settings) -> None:
        write_iso(settings.images_dir, "ubuntu-22.04.iso")

        result = runner.invoke(provision, ["--list", "--details"])

        assert result.exit_code == 0
        assert "ubuntu22.04" in result.output
        assert "3072" in result.output

    def test_unknown_profile_exits_1(self, runner, settings) -> None:
        result = runner.invoke(provision, ["ghost"])

        assert result.exit_code == 1
        assert "ERROR: Profile 'ghost' is not available or ISO is missing." in result.output
        assert "ERROR: Profile 'ghost'" in settings.log_file.read_text()
        assert not settings.vms_dir.exists()
        assert not settings.checksum_file.exists()

    def test_dry_run_succeeds(self, runner, settings, cloud_init) -> None:
        write_iso(settings.images_dir, "ubuntu-22.04.iso")

        with (
            patch("vhd_spinner.environment.command_exists", return_value=True),
            patch("vhd_spinner.images.run_command", return_value=completed(ISO_DESCRIPTION)),
            patch("vhd_spinner.vms.run_command") as mock_run,
        ):
            result = runner.invoke(provision, ["--dry-run", "ubuntu-22.04"])

        assert result.exit_code == 0, result.output
        mock_run.assert_not_called()
        assert "--memory 3072" in result.output

    def test_bad_config_exits_1(self, runner, base_dir) -> None:
        base_dir.mkdir(parents=True)
        (base_dir / "config.yaml").write_text("- not a mapping\n")

        result = runner.invoke(provision, ["--list"])

        assert result.exit_code == 1
        assert "ERROR:" in result.output

    def test_bad_config_section_exits_1(self, runner, base_dir) -> None:
        base_dir.mkdir(parents=True)
        (base_dir / "config.yaml").write_text("paths: oops\n")

        result = runner.invoke(provision, ["ubuntu-22.04"])

        assert result.exit_code == 1
        assert "'paths' must be a mapping" in result.output
        assert not isinstance(result.exception, AttributeError)

    def test_version(self, runner) -> None:
        result = runner.invoke(provision, ["--version"])

        assert result.exit_code == 0
        assert "0.1.0" in result.output


class TestChangelogCli:
    """Tests for the generate-changelog command."""

    def test_writes_file(self, runner, tmp_path) -> None:
        output = tmp_path / "CHANGELOG.md"
        with patch(
            "vhd_spinner.changelog.run_command",
            return_value=completed("- 2025-09-13: Initial commit (abc1234)"),
        ):
            result = runner.invoke(changelog, ["--output", str(output)])

        assert result.exit_code == 0
        assert "CHANGELOG.md updated." in result.output
        assert "- 2025-09-13: Initial commit (abc1234)" in output.read_text()

    def test_git_failure(self, runner, tmp_path) -> None:
        with patch("vhd_spinner.changelog.run_command", side_effect=FileNotFoundError("git")):
            result = runner.invoke(changelog, ["--output", str(tmp_path / "CHANGELOG.md")])

        assert result.exit_code == 1
        assert "git is not installed" in result.output

    def test_help(self, runner) -> None:
        result = runner.invoke(changelog, ["--help"])

        assert result.exit_code == 0
        assert "Generates CHANGELOG.md from Git commit history." in result.output
