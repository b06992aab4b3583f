"""Pytest fixtures for vhd-spinner tests."""

import io
import subprocess
from pathlib import Path

import pytest
from rich.console import Console

from vhd_spinner.config import Settings
from vhd_spinner.log import RunLog

ISO_DESCRIPTION = (
    "ISO 9660 CD-ROM filesystem data 'Ubuntu-Server 22.04 LTS amd64' (bootable)"
)


def completed(stdout: str = "", returncode: int = 0, args=None) -> subprocess.CompletedProcess:
    """Build a CompletedProcess for mocked run_command calls."""
    return subprocess.CompletedProcess(args or [], returncode, stdout=stdout, stderr="")


def write_iso(images_dir: Path, name: str, content: bytes = b"fake iso data") -> Path:
    images_dir.mkdir(parents=True, exist_ok=True)
    path = images_dir / name
    path.write_bytes(content)
    return path


@pytest.fixture
def base_dir(tmp_path: Path) -> Path:
    return tmp_path / "vhd_spinner"


@pytest.fixture
def settings(base_dir: Path) -> Settings:
    """Default layout rooted in a temporary directory."""
    settings = Settings.from_config({}, base_dir)
    settings.images_dir.mkdir(parents=True)
    return settings


@pytest.fixture
def cloud_init(settings: Settings) -> Path:
    """Create the user-data and meta-data inputs."""
    settings.configs_dir.mkdir(parents=True, exist_ok=True)
    (settings.configs_dir / "user-data").write_text("#cloud-config\n")
    (settings.configs_dir / "meta-data").write_text("instance-id: test\n")
    return settings.configs_dir


@pytest.fixture
def console_output() -> io.StringIO:
    return io.StringIO()


@pytest.fixture
def log(settings: Settings, console_output: io.StringIO) -> RunLog:
    """Run log writing to the temp log file and an in-memory console."""
    return RunLog(settings.log_file, Console(file=console_output, width=200))
