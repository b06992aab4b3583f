"""
Configuration management for vhd-spinner.

Handles locating the per-user base directory and loading the optional
config.yaml that overrides the default directory layout.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from vhd_spinner.errors import ConfigError

# Default paths
DEFAULT_BASE_DIR = Path("~/vhd_spinner")
CONFIG_FILENAME = "config.yaml"

HOME_ENV = "VHD_SPINNER_HOME"
CONFIG_ENV = "VHD_SPINNER_CONFIG"


def get_base_dir() -> Path:
    """Return the base directory, honouring ``VHD_SPINNER_HOME``."""
    return Path(os.environ.get(HOME_ENV, DEFAULT_BASE_DIR)).expanduser()


def get_config_file(base_dir: Path | None = None) -> Path:
    """Return the path of the YAML configuration file."""
    override = os.environ.get(CONFIG_ENV)
    if override:
        return Path(override).expanduser()
    return (base_dir or get_base_dir()) / CONFIG_FILENAME


def load_config(config_file: Path | None = None) -> dict[str, Any]:
    """
    Load configuration from config.yaml.

    Args:
        config_file: Explicit path to read; defaults to the standard location

    Returns:
        Dictionary containing configuration, or empty dict if file doesn't exist

    Raises:
        ConfigError: If the file is not valid YAML or not a mapping
    """
    path = config_file or get_config_file()
    if not path.exists():
        return {}

    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse configuration '{path}': {exc}") from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Configuration '{path}' must contain a mapping at the top level")
    return data


def _section(config: dict[str, Any], name: str) -> dict[str, Any]:
    """Return a top-level section of the config, which must be a mapping."""
    value = config.get(name)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigError(f"'{name}' must be a mapping")
    return value


@dataclass(frozen=True)
class Settings:
    """Resolved directory layout and disk defaults for one run."""

    base_dir: Path
    images_dir: Path
    configs_dir: Path
    vms_dir: Path
    checksum_file: Path
    log_file: Path
    virtio_iso: Path
    disk_size: str = "20G"
    disk_format: str = "vpc"

    @classmethod
    def from_config(cls, config: dict[str, Any], base_dir: Path) -> "Settings":
        """Build settings from a loaded config mapping."""
        paths = _section(config, "paths")
        disk = _section(config, "disk")

        def resolve(key: str, default: Path) -> Path:
            value = paths.get(key)
            if value is None:
                return default
            path = Path(str(value)).expanduser()
            return path if path.is_absolute() else base_dir / path

        images_dir = resolve("images_dir", base_dir / "isos")
        return cls(
            base_dir=base_dir,
            images_dir=images_dir,
            configs_dir=resolve("configs_dir", base_dir / "configs"),
            vms_dir=resolve("vms_dir", base_dir / "vms"),
            checksum_file=resolve("checksum_file", images_dir / ".iso_crc32"),
            log_file=resolve("log_file", base_dir / "provision_vm.log"),
            virtio_iso=resolve("virtio_iso", images_dir / "virtio-win.iso"),
            disk_size=str(disk.get("size", "20G")),
            disk_format=str(disk.get("format", "vpc")),
        )


def load_settings(base_dir: Path | None = None) -> Settings:
    """Load config.yaml (if any) and resolve it into :class:`Settings`."""
    base = base_dir or get_base_dir()
    return Settings.from_config(load_config(get_config_file(base)), base)
