"""
vhd-spinner - VM Provisioning Tool

This package provisions libvirt VMs from a directory of installer ISOs
and keeps a changelog of the project's history.
"""

__version__ = "0.1.0"

from vhd_spinner.config import Settings, load_config, load_settings
from vhd_spinner.errors import ChangelogError, ConfigError, ProvisionError, SpinnerError
from vhd_spinner.profiles import Profile, available_profiles, load_profiles, resolve_profile
from vhd_spinner.utils import command_exists, run_command

__all__ = [
    "__version__",
    "Settings",
    "load_config",
    "load_settings",
    "ChangelogError",
    "ConfigError",
    "ProvisionError",
    "SpinnerError",
    "Profile",
    "available_profiles",
    "load_profiles",
    "resolve_profile",
    "command_exists",
    "run_command",
]
