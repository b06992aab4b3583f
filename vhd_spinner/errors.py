"""
Exception types shared across vhd-spinner.

Every step raises one of these instead of exiting; the CLI turns them
into an ``ERROR:`` log line and a non-zero exit status.
"""


class SpinnerError(Exception):
    """Base class for all vhd-spinner failures."""


class ConfigError(SpinnerError):
    """Raised when the configuration file cannot be used."""


class ProvisionError(SpinnerError):
    """Raised when a provisioning step cannot continue."""


class ChangelogError(SpinnerError):
    """Raised when the changelog cannot be generated."""
