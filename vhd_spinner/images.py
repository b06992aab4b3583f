"""
Installer image inspection.

Uses the ``file`` utility to confirm an ISO really is an ISO 9660
image and to decide whether it can be booted directly as a CD-ROM.
"""

import subprocess
from pathlib import Path

from vhd_spinner.errors import ProvisionError
from vhd_spinner.utils import run_command

ISO9660_MARKER = "ISO 9660"
BOOTABLE_MARKER = "bootable"


def inspect_file(path: Path) -> str:
    """
    Return the ``file`` description of a path.
    
    Raises:
        ProvisionError: If ``file`` is not installed or fails
    """
    try:
        result = run_command(["file", str(path)], step="ISO inspection")
    except FileNotFoundError as exc:
        raise ProvisionError("The 'file' utility is not installed") from exc
    except subprocess.CalledProcessError as exc:
        raise ProvisionError(f"Could not inspect {path}") from exc
    return result.stdout


def validate_iso(path: Path) -> None:
    """
    Check that ``path`` exists and is an ISO 9660 image.
    
    Raises:
        ProvisionError: If the file is missing or not an ISO
    """
    if not path.is_file():
        raise ProvisionError(f"ISO not found: {path}")
    if ISO9660_MARKER not in inspect_file(path):
        raise ProvisionError(f"Invalid ISO format: {path}")


def is_bootable(path: Path) -> bool:
    """True when ``file`` reports the image as bootable (case-insensitive)."""
    return BOOTABLE_MARKER in inspect_file(path).lower()
