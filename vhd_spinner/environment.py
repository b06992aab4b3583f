"""
Host environment checks.

Makes sure the command-line tools provisioning relies on are installed
and that the libvirt daemon is up and answering.
"""

import subprocess

from vhd_spinner.errors import ProvisionError
from vhd_spinner.log import RunLog
from vhd_spinner.utils import command_exists, run_command

# (command, Debian package providing it)
DEPENDENCIES: tuple[tuple[str, str], ...] = (
    ("qemu-img", "qemu-utils"),
    ("cloud-localds", "cloud-image-utils"),
    ("virt-install", "virtinst"),
    ("virsh", "libvirt-clients"),
)


def install_package(package: str) -> None:
    """
    Install a package with apt-get.
    
    Raises:
        ProvisionError: If apt-get is missing or either step fails
    """
    try:
        run_command(["apt-get", "update"], capture=False, sudo=True, step="Package index update")
        run_command(
            ["apt-get", "install", "-y", package],
            capture=False,
            sudo=True,
            step=f"Installing {package}",
        )
    except (FileNotFoundError, subprocess.CalledProcessError) as exc:
        raise ProvisionError(f"Failed to install {package}") from exc


def check_dependencies(
    log: RunLog,
    dry_run: bool = False,
    dependencies: tuple[tuple[str, str], ...] = DEPENDENCIES,
) -> list[str]:
    """
    Ensure every required command is available, installing what is missing.
    
    Args:
        log: Run log
        dry_run: Only report what would be installed
        dependencies: (command, package) pairs to check
    
    Returns:
        Packages that were (or in dry-run mode would be) installed
    """
    missing = []
    for cmd, package in dependencies:
        if command_exists(cmd):
            log.info(f"Dependency '{cmd}' is already installed.")
            continue

        missing.append(package)
        if dry_run:
            log.would(f"Would install missing dependency: {package}")
        else:
            log.info(f"Installing missing dependency: {package}...")
            install_package(package)
    return missing


def check_libvirt(log: RunLog) -> None:
    """
    Confirm libvirtd is installed, running and reachable.
    
    Raises:
        ProvisionError: On the first check that fails
    """
    if not command_exists("libvirtd"):
        raise ProvisionError(
            "libvirtd is not installed. Please install libvirt-daemon-system "
            "and start the service."
        )

    try:
        active = run_command(
            ["systemctl", "is-active", "--quiet", "libvirtd"], check=False
        ).returncode == 0
    except FileNotFoundError:
        active = False
    if not active:
        raise ProvisionError(
            "libvirtd is installed but not running. Try: sudo systemctl start libvirtd"
        )

    try:
        reachable = run_command(["virsh", "list"], check=False).returncode == 0
    except FileNotFoundError:
        reachable = False
    if not reachable:
        raise ProvisionError(
            "Cannot connect to libvirt. You may need to add your user to the "
            "'libvirt' group and re-login."
        )

    log.info("libvirtd is installed, running, and accessible.")
