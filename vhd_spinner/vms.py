"""
VM creation functions.

Handles creating the VM's virtual disk, preparing cloud-init or driver
media, and assembling the virt-install command line.
"""

import shlex
import subprocess
from dataclasses import dataclass
from pathlib import Path

from vhd_spinner.config import Settings
from vhd_spinner.errors import ProvisionError
from vhd_spinner.images import is_bootable
from vhd_spinner.log import RunLog
from vhd_spinner.profiles import Profile
from vhd_spinner.utils import run_command

USER_DATA = "user-data"
META_DATA = "meta-data"

GRAPHICS = "spice"
CONSOLE = "pty,target_type=serial"
WINDOWS_EXTRA_ARGS = "autounattend.xml"
LINUX_EXTRA_ARGS = "console=ttyS0"


@dataclass(frozen=True)
class VmPlan:
    """Everything needed to run virt-install for one VM."""

    name: str
    profile: Profile
    iso_path: Path
    disk_path: Path
    boot_args: tuple[str, ...]
    seed_path: Path | None = None
    config_disk: tuple[str, ...] = ()
    driver_disk: tuple[str, ...] = ()


def disk_path_for(settings: Settings, name: str) -> Path:
    # qemu-img calls the VHD format "vpc"
    extension = "vhd" if settings.disk_format == "vpc" else settings.disk_format
    return settings.vms_dir / f"{name}.{extension}"


def seed_path_for(settings: Settings, name: str) -> Path:
    return settings.configs_dir / f"{name}-config.iso"


def cdrom_disk(path: Path) -> tuple[str, ...]:
    return ("--disk", f"path={path},device=cdrom")


def create_disk(
    path: Path,
    disk_format: str,
    size: str,
    log: RunLog,
    dry_run: bool = False,
) -> None:
    """
    Create the VM's virtual disk with qemu-img.

    Args:
        path: Disk image to create (overwritten if present)
        disk_format: qemu-img format tag, e.g. ``vpc``
        size: qemu-img size string, e.g. ``20G``
        log: Run log
        dry_run: Only log what would be created

    Raises:
        ProvisionError: If qemu-img fails
    """
    if dry_run:
        log.would(f"Would create {size} {disk_format} disk at {path}")
        return

    path.parent.mkdir(parents=True, exist_ok=True)
    log.info(f"Creating VHD at {path}...")
    try:
        run_command(
            ["qemu-img", "create", "-f", disk_format, str(path), size],
            step="Disk creation",
        )
    except (FileNotFoundError, subprocess.CalledProcessError) as exc:
        raise ProvisionError("Failed to create VHD") from exc


def build_seed_image(seed_path: Path, configs_dir: Path, log: RunLog, dry_run: bool = False) -> None:
    """
    Generate the cloud-init seed ISO from user-data and meta-data.

    Raises:
        ProvisionError: If an input file is missing or cloud-localds fails
    """
    user_data = configs_dir / USER_DATA
    meta_data = configs_dir / META_DATA
    if not user_data.is_file():
        raise ProvisionError("Missing user-data file")
    if not meta_data.is_file():
        raise ProvisionError("Missing meta-data file")

    if dry_run:
        log.would(f"Would generate autoinstall config ISO at {seed_path}")
        return

    try:
        run_command(
            ["cloud-localds", str(seed_path), str(user_data), str(meta_data)],
            step="Config ISO generation",
        )
    except (FileNotFoundError, subprocess.CalledProcessError) as exc:
        raise ProvisionError("Failed to generate config ISO") from exc
    log.info(f"Generated config ISO at {seed_path}")


def prepare_guest_media(
    profile: Profile,
    settings: Settings,
    name: str,
    log: RunLog,
    dry_run: bool = False,
) -> tuple[Path | None, tuple[str, ...], tuple[str, ...]]:
    """
    Prepare the extra media a guest needs at install time.

    Windows guests get the virtio driver ISO (when present) and no
    cloud-init; every other guest gets a cloud-init seed image.

    Returns:
        (seed_path, config_disk_args, driver_disk_args)
    """
    if profile.is_windows:
        driver_disk = ()
        if settings.virtio_iso.is_file():
            driver_disk = cdrom_disk(settings.virtio_iso)
            log.info(f"Attaching driver ISO {settings.virtio_iso}")
        else:
            log.warning(f"Driver ISO not found at {settings.virtio_iso}; continuing without it")
        return None, (), driver_disk

    seed_path = seed_path_for(settings, name)
    build_seed_image(seed_path, settings.configs_dir, log, dry_run)
    return seed_path, cdrom_disk(seed_path), ()


def boot_args(iso_path: Path) -> tuple[str, ...]:
    """Boot a bootable ISO as a CD-ROM, anything else as an install tree."""
    if is_bootable(iso_path):
        return ("--cdrom", str(iso_path))
    return ("--location", str(iso_path))


def build_install_command(plan: VmPlan) -> list[str]:
    """Assemble the virt-install argument list for a plan."""
    profile = plan.profile
    return [
        "virt-install",
        "--name", plan.name,
        "--memory", str(profile.memory_mb),
        "--vcpus", str(profile.vcpus),
        "--disk", f"path={plan.disk_path},format={profile.disk_format}",
        *plan.config_disk,
        *plan.driver_disk,
        "--os-variant", profile.os_variant,
        "--graphics", GRAPHICS,
        "--console", CONSOLE,
        *plan.boot_args,
        "--extra-args", WINDOWS_EXTRA_ARGS if profile.is_windows else LINUX_EXTRA_ARGS,
    ]


def launch_vm(plan: VmPlan, log: RunLog, dry_run: bool = False) -> list[str]:
    """
    Run virt-install for a plan.

    Returns:
        The command that was (or in dry-run mode would be) run

    Raises:
        ProvisionError: If virt-install fails
    """
    cmd = build_install_command(plan)
    if dry_run:
        log.would(f"Would launch VM '{plan.name}' using {shlex.join(plan.boot_args)}")
        log.would(f"Would run: {shlex.join(cmd)}")
        return cmd

    try:
        run_command(cmd, capture=False, step="VM creation")
    except (FileNotFoundError, subprocess.CalledProcessError) as exc:
        raise ProvisionError("VM creation failed") from exc
    log.info(f"VM '{plan.name}' created and booting.")
    return cmd
