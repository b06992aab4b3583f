"""
Command implementations.

Contains the work behind the CLI commands: provisioning a VM from a
profile, listing profiles, and writing the changelog.
"""

from pathlib import Path
from typing import Mapping

from rich.table import Table

from vhd_spinner.changelog import write_changelog
from vhd_spinner.checksums import ChecksumStore, verify_images
from vhd_spinner.config import Settings
from vhd_spinner.environment import check_dependencies, check_libvirt
from vhd_spinner.images import validate_iso
from vhd_spinner.log import RunLog
from vhd_spinner.profiles import Profile, available_profiles, load_profiles, resolve_profile
from vhd_spinner.utils import console
from vhd_spinner.vms import (
    VmPlan,
    boot_args,
    create_disk,
    disk_path_for,
    launch_vm,
    prepare_guest_media,
)


def load_settings_profiles(settings: Settings) -> Mapping[str, Profile]:
    """Load the profiles for the configured images directory and driver ISO."""
    return load_profiles(settings.images_dir, settings.disk_format, driver_iso=settings.virtio_iso)


def get_available_profiles(settings: Settings) -> list[str]:
    """Return the names of profiles whose ISO is present."""
    profiles = load_settings_profiles(settings)
    return available_profiles(profiles, settings.images_dir)


def list_profiles(settings: Settings, as_table: bool = False) -> list[str]:
    """Print the available profiles."""
    names = get_available_profiles(settings)

    if as_table:
        profiles = load_settings_profiles(settings)
        table = Table(title="Available VM Profiles")
        table.add_column("Profile", style="cyan")
        table.add_column("OS Variant", style="green")
        table.add_column("Memory (MB)", justify="right")
        table.add_column("vCPUs", justify="right")
        for name in names:
            profile = profiles[name]
            table.add_row(name, profile.os_variant, str(profile.memory_mb), str(profile.vcpus))
        console.print(table)
        return names

    console.print("Available VM profiles (ISO found):", markup=False)
    for name in names:
        console.print(f"  - {name}", markup=False, highlight=False)
    return names


def provision_vm(
    vm_name: str,
    settings: Settings,
    log: RunLog,
    dry_run: bool = False,
) -> VmPlan:
    """
    Provision a VM from the profile named ``vm_name``.

    Each step must succeed before the next runs; the first failure raises
    ProvisionError and leaves anything already created in place.

    Args:
        vm_name: Profile name, also used as the VM name
        settings: Resolved directory layout
        log: Run log
        dry_run: Log mutating steps instead of running them

    Returns:
        The plan handed to virt-install
    """
    profiles = load_settings_profiles(settings)
    profile = resolve_profile(vm_name, profiles, settings.images_dir)

    check_dependencies(log, dry_run)
    verify_images(settings.images_dir, ChecksumStore(settings.checksum_file).load(log), log, dry_run)

    log.info(f"Starting provisioning for VM: {vm_name}")

    iso_path = settings.images_dir / profile.filename
    validate_iso(iso_path)
    log.info(f"ISO '{iso_path}' validated successfully.")

    disk_path = disk_path_for(settings, vm_name)
    create_disk(disk_path, profile.disk_format, settings.disk_size, log, dry_run)

    if dry_run:
        log.would("Would check libvirtd status and connectivity")
    else:
        check_libvirt(log)

    seed_path, config_disk, driver_disk = prepare_guest_media(
        profile, settings, vm_name, log, dry_run
    )

    plan = VmPlan(
        name=vm_name,
        profile=profile,
        iso_path=iso_path,
        disk_path=disk_path,
        boot_args=boot_args(iso_path),
        seed_path=seed_path,
        config_disk=config_disk,
        driver_disk=driver_disk,
    )
    launch_vm(plan, log, dry_run)
    return plan


def generate_changelog(output: Path, cwd: Path | None = None) -> Path:
    """Write the changelog and report where it went."""
    path = write_changelog(output, cwd=cwd)
    console.print(f"{path.name} updated.", markup=False, highlight=False)
    return path
