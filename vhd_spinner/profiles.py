"""
VM profile detection.

Derives a provisioning profile (OS variant, memory, vCPUs, disk format)
from each installer ISO in the images directory. Classification is a
table of rules checked in order; the first rule whose pattern occurs in
the filename wins, and anything unmatched gets the generic profile.
"""

import re
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Callable, Mapping

from vhd_spinner.errors import ProvisionError

ISO_SUFFIX = ".iso"
DEFAULT_DISK_FORMAT = "vpc"
DEFAULT_MEMORY_MB = 2048
DEFAULT_VCPUS = 2
GENERIC_VARIANT = "generic"

# Driver media, attached to Windows guests rather than installed from
VIRTIO_ISO_NAME = "virtio-win.iso"

_UBUNTU_VERSION = re.compile(r"\d{2}\.\d{2}")
_DIGITS = re.compile(r"\d+")


@dataclass(frozen=True)
class Profile:
    """Provisioning defaults derived from one ISO filename."""

    key: str
    filename: str
    os_variant: str
    disk_format: str = DEFAULT_DISK_FORMAT
    memory_mb: int = DEFAULT_MEMORY_MB
    vcpus: int = DEFAULT_VCPUS

    @property
    def is_windows(self) -> bool:
        return self.os_variant.startswith("win")


@dataclass(frozen=True)
class ProfileRule:
    """One row of the classification table."""

    name: str
    pattern: re.Pattern
    variant: Callable[[str], str]
    memory_mb: int = DEFAULT_MEMORY_MB
    vcpus: int = DEFAULT_VCPUS

    def matches(self, filename: str) -> bool:
        return self.pattern.search(filename) is not None


def _versioned(prefix: str, version: re.Pattern) -> Callable[[str], str]:
    """Build ``prefix`` + first version-like substring of the filename."""
    def variant(filename: str) -> str:
        match = version.search(filename)
        return prefix + (match.group(0) if match else "")
    return variant


def _fixed(value: str) -> Callable[[str], str]:
    return lambda filename: value


# Order matters: first match wins.
# Server2022 is checked before the generic "win" rule so that Windows
# Server media is not classified as a desktop release.
PROFILE_RULES: tuple[ProfileRule, ...] = (
    ProfileRule("ubuntu", re.compile("ubuntu"), _versioned("ubuntu", _UBUNTU_VERSION), memory_mb=3072),
    ProfileRule("debian", re.compile("debian"), _versioned("debian", _DIGITS), memory_mb=1024),
    ProfileRule("centos", re.compile("centos"), _fixed("centos-stream8")),
    ProfileRule("server2022", re.compile("Server2022"), _fixed("win2k22"), memory_mb=4096, vcpus=4),
    ProfileRule("windows", re.compile("win"), _fixed("win10"), memory_mb=4096),
)


def profile_key(filename: str) -> str:
    """Profile name for an ISO: the filename without its ``.iso`` suffix."""
    if filename.endswith(ISO_SUFFIX):
        return filename[: -len(ISO_SUFFIX)]
    return filename


def classify(
    filename: str,
    disk_format: str = DEFAULT_DISK_FORMAT,
    rules: tuple[ProfileRule, ...] = PROFILE_RULES,
) -> Profile:
    """
    Derive the profile for a single ISO filename.

    Args:
        filename: Base name of the ISO (no directory)
        disk_format: qemu-img format tag for the VM's disk
        rules: Ordered classification table

    Returns:
        Profile from the first matching rule, or the generic profile
    """
    for rule in rules:
        if rule.matches(filename):
            return Profile(
                key=profile_key(filename),
                filename=filename,
                os_variant=rule.variant(filename),
                disk_format=disk_format,
                memory_mb=rule.memory_mb,
                vcpus=rule.vcpus,
            )
    return Profile(
        key=profile_key(filename),
        filename=filename,
        os_variant=GENERIC_VARIANT,
        disk_format=disk_format,
    )


def iter_iso_files(images_dir: Path) -> list[Path]:
    """
    Return the ISO files directly inside ``images_dir``, sorted by name.

    Hidden files are skipped, as a shell glob would.
    """
    if not images_dir.is_dir():
        return []
    return sorted(
        p for p in images_dir.glob(f"*{ISO_SUFFIX}")
        if p.is_file() and not p.name.startswith(".")
    )


def load_profiles(
    images_dir: Path,
    disk_format: str = DEFAULT_DISK_FORMAT,
    driver_iso: Path | None = None,
) -> Mapping[str, Profile]:
    """
    Scan the images directory and build a read-only profile mapping.

    Args:
        images_dir: Directory holding installer ISOs
        disk_format: qemu-img format tag applied to every profile
        driver_iso: Driver media to leave out; defaults to
            ``virtio-win.iso`` in ``images_dir``

    Returns:
        Mapping from profile key to Profile
    """
    excluded = (driver_iso or images_dir / VIRTIO_ISO_NAME).resolve()
    profiles = {}
    for iso_path in iter_iso_files(images_dir):
        if iso_path.resolve() == excluded:
            continue
        profile = classify(iso_path.name, disk_format)
        profiles[profile.key] = profile
    return MappingProxyType(profiles)


def available_profiles(profiles: Mapping[str, Profile], images_dir: Path) -> list[str]:
    """Return the sorted profile keys whose ISO still exists."""
    return sorted(
        key for key, profile in profiles.items()
        if (images_dir / profile.filename).is_file()
    )


def resolve_profile(name: str, profiles: Mapping[str, Profile], images_dir: Path) -> Profile:
    """
    Look up a profile by name, requiring its ISO to be present.

    Raises:
        ProvisionError: If the name is unknown or its ISO is gone
    """
    if name not in available_profiles(profiles, images_dir):
        raise ProvisionError(f"Profile '{name}' is not available or ISO is missing.")
    return profiles[name]
