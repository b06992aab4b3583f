"""
ISO integrity checking.

Computes a CRC-32 for every ISO in the images directory and compares it
with the value remembered from the previous run. The cache is a YAML
mapping of filename to checksum, so each filename has at most one record.
"""

import os
import tempfile
import zlib
from dataclasses import dataclass
from pathlib import Path

import yaml

from vhd_spinner.log import RunLog
from vhd_spinner.profiles import iter_iso_files

CHUNK_SIZE = 1024 * 1024

VERIFIED = "verified"
UPDATED = "updated"
WOULD_UPDATE = "would-update"


def crc32_of(path: Path) -> str:
    """Return the CRC-32 of a file as eight lowercase hex digits."""
    crc = 0
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(CHUNK_SIZE), b""):
            crc = zlib.crc32(chunk, crc)
    return f"{crc & 0xFFFFFFFF:08x}"


def _parse_legacy(text: str) -> dict[str, str]:
    # filename|checksum, one per line; later lines win
    records = {}
    for line in text.splitlines():
        line = line.strip()
        if not line or "|" not in line:
            continue
        filename, checksum = line.rsplit("|", 1)
        records[filename] = checksum
    return records


class ChecksumStore:
    """Persistent filename -> checksum cache."""

    def __init__(self, path: Path):
        self.path = path
        self._records: dict[str, str] = {}
        self.dirty = False

    def load(self, log: RunLog | None = None) -> "ChecksumStore":
        """
        Read the cache file.

        A missing or empty file is an empty cache. Content that is neither a
        YAML mapping nor legacy `filename|checksum` lines is discarded with a
        warning and replaced on the next save.
        """
        self._records = {}
        self.dirty = False
        if not self.path.exists():
            return self

        text = self.path.read_text()
        if not text.strip():
            return self

        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError:
            data = None

        if isinstance(data, dict):
            self._records = {str(k): str(v) for k, v in data.items()}
        elif "|" in text:
            self._records = _parse_legacy(text)
            # Rewrite in the structured format on the next save
            self.dirty = True
        else:
            self.dirty = True
            if log is not None:
                log.warning(f"Ignoring unreadable checksum cache {self.path}; it will be rebuilt")
        return self

    def get(self, filename: str) -> str | None:
        return self._records.get(filename)

    def set(self, filename: str, checksum: str) -> None:
        if self._records.get(filename) != checksum:
            self._records[filename] = checksum
            self.dirty = True

    def items(self) -> list[tuple[str, str]]:
        return sorted(self._records.items())

    def __len__(self) -> int:
        return len(self._records)

    def save(self) -> None:
        """Write the cache atomically (temp file, then rename)."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w") as f:
                yaml.safe_dump(dict(self.items()), f, default_flow_style=False, sort_keys=True)
            os.replace(tmp_name, self.path)
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise
        self.dirty = False


@dataclass(frozen=True)
class ChecksumResult:
    """Outcome of verifying one ISO."""

    filename: str
    checksum: str
    previous: str | None
    status: str


def verify_images(
    images_dir: Path,
    store: ChecksumStore,
    log: RunLog,
    dry_run: bool = False,
) -> list[ChecksumResult]:
    """
    Verify every ISO in ``images_dir`` against the checksum cache.

    Args:
        images_dir: Directory holding installer ISOs
        store: Loaded checksum cache
        log: Run log
        dry_run: Report changes without touching the cache file

    Returns:
        One ChecksumResult per ISO, in filename order
    """
    log.info(f"Verifying ISOs in {images_dir}...")
    results = []

    for iso_path in iter_iso_files(images_dir):
        filename = iso_path.name
        checksum = crc32_of(iso_path)
        previous = store.get(filename)

        if checksum == previous:
            log.info(f"ISO '{filename}' already verified with CRC32: {checksum}")
            status = VERIFIED
        elif dry_run:
            log.would(f"Would update CRC32 for: {filename}")
            status = WOULD_UPDATE
        else:
            store.set(filename, checksum)
            log.info(f"Updated CRC32 for '{filename}': {checksum}")
            status = UPDATED

        results.append(ChecksumResult(filename, checksum, previous, status))

    if store.dirty and not dry_run:
        store.save()

    return results
