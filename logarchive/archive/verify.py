"""
Integrity verification and metadata sidecars for archives.
"""

import hashlib
import logging
import subprocess
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from .compression import Codec, human_size


logger = logging.getLogger(__name__)

METADATA_SUFFIX = '.meta'


class IntegrityError(Exception):
    """Raised when an archive fails its post-creation verification."""
    pass


@dataclass(frozen=True)
class ArchiveRecord:
    """A finished archive and the provenance recorded in its sidecar."""

    archive_path: Path
    source: Path
    compression: str
    size_bytes: int
    checksum: str
    created_at: datetime
    verified: bool = False

    @property
    def metadata_path(self) -> Path:
        return self.archive_path.with_name(self.archive_path.name + METADATA_SUFFIX)


def verify_archive(archive_path, codec: Codec) -> bool:
    """
    Run the codec's integrity test against an archive.

    Args:
        archive_path: Archive to test
        codec: Codec the archive was compressed with

    Returns:
        True if the test exits with status 0
    """
    result = subprocess.run(
        codec.test_args + [str(archive_path)],
        stdout=subprocess.DEVNULL,
        stderr=subprocess.PIPE,
    )

    if result.returncode != 0:
        stderr = result.stderr.decode(errors='replace').strip()
        logger.debug(f"{codec.tool} test failed ({result.returncode}): {stderr}")
        return False

    return True


def verify_or_remove(archive_path, codec: Codec):
    """
    Verify an archive, deleting it if the test fails.

    Raises:
        IntegrityError: If the archive is corrupt
    """
    archive_path = Path(archive_path)
    logger.info(f"Verifying archive integrity with {codec.tool}")

    if verify_archive(archive_path, codec):
        logger.info("Archive integrity verified")
        return

    try:
        archive_path.unlink()
        logger.warning(f"Removed corrupt archive: {archive_path}")
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.error(f"Failed to remove corrupt archive {archive_path}: {e}")

    raise IntegrityError(f"Archive failed integrity check: {archive_path.name}")


def compute_checksum(path, chunk_size: int = 1024 * 1024) -> str:
    """SHA-256 hex digest of a file."""
    digest = hashlib.sha256()
    with open(path, 'rb') as f:
        for chunk in iter(lambda: f.read(chunk_size), b''):
            digest.update(chunk)
    return digest.hexdigest()


def write_metadata(record: ArchiveRecord) -> Path:
    """
    Write the sidecar metadata file next to an archive.

    Returns:
        Path of the sidecar file
    """
    lines = [
        f"Created: {record.created_at.strftime('%Y-%m-%d %H:%M:%S')}",
        f"Source: {record.source}",
        f"Size: {human_size(record.size_bytes)}",
        f"Compression: {record.compression}",
        f"Checksum: {record.checksum}",
    ]

    metadata_path = record.metadata_path
    metadata_path.write_text('\n'.join(lines) + '\n')
    logger.debug(f"Wrote metadata: {metadata_path}")
    return metadata_path

