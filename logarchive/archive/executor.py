"""
Archive executor - orchestrates the complete archival workflow.

Workflow:
1. Preflight: required tools, free disk space
2. Archive: tar the source directory through the codec's compressor
3. Verify: codec integrity test (if enabled), SHA-256 digest, sidecar
4. Retain: delete archives older than the retention window

Phases run strictly in order. Any failure aborts the remaining phases
and propagates to the caller.
"""

import logging
from datetime import datetime
from pathlib import Path

from logarchive.config import Config
from .preflight import run_preflight
from .compression import (
    get_codec,
    generate_archive_filename,
    get_directory_size,
    create_archive,
    get_archive_size,
    human_size,
)
from .verify import ArchiveRecord, verify_or_remove, compute_checksum, write_metadata
from .retention import RetentionSweeper


logger = logging.getLogger(__name__)


class ArchiveExecutor:
    """
    Orchestrates one archival run for a source directory.
    """

    def __init__(self, config: Config, source_dir, timestamp: datetime):
        """
        Initialize archive executor.

        Args:
            config: Effective configuration for the run
            source_dir: Directory to archive
            timestamp: Run timestamp, captured once at process start
        """
        self.config = config
        self.source_dir = Path(source_dir).resolve()
        self.timestamp = timestamp
        self.archive_path = None
        self.record = None
        self.retention_summary = None

    def execute(self) -> ArchiveRecord:
        """
        Execute the archival run.

        Returns:
            ArchiveRecord for the archive that was created

        Raises:
            ConfigError, PreflightError, CompressionError, IntegrityError
        """
        logger.info(f"Starting log archive of {self.source_dir}")

        logger.info("Phase: preflight")
        run_preflight(self.config)

        codec = get_codec(self.config.compression)

        logger.info("Phase: archive")
        self.archive_path = self._create_archive(codec)

        logger.info("Phase: verify")
        if self.config.verify_checksum:
            verify_or_remove(self.archive_path, codec)
        else:
            logger.info("Checksum verification disabled, skipping integrity test")
        self.record = self._write_record(codec)

        logger.info("Phase: retain")
        sweeper = RetentionSweeper(self.config.archive_dir, self.config.retention_days)
        self.retention_summary = sweeper.sweep()

        logger.info(f"Archive completed successfully: {self.archive_path}")
        return self.record

    def _create_archive(self, codec) -> Path:
        """
        Create the compressed archive in the archive directory.

        Raises:
            CompressionError: If archive creation fails
        """
        filename = generate_archive_filename(codec, self.timestamp)
        archive_path = Path(self.config.archive_dir) / filename

        total_bytes = get_directory_size(self.source_dir)
        logger.info(
            f"Creating archive {filename} "
            f"(compression: {codec.name}, source size: {human_size(total_bytes)})"
        )

        create_archive(
            self.source_dir,
            archive_path,
            codec,
            show_progress=self.config.show_progress and not self.config.quiet,
            total_bytes=total_bytes
        )

        return archive_path

    def _write_record(self, codec) -> ArchiveRecord:
        """Compute the digest and write the metadata sidecar."""
        size_bytes = get_archive_size(self.archive_path)
        checksum = compute_checksum(self.archive_path)

        record = ArchiveRecord(
            archive_path=self.archive_path,
            source=self.source_dir,
            compression=codec.name,
            size_bytes=size_bytes,
            checksum=checksum,
            created_at=self.timestamp,
            verified=self.config.verify_checksum
        )
        write_metadata(record)

        logger.info(f"Archive size: {human_size(size_bytes)}, SHA-256: {checksum}")
        return record
