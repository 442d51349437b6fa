"""
Shared pytest fixtures for log-archive tests.

This module provides fixtures for:
- Config instances pointing at temporary directories
- Source directories with log files
- Sample archives
- Reading .meta sidecars
- Logging cleanup between tests
"""

import logging
import tarfile
from datetime import datetime

import pytest

from logarchive import LOGGER_NAME
from logarchive.config import Config


@pytest.fixture(autouse=True)
def reset_logging():
    """Close and remove handlers installed by configure_logging."""
    yield
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def archive_dir(tmp_path):
    """Empty archive directory."""
    path = tmp_path / 'archives'
    path.mkdir()
    return path


@pytest.fixture
def log_dir(tmp_path):
    """Directory for run logs (created on demand by configure_logging)."""
    return tmp_path / 'logs'


@pytest.fixture
def config(archive_dir, log_dir):
    """
    Config for tests: gzip, 30 day retention, no space requirement,
    no progress bar, quiet console.
    """
    return Config(
        archive_dir=archive_dir,
        log_dir=log_dir,
        compression='gzip',
        retention_days=30,
        min_space_mb=0,
        verify_checksum=True,
        log_level='DEBUG',
        show_progress=False,
        quiet=True
    )


@pytest.fixture
def source_dir(tmp_path):
    """
    Create a log directory with 3 files totaling 10KB.

    Creates:
    - app.log (4KB)
    - error.log (4KB)
    - nested/access.log (2KB)
    """
    source = tmp_path / 'var_log'
    source.mkdir()

    (source / 'app.log').write_bytes(b'INFO app started\n' * 240 + b'x' * 16)
    (source / 'error.log').write_bytes(b'ERROR disk full\n' * 256)

    nested = source / 'nested'
    nested.mkdir()
    (nested / 'access.log').write_bytes(b'GET / 200\n' * 204 + b'ok\n\n\n\n\n\n')

    return source


@pytest.fixture
def run_timestamp():
    """Fixed run timestamp."""
    return datetime(2024, 1, 15, 12, 30, 45)


@pytest.fixture
def sample_archive(tmp_path, source_dir):
    """
    Create a valid .tar.gz archive of source_dir.
    """
    archive_path = tmp_path / 'sample.tar.gz'
    with tarfile.open(archive_path, 'w:gz') as tar:
        tar.add(source_dir, arcname=source_dir.name)

    return archive_path


@pytest.fixture
def corrupt_archive(sample_archive):
    """
    Truncate sample_archive so its gzip stream is incomplete.
    """
    data = sample_archive.read_bytes()
    sample_archive.write_bytes(data[:len(data) // 2])
    return sample_archive


@pytest.fixture
def read_sidecar():
    """Parse a .meta sidecar into a dict of its fields."""
    def _read(metadata_path):
        fields = {}
        for line in metadata_path.read_text().splitlines():
            key, sep, value = line.partition(': ')
            if sep:
                fields[key] = value
        return fields
    return _read
