"""
Preflight checks run before any input is consumed.

Both checks are unconditional: the external tools the pipeline shells
out to must be on PATH, and the volume holding the archive directory
must have at least the configured amount of free space.
"""

import logging
import shutil
from pathlib import Path

from logarchive.config import Config
from .compression import get_codec


logger = logging.getLogger(__name__)

# Tools needed regardless of codec
BASE_TOOLS = ('tar',)


class PreflightError(Exception):
    """Raised when the environment is not ready for archiving."""
    pass


def check_required_tools(config: Config):
    """
    Confirm the base toolset and the codec's compressor are installed.

    Raises:
        ConfigError: If the configured codec is not supported
        PreflightError: Naming the first missing tool
    """
    codec = get_codec(config.compression)
    required = BASE_TOOLS + (codec.tool,)

    for tool in required:
        location = shutil.which(tool)
        if location is None:
            raise PreflightError(f"Required tool not found: {tool}")
        logger.debug(f"Found {tool}: {location}")


def get_free_space_mb(path) -> int:
    """Free space in MB on the filesystem holding path."""
    return shutil.disk_usage(path).free // (1024 * 1024)


def check_disk_space(config: Config):
    """
    Confirm the archive volume has at least min_space_mb free.

    The archive directory is created if it does not exist yet.

    Raises:
        PreflightError: If free space is below the minimum
    """
    archive_dir = Path(config.archive_dir)
    try:
        archive_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise PreflightError(f"Failed to create archive directory {archive_dir}: {e}")

    available_mb = get_free_space_mb(archive_dir)
    logger.debug(f"Free space on {archive_dir}: {available_mb} MB")

    if available_mb < config.min_space_mb:
        raise PreflightError(
            f"Insufficient disk space in {archive_dir}: "
            f"required {config.min_space_mb} MB, available {available_mb} MB"
        )


def run_preflight(config: Config):
    """Run all preflight checks, tools first."""
    check_required_tools(config)
    check_disk_space(config)
    logger.info("Preflight checks passed")
