"""
Compression handlers for log archives.

Supports multiple codecs, each backed by an external compressor:
- gzip: .tar.gz
- bzip2: .tar.bz2
- xz: .tar.xz
- zstd: .tar.zst (multi-threaded)

The source directory is streamed through ``tar`` into the compressor.
Exit codes of every stage are checked individually, so a failure in the
middle of the pipe is never masked by a successful last stage.
"""

import logging
import math
import os
import subprocess
import tempfile
from collections import namedtuple
from datetime import datetime
from pathlib import Path
from typing import Optional

from tqdm import tqdm

from logarchive.config import ConfigError


logger = logging.getLogger(__name__)

ARCHIVE_PREFIX = 'logs_archive_'
TIMESTAMP_FORMAT = '%Y%m%d_%H%M%S'
CHUNK_SIZE = 1024 * 1024


class CompressionError(Exception):
    """Raised when archive creation fails."""
    pass


Codec = namedtuple('Codec', ['name', 'tool', 'extension', 'compress_args', 'test_args'])

CODECS = {
    'gzip': Codec('gzip', 'gzip', 'tar.gz', ['gzip', '-c'], ['gzip', '-t']),
    'bzip2': Codec('bzip2', 'bzip2', 'tar.bz2', ['bzip2', '-c'], ['bzip2', '-t']),
    'xz': Codec('xz', 'xz', 'tar.xz', ['xz', '-c'], ['xz', '-t']),
    'zstd': Codec('zstd', 'zstd', 'tar.zst', ['zstd', '-T0', '-q', '-c'], ['zstd', '-q', '-t']),
}


def get_codec(name: str) -> Codec:
    """
    Look up a codec by name.

    Raises:
        ConfigError: If the codec is not supported
    """
    try:
        return CODECS[name]
    except KeyError:
        raise ConfigError(
            f"Unsupported compression: {name}. "
            f"Valid options: {list(CODECS.keys())}"
        )


def generate_archive_filename(codec: Codec, timestamp: datetime) -> str:
    """
    Generate a standardized archive filename.

    Format: logs_archive_{YYYYMMDD_HHMMSS}.{ext}

    Args:
        codec: Codec the archive is compressed with
        timestamp: Run timestamp, captured once at process start

    Returns:
        Filename (without path)
    """
    return f"{ARCHIVE_PREFIX}{timestamp.strftime(TIMESTAMP_FORMAT)}.{codec.extension}"


def get_directory_size(path) -> int:
    """Total size in bytes of the regular files below path."""
    total = 0
    for root, _dirs, files in os.walk(path):
        for name in files:
            file_path = os.path.join(root, name)
            if not os.path.islink(file_path):
                try:
                    total += os.path.getsize(file_path)
                except OSError as e:
                    logger.debug(f"Skipping unreadable file in size count: {file_path} ({e})")
    return total


def create_archive(
    source_dir,
    archive_path,
    codec: Codec,
    show_progress: bool = False,
    total_bytes: Optional[int] = None
) -> Path:
    """
    Create a compressed archive of a directory.

    Args:
        source_dir: Directory to archive
        archive_path: Full path of the archive to create
        codec: Codec to compress with
        show_progress: Display a byte-counting progress bar
        total_bytes: Size of the source tree, used to size the progress bar

    Returns:
        Path to the created archive file

    Raises:
        CompressionError: If any pipeline stage fails
    """
    source = Path(source_dir).resolve()
    archive_path = Path(archive_path)

    if not source.is_dir():
        raise CompressionError(f"Source is not a directory: {source}")

    if archive_path.exists():
        raise CompressionError(f"Archive already exists: {archive_path}")

    tar_args = ['tar', '-cf', '-', '-C', str(source.parent), source.name]
    logger.debug(f"Pipeline: {' '.join(tar_args)} | {' '.join(codec.compress_args)} > {archive_path}")

    try:
        out = open(archive_path, 'xb')
    except FileExistsError:
        raise CompressionError(f"Archive already exists: {archive_path}")
    except OSError as e:
        raise CompressionError(f"Cannot create archive {archive_path}: {e}")

    try:
        with out:
            tar_rc, compress_rc, tar_stderr = _run_pipeline(
                tar_args, codec.compress_args, out, show_progress, total_bytes
            )
    except OSError as e:
        _remove_partial(archive_path)
        raise CompressionError(f"Failed to create archive: {e}")

    if compress_rc != 0:
        _remove_partial(archive_path)
        raise CompressionError(f"{codec.tool} exited with status {compress_rc}")

    if tar_rc == 1:
        # GNU tar: some files changed while being read, archive is still usable
        logger.warning(f"tar reported files changed during read: {tar_stderr.strip()}")
    elif tar_rc != 0:
        _remove_partial(archive_path)
        detail = tar_stderr.strip() or 'no output'
        raise CompressionError(f"tar exited with status {tar_rc}: {detail}")

    return archive_path


def _run_pipeline(tar_args, compress_args, out, show_progress, total_bytes):
    """
    Run tar into the compressor, writing to out.

    Returns:
        Tuple of (tar exit code, compressor exit code, tar stderr)
    """
    # tar's stderr goes to a file so a chatty tar can never block on a full pipe
    with tempfile.TemporaryFile() as tar_errors:
        tar_proc = subprocess.Popen(tar_args, stdout=subprocess.PIPE, stderr=tar_errors)

        if not show_progress:
            compress_proc = subprocess.Popen(compress_args, stdin=tar_proc.stdout, stdout=out)
            # Let tar receive SIGPIPE if the compressor exits early
            tar_proc.stdout.close()
            compress_rc = compress_proc.wait()
        else:
            compress_proc = subprocess.Popen(compress_args, stdin=subprocess.PIPE, stdout=out)
            try:
                with tqdm(total=total_bytes, unit='B', unit_scale=True, unit_divisor=1024,
                          desc='Archiving') as pbar:
                    for chunk in iter(lambda: tar_proc.stdout.read(CHUNK_SIZE), b''):
                        compress_proc.stdin.write(chunk)
                        pbar.update(len(chunk))
            except BrokenPipeError:
                logger.debug("Compressor closed its input early")
            finally:
                tar_proc.stdout.close()
                try:
                    compress_proc.stdin.close()
                except BrokenPipeError:
                    pass
            compress_rc = compress_proc.wait()

        tar_rc = tar_proc.wait()
        tar_errors.seek(0)
        tar_stderr = tar_errors.read().decode(errors='replace')

    return tar_rc, compress_rc, tar_stderr


def _remove_partial(archive_path: Path):
    """Remove a partially written archive."""
    try:
        archive_path.unlink()
        logger.debug(f"Removed partial archive: {archive_path}")
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.warning(f"Failed to remove partial archive {archive_path}: {e}")


def human_size(size_bytes: int) -> str:
    """
    Format a byte count the way ``du -h`` does.

    One decimal below 10 of a unit, rounded up, e.g. 512 -> '512',
    10240 -> '10K', 1536 -> '1.5K'.
    """
    units = ['', 'K', 'M', 'G', 'T', 'P']
    value = float(size_bytes)
    unit_index = 0

    while value >= 1024 and unit_index < len(units) - 1:
        value /= 1024
        unit_index += 1

    if unit_index == 0:
        return str(int(size_bytes))

    if value < 10:
        tenths = math.ceil(round(value * 10, 6)) / 10
        if tenths < 10:
            return f"{tenths:.1f}{units[unit_index]}"

    return f"{math.ceil(round(value, 6))}{units[unit_index]}"


def get_archive_size(archive_path) -> int:
    """
    Get the size of an archive file in bytes.

    Raises:
        CompressionError: If file doesn't exist or cannot be accessed
    """
    try:
        return os.path.getsize(archive_path)
    except FileNotFoundError:
        raise CompressionError(f"Archive not found: {archive_path}")
    except OSError as e:
        raise CompressionError(f"Failed to get archive size: {e}")
