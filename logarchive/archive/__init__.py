"""
Archive module for log-archive.

This module handles the archival pipeline:
- Preflight checks (tools, disk space)
- Compression
- Verification and metadata
- Retention policy enforcement
- Execution orchestration
"""

from .executor import ArchiveExecutor
from .preflight import run_preflight, PreflightError
from .compression import create_archive, get_codec, CODECS, CompressionError
from .verify import ArchiveRecord, verify_archive, IntegrityError
from .retention import RetentionSweeper

__all__ = [
    'ArchiveExecutor',
    'run_preflight',
    'PreflightError',
    'create_archive',
    'get_codec',
    'CODECS',
    'CompressionError',
    'ArchiveRecord',
    'verify_archive',
    'IntegrityError',
    'RetentionSweeper'
]
