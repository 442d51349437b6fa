"""
Configuration for log-archive.

An effective configuration is built once per run from three layers:
built-in defaults, an optional KEY=value config file, and command-line
overrides. The result is frozen and passed to every stage.
"""

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Dict, Optional

from dotenv import dotenv_values


class ConfigError(Exception):
    """Raised when configuration is invalid or cannot be read."""
    pass


DEFAULT_CONFIG_PATH = Path.home() / '.config' / 'log-archive' / 'log-archive.conf'
DEFAULT_DATA_DIR = Path.home() / '.local' / 'share' / 'log-archive'

LOG_LEVELS = ('DEBUG', 'INFO', 'WARN', 'ERROR')

_TRUE_VALUES = {'1', 'true', 'yes', 'on'}
_FALSE_VALUES = {'0', 'false', 'no', 'off'}


@dataclass(frozen=True)
class Config:
    """Effective configuration for a single run."""

    archive_dir: Path = DEFAULT_DATA_DIR / 'archives'
    log_dir: Path = DEFAULT_DATA_DIR / 'logs'
    compression: str = 'gzip'
    retention_days: int = 30
    min_space_mb: int = 100
    verify_checksum: bool = True
    log_level: str = 'INFO'
    show_progress: bool = True
    quiet: bool = False


def parse_path(value: str) -> Path:
    return Path(os.path.expandvars(value.strip())).expanduser()


def _parse_non_negative_int(key: str, value) -> int:
    try:
        number = int(str(value).strip())
    except ValueError:
        raise ConfigError(f"{key} must be an integer, got: {value!r}")

    if number < 0:
        raise ConfigError(f"{key} must be non-negative, got: {number}")

    return number


def _parse_bool(key: str, value: str) -> bool:
    normalized = value.strip().lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False
    raise ConfigError(f"{key} must be a boolean (true/false), got: {value!r}")


def _parse_log_level(value: str) -> str:
    level = value.strip().upper()
    if level == 'WARNING':
        level = 'WARN'
    if level not in LOG_LEVELS:
        raise ConfigError(
            f"Invalid log level: {value}. Valid options: {list(LOG_LEVELS)}"
        )
    return level


# Config file key -> (Config field, parser)
FILE_KEYS = {
    'ARCHIVE_DIR': ('archive_dir', parse_path),
    'LOG_DIR': ('log_dir', parse_path),
    'COMPRESSION': ('compression', lambda v: v.strip().lower()),
    'RETENTION_DAYS': ('retention_days', lambda v: _parse_non_negative_int('RETENTION_DAYS', v)),
    'MIN_SPACE_MB': ('min_space_mb', lambda v: _parse_non_negative_int('MIN_SPACE_MB', v)),
    'VERIFY_CHECKSUM': ('verify_checksum', lambda v: _parse_bool('VERIFY_CHECKSUM', v)),
    'LOG_LEVEL': ('log_level', _parse_log_level),
    'SHOW_PROGRESS': ('show_progress', lambda v: _parse_bool('SHOW_PROGRESS', v)),
}


def read_config_file(path) -> Optional[Dict[str, str]]:
    """
    Read a KEY=value config file.

    The format is the shell-style assignment list the tool has always
    used: comments, blank lines, quotes and ``export`` prefixes are
    accepted, and a key assigned twice keeps its last value.

    Args:
        path: Path to the config file

    Returns:
        Dict of raw string values, or None if the file does not exist

    Raises:
        ConfigError: If the path exists but cannot be read as a file
    """
    config_path = Path(path).expanduser()

    if not config_path.exists():
        return None

    if not config_path.is_file():
        raise ConfigError(f"Config path is not a file: {config_path}")

    if not os.access(config_path, os.R_OK):
        raise ConfigError(f"Config file is not readable: {config_path}")

    try:
        values = dotenv_values(config_path)
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigError(f"Failed to read config file {config_path}: {e}")

    return {key: value for key, value in values.items() if value is not None}


def resolve_config(
    file_values: Optional[Dict[str, str]] = None,
    compression: Optional[str] = None,
    retention_days: Optional[int] = None,
    verbose: bool = False,
    quiet: bool = False,
) -> Config:
    """
    Build the effective configuration.

    Defaults are overlaid by the config file values, which are overlaid
    by command-line flags. Unknown file keys are ignored.

    Args:
        file_values: Raw values from read_config_file (or None)
        compression: Codec name from the command line
        retention_days: Retention window from the command line
        verbose: Raise the log level to DEBUG
        quiet: Suppress console logging

    Returns:
        Frozen Config instance

    Raises:
        ConfigError: If a value violates its invariant
    """
    config = Config()

    if file_values:
        updates = {}
        for key, raw_value in file_values.items():
            if key not in FILE_KEYS:
                continue
            field_name, parser = FILE_KEYS[key]
            updates[field_name] = parser(raw_value)
        config = replace(config, **updates)

    overrides = {}
    if compression is not None:
        overrides['compression'] = compression.strip().lower()
    if retention_days is not None:
        overrides['retention_days'] = _parse_non_negative_int('retention', retention_days)
    if verbose:
        overrides['log_level'] = 'DEBUG'
    if quiet:
        overrides['quiet'] = True

    return replace(config, **overrides)
