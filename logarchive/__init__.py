import logging
from datetime import datetime
from pathlib import Path

import typer


__version__ = '1.0.0'

LOGGER_NAME = 'logarchive'

# Config level name -> logging level
LEVELS = {
    'DEBUG': logging.DEBUG,
    'INFO': logging.INFO,
    'WARN': logging.WARNING,
    'ERROR': logging.ERROR,
}

LEVEL_COLORS = {
    logging.DEBUG: typer.colors.CYAN,
    logging.INFO: typer.colors.GREEN,
    logging.WARNING: typer.colors.YELLOW,
    logging.ERROR: typer.colors.RED,
}


class ColorFormatter(logging.Formatter):
    """Formatter that colors the level name by severity."""

    def format(self, record):
        formatted = super().format(record)
        color = LEVEL_COLORS.get(record.levelno, typer.colors.RED)
        return formatted.replace(
            record.levelname,
            typer.style(record.levelname, fg=color, bold=True),
            1
        )


def get_log_path(log_dir, timestamp: datetime) -> Path:
    """Per-run log file path: <log_dir>/log-archive_<YYYYMMDD_HHMMSS>.log"""
    return Path(log_dir) / f"log-archive_{timestamp.strftime('%Y%m%d_%H%M%S')}.log"


def configure_logging(config, timestamp: datetime) -> Path:
    """
    Configure logging for a run.

    Every message at or above the configured level is appended to the
    per-run log file. Console output is colored and suppressed in quiet
    mode. Calling this again replaces the handlers of the previous call.

    Returns:
        Path to the run's log file
    """
    log_dir = Path(config.log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_path = get_log_path(log_dir, timestamp)

    log_level = LEVELS[config.log_level]

    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(log_level)

    # File handler
    file_handler = logging.FileHandler(log_path)
    file_handler.setLevel(log_level)
    file_formatter = logging.Formatter(
        '[%(asctime)s] %(levelname)s %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    file_handler.setFormatter(file_formatter)
    logger.addHandler(file_handler)

    # Console handler
    if not config.quiet:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(log_level)
        console_handler.setFormatter(ColorFormatter(
            '[%(asctime)s] %(levelname)s %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        ))
        logger.addHandler(console_handler)

    logger.debug(f"Logging configured (level: {config.log_level}, file: {log_path})")
    return log_path
