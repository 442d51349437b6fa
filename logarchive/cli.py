"""
Command-line entry point for log-archive.

    log-archive [OPTIONS] <source-directory>
"""

import logging
from dataclasses import replace
from datetime import datetime
from pathlib import Path
from typing import Optional

import typer

from logarchive import __version__, configure_logging
from logarchive.config import (
    Config, ConfigError, DEFAULT_CONFIG_PATH, parse_path, read_config_file, resolve_config
)
from logarchive.archive import ArchiveExecutor, CompressionError, IntegrityError, PreflightError
from logarchive.utils.signals import install_signal_handlers


logger = logging.getLogger('logarchive.cli')

EXIT_FAILURE = 1
EXIT_USAGE = 2

app = typer.Typer(
    add_completion=False,
    help="Archive a log directory into a compressed, verified tarball and prune old archives.",
)


def _help_callback(ctx: typer.Context, value: bool):
    if value and not ctx.resilient_parsing:
        typer.echo(ctx.get_help())
        raise typer.Exit(code=EXIT_FAILURE)


def _version_callback(value: bool):
    if value:
        typer.echo(f"log-archive {__version__}")
        raise typer.Exit()


def _usage_error(ctx: typer.Context, message: str):
    logger.error(message)
    typer.echo(ctx.get_usage(), err=True)
    raise typer.Exit(code=EXIT_USAGE)


def _fallback_config(file_values, verbose: bool, quiet: bool) -> Config:
    """Defaults plus whatever LOG_DIR parsed, for logging a rejected config."""
    config = Config(log_level='DEBUG' if verbose else 'INFO', quiet=quiet)
    if file_values and file_values.get('LOG_DIR'):
        config = replace(config, log_dir=parse_path(file_values['LOG_DIR']))
    return config


def _start_logging(config: Config, started_at: datetime) -> Path:
    try:
        return configure_logging(config, started_at)
    except OSError as e:
        message = f"ERROR Cannot open log file in {config.log_dir}: {e}"
        typer.echo(typer.style(message, fg=typer.colors.RED), err=True)
        raise typer.Exit(code=EXIT_FAILURE)


@app.command(context_settings={'help_option_names': []})
def archive(
    ctx: typer.Context,
    source: Optional[Path] = typer.Argument(
        None, metavar='SOURCE_DIRECTORY', help="Directory to archive", show_default=False
    ),
    config_file: Optional[Path] = typer.Option(
        None, '-c', '--config', help="Use this config file instead of the default", show_default=False
    ),
    compression: Optional[str] = typer.Option(
        None, '-m', '--compression', help="gzip | bzip2 | xz | zstd", show_default=False
    ),
    retention: Optional[int] = typer.Option(
        None, '-r', '--retention', help="Retention window in days", show_default=False
    ),
    verbose: bool = typer.Option(False, '-v', '--verbose', help="Log at DEBUG level"),
    quiet: bool = typer.Option(False, '-q', '--quiet', help="Suppress console output"),
    help_: bool = typer.Option(
        False, '-h', '--help', is_eager=True, expose_value=False,
        callback=_help_callback, help="Show this message and exit"
    ),
    version: bool = typer.Option(
        False, '--version', is_eager=True, expose_value=False,
        callback=_version_callback, help="Show the version and exit"
    ),
):
    """Archive SOURCE_DIRECTORY into <archive_dir>/logs_archive_<timestamp>.<ext>."""
    started_at = datetime.now()
    config_path = config_file or DEFAULT_CONFIG_PATH

    file_values = None
    try:
        file_values = read_config_file(config_path)
        config = resolve_config(
            file_values,
            compression=compression,
            retention_days=retention,
            verbose=verbose,
            quiet=quiet,
        )
    except ConfigError as e:
        _start_logging(_fallback_config(file_values, verbose, quiet), started_at)
        logger.error(f"Configuration error: {e}")
        raise typer.Exit(code=EXIT_FAILURE)

    log_path = _start_logging(config, started_at)

    if file_values is None:
        logger.warning(f"Config file not found: {config_path}, using defaults")
    else:
        logger.debug(f"Loaded config file: {config_path}")

    if source is None:
        _usage_error(ctx, "Missing source directory")
    if not source.is_dir():
        _usage_error(ctx, f"Source directory does not exist: {source}")

    logger.debug(f"Log file: {log_path}")

    executor = ArchiveExecutor(config, source, started_at)
    try:
        executor.execute()
    except ConfigError as e:
        logger.error(f"Configuration error: {e}")
        raise typer.Exit(code=EXIT_FAILURE)
    except PreflightError as e:
        logger.error(f"Preflight check failed: {e}")
        raise typer.Exit(code=EXIT_FAILURE)
    except CompressionError as e:
        logger.error(f"Archive creation failed: {e}")
        raise typer.Exit(code=EXIT_FAILURE)
    except IntegrityError as e:
        logger.error(f"Verification failed: {e}")
        raise typer.Exit(code=EXIT_FAILURE)
    except OSError as e:
        logger.error(f"Archive run failed: {e}")
        raise typer.Exit(code=EXIT_FAILURE)


def main():
    """Console script entry point."""
    install_signal_handlers()
    app()


if __name__ == '__main__':
    main()
