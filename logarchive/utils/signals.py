"""
Termination signal handling.

The handler is installed once at process start. It logs a warning and
exits immediately; a partially written archive is left on disk.
"""

import logging
import signal
import sys


logger = logging.getLogger(__name__)

HANDLED_SIGNALS = (signal.SIGINT, signal.SIGTERM)


def _handle_interrupt(signum, frame):
    name = signal.Signals(signum).name
    logger.warning(f"Interrupted by {name}, exiting without cleanup")
    sys.exit(128 + signum)


def install_signal_handlers():
    """Register the interrupt handler for SIGINT and SIGTERM."""
    for signum in HANDLED_SIGNALS:
        signal.signal(signum, _handle_interrupt)
