"""
Unit tests for termination signal handling (logarchive/utils/signals.py).
"""

import signal

import pytest

from logarchive.utils.signals import install_signal_handlers, _handle_interrupt


@pytest.fixture
def restore_signals():
    """Restore the original SIGINT/SIGTERM handlers after the test."""
    original = {signum: signal.getsignal(signum) for signum in (signal.SIGINT, signal.SIGTERM)}
    yield
    for signum, handler in original.items():
        signal.signal(signum, handler)


class TestSignalHandlers:
    """Test interrupt handling."""

    def test_install_registers_handlers(self, restore_signals):
        """Test that SIGINT and SIGTERM are routed to the handler."""
        install_signal_handlers()

        assert signal.getsignal(signal.SIGINT) is _handle_interrupt
        assert signal.getsignal(signal.SIGTERM) is _handle_interrupt

    @pytest.mark.parametrize("signum,expected_code", [
        (signal.SIGINT, 130),
        (signal.SIGTERM, 143),
    ])
    def test_handler_logs_and_exits(self, caplog, signum, expected_code):
        """Test that the handler warns and exits with 128 + signum."""
        with caplog.at_level('WARNING', logger='logarchive'):
            with pytest.raises(SystemExit) as exc_info:
                _handle_interrupt(signum, None)

        assert exc_info.value.code == expected_code
        assert signal.Signals(signum).name in caplog.text

    def test_partial_archive_left_on_disk(self, tmp_path):
        """Test that an interrupt does not remove in-progress output."""
        partial = tmp_path / 'logs_archive_20240115_123045.tar.gz'
        partial.write_bytes(b'\x1f\x8b partial')

        with pytest.raises(SystemExit):
            _handle_interrupt(signal.SIGTERM, None)

        assert partial.exists()
