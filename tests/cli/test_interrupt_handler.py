"""Tests for the apply command's Ctrl-C handling."""

import os
import signal
import threading
import time
from click.testing import CliRunner
import infraplan
from infraplan.cli.main import cli
from infraplan.cli.commands.apply import _install_interrupt_handler, _restore_interrupt_handler


class TestInterruptHandler:
    """SIGINT requests cancellation instead of killing the apply."""

    def test_handler_sets_cancel_event(self):
        previous = signal.getsignal(signal.SIGINT)
        cancel = threading.Event()

        returned = _install_interrupt_handler(cancel)
        try:
            handler = signal.getsignal(signal.SIGINT)
            assert handler is not previous
            handler(signal.SIGINT, None)
            assert cancel.is_set()
            # a second Ctrl-C keeps waiting for running actions
            handler(signal.SIGINT, None)
            assert cancel.is_set()
        finally:
            _restore_interrupt_handler(returned)

        assert returned is previous
        assert signal.getsignal(signal.SIGINT) is previous

    def test_real_sigint_is_caught(self):
        previous = signal.getsignal(signal.SIGINT)
        cancel = threading.Event()

        returned = _install_interrupt_handler(cancel)
        try:
            os.kill(os.getpid(), signal.SIGINT)
            deadline = time.monotonic() + 5
            while not cancel.is_set() and time.monotonic() < deadline:
                time.sleep(0.01)
        finally:
            _restore_interrupt_handler(returned)

        assert cancel.is_set()
        assert signal.getsignal(signal.SIGINT) is previous

    def test_not_installed_off_main_thread(self):
        previous = signal.getsignal(signal.SIGINT)
        results = []

        worker = threading.Thread(target=lambda: results.append(_install_interrupt_handler(threading.Event())))
        worker.start()
        worker.join()

        assert results == [None]
        assert signal.getsignal(signal.SIGINT) is previous
        _restore_interrupt_handler(None)
        assert signal.getsignal(signal.SIGINT) is previous


def test_apply_command_interrupted(isolated_config, write_document, network_records, monkeypatch):
    """Ctrl-C during apply cancels unstarted actions, exits 130 and restores the handler."""
    document = write_document(network_records)
    previous = signal.getsignal(signal.SIGINT)
    real_execute = infraplan.execute

    def interrupted_execute(result, **kwargs):
        signal.getsignal(signal.SIGINT)(signal.SIGINT, None)
        return real_execute(result, **kwargs)

    monkeypatch.setattr(infraplan, "execute", interrupted_execute)

    result = CliRunner().invoke(cli, ['apply', str(document), '--auto-approve', '--ascii'])

    assert result.exit_code == 130
    assert "Cancelled: 2" in result.output
    assert "Interrupt received" in result.output
    assert signal.getsignal(signal.SIGINT) is previous
