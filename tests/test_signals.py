"""Tests for watch_queue.signals."""

import os
import signal
import threading
import time
from unittest.mock import Mock

import pytest

from watch_queue.event_queue import EventQueue
from watch_queue.handoff import InteractorHandoff
from watch_queue.models import ActionKind, PauseState
from watch_queue.signals import SignalBridge


needs_usr_signals = pytest.mark.skipif(
    not hasattr(signal, "SIGUSR1"),
    reason="SIGUSR1/SIGUSR2 not available on this platform"
)


@pytest.fixture
def queue():
    return EventQueue()


@pytest.fixture
def handoff():
    return InteractorHandoff(on_shutdown=Mock())


@pytest.fixture
def bridge(queue, handoff):
    def enqueue(item):
        queue.enqueue(item)
        handoff.yield_to_dispatch()

    bridge = SignalBridge(enqueue, handoff)
    yield bridge
    bridge.uninstall()


def _deliver(signum):
    os.kill(os.getpid(), signum)
    # Let the Python-level handler run
    time.sleep(0.05)


class TestSignalBridge:
    """Tests for SignalBridge."""

    @needs_usr_signals
    def test_install_registers_handlers(self, bridge):
        installed = bridge.install()
        assert installed == ["SIGUSR1", "SIGUSR2", "SIGINT"]

    @needs_usr_signals
    def test_sigusr1_enqueues_pause(self, bridge, queue, handoff):
        """Test that one SIGUSR1 results in exactly one pause action."""
        bridge.install()

        _deliver(signal.SIGUSR1)

        items = queue.drain_all()
        assert len(items) == 1
        assert items[0].kind is ActionKind.PAUSE
        assert items[0].payload is PauseState.PAUSED
        assert handoff.wait_for_dispatch(timeout=0.01)

    @needs_usr_signals
    def test_sigusr2_enqueues_unpause(self, bridge, queue):
        bridge.install()

        _deliver(signal.SIGUSR2)

        items = queue.drain_all()
        assert len(items) == 1
        assert items[0].payload is PauseState.UNPAUSED

    @needs_usr_signals
    def test_repeated_signals_not_duplicated(self, bridge, queue):
        """Test that each delivered signal yields one action and no more."""
        bridge.install()

        for _ in range(3):
            _deliver(signal.SIGUSR1)

        items = queue.drain_all()
        assert len(items) == 3
        assert all(item.kind is ActionKind.PAUSE for item in items)

    def test_sigint_calls_interrupt(self, bridge, queue, handoff):
        """Test that SIGINT goes to the handoff rather than the queue."""
        handoff.interrupt = Mock()

        bridge._on_interrupt(signal.SIGINT, None)

        handoff.interrupt.assert_called_once_with()
        assert queue.is_empty()

    def test_missing_signals_are_skipped(self, bridge, monkeypatch):
        """Test that platforms without USR signals register what they have."""
        monkeypatch.delattr(signal, "SIGUSR1", raising=False)
        monkeypatch.delattr(signal, "SIGUSR2", raising=False)

        installed = bridge.install()

        assert installed == ["SIGINT"]

    def test_install_from_other_thread(self, bridge):
        """Test that installing off the main thread registers nothing."""
        result = []
        thread = threading.Thread(target=lambda: result.append(bridge.install()))
        thread.start()
        thread.join()

        assert result == [[]]

    @needs_usr_signals
    def test_uninstall_restores_previous(self, bridge):
        previous = signal.getsignal(signal.SIGUSR1)
        bridge.install()
        assert signal.getsignal(signal.SIGUSR1) != previous

        bridge.uninstall()

        assert signal.getsignal(signal.SIGUSR1) == previous
