"""Tests for watch_queue.handoff."""

import threading
import time
from unittest.mock import Mock

from watch_queue.event_queue import EventQueue
from watch_queue.handoff import Focus, InteractorHandoff
from watch_queue.models import ChangeSet


class TestWakeUp:
    """Tests for the dispatch wake-up slot."""

    def test_wait_times_out_without_yield(self):
        handoff = InteractorHandoff()
        assert handoff.wait_for_dispatch(timeout=0.01) is False

    def test_yield_wakes_waiter(self):
        handoff = InteractorHandoff()
        handoff.yield_to_dispatch()
        assert handoff.wait_for_dispatch(timeout=0.01) is True

    def test_wake_up_is_consumed(self):
        handoff = InteractorHandoff()
        handoff.yield_to_dispatch()
        handoff.yield_to_dispatch()

        assert handoff.wait_for_dispatch(timeout=0.01) is True
        assert handoff.wait_for_dispatch(timeout=0.01) is False

    def test_yield_does_not_block(self):
        """Test that yielding while a cycle is running returns immediately."""
        handoff = InteractorHandoff()
        with handoff.dispatch_focus():
            started = time.monotonic()
            handoff.yield_to_dispatch()
            assert time.monotonic() - started < 0.5

    def test_concurrent_producers_not_lost(self):
        """Test that one wake-up still lets the drain see every item from racing producers."""
        handoff = InteractorHandoff()
        queue = EventQueue()
        barrier = threading.Barrier(2)

        def produce(name):
            barrier.wait()
            queue.enqueue(ChangeSet(modified=[name]))
            handoff.yield_to_dispatch()

        threads = [threading.Thread(target=produce, args=(n,)) for n in ("a", "b")]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        seen = []
        while handoff.wait_for_dispatch(timeout=0.05):
            seen.extend(item.modified[0] for item in queue.drain_all())

        assert sorted(seen) == ["a", "b"]


class TestFocus:
    """Tests for focus transitions and interrupt."""

    def test_initial_focus_is_dispatch(self):
        assert InteractorHandoff().focus is Focus.DISPATCH

    def test_input_focus(self):
        handoff = InteractorHandoff()
        with handoff.input_focus(timeout=0.1) as cancelled:
            assert cancelled is not None
            assert handoff.focus is Focus.INTERACTIVE
        assert handoff.focus is Focus.DISPATCH

    def test_dispatch_cycle_backgrounds_shell(self):
        """Test that the shell cannot hold focus while a cycle runs."""
        handoff = InteractorHandoff()
        assert not handoff.backgrounded

        with handoff.dispatch_focus():
            assert handoff.backgrounded
            assert handoff.focus is Focus.DISPATCH
            with handoff.input_focus(timeout=0.01) as cancelled:
                assert cancelled is None

        assert not handoff.backgrounded

    def test_input_focus_granted_when_cycle_ends(self):
        handoff = InteractorHandoff()
        started = threading.Event()

        def cycle():
            with handoff.dispatch_focus():
                started.set()
                time.sleep(0.1)

        thread = threading.Thread(target=cycle)
        thread.start()
        assert started.wait(timeout=5)

        with handoff.input_focus(timeout=5) as cancelled:
            assert cancelled is not None
            assert not handoff.backgrounded
        thread.join()

    def test_interrupt_cancels_pending_read(self):
        on_shutdown = Mock()
        handoff = InteractorHandoff(on_shutdown=on_shutdown)

        with handoff.input_focus(timeout=0.1) as cancelled:
            handoff.interrupt()
            assert cancelled.is_set()

        on_shutdown.assert_not_called()

    def test_interrupt_without_reader_shuts_down(self):
        on_shutdown = Mock()
        handoff = InteractorHandoff(on_shutdown=on_shutdown)

        handoff.interrupt()

        on_shutdown.assert_called_once_with()

    def test_interrupt_during_cycle_shuts_down(self):
        on_shutdown = Mock()
        handoff = InteractorHandoff(on_shutdown=on_shutdown)

        with handoff.dispatch_focus():
            handoff.interrupt()

        on_shutdown.assert_called_once_with()

    def test_new_read_clears_cancellation(self):
        handoff = InteractorHandoff()
        with handoff.input_focus(timeout=0.1):
            handoff.interrupt()
        with handoff.input_focus(timeout=0.1) as cancelled:
            assert not cancelled.is_set()

    def test_release_wakes_dispatch(self):
        handoff = InteractorHandoff()
        handoff.release()
        assert handoff.wait_for_dispatch(timeout=0.01) is True
