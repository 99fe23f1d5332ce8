"""
Focus handoff between the interactive shell and the dispatch loop.

Either the interactive shell owns focus (it is waiting for operator input)
or the dispatch side does. Producers call ``yield_to_dispatch`` after
enqueuing; the dispatch loop waits for that wake-up, clears it, and then
drains the queue. Clearing before draining means a wake-up can only be
coalesced with items the coming drain will see, never lost.
"""

import logging
import threading
from contextlib import contextmanager
from enum import Enum
from typing import Callable, Iterator, Optional


logger = logging.getLogger(__name__)


class Focus(str, Enum):
    """Who currently owns the terminal / processing focus."""
    INTERACTIVE = "interactive"
    DISPATCH = "dispatch"


class InteractorHandoff:
    """
    Single-slot handoff between producers, the shell and the dispatch loop.

    ``yield_to_dispatch`` and ``interrupt`` never block and are safe to call
    from signal handlers.
    """

    def __init__(self, on_shutdown: Optional[Callable[[], None]] = None):
        """
        Initialize handoff.

        Args:
            on_shutdown: Called by ``interrupt`` when no input read is pending
        """
        self.on_shutdown = on_shutdown

        # Single-slot wake-up for the dispatch loop
        self._wakeup = threading.Event()

        # Set while no dispatch cycle is running
        self._idle = threading.Event()
        self._idle.set()

        # Set to abort the shell's pending read
        self._input_cancelled = threading.Event()

        # True while the shell is blocked in a read
        self._reading = False

    @property
    def focus(self) -> Focus:
        """The shell has focus only while it is reading and no cycle runs."""
        if self._reading and self._idle.is_set():
            return Focus.INTERACTIVE
        return Focus.DISPATCH

    @property
    def backgrounded(self) -> bool:
        """True while a dispatch cycle runs; a pending shell read must give up."""
        return not self._idle.is_set()

    def yield_to_dispatch(self) -> None:
        """Hand focus to the dispatch side so it drains the queue. Never blocks."""
        self._wakeup.set()

    def wait_for_dispatch(self, timeout: Optional[float] = None) -> bool:
        """
        Wait for a wake-up, then consume it.

        Called by the dispatch loop only, before each drain.

        Args:
            timeout: Seconds to wait (None waits forever)

        Returns:
            True if woken, False on timeout
        """
        woken = self._wakeup.wait(timeout)
        if woken:
            self._wakeup.clear()
        return woken

    def interrupt(self) -> None:
        """
        Handle an interrupt request.

        Cancels the shell's pending read if it has focus, otherwise
        requests shutdown.
        """
        if self.focus is Focus.INTERACTIVE:
            self._input_cancelled.set()
        elif self.on_shutdown is not None:
            self.on_shutdown()

    @contextmanager
    def input_focus(self, timeout: Optional[float] = None) -> Iterator[Optional[threading.Event]]:
        """
        Give the interactive shell focus for one read.

        Waits until no dispatch cycle is running so the prompt does not
        interleave with plugin output.

        Args:
            timeout: Seconds to wait for the dispatch side to go idle

        Yields:
            Event set when the read should be abandoned, or None if the
            dispatch side stayed busy for the whole timeout
        """
        if not self._idle.wait(timeout):
            yield None
            return

        self._input_cancelled.clear()
        self._reading = True
        try:
            yield self._input_cancelled
        finally:
            self._reading = False

    @contextmanager
    def dispatch_focus(self) -> Iterator[None]:
        """
        Take focus for one dispatch cycle.

        A shell read already in progress sees ``backgrounded`` and abandons
        the read; the shell waits in ``input_focus`` until the cycle ends.
        """
        self._idle.clear()
        try:
            yield
        finally:
            self._idle.set()

    def release(self) -> None:
        """Wake every waiter, used on shutdown."""
        self._wakeup.set()
        self._idle.set()
        self._input_cancelled.set()
