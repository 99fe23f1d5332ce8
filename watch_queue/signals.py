"""
OS signal bridge.

Currently three signals are caught:
- SIGUSR1 pauses listening to changes.
- SIGUSR2 resumes listening to changes.
- SIGINT cancels a pending interactive read, otherwise stops watch-queue.

Handlers only enqueue a prebuilt action or call the handoff's interrupt
hook; they never log or touch session state.
"""

import logging
import signal
import threading
from typing import Callable, Dict, List

from watch_queue.handoff import InteractorHandoff
from watch_queue.models import ActionKind, ControlAction, PauseState, QueueItem


logger = logging.getLogger(__name__)

PAUSE_ACTION = ControlAction(kind=ActionKind.PAUSE, payload=PauseState.PAUSED)
UNPAUSE_ACTION = ControlAction(kind=ActionKind.PAUSE, payload=PauseState.UNPAUSED)


class SignalBridge:
    """Maps control signals to queue items and interrupts."""

    def __init__(
        self,
        enqueue: Callable[[QueueItem], None],
        handoff: InteractorHandoff
    ):
        """
        Initialize signal bridge.

        Args:
            enqueue: Non-blocking function that queues an item and wakes dispatch
            handoff: Handoff whose interrupt hook handles SIGINT
        """
        self.enqueue = enqueue
        self.handoff = handoff
        self._previous: Dict[int, object] = {}

    def _handlers(self) -> Dict[str, Callable]:
        return {
            "SIGUSR1": self._on_pause,
            "SIGUSR2": self._on_unpause,
            "SIGINT": self._on_interrupt,
        }

    def install(self) -> List[str]:
        """
        Register handlers for the signals this platform supports.

        Returns:
            Names of the signals handled (empty if none could be registered)
        """
        if threading.current_thread() is not threading.main_thread():
            logger.warning("Signal handlers can only be installed from the main thread")
            return []

        installed = []
        for name, handler in self._handlers().items():
            signum = getattr(signal, name, None)
            if signum is None:
                continue
            try:
                self._previous[signum] = signal.signal(signum, handler)
            except (OSError, ValueError) as e:
                logger.debug(f"Cannot handle {name}: {e}")
                continue
            installed.append(name)

        logger.debug(f"Signal handlers installed: {', '.join(installed) or 'none'}")
        return installed

    def uninstall(self) -> None:
        """Restore the handlers that were active before ``install``."""
        for signum, previous in self._previous.items():
            try:
                signal.signal(signum, previous)
            except (OSError, ValueError, TypeError) as e:
                logger.debug(f"Cannot restore handler for signal {signum}: {e}")
        self._previous.clear()

    def _on_pause(self, signum, frame) -> None:
        self.enqueue(PAUSE_ACTION)

    def _on_unpause(self, signum, frame) -> None:
        self.enqueue(UNPAUSE_ACTION)

    def _on_interrupt(self, signum, frame) -> None:
        self.handoff.interrupt()
