"""
Dispatch loop: the single consumer of the event queue.

Each cycle drains the queue, executes control actions in arrival order,
merges change sets, and hands the merged change set to the runner once.
"""

import logging
import threading
from enum import Enum
from typing import Iterable, List, Optional, Tuple

from watch_queue.errors import UnknownActionError
from watch_queue.event_queue import EventQueue
from watch_queue.handoff import InteractorHandoff
from watch_queue.models import (
    ActionKind,
    ChangeSet,
    ControlAction,
    PauseState,
    QueueItem,
)


logger = logging.getLogger(__name__)

# Seconds between periodic queue checks when no wake-up arrives
DISPATCH_POLL_INTERVAL = 1.0


class DispatchState(str, Enum):
    """Dispatch loop states."""
    IDLE = "idle"
    DRAINING = "draining"
    EXECUTING_ACTIONS = "executing_actions"
    RUNNING_TASK = "running_task"


def partition(items: Iterable[QueueItem]) -> Tuple[ChangeSet, List[ControlAction]]:
    """
    Split drained items into one merged change set and the ordered actions.

    Change sets are concatenated in arrival order; duplicates are kept.

    Raises:
        UnknownActionError: If an item is neither a ChangeSet nor a ControlAction
    """
    changes = ChangeSet()
    actions = []
    for item in items:
        if isinstance(item, ControlAction):
            actions.append(item)
        elif isinstance(item, ChangeSet):
            changes = changes.merge(item)
        else:
            raise UnknownActionError(item)
    return changes, actions


class DispatchLoop:
    """
    Runs dispatch cycles, never two at a time.

    The controller executes pause/run_all/reload (the Engine in
    production); the describer handles show; the runner receives the
    merged change set.
    """

    def __init__(
        self,
        queue: EventQueue,
        handoff: InteractorHandoff,
        runner,
        controller,
        describer
    ):
        """
        Initialize dispatch loop.

        Args:
            queue: Queue to drain
            handoff: Handoff providing wake-ups and dispatch focus
            runner: Object with run_on_changes(modified, added, removed)
            controller: Object with pause(state), run_all(scope), reload(scope)
            describer: Object with show()
        """
        self.queue = queue
        self.handoff = handoff
        self.runner = runner
        self.controller = controller
        self.describer = describer

        self.state = DispatchState.IDLE
        self._cycle_lock = threading.Lock()

    def process_queue(self) -> bool:
        """
        Run one dispatch cycle.

        Returns:
            False if another cycle was already running, True otherwise

        Raises:
            UnknownActionError: If a drained action has an unknown kind
        """
        if not self._cycle_lock.acquire(blocking=False):
            logger.debug("Dispatch cycle already running")
            return False

        try:
            with self.handoff.dispatch_focus():
                self._run_cycle()
        finally:
            self.state = DispatchState.IDLE
            self._cycle_lock.release()

        return True

    def _run_cycle(self) -> None:
        self.state = DispatchState.DRAINING
        items = self.queue.drain_all()
        if not items:
            return

        changes, actions = partition(items)

        self.state = DispatchState.EXECUTING_ACTIONS
        reloaded = False
        for action in actions:
            if self._execute(action):
                reloaded = True

        if reloaded:
            if not changes.is_empty():
                logger.debug(f"Reload discarded {len(changes.all_paths())} queued change(s)")
            return

        self.state = DispatchState.RUNNING_TASK
        try:
            self.runner.run_on_changes(changes.modified, changes.added, changes.removed)
        except Exception as e:
            logger.error(f"Runner failed: {e}", exc_info=True)

    def _execute(self, action: ControlAction) -> bool:
        """
        Execute a single control action.

        Returns:
            True if the action was a reload
        """
        kind = action.kind
        name = getattr(kind, "value", kind)
        logger.debug(f"Action: {name} {action.payload!r}")

        if kind == ActionKind.PAUSE:
            handler, args = self.controller.pause, (action.payload,)
        elif kind == ActionKind.RESUME:
            handler, args = self.controller.pause, (PauseState.UNPAUSED,)
        elif kind == ActionKind.RUN_ALL:
            handler, args = self.controller.run_all, (action.payload,)
        elif kind == ActionKind.RELOAD:
            handler, args = self.controller.reload, (action.payload,)
        elif kind == ActionKind.SHOW:
            handler, args = self.describer.show, ()
        else:
            raise UnknownActionError(kind)

        try:
            handler(*args)
        except Exception as e:
            logger.error(f"Action '{name}' failed: {e}", exc_info=True)

        return kind == ActionKind.RELOAD

    def run_forever(
        self,
        stop_event: threading.Event,
        poll_interval: Optional[float] = DISPATCH_POLL_INTERVAL
    ) -> None:
        """
        Process cycles until stop_event is set.

        Raises:
            UnknownActionError: Ends the loop; the caller terminates the process
        """
        logger.debug("Dispatch loop started")

        while not stop_event.is_set():
            woken = self.handoff.wait_for_dispatch(timeout=poll_interval)
            if stop_event.is_set():
                break
            if woken or not self.queue.is_empty():
                self.process_queue()

        logger.debug("Dispatch loop stopped")
