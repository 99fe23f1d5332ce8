"""
The watch-queue engine.

One Engine is created at start-up and passed to every collaborator that
needs to enqueue. It owns the event queue, the session, the dispatch loop,
the listener, the signal bridge and the interactive shell.

Threads:
- main thread: installs signal handlers and idles until stopped
- listener (watchdog observer) thread: relevance filtering and enqueue
- interactor thread: operator commands
- dispatch thread: the single queue consumer
"""

import logging
import sys
import threading
import time
from pathlib import Path
from typing import Any, Iterable, List, Mapping, Optional, TextIO, Union

from watch_queue.config import ConfigManager
from watch_queue.describer import Describer
from watch_queue.dispatcher import DispatchLoop
from watch_queue.errors import UnknownActionError
from watch_queue.event_queue import EventQueue
from watch_queue.handoff import InteractorHandoff
from watch_queue.interactor import Interactor
from watch_queue.listener import ChangeListener
from watch_queue.models import ChangeSet, PauseState, QueueItem, Scope, WatchOptions, to_queue_item
from watch_queue.notifier import setup_notifier
from watch_queue.relevance import matches_snapshot, relativize
from watch_queue.runner import Runner
from watch_queue.session import Session
from watch_queue.signals import SignalBridge


logger = logging.getLogger(__name__)

# Seconds between main thread checks for shutdown
MAIN_THREAD_POLL = 0.2
DISPATCH_JOIN_TIMEOUT = 5.0


def _to_scope(value: Union[None, Scope, Mapping[str, Any]]) -> Scope:
    if isinstance(value, Scope):
        return value
    return Scope.from_mapping(value)


class Engine:
    """
    Core object tying the queue, dispatch loop and collaborators together.
    """

    def __init__(
        self,
        options: Optional[WatchOptions] = None,
        input_stream: Optional[TextIO] = None,
        output: Optional[TextIO] = None
    ):
        """
        Initialize engine. Call ``setup()`` before use.

        Args:
            options: Start-up options
            input_stream: Stream for the interactive shell (default: stdin)
            output: Stream for shell and ``show`` output (default: stdout)
        """
        self.options = options or WatchOptions()
        self.input_stream = input_stream
        self.output = output

        self.watch_roots: List[Path] = []
        self.config_manager: Optional[ConfigManager] = None
        self.session: Optional[Session] = None
        self.queue: Optional[EventQueue] = None
        self.handoff: Optional[InteractorHandoff] = None
        self.notifier = None
        self.runner: Optional[Runner] = None
        self.describer: Optional[Describer] = None
        self.dispatcher: Optional[DispatchLoop] = None
        self.listener: Optional[ChangeListener] = None
        self.signal_bridge: Optional[SignalBridge] = None
        self.interactor: Optional[Interactor] = None

        self.exit_status = 0
        self._stop_event = threading.Event()
        self._dispatch_thread: Optional[threading.Thread] = None
        self._previous_excepthook = None

    # Setup

    def setup(self) -> "Engine":
        """
        Build every component and evaluate the configuration.

        Returns:
            self

        Raises:
            ConfigError: If the configuration cannot be evaluated
        """
        options = self.options

        if options.debug:
            self._setup_debug()

        self.watch_roots = options.watch_roots()
        self.config_manager = ConfigManager(options.config_file)

        self.session = Session()
        self.session.set_watch_roots(self.watch_roots)

        self.queue = EventQueue()
        self.handoff = InteractorHandoff(on_shutdown=self.stop)
        self.notifier = setup_notifier(options)

        self.runner = Runner(
            self.session,
            clear=options.clear,
            notifier=self.notifier,
            on_config_change=self.reload
        )
        self.describer = Describer(self.session, self.output)
        self.dispatcher = DispatchLoop(
            self.queue, self.handoff, self.runner, self, self.describer
        )

        self.listener = ChangeListener(
            self.watch_roots,
            self._on_changes,
            latency=options.latency,
            force_polling=options.force_polling,
            wait_for_delay=options.wait_for_delay
        )
        self.signal_bridge = SignalBridge(self._enqueue, self.handoff)

        if self._interactive():
            self.interactor = Interactor(self, self.input_stream, self.output)

        self.evaluate_config()
        self.set_scope(groups=options.group, plugins=options.plugin)

        return self

    def _interactive(self) -> bool:
        if self.options.no_interactions:
            return False
        if self.input_stream is not None:
            return True
        return sys.stdin is not None and sys.stdin.isatty()

    def _setup_debug(self) -> None:
        """Debug logging, and any uncaught thread exception stops the process."""
        logging.getLogger("watch_queue").setLevel(logging.DEBUG)
        if self._previous_excepthook is None:
            self._previous_excepthook = threading.excepthook
        threading.excepthook = self._abort_on_thread_exception

    def _abort_on_thread_exception(self, args) -> None:
        logger.critical(
            f"Uncaught exception in thread {args.thread.name if args.thread else '?'}: {args.exc_value}",
            exc_info=(args.exc_type, args.exc_value, args.exc_traceback)
        )
        self.exit_status = 1
        self.stop()

    def evaluate_config(self) -> None:
        """Evaluate the configuration file and install its groups and plugins."""
        groups, plugins = self.config_manager.evaluate()
        self.session.install(groups, plugins, config_path=self.config_manager.config_file)

    def set_scope(
        self,
        groups: Optional[Iterable[str]] = None,
        plugins: Optional[Iterable[str]] = None
    ) -> None:
        """Replace the session scope."""
        self.session.set_scope(Scope(groups=tuple(groups or ()), plugins=tuple(plugins or ())))

    # Enqueue API

    def queue_add(self, changes: Any) -> None:
        """
        Queue a change set or control action and wake the dispatch loop.

        Accepts {"modified": [...], "added": [...], "removed": [...]},
        an (action_kind, payload) pair, or a ChangeSet / ControlAction.

        Raises:
            UnknownActionError: If an action pair names an unknown kind
        """
        self._enqueue(to_queue_item(changes))

    def _enqueue(self, item: QueueItem) -> None:
        # Also called from signal handlers: no logging here
        self.queue.enqueue(item)
        self.handoff.yield_to_dispatch()

    def pending_changes(self) -> bool:
        return not self.queue.is_empty()

    def _on_changes(self, modified: List[str], added: List[str], removed: List[str]) -> None:
        """Listener callback: relativize, filter and queue. Must not modify state."""
        snapshot = self.session.snapshot
        changes = relativize(
            ChangeSet(modified=modified, added=added, removed=removed),
            snapshot.watch_roots
        )
        if matches_snapshot(changes, snapshot):
            self._enqueue(changes)
        else:
            logger.debug(f"Ignored irrelevant changes: {modified + added + removed}")

    # Actions, executed on the dispatch thread

    @property
    def paused(self) -> bool:
        return self.listener is not None and self.listener.paused

    def pause(self, state: Union[None, str, PauseState] = None) -> None:
        """
        Pause or resume listening to changes.

        Args:
            state: PAUSED, UNPAUSED, or TOGGLE / None to flip the current state
        """
        state = PauseState(state) if state is not None else PauseState.TOGGLE

        if state is PauseState.TOGGLE:
            pause = not self.paused
        else:
            pause = state is PauseState.PAUSED

        if pause == self.paused:
            logger.debug(f"Already {'paused' if pause else 'running'}")
            return

        if pause:
            self.listener.pause()
            logger.info("Paused (send SIGUSR2 or type 'resume' to continue)")
        else:
            self.listener.unpause()
            logger.info("Resumed watching")

    def run_all(self, scope: Union[None, Scope, Mapping[str, Any]] = None) -> None:
        """Run every plugin in scope."""
        self.runner.run_all(_to_scope(scope))

    def reload(self, scope: Union[None, Scope, Mapping[str, Any]] = None) -> None:
        """
        Re-evaluate the configuration and reset the scope.

        The scope becomes the given one, or the start-up scope if empty.

        Raises:
            ConfigError: If the configuration is now invalid (old plugins stay)
        """
        logger.info("Reloading configuration")
        self.evaluate_config()

        scope = _to_scope(scope)
        if scope.is_empty():
            scope = Scope(groups=tuple(self.options.group), plugins=tuple(self.options.plugin))
        self.session.set_scope(scope)

    # Lifecycle

    def start(self) -> int:
        """
        Run until stopped.

        Returns:
            Exit status (1 after a fatal dispatch error)
        """
        self._stop_event.clear()

        self.signal_bridge.install()
        self.listener.start()

        self._dispatch_thread = threading.Thread(
            target=self._dispatch_main,
            name="Dispatch",
            daemon=True
        )
        self._dispatch_thread.start()

        if self.interactor is not None:
            self.interactor.start()

        logger.info(f"watch-queue is now watching at {', '.join(str(r) for r in self.watch_roots)}")

        try:
            # Sleep rather than block on a lock so signal handlers can always run here
            while not self._stop_event.is_set():
                time.sleep(MAIN_THREAD_POLL)
        except KeyboardInterrupt:
            logger.debug("Interrupted")
        finally:
            self._shutdown()

        return self.exit_status

    def _dispatch_main(self) -> None:
        try:
            self.dispatcher.run_forever(self._stop_event)
        except UnknownActionError as e:
            logger.critical(f"Fatal: {e}")
            self.exit_status = 1
            self.stop()

    def stop(self) -> None:
        """Request shutdown. Never blocks; safe from signal handlers."""
        self._stop_event.set()
        if self.handoff is not None:
            self.handoff.release()

    @property
    def stopped(self) -> bool:
        return self._stop_event.is_set()

    def _shutdown(self) -> None:
        self.stop()

        if self.interactor is not None:
            self.interactor.stop()

        self.signal_bridge.uninstall()
        self.listener.stop()

        if self._dispatch_thread is not None:
            self._dispatch_thread.join(timeout=DISPATCH_JOIN_TIMEOUT)
            if self._dispatch_thread.is_alive():
                logger.warning("Dispatch cycle did not finish before shutdown")
            self._dispatch_thread = None

        if self._previous_excepthook is not None:
            threading.excepthook = self._previous_excepthook
            self._previous_excepthook = None

        logger.info("Bye bye...")
