"""
Task runner: executes plugins for a change set or a run-all request.

Plugin failures are logged and reported, never raised; the dispatch loop
moves on regardless.
"""

import logging
import sys
from typing import Callable, Dict, List, Optional

from watch_queue.models import Scope
from watch_queue.session import Session
from watch_queue.watcher import Watcher


logger = logging.getLogger(__name__)

CLEAR_SCREEN = "\033[H\033[2J"


class Runner:
    """
    Runs scoped plugins against changed files.

    Plugins are read from the session snapshot at the start of each run.
    """

    def __init__(
        self,
        session: Session,
        clear: bool = False,
        notifier=None,
        on_config_change: Optional[Callable[[], None]] = None
    ):
        """
        Initialize runner.

        Args:
            session: Session holding plugins and scope
            clear: Clear the terminal before each run
            notifier: Notifier for success/failure messages
            on_config_change: Called when the configuration file itself changed
        """
        self.session = session
        self.clear = clear
        self.notifier = notifier
        self.on_config_change = on_config_change

    def run_on_changes(
        self,
        modified: List[str],
        added: List[str],
        removed: List[str]
    ) -> Dict[str, str]:
        """
        Run every scoped plugin whose patterns match the changed paths.

        Args:
            modified: Modified root-relative paths
            added: Added root-relative paths
            removed: Removed root-relative paths

        Returns:
            Dict mapping plugin name to "success" or "failed"
        """
        paths = list(modified) + list(added) + list(removed)
        if not paths:
            logger.debug("No changes to run")
            return {}

        snapshot = self.session.snapshot
        if self.on_config_change and Watcher.match_config_file(paths, snapshot.config_relative_paths()):
            logger.info("Configuration file changed, reloading")
            self.on_config_change()
            snapshot = self.session.snapshot

        results = {}
        for plugin in snapshot.scoped_plugins():
            matched = plugin.matching(paths)
            if not matched:
                continue
            self._clear_screen()
            logger.info(f"[{plugin.name}] Running on {len(matched)} file(s): {' '.join(matched)}")
            results[plugin.name] = self._run_plugin(plugin, "run_on_changes", matched)

        return results

    def run_all(self, scope: Optional[Scope] = None) -> Dict[str, str]:
        """
        Run every scoped plugin's run-all task.

        Args:
            scope: Scope override; the session scope is used when empty

        Returns:
            Dict mapping plugin name to "success" or "failed"
        """
        self._clear_screen()

        results = {}
        for plugin in self.session.snapshot.scoped_plugins(scope):
            logger.info(f"[{plugin.name}] Running all")
            results[plugin.name] = self._run_plugin(plugin, "run_all")

        return results

    def _run_plugin(self, plugin, task: str, *args) -> str:
        try:
            succeeded = getattr(plugin, task)(*args)
        except Exception as e:
            logger.error(f"[{plugin.name}] {task} raised: {e}", exc_info=True)
            succeeded = False

        status = "success" if succeeded else "failed"
        if self.notifier is not None:
            self.notifier.notify(f"{plugin.name}: {task} {status}", success=succeeded)
        return status

    def _clear_screen(self) -> None:
        if self.clear:
            sys.stdout.write(CLEAR_SCREEN)
            sys.stdout.flush()
