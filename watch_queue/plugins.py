"""
Runtime groups and plugins built from the configuration file.
"""

import logging
import shlex
from pathlib import Path
from typing import Iterable, List, Optional

from watch_queue.models import PluginConfig
from watch_queue.shell import run_command
from watch_queue.watcher import Watcher

logger = logging.getLogger(__name__)

PATHS_PLACEHOLDER = "{paths}"


class Group:
    """A named set of plugins that can be scoped together."""

    def __init__(self, name: str, description: str = ""):
        self.name = name
        self.description = description

    def __repr__(self) -> str:
        return f"Group({self.name!r})"


class Plugin:
    """
    A plugin that runs a shell command when its watched files change.

    ``command`` may contain ``{paths}``, replaced by the shell-quoted paths
    that matched the plugin's patterns. ``run_all_command`` runs on run_all;
    it defaults to ``command`` with ``{paths}`` removed.
    """

    def __init__(
        self,
        name: str,
        group: str = "default",
        watch: Iterable[str] = (),
        command: Optional[str] = None,
        run_all_command: Optional[str] = None,
        cwd: Optional[Path] = None
    ):
        self.name = name
        self.group = group
        self.watchers = [Watcher(pattern) for pattern in watch]
        self.command = command
        self.run_all_command = run_all_command
        self.cwd = cwd

    @classmethod
    def from_config(cls, config: PluginConfig, cwd: Optional[Path] = None) -> "Plugin":
        """Build a plugin from its configuration entry."""
        return cls(
            name=config.name,
            group=config.group,
            watch=config.watch,
            command=config.command,
            run_all_command=config.run_all_command,
            cwd=cwd,
        )

    def matching(self, paths: Iterable[str]) -> List[str]:
        """
        Filter paths down to the ones this plugin watches.

        Args:
            paths: Root-relative paths

        Returns:
            Matching paths in their original order
        """
        return [
            path for path in paths
            if any(watcher.match(path) for watcher in self.watchers)
        ]

    def run_on_changes(self, paths: List[str]) -> bool:
        """
        Run the plugin's command for changed paths.

        Args:
            paths: Matching root-relative paths

        Returns:
            True if the command succeeded or there is nothing to run
        """
        if not self.command:
            logger.debug(f"[{self.name}] No command configured")
            return True

        quoted = " ".join(shlex.quote(path) for path in paths)
        return self._run(self.command.replace(PATHS_PLACEHOLDER, quoted))

    def run_all(self) -> bool:
        """Run the plugin's run-all command."""
        command = self.run_all_command
        if command is None and self.command:
            command = self.command.replace(PATHS_PLACEHOLDER, "").strip()

        if not command:
            logger.debug(f"[{self.name}] No run_all command configured")
            return True

        return self._run(command)

    def _run(self, command: str) -> bool:
        returncode = run_command(command, cwd=self.cwd)
        if returncode != 0:
            logger.warning(f"[{self.name}] Command exited with status {returncode}: {command}")
            return False
        return True

    def __repr__(self) -> str:
        return f"Plugin({self.name!r}, group={self.group!r})"
