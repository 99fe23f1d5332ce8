"""
Watch patterns for plugins.

A pattern is either a glob matched against the root-relative POSIX path
("*.py", "src/**/*.py") or a regular expression prefixed with "re:".
"""

import fnmatch
import re
from typing import Iterable, Optional, Pattern

REGEX_PREFIX = "re:"


class Watcher:
    """
    A single watch pattern.

    Matches root-relative paths as produced by the relevance filter.
    """

    def __init__(self, pattern: str):
        """
        Initialize watcher.

        Args:
            pattern: Glob pattern, or regular expression prefixed with "re:"

        Raises:
            ValueError: If a regular expression does not compile
        """
        self.pattern = pattern
        self._regex: Optional[Pattern[str]] = None

        if pattern.startswith(REGEX_PREFIX):
            try:
                self._regex = re.compile(pattern[len(REGEX_PREFIX):])
            except re.error as e:
                raise ValueError(f"Invalid watch pattern {pattern!r}: {e}")

    def match(self, path: str) -> bool:
        """
        Check whether a relative path matches this pattern.

        Args:
            path: Root-relative POSIX path

        Returns:
            True if the path matches
        """
        if self._regex is not None:
            return self._regex.search(path) is not None

        if fnmatch.fnmatchcase(path, self.pattern):
            return True

        # "**/" also matches zero directories
        if "**/" in self.pattern:
            return fnmatch.fnmatchcase(path, self.pattern.replace("**/", ""))

        return False

    def __repr__(self) -> str:
        return f"Watcher({self.pattern!r})"

    @staticmethod
    def match_files(plugins: Iterable, paths: Iterable[str]) -> bool:
        """
        Check whether any of the plugins watches any of the paths.

        Args:
            plugins: Plugins exposing a ``watchers`` list
            paths: Root-relative paths

        Returns:
            True on the first match
        """
        paths = list(paths)
        for plugin in plugins:
            for watcher in plugin.watchers:
                for path in paths:
                    if watcher.match(path):
                        return True
        return False

    @staticmethod
    def match_config_file(paths: Iterable[str], config_paths: Iterable[str]) -> bool:
        """
        Check whether any path is the active configuration file.

        Args:
            paths: Root-relative paths
            config_paths: Root-relative forms of the configuration file

        Returns:
            True if the configuration file is among the paths
        """
        config_paths = set(config_paths)
        if not config_paths:
            return False
        return any(path in config_paths for path in paths)
