"""
Shared session state: watch roots, groups, plugins and the active scope.

The listener thread reads this state while the dispatch thread may be
reloading it. Readers take ``session.snapshot`` (a single attribute read)
and use that immutable Snapshot for the whole operation; writers build a
new Snapshot and swap the reference.
"""

import dataclasses
import logging
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional, Tuple

from watch_queue.models import Scope
from watch_queue.plugins import Group, Plugin
from watch_queue.relevance import relative_path


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Snapshot:
    """Immutable view of the session at one point in time."""

    groups: Tuple[Group, ...] = ()
    plugins: Tuple[Plugin, ...] = ()
    scope: Scope = field(default_factory=Scope)
    config_path: Optional[Path] = None
    watch_roots: Tuple[Path, ...] = ()

    def config_relative_paths(self) -> Tuple[str, ...]:
        """Root-relative forms of the configuration file, one per root containing it."""
        if self.config_path is None:
            return ()
        forms = []
        for root in self.watch_roots:
            rel = relative_path(self.config_path, [root])
            if rel is not None:
                forms.append(rel)
        return tuple(forms)

    def group(self, name: str) -> Optional[Group]:
        for group in self.groups:
            if group.name == name:
                return group
        return None

    def plugin(self, name: str) -> Optional[Plugin]:
        for plugin in self.plugins:
            if plugin.name == name:
                return plugin
        return None

    def scoped_plugins(self, scope: Optional[Scope] = None) -> List[Plugin]:
        """
        Get the plugins selected by a scope.

        An explicit non-empty scope wins over the session scope. Within a
        scope, named plugins win over groups; an empty scope selects every
        plugin. Plugins are ordered by group declaration order.

        Args:
            scope: Scope override for a single run

        Returns:
            Selected plugins
        """
        if scope is None or scope.is_empty():
            scope = self.scope

        if scope.plugins:
            return [p for name in scope.plugins for p in self.plugins if p.name == name]

        if scope.groups:
            groups = [g for g in self.groups if g.name in scope.groups]
        else:
            groups = list(self.groups)

        selected = []
        for group in groups:
            selected.extend(p for p in self.plugins if p.group == group.name)
        return selected


class Session:
    """
    Holder of the current Snapshot.

    ``snapshot`` may be read from any thread without locking. Writes are
    serialized by an internal lock and always install a new Snapshot.
    """

    def __init__(self, snapshot: Optional[Snapshot] = None):
        self._write_lock = threading.Lock()
        self.snapshot = snapshot or Snapshot()

    def _replace(self, **changes) -> Snapshot:
        with self._write_lock:
            self.snapshot = dataclasses.replace(self.snapshot, **changes)
            return self.snapshot

    def install(
        self,
        groups: Iterable[Group],
        plugins: Iterable[Plugin],
        config_path: Optional[Path] = None
    ) -> Snapshot:
        """
        Install freshly evaluated groups and plugins.

        The current scope and watch roots carry over.
        """
        changes = {"groups": tuple(groups), "plugins": tuple(plugins)}
        if config_path is not None:
            changes["config_path"] = Path(config_path)
        return self._replace(**changes)

    def set_watch_roots(self, roots: Iterable[Path]) -> Snapshot:
        return self._replace(watch_roots=tuple(Path(r) for r in roots))

    def set_scope(self, scope: Scope) -> Snapshot:
        """
        Replace the active scope.

        Unknown group or plugin names are logged and dropped. Names are
        checked against the snapshot being replaced, under the write lock.
        """
        with self._write_lock:
            snapshot = self.snapshot
            valid = Scope(
                groups=self._known(scope.groups, snapshot.group, "group"),
                plugins=self._known(scope.plugins, snapshot.plugin, "plugin"),
            )
            self.snapshot = dataclasses.replace(snapshot, scope=valid)
            return self.snapshot

    @staticmethod
    def _known(names, lookup, kind: str) -> Tuple[str, ...]:
        known = []
        for name in names:
            if lookup(name) is None:
                logger.warning(f"Unknown {kind} in scope: {name}")
            else:
                known.append(name)
        return tuple(known)

    def reset_scope(self) -> Snapshot:
        return self._replace(scope=Scope())
