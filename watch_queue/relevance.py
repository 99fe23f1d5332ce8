"""
Relevance filtering of raw file changes.

Runs on the listener thread before anything is queued, so nothing here may
modify session or plugin state, and nothing may raise for odd paths.
"""

import os
from pathlib import Path, PurePath
from typing import Iterable, Optional, Union

from watch_queue.models import ChangeSet
from watch_queue.watcher import Watcher

PathLike = Union[str, PurePath]


def relative_path(path: PathLike, watch_roots: Iterable[PathLike]) -> Optional[str]:
    """
    Make an absolute path relative to the first watch root containing it.

    Args:
        path: Absolute path reported by the watch backend
        watch_roots: Absolute watch root directories

    Returns:
        Root-relative POSIX path, or None if the path is not under any root,
        is relative, is a root itself, or cannot be parsed
    """
    try:
        candidate = Path(os.path.normpath(os.fspath(path)))
        if not candidate.is_absolute():
            return None

        for root in watch_roots:
            try:
                rel = candidate.relative_to(Path(os.path.normpath(os.fspath(root))))
            except ValueError:
                continue
            if not rel.parts:
                continue
            return rel.as_posix()
    except (TypeError, ValueError, OSError):
        return None

    return None


def relativize(raw_changes: ChangeSet, watch_roots: Iterable[PathLike]) -> ChangeSet:
    """
    Convert a change set of absolute paths into root-relative paths.

    Paths outside every watch root are dropped.
    """
    watch_roots = list(watch_roots)

    def convert(paths):
        converted = []
        for path in paths:
            rel = relative_path(path, watch_roots)
            if rel is not None:
                converted.append(rel)
        return converted

    return ChangeSet(
        modified=convert(raw_changes.modified),
        added=convert(raw_changes.added),
        removed=convert(raw_changes.removed),
    )


def matches_snapshot(changes: ChangeSet, snapshot) -> bool:
    """
    Check whether root-relative changes concern the configuration or a scoped plugin.

    Args:
        changes: Root-relative change set
        snapshot: Session snapshot to test against

    Returns:
        True if the changes are worth queuing
    """
    paths = changes.all_paths()
    if not paths:
        return False

    # The config file can redefine what is relevant, so it always is
    if Watcher.match_config_file(paths, snapshot.config_relative_paths()):
        return True

    for plugin in snapshot.scoped_plugins():
        if Watcher.match_files([plugin], paths):
            return True

    return False


def is_relevant(
    raw_changes: ChangeSet,
    watch_roots: Iterable[PathLike],
    snapshot
) -> bool:
    """
    Decide whether raw (absolute-path) changes are worth queuing.

    Args:
        raw_changes: Change set of absolute paths from the watch backend
        watch_roots: Watch root directories
        snapshot: Session snapshot providing scope, plugins and config path

    Returns:
        True if any path is the configuration file or is watched by a scoped plugin
    """
    return matches_snapshot(relativize(raw_changes, watch_roots), snapshot)
