"""
Data models for the watch queue.

Defines Pydantic models for change sets, control actions, scopes,
start-up options and the configuration file.
"""

from enum import Enum
from pathlib import Path
from typing import Any, List, Mapping, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from watch_queue.errors import UnknownActionError


class ActionKind(str, Enum):
    """Kinds of control action the dispatcher knows how to execute."""
    PAUSE = "pause"
    RESUME = "resume"
    RUN_ALL = "run_all"
    RELOAD = "reload"
    SHOW = "show"


class PauseState(str, Enum):
    """Target state for a pause action."""
    PAUSED = "paused"
    UNPAUSED = "unpaused"
    TOGGLE = "toggle"


class ChangeSet(BaseModel):
    """
    Root-relative paths changed since the last dispatch cycle.

    Paths are POSIX strings relative to one of the watch roots.
    """

    modified: List[str] = Field(default_factory=list, description="Modified file paths")
    added: List[str] = Field(default_factory=list, description="Added file paths")
    removed: List[str] = Field(default_factory=list, description="Removed file paths")

    def merge(self, other: "ChangeSet") -> "ChangeSet":
        """
        Append another change set's paths after this one's.

        Order is preserved and duplicates are kept.

        Args:
            other: Change set that arrived later

        Returns:
            New merged ChangeSet
        """
        return ChangeSet(
            modified=self.modified + other.modified,
            added=self.added + other.added,
            removed=self.removed + other.removed,
        )

    def all_paths(self) -> List[str]:
        """Get modified, added and removed paths as one list."""
        return self.modified + self.added + self.removed

    def is_empty(self) -> bool:
        """Check whether no path changed."""
        return not (self.modified or self.added or self.removed)


class ControlAction(BaseModel):
    """
    An operator or signal command for the dispatcher.

    Pause actions carry a PauseState payload; run_all and reload may carry
    a scope mapping ({"groups": [...], "plugins": [...]}).
    """

    model_config = ConfigDict(frozen=True)

    kind: ActionKind
    payload: Optional[Any] = None


QueueItem = Union[ChangeSet, ControlAction]


def to_queue_item(raw: Any) -> QueueItem:
    """
    Convert a collaborator's enqueue argument into a queue item.

    Accepted forms:
        {"modified": [...], "added": [...], "removed": [...]}
        (action_kind, payload) or (action_kind,)
        an existing ChangeSet or ControlAction

    Args:
        raw: Value passed to the enqueue API

    Returns:
        ChangeSet or ControlAction

    Raises:
        UnknownActionError: If an action pair names an unknown kind
        TypeError: If the value has none of the accepted forms
    """
    if isinstance(raw, (ChangeSet, ControlAction)):
        return raw

    if isinstance(raw, Mapping):
        return ChangeSet(
            modified=list(raw.get("modified") or []),
            added=list(raw.get("added") or []),
            removed=list(raw.get("removed") or []),
        )

    if isinstance(raw, (tuple, list)) and raw:
        kind = raw[0]
        payload = raw[1] if len(raw) > 1 else None
        if isinstance(kind, str) and not isinstance(kind, ActionKind):
            kind = kind.replace("-", "_")
        try:
            kind = ActionKind(kind)
        except ValueError:
            raise UnknownActionError(raw[0])
        return ControlAction(kind=kind, payload=payload)

    raise TypeError(f"Cannot queue {raw!r}")


class Scope(BaseModel):
    """
    Groups and plugins a run is restricted to.

    Empty groups and plugins mean "everything".
    """

    model_config = ConfigDict(frozen=True)

    groups: Tuple[str, ...] = ()
    plugins: Tuple[str, ...] = ()

    @classmethod
    def from_mapping(cls, value: Optional[Mapping[str, Any]]) -> "Scope":
        """Build a Scope from a {"groups": [...], "plugins": [...]} mapping."""
        if not value:
            return cls()
        return cls(
            groups=tuple(value.get("groups") or ()),
            plugins=tuple(value.get("plugins") or ()),
        )

    def is_empty(self) -> bool:
        return not (self.groups or self.plugins)


class WatchOptions(BaseModel):
    """Start-up options given on the command line."""

    clear: bool = Field(default=False, description="Clear the terminal before each run")
    notify: bool = Field(default=True, description="Send notifications")
    debug: bool = Field(default=False, description="Debug logging and command tracing")
    group: List[str] = Field(default_factory=list, description="Groups to scope to")
    plugin: List[str] = Field(default_factory=list, description="Plugins to scope to")
    watchdir: List[str] = Field(default_factory=list, description="Directories to watch")
    config_file: Optional[str] = Field(default=None, description="Path to configuration file")
    no_interactions: bool = Field(default=False, description="Disable the interactive shell")
    latency: Optional[float] = Field(default=None, description="Polling interval in seconds")
    force_polling: bool = Field(default=False, description="Use the polling observer")
    wait_for_delay: Optional[float] = Field(default=None, description="Debounce window in seconds")

    def watch_roots(self) -> List[Path]:
        """Resolve watch directories, defaulting to the current directory."""
        if not self.watchdir:
            return [Path.cwd().resolve()]
        return [Path(d).expanduser().resolve() for d in self.watchdir]


class GroupConfig(BaseModel):
    """A plugin group in the configuration file."""

    name: str = Field(..., description="Unique group name")
    description: str = Field(default="", description="Description of this group")


class PluginConfig(BaseModel):
    """A plugin in the configuration file."""

    name: str = Field(..., description="Unique plugin name")
    group: str = Field(default="default", description="Group this plugin belongs to")
    watch: List[str] = Field(default_factory=list, description="Glob or re: patterns")
    command: Optional[str] = Field(default=None, description="Command run on changes; {paths} is replaced")
    run_all_command: Optional[str] = Field(default=None, description="Command run on run_all")

    @field_validator("watch")
    @classmethod
    def validate_watch(cls, v: List[str]) -> List[str]:
        """Reject empty patterns."""
        for pattern in v:
            if not pattern.strip():
                raise ValueError("Watch patterns must not be empty")
        return v


class WatchConfig(BaseModel):
    """
    Complete configuration file.

    Groups are optional; plugins naming an undeclared group get one created
    for them in declaration order.
    """

    version: str = "1.0"
    groups: List[GroupConfig] = Field(default_factory=list)
    plugins: List[PluginConfig] = Field(default_factory=list)

    @field_validator("plugins")
    @classmethod
    def validate_unique_plugins(cls, v: List[PluginConfig]) -> List[PluginConfig]:
        """Plugin names must be unique."""
        seen = set()
        for plugin in v:
            if plugin.name in seen:
                raise ValueError(f"Duplicate plugin name: {plugin.name}")
            seen.add(plugin.name)
        return v
