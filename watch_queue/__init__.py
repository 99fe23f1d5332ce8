"""
Watch Queue - run commands when watched files change.

Watches directories with watchdog, queues change notifications, signals and
operator commands on one event queue, and dispatches them one cycle at a
time to plugins whose watch patterns match.

Architecture:
- listener / signals / interactive shell  - producers
- event queue                             - thread-safe FIFO
- dispatch loop                           - single consumer
- runner + plugins                        - run shell commands
"""

__version__ = "1.0.0"

from watch_queue.models import (
    ActionKind,
    ChangeSet,
    ControlAction,
    PauseState,
    Scope,
    WatchOptions,
)
from watch_queue.errors import WatchQueueError, ConfigError, UnknownActionError
from watch_queue.config import ConfigManager, DEFAULT_CONFIG_NAME
from watch_queue.event_queue import EventQueue
from watch_queue.dispatcher import DispatchLoop
from watch_queue.engine import Engine

__all__ = [
    # Models
    "ActionKind",
    "ChangeSet",
    "ControlAction",
    "PauseState",
    "Scope",
    "WatchOptions",
    # Errors
    "WatchQueueError",
    "ConfigError",
    "UnknownActionError",
    # Config
    "ConfigManager",
    "DEFAULT_CONFIG_NAME",
    # Components
    "EventQueue",
    "DispatchLoop",
    "Engine",
]
