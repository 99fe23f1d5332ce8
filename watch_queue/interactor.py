"""
Interactive command shell.

Reads one command per line on its own thread and turns it into queue items
through the engine's enqueue API. Reads hold input focus on the handoff so
an interrupt cancels the pending read instead of stopping watch-queue.
"""

import logging
import select
import sys
import threading
from typing import Dict, List, Optional, TextIO, Tuple

from watch_queue.models import ActionKind, PauseState


logger = logging.getLogger(__name__)

PROMPT = "watch-queue> "

# Seconds between checks for cancellation while waiting for input
READ_POLL_INTERVAL = 0.2
STOP_JOIN_TIMEOUT = 2.0

HELP_TEXT = """Commands:
  all [scope]       Run all plugins (or the given groups/plugins)
  reload [scope]    Reload the configuration
  pause             Toggle pause
  resume            Resume watching
  show              Show groups, plugins and watch patterns
  change <files>    Trigger a change for the given files
  scope [names]     Set the scope (no names resets it)
  help              Show this help
  exit              Stop watch-queue
An empty line runs all plugins.
"""


def convert_scope(entries: List[str], snapshot) -> Tuple[Dict[str, List[str]], List[str]]:
    """
    Split command arguments into a scope and the remaining entries.

    Args:
        entries: Words typed after the command
        snapshot: Session snapshot used to recognize group and plugin names

    Returns:
        Tuple of ({"groups": [...], "plugins": [...]}, unknown entries)
    """
    scope = {"groups": [], "plugins": []}
    rest = []

    for entry in entries:
        if snapshot.plugin(entry) is not None:
            scope["plugins"].append(entry)
        elif snapshot.group(entry) is not None:
            scope["groups"].append(entry)
        else:
            rest.append(entry)

    return scope, rest


class Interactor:
    """Line-based operator shell running on its own thread."""

    def __init__(
        self,
        engine,
        input_stream: Optional[TextIO] = None,
        output: Optional[TextIO] = None
    ):
        """
        Initialize interactor.

        Args:
            engine: Engine providing queue_add, set_scope, stop, session and handoff
            input_stream: Stream to read commands from (default: stdin)
            output: Stream for prompts and messages (default: stdout)
        """
        self.engine = engine
        self.input_stream = input_stream or sys.stdin
        self.output = output or sys.stdout

        self._stopping = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def start(self) -> None:
        """Start reading commands on a background thread."""
        if self._thread is not None:
            return
        self._stopping.clear()
        self._thread = threading.Thread(target=self._run, name="Interactor", daemon=True)
        self._thread.start()

    def stop(self) -> None:
        """Stop reading and wait briefly for the reader thread to finish."""
        self._stopping.set()

        thread, self._thread = self._thread, None
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=STOP_JOIN_TIMEOUT)
            if thread.is_alive():
                logger.warning("Interactor did not stop in time")

    def _run(self) -> None:
        handoff = self.engine.handoff

        while not self._stopping.is_set():
            with handoff.input_focus(timeout=READ_POLL_INTERVAL) as cancelled:
                if cancelled is None:
                    continue
                self._write(PROMPT, newline=False)
                line = self._read_line(cancelled)

            if line is None:
                # Interrupted, or a dispatch cycle took focus: prompt again
                # once the shell has focus
                self._write("")
                continue

            if line == "":
                logger.debug("End of input, stopping")
                self.engine.stop()
                return

            self.process_line(line)

    def _read_line(self, cancelled: threading.Event) -> Optional[str]:
        """
        Read one line, giving up if the read is cancelled or a dispatch
        cycle starts.

        Returns:
            The line, "" at end of input, or None if the read was abandoned
        """
        handoff = self.engine.handoff

        try:
            fileno = self.input_stream.fileno()
        except (AttributeError, OSError, ValueError):
            fileno = None

        if fileno is not None:
            while True:
                if cancelled.is_set() or handoff.backgrounded or self._stopping.is_set():
                    return None
                ready, _, _ = select.select([fileno], [], [], READ_POLL_INTERVAL)
                if ready:
                    break

        if handoff.backgrounded:
            return None

        return self.input_stream.readline()

    def process_line(self, line: str) -> None:
        """
        Execute one command line.

        Args:
            line: Raw line typed by the operator
        """
        words = line.split()
        if not words:
            self.engine.queue_add((ActionKind.RUN_ALL, None))
            return

        command, args = words[0].lower(), words[1:]
        handler = getattr(self, f"_cmd_{command}", None)
        if handler is None:
            self._write(f"Unknown command: {command}. Type 'help' for the list of commands.")
            return
        handler(args)

    def _cmd_all(self, args: List[str]) -> None:
        scope = self._scope_or_report(args)
        if scope is not None:
            self.engine.queue_add((ActionKind.RUN_ALL, scope))

    def _cmd_reload(self, args: List[str]) -> None:
        scope = self._scope_or_report(args)
        if scope is not None:
            self.engine.queue_add((ActionKind.RELOAD, scope))

    def _cmd_pause(self, args: List[str]) -> None:
        self.engine.queue_add((ActionKind.PAUSE, PauseState.TOGGLE))

    def _cmd_resume(self, args: List[str]) -> None:
        self.engine.queue_add((ActionKind.RESUME, None))

    def _cmd_show(self, args: List[str]) -> None:
        self.engine.queue_add((ActionKind.SHOW, None))

    def _cmd_change(self, args: List[str]) -> None:
        _, files = convert_scope(args, self.engine.session.snapshot)

        if not files:
            self._write("Please specify a file.")
            return

        self.engine.queue_add({"modified": files, "added": [], "removed": []})

    def _cmd_scope(self, args: List[str]) -> None:
        scope, unknown = convert_scope(args, self.engine.session.snapshot)
        if unknown:
            self._write(f"Unknown groups or plugins: {', '.join(unknown)}")
            return
        self.engine.set_scope(groups=scope["groups"], plugins=scope["plugins"])

    def _cmd_help(self, args: List[str]) -> None:
        self._write(HELP_TEXT, newline=False)

    def _cmd_exit(self, args: List[str]) -> None:
        self.engine.stop()

    _cmd_quit = _cmd_exit

    def _scope_or_report(self, args: List[str]) -> Optional[Dict[str, List[str]]]:
        scope, unknown = convert_scope(args, self.engine.session.snapshot)
        if unknown:
            self._write(f"Unknown groups or plugins: {', '.join(unknown)}")
            return None
        return scope

    def _write(self, text: str, newline: bool = True) -> None:
        self.output.write(text + ("\n" if newline else ""))
        self.output.flush()
