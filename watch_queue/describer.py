"""
Description of the loaded configuration, for the ``show`` action.
"""

import sys
from typing import Dict, List, Optional, TextIO

from watch_queue.session import Session


class Describer:
    """Renders groups, plugins and their watch patterns as a table."""

    def __init__(self, session: Session, output: Optional[TextIO] = None):
        self.session = session
        self.output = output

    def describe(self) -> List[Dict[str, str]]:
        """
        Describe the current snapshot.

        Returns:
            One row per plugin (or per empty group) with group, plugin and
            watch columns
        """
        snapshot = self.session.snapshot
        rows = []

        for group in snapshot.groups:
            plugins = [p for p in snapshot.plugins if p.group == group.name]
            if not plugins:
                rows.append({"group": group.name, "plugin": "", "watch": ""})
                continue
            for plugin in plugins:
                rows.append({
                    "group": group.name,
                    "plugin": plugin.name,
                    "watch": ", ".join(w.pattern for w in plugin.watchers),
                })

        return rows

    def show(self) -> None:
        """Write the description table."""
        output = self.output or sys.stdout
        rows = self.describe()
        headers = {"group": "Group", "plugin": "Plugin", "watch": "Watch"}

        widths = {
            key: max([len(title)] + [len(row[key]) for row in rows])
            for key, title in headers.items()
        }

        def line(values):
            return "  ".join(values[key].ljust(widths[key]) for key in headers).rstrip()

        output.write(line(headers) + "\n")
        output.write("  ".join("-" * widths[key] for key in headers) + "\n")
        for row in rows:
            output.write(line(row) + "\n")

        scope = self.session.snapshot.scope
        if not scope.is_empty():
            output.write(
                f"\nScope: groups={', '.join(scope.groups) or '-'} "
                f"plugins={', '.join(scope.plugins) or '-'}\n"
            )
        output.flush()
