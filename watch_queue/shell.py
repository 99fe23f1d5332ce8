"""
Shell command execution for plugins.

Plugins run their commands through ``run_command`` so every execution is
traced at DEBUG level (visible with ``--debug``).
"""

import functools
import logging
import subprocess
from pathlib import Path
from typing import Callable, Optional, Union

logger = logging.getLogger(__name__)


def logged_execution(func: Callable) -> Callable:
    """
    Wrap a command execution function so it logs the command first.

    The wrapped function must take the command as its first argument.
    """

    @functools.wraps(func)
    def wrapper(command, *args, **kwargs):
        extra = " ".join(str(arg) for arg in args)
        logger.debug(f"Command execution: {command} {extra}".rstrip())
        return func(command, *args, **kwargs)

    return wrapper


@logged_execution
def run_command(
    command: str,
    cwd: Optional[Union[str, Path]] = None
) -> int:
    """
    Run a shell command in the foreground.

    Output goes straight to the terminal.

    Args:
        command: Shell command line
        cwd: Working directory (default: current directory)

    Returns:
        Exit status of the command
    """
    result = subprocess.run(command, shell=True, cwd=cwd)
    return result.returncode
