"""
Notifications about plugin results.

Messages go to the ``watch_queue.notifier`` logger; point a handler at it to
forward them elsewhere.
"""

import logging
import os
from typing import Mapping, Optional

from watch_queue.models import WatchOptions


logger = logging.getLogger(__name__)

# Setting this to "false" disables notifications regardless of options
ENV_VAR_NAME = "WATCH_QUEUE_NOTIFY"


class Notifier:
    """On/off switchable notifier."""

    def __init__(self):
        self.enabled = False

    def turn_on(self) -> None:
        self.enabled = True
        logger.debug("Notifications enabled")

    def turn_off(self) -> None:
        self.enabled = False
        logger.debug("Notifications disabled")

    def notify(self, message: str, success: bool = True) -> None:
        """Send a notification if enabled."""
        if not self.enabled:
            return
        if success:
            logger.info(message)
        else:
            logger.warning(message)


def setup_notifier(
    options: WatchOptions,
    notifier: Optional[Notifier] = None,
    environ: Optional[Mapping[str, str]] = None
) -> Notifier:
    """
    Enable or disable the notifier from options and the environment.

    Args:
        options: Start-up options
        notifier: Notifier to configure (a new one if None)
        environ: Environment mapping (default: os.environ)

    Returns:
        The configured notifier
    """
    notifier = notifier or Notifier()
    environ = os.environ if environ is None else environ

    if options.notify and environ.get(ENV_VAR_NAME) != "false":
        notifier.turn_on()
    else:
        notifier.turn_off()

    return notifier
