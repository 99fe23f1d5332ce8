"""
Configuration management for watch-queue.

Handles loading the JSON configuration file and turning it into runtime
groups and plugins.
"""

import logging
from pathlib import Path
from typing import List, Optional, Tuple

from pydantic import ValidationError

from watch_queue.atomic import AtomicFileWriter
from watch_queue.errors import ConfigError
from watch_queue.models import WatchConfig
from watch_queue.plugins import Group, Plugin


logger = logging.getLogger(__name__)

# Default configuration file, looked up in the current directory
DEFAULT_CONFIG_NAME = "watchqueue.json"
DEFAULT_GROUPS = ["default"]

STARTER_CONFIG = {
    "version": "1.0",
    "groups": [
        {"name": "default", "description": "Default group"}
    ],
    "plugins": [
        {
            "name": "tests",
            "group": "default",
            "watch": ["*.py"],
            "command": "python -m pytest {paths}",
            "run_all_command": "python -m pytest"
        }
    ]
}


class ConfigManager:
    """
    Manages the watch-queue configuration file.

    Loads and validates the file, and evaluates it into groups and plugins.
    """

    def __init__(self, config_file: Optional[Path] = None):
        """
        Initialize configuration manager.

        Args:
            config_file: Path to configuration file. Defaults to ./watchqueue.json
        """
        path = Path(config_file) if config_file else Path.cwd() / DEFAULT_CONFIG_NAME
        self.config_file = path.expanduser().resolve()
        self.config: Optional[WatchConfig] = None

    def load(self) -> WatchConfig:
        """
        Load and validate the configuration file.

        Returns:
            Validated configuration

        Raises:
            ConfigError: If the file is missing, not JSON, or fails validation
        """
        try:
            data = AtomicFileWriter.read_json(self.config_file)
        except (ValueError, OSError) as e:
            raise ConfigError(f"Cannot read {self.config_file}: {e}")

        if data is None:
            raise ConfigError(f"No configuration file found at {self.config_file}")

        try:
            self.config = WatchConfig(**data)
        except (ValidationError, TypeError) as e:
            raise ConfigError(f"Invalid configuration in {self.config_file}: {e}")

        return self.config

    def evaluate(self) -> Tuple[List[Group], List[Plugin]]:
        """
        Evaluate the configuration into groups and plugins.

        Groups keep declaration order after the default group; a plugin
        naming an undeclared group creates it.

        Returns:
            Tuple of (groups, plugins)

        Raises:
            ConfigError: If the file is invalid or a pattern does not compile
        """
        config = self.load()

        groups = [Group(name) for name in DEFAULT_GROUPS]
        known = set(DEFAULT_GROUPS)

        for group_config in config.groups:
            if group_config.name in known:
                continue
            groups.append(Group(group_config.name, group_config.description))
            known.add(group_config.name)

        plugins = []
        for plugin_config in config.plugins:
            if plugin_config.group not in known:
                groups.append(Group(plugin_config.group))
                known.add(plugin_config.group)
            try:
                plugins.append(Plugin.from_config(plugin_config, cwd=self.config_file.parent))
            except ValueError as e:
                raise ConfigError(f"Plugin '{plugin_config.name}': {e}")

        if not plugins:
            logger.error("No plugins found in configuration, please add at least one.")

        logger.debug(f"Evaluated {self.config_file}: {len(groups)} group(s), {len(plugins)} plugin(s)")
        return groups, plugins

    def reload(self) -> Tuple[List[Group], List[Plugin]]:
        """Reload configuration from disk."""
        self.config = None
        return self.evaluate()

    def write_default(self, force: bool = False) -> Path:
        """
        Write a starter configuration file.

        Args:
            force: Overwrite an existing file

        Returns:
            Path to the written file

        Raises:
            ConfigError: If the file exists and force is not set
        """
        if self.config_file.exists() and not force:
            raise ConfigError(f"Configuration file already exists: {self.config_file}")

        AtomicFileWriter.write_json(self.config_file, STARTER_CONFIG, indent=2)
        return self.config_file
