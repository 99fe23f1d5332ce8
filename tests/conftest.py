"""Test fixtures for watch-queue tests."""

import json
import shutil
import tempfile
from pathlib import Path
from unittest.mock import Mock

import pytest

from watch_queue.engine import Engine
from watch_queue.models import WatchOptions
from watch_queue.plugins import Group, Plugin
from watch_queue.session import Session


SAMPLE_CONFIG = {
    "version": "1.0",
    "groups": [
        {"name": "backend", "description": "Backend checks"},
        {"name": "frontend"}
    ],
    "plugins": [
        {
            "name": "rspec",
            "group": "backend",
            "watch": ["*.rb", "spec/**/*_spec.rb"],
            "command": "echo rspec {paths}"
        },
        {
            "name": "eslint",
            "group": "frontend",
            "watch": ["re:\\.js$"],
            "command": "echo eslint {paths}"
        }
    ]
}


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    temp_path = Path(tempfile.mkdtemp()).resolve()
    yield temp_path
    shutil.rmtree(temp_path)


@pytest.fixture
def config_file(temp_dir):
    """Write the sample configuration into the temp directory."""
    path = temp_dir / "watchqueue.json"
    path.write_text(json.dumps(SAMPLE_CONFIG))
    return path


@pytest.fixture
def sample_plugins():
    """Plugins matching the sample configuration, without commands."""
    return [
        Plugin("rspec", group="backend", watch=["*.rb", "spec/**/*_spec.rb"]),
        Plugin("eslint", group="frontend", watch=["re:\\.js$"]),
    ]


@pytest.fixture
def sample_groups():
    return [Group("default"), Group("backend"), Group("frontend")]


@pytest.fixture
def session(temp_dir, sample_groups, sample_plugins):
    """Session with the sample groups and plugins, watching temp_dir."""
    session = Session()
    session.set_watch_roots([temp_dir])
    session.install(sample_groups, sample_plugins, config_path=temp_dir / "watchqueue.json")
    return session


@pytest.fixture
def engine(temp_dir, config_file):
    """Engine set up on temp_dir without an interactive shell."""
    options = WatchOptions(
        watchdir=[str(temp_dir)],
        config_file=str(config_file),
        no_interactions=True,
        notify=False,
    )
    return Engine(options).setup()


@pytest.fixture
def mock_runner():
    """Runner double recording run_on_changes calls."""
    runner = Mock()
    runner.run_on_changes = Mock(return_value={})
    return runner
