"""Tests for watch_queue.atomic."""

import json
from unittest.mock import patch

import pytest

from watch_queue.atomic import AtomicFileWriter


class TestAtomicFileWriter:
    """Tests for AtomicFileWriter class."""

    def test_write_json_creates_file(self, tmp_path):
        """Test that write_json creates a file with correct content."""
        config_path = tmp_path / "watchqueue.json"

        AtomicFileWriter.write_json(config_path, {"plugins": []})

        assert json.loads(config_path.read_text()) == {"plugins": []}

    def test_write_json_creates_parent_dirs(self, tmp_path):
        config_path = tmp_path / "nested" / "watchqueue.json"
        AtomicFileWriter.write_json(config_path, {})
        assert config_path.exists()

    def test_write_json_leaves_no_temp_files(self, tmp_path):
        config_path = tmp_path / "watchqueue.json"
        AtomicFileWriter.write_json(config_path, {"version": "1.0"})
        AtomicFileWriter.write_json(config_path, {"version": "2.0"})

        assert [p.name for p in tmp_path.iterdir()] == ["watchqueue.json"]
        assert json.loads(config_path.read_text())["version"] == "2.0"

    def test_write_json_cleans_temp_on_error(self, tmp_path):
        """Test that a failed replace keeps the old file and removes the temp file."""
        config_path = tmp_path / "watchqueue.json"
        config_path.write_text('{"old": true}')

        with patch("watch_queue.atomic.os.replace", side_effect=OSError("disk full")):
            with pytest.raises(OSError):
                AtomicFileWriter.write_json(config_path, {"new": True})

        assert json.loads(config_path.read_text()) == {"old": True}
        assert [p.name for p in tmp_path.iterdir()] == ["watchqueue.json"]

    def test_read_json_nonexistent_file(self, tmp_path):
        assert AtomicFileWriter.read_json(tmp_path / "missing.json") is None
        assert AtomicFileWriter.read_json(tmp_path / "missing.json", default={}) == {}

    def test_read_json_invalid_json(self, tmp_path):
        config_path = tmp_path / "watchqueue.json"
        config_path.write_text("{invalid")

        with pytest.raises(ValueError):
            AtomicFileWriter.read_json(config_path)
