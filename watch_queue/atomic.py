"""
Atomic JSON file operations.

The configuration file is rewritten by ``watch-queue init`` while a running
instance may be watching it, so writes go through a temp file and
``os.replace()``; a reader never sees a partial file.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Any


class AtomicFileWriter:
    """
    Atomic file writer using temp file + atomic replace.
    """

    @staticmethod
    def write_json(filepath: Path, data: Any, indent: int = 2) -> None:
        """
        Atomically write JSON data to a file.

        Args:
            filepath: Target file path
            data: Data to serialize as JSON
            indent: JSON indentation level

        Raises:
            OSError: If the write fails (temp file is cleaned up)
        """
        filepath = Path(filepath)
        filepath.parent.mkdir(parents=True, exist_ok=True)

        temp_path = None
        try:
            # Same directory so os.replace stays on one filesystem
            with tempfile.NamedTemporaryFile(
                mode='w',
                dir=filepath.parent,
                prefix=f".{filepath.name}.",
                suffix='.tmp',
                delete=False
            ) as tmp_file:
                temp_path = Path(tmp_file.name)
                json.dump(data, tmp_file, indent=indent, default=str)
                tmp_file.write("\n")
                tmp_file.flush()
                os.fsync(tmp_file.fileno())

            os.replace(temp_path, filepath)

        except BaseException:
            if temp_path and temp_path.exists():
                temp_path.unlink()
            raise

    @staticmethod
    def read_json(filepath: Path, default: Any = None) -> Any:
        """
        Read a JSON file.

        Args:
            filepath: File to read
            default: Value returned if the file doesn't exist

        Returns:
            Parsed JSON data or default value

        Raises:
            ValueError: If the file is not valid JSON
        """
        filepath = Path(filepath)

        if not filepath.exists():
            return default

        with open(filepath, 'r') as f:
            return json.load(f)
