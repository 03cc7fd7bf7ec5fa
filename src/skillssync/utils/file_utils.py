"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

utils/file_utils.py
"""
import json
import logging
import os
import tempfile
from typing import Any, Optional

logger = logging.getLogger(__name__)


class FileUtils:
    @staticmethod
    def read_json(path: str) -> Optional[Any]:
        """
        Load a JSON document.
        Returns None if the file is missing, unreadable or not valid JSON.
        """
        try:
            with open(path, "r", encoding="utf-8") as f:
                return json.load(f)
        except FileNotFoundError:
            return None
        except (OSError, ValueError) as e:
            logger.warning(f"Ignoring unreadable JSON file {path}: {e}")
            return None

    @staticmethod
    def write_json_atomic(path: str, payload: Any) -> None:
        """
        Write JSON through a temp file in the same directory and os.replace().
        A crash mid-write leaves the previous file intact.
        Raises OSError on failure.
        """
        directory = os.path.dirname(path) or "."
        os.makedirs(directory, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(
            prefix=f".{os.path.basename(path)}.", suffix=".tmp", dir=directory)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(payload, f, indent=2)
                f.write("\n")
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, path)
        except BaseException:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
            raise
