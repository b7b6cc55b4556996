"""JSON file persistence shared by the settings and session stores."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

# Tests point this at a temporary directory before importing sqldesk
CONFIG_DIR = Path(os.environ.get("SQLDESK_CONFIG_DIR", Path.home() / ".sqldesk"))


class JSONFileStore:
    """One JSON document on disk.

    A missing, unreadable or malformed file reads as None. Writes land in a
    temp file next to the target first and are owner-only (0600).
    """

    def __init__(self, file_path: Path):
        self._file_path = file_path

    @property
    def file_path(self) -> Path:
        return self._file_path

    def exists(self) -> bool:
        return self._file_path.is_file()

    def _read_json(self) -> Any:
        try:
            raw = self._file_path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as error:
            logger.warning("Cannot read store file %s: %s", self._file_path, error)
            return None
        try:
            return json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as error:
            logger.warning("Ignoring unreadable store file %s: %s", self._file_path, error)
            return None

    def _write_json(self, data: Any) -> None:
        payload = json.dumps(data, indent=2)
        directory = self._file_path.parent
        directory.mkdir(mode=0o700, parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=directory, prefix=f".{self._file_path.stem}-", suffix=".tmp")
        tmp_path = Path(tmp_name)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
            tmp_path.chmod(0o600)
            tmp_path.replace(self._file_path)
        except Exception:
            tmp_path.unlink(missing_ok=True)
            raise

    def _remove(self) -> None:
        self._file_path.unlink(missing_ok=True)
