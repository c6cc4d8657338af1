"""
JSON state store.

Two files in the data directory:
- settings.json              AppSettings
- conversion_history.json    list of HistoryEntry, oldest first

Writes go to a temporary file and are moved into place, so a crash never
leaves a half-written file behind.
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, List, Optional, Union

from pydantic import TypeAdapter, ValidationError

from ..deliver.settings import AppSettings
from ..jobs.models import HistoryEntry
from .errors import LoadError, SaveError, SchemaError

logger = logging.getLogger(__name__)

SETTINGS_FILE = "settings.json"
HISTORY_FILE = "conversion_history.json"

# Layout version written into the history file
SCHEMA_VERSION = 1

_HISTORY_ADAPTER = TypeAdapter(List[HistoryEntry])


class JsonStateStore:
    """
    Manages the JSON files backing settings and history.

    Stores:
    - Output settings
    - Conversion history

    Does NOT store:
    - Jobs (a restart starts with an empty queue)
    - Presets (built into the encoder)
    """

    def __init__(self, data_dir: Optional[Union[str, Path]] = None):
        """
        Args:
            data_dir: Directory holding the JSON files (defaults to ./.clipqueue)
        """
        if data_dir is None:
            data_dir = Path.cwd() / ".clipqueue"
        self.data_dir = Path(data_dir)

    @property
    def settings_path(self) -> Path:
        return self.data_dir / SETTINGS_FILE

    @property
    def history_path(self) -> Path:
        return self.data_dir / HISTORY_FILE

    # Settings

    def load_settings(self) -> AppSettings:
        """
        Load persisted settings.

        Returns:
            Stored settings, or defaults if nothing was saved yet

        Raises:
            LoadError: If the file exists but cannot be read or parsed
        """
        data = self._read_json(self.settings_path)
        if data is None:
            return AppSettings()
        if not isinstance(data, dict):
            raise LoadError(f"{self.settings_path} does not contain an object")
        try:
            return AppSettings.from_dict(data)
        except ValidationError as e:
            raise LoadError(f"Invalid settings in {self.settings_path}: {e}") from e

    def save_settings(self, settings: AppSettings) -> None:
        """
        Raises:
            SaveError: If the file cannot be written
        """
        self._write_json(self.settings_path, settings.to_dict())
        logger.debug(f"[STORE] Saved settings to {self.settings_path}")

    # History

    def load_history(self) -> List[HistoryEntry]:
        """
        Load persisted conversion history.

        A bare list (no version wrapper) is accepted as the legacy layout.

        Returns:
            History entries, oldest first; empty if nothing was saved yet

        Raises:
            SchemaError: If the file has an unsupported version
            LoadError: If the file exists but cannot be read or parsed
        """
        data = self._read_json(self.history_path)
        if data is None:
            return []

        if isinstance(data, dict):
            version = data.get("schema_version")
            if version != SCHEMA_VERSION:
                raise SchemaError(
                    f"Unsupported history schema version {version!r} in {self.history_path}"
                )
            entries = data.get("entries", [])
        else:
            entries = data

        try:
            return _HISTORY_ADAPTER.validate_python(entries)
        except ValidationError as e:
            raise LoadError(f"Invalid history in {self.history_path}: {e}") from e

    def save_history(self, entries: List[HistoryEntry]) -> None:
        """
        Raises:
            SaveError: If the file cannot be written
        """
        payload = {
            "schema_version": SCHEMA_VERSION,
            "entries": _HISTORY_ADAPTER.dump_python(entries, mode="json"),
        }
        self._write_json(self.history_path, payload)
        logger.debug(f"[STORE] Saved {len(entries)} history entries")

    # Files

    def _read_json(self, path: Path) -> Any:
        if not path.exists():
            return None
        try:
            with open(path, "r", encoding="utf-8") as f:
                return json.load(f)
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            raise LoadError(f"Failed to read {path}: {e}") from e

    def _write_json(self, path: Path, data: Any) -> None:
        tmp_path = path.with_suffix(path.suffix + ".tmp")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
            os.replace(tmp_path, path)
        except OSError as e:
            raise SaveError(f"Failed to write {path}: {e}") from e
