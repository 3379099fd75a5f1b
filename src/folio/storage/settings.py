"""Key-value persistence for reader settings."""

import json
import logging
from pathlib import Path

from pydantic import ValidationError

from folio.models.settings import ReaderSettings

log = logging.getLogger(__name__)

SETTINGS_KEY = "reader-settings"


class SettingsStore:
    """Stores :class:`ReaderSettings` under one key of ``settings.json``."""

    SETTINGS_FILE = "settings.json"

    def __init__(self, library_dir: Path):
        self.path = library_dir / self.SETTINGS_FILE

    def _read_all(self) -> dict:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text())
        except (OSError, json.JSONDecodeError):
            log.warning("Unreadable settings file %s, using defaults", self.path)
            return {}
        return data if isinstance(data, dict) else {}

    def load(self) -> ReaderSettings:
        stored = self._read_all().get(SETTINGS_KEY)
        if not isinstance(stored, dict):
            return ReaderSettings()
        try:
            return ReaderSettings.model_validate(stored)
        except ValidationError:
            log.warning("Invalid stored reader settings, using defaults")
            return ReaderSettings()

    def save(self, settings: ReaderSettings) -> None:
        data = self._read_all()
        data[SETTINGS_KEY] = settings.model_dump(by_alias=True)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data, indent=2))
