from typing import Any, List, Optional
import json
from pathlib import Path
from pydantic import BaseModel, Field, ValidationError
from loguru import logger

from .events import Signal
from .locking import GuardedLock

# --- Settings Model ---
class SettingsConfig(BaseModel):
    """User-tunable agent settings, persisted as settings.json."""
    concurrency: int = Field(default=3, ge=1)
    upload_speed_limit: int = Field(default=0, ge=0)  # 0 = unlimited, advisory only
    allowed_environments: List[str] = Field(default_factory=lambda: ["Live", "Production"])
    upload_interval: int = Field(default=60, ge=1)  # minutes
    scan_interval_minutes: int = Field(default=1, ge=1)  # minutes

# --- Manager ---
class ConfigManager:
    """
    Manages agent settings with persistence and reactivity.

    The settings object is shared by both scheduler loops and the command
    surface; reads return a copy taken under the settings lock, writes
    validate through pydantic, persist, then emit `on_changed(key, value)`
    once per field that actually changed.
    """
    def __init__(self, filepath: str = "settings.json"):
        self.filepath = Path(filepath)
        self._lock = GuardedLock("settings")
        self._data = SettingsConfig()
        self.on_changed = Signal("ConfigChanged")
        self._load()

    @property
    def data(self) -> SettingsConfig:
        with self._lock.hold():
            return self._data.model_copy(deep=True)

    def get(self, key: str) -> Any:
        with self._lock.hold():
            return getattr(self._data, key)

    def update(self, key: str, value: Any):
        """Update one setting, validate via Pydantic, autosave, and emit change event."""
        if key not in SettingsConfig.model_fields:
            raise ValueError(f"Invalid key: {key}")
        current = self.data.model_dump()
        current[key] = value
        self.replace(SettingsConfig.model_validate(current))

    def replace(self, settings: SettingsConfig):
        """Swap in a whole new settings object (the UI's set_settings call)."""
        settings = SettingsConfig.model_validate(settings.model_dump())
        with self._lock.hold():
            previous = self._data
            self._data = settings
        self._save(settings)

        for key in SettingsConfig.model_fields:
            new_value = getattr(settings, key)
            if getattr(previous, key) != new_value:
                self.on_changed.emit(key, new_value)

    def _load(self):
        """Load settings from JSON if present; otherwise keep defaults."""
        if self.filepath.is_file():
            try:
                raw = json.loads(self.filepath.read_text(encoding="utf-8"))
                self._data = SettingsConfig.model_validate(raw)
                logger.debug(f"Loaded settings from {self.filepath}")
            except (OSError, ValueError, ValidationError) as e:
                logger.error(f"Failed to load settings from {self.filepath}: {e}")
                self._save(self._data)
        else:
            self._save(self._data)

    def _save(self, settings: Optional[SettingsConfig] = None):
        """Persist settings to the JSON file."""
        settings = settings or self.data
        try:
            self.filepath.parent.mkdir(parents=True, exist_ok=True)
            self.filepath.write_text(json.dumps(settings.model_dump(), indent=2), encoding="utf-8")
        except OSError as e:
            logger.error(f"Failed to save settings to {self.filepath}: {e}")
