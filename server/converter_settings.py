#!/usr/bin/env python3
"""
Converter Settings
One persisted option: convert pasted text by default
"""

import json
import logging
from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger('mathdelims.settings')

SETTINGS_FILE = Path.home() / '.vim' / 'mathdelims.json'


class ConverterSettings(BaseSettings):
    """Plugin settings, environment variables use the MATHDELIMS_ prefix"""

    model_config = SettingsConfigDict(env_prefix='MATHDELIMS_')

    enable_default_paste_conversion: bool = True

    @classmethod
    def settings_customise_sources(cls, settings_cls, init_settings, env_settings,
                                   dotenv_settings, file_secret_settings):
        # Environment overrides win over the saved file
        return env_settings, init_settings


class SettingsStore:
    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path) if path else SETTINGS_FILE

    def _read_saved(self) -> dict:
        if not self.path.exists():
            return {}
        try:
            saved = json.loads(self.path.read_text(encoding='utf-8'))
            if not isinstance(saved, dict):
                raise ValueError("settings file must hold a JSON object")
            # Validate without applying environment overrides
            ConverterSettings.model_validate(saved)
        except (OSError, ValueError) as e:
            logger.warning(f"Ignoring settings file {self.path}: {e}")
            return {}
        return saved

    def load(self) -> ConverterSettings:
        """
        Load saved settings on top of the defaults
        A missing or unreadable file yields the defaults
        """
        return ConverterSettings(**self._read_saved())

    def save(self, settings: ConverterSettings):
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(settings.model_dump_json(indent=2), encoding='utf-8')
        logger.info(f"Saved settings to {self.path}")

    def update(self, **changes) -> ConverterSettings:
        """Apply changes to the saved settings, persist them, and return the effective settings"""
        saved = self._read_saved()
        saved.update(changes)
        self.save(ConverterSettings.model_validate(saved))
        return self.load()
