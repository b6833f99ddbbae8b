from __future__ import annotations

import json
import logging
from pathlib import Path

from common.config import ClientSettings

logger = logging.getLogger(__name__)

STORED_KEYS = ("server_address", "prompt_template", "api_key")


class SettingsStore:
    """JSON-file persistence for the client settings.

    Stored values override environment defaults. The API key can be written
    but is only ever reported back as configured / not configured.
    """

    def __init__(self, path: Path | None = None) -> None:
        self.path = Path(path) if path else ClientSettings().settings_path

    def _read(self) -> dict:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError):
            logger.warning("Ignoring unreadable settings file %s", self.path)
            return {}
        if not isinstance(data, dict):
            logger.warning("Ignoring settings file %s: expected a JSON object", self.path)
            return {}

        unknown = sorted(set(data) - set(STORED_KEYS))
        if unknown:
            logger.warning("Ignoring unknown settings in %s: %s", self.path, ", ".join(unknown))
        return {key: value for key, value in data.items() if key in STORED_KEYS and isinstance(value, str)}

    def _write(self, key: str, value: str) -> None:
        value = value.strip()
        if not value:
            raise ValueError(f"Please enter a valid {key.replace('_', ' ')}")
        data = self._read()
        data[key] = value
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data, indent=2), encoding="utf-8")
        logger.info("Saved %s", key)

    def load(self) -> ClientSettings:
        return ClientSettings(settings_path=self.path, **self._read())

    def save_prompt_template(self, template: str) -> None:
        self._write("prompt_template", template)

    def save_server_address(self, url: str) -> None:
        self._write("server_address", url)

    def save_api_key(self, api_key: str) -> None:
        self._write("api_key", api_key)

    def public_view(self) -> dict:
        settings = self.load()
        return {
            "server_address": settings.server_address,
            "prompt_template": settings.prompt_template,
            "api_key_configured": bool(settings.api_key.get_secret_value()),
        }
