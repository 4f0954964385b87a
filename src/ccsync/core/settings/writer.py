"""Writes vendor env entries into Claude's settings.json."""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Union

logger = logging.getLogger(__name__)

DEFAULT_SETTINGS_PATH = Path.home() / ".claude" / "settings.json"


class SettingsError(Exception):
    """Claude settings could not be read or written."""


class ClaudeSettingsWriter:
    """Replaces the ``env`` object of a settings file.

    Every other key in the file (permissions, hooks, model...) is kept as it
    was. The file is rewritten atomically so Claude never reads a partial
    document.
    """

    def __init__(self, settings_path: Union[str, Path] = DEFAULT_SETTINGS_PATH):
        self.settings_path = Path(settings_path)

    def read_settings(self) -> Dict[str, Any]:
        """Read the settings document.

        Returns:
            The decoded document, or an empty dict if the file is missing

        Raises:
            SettingsError: If the file is unreadable or not a JSON object
        """
        try:
            payload = self.settings_path.read_bytes()
        except FileNotFoundError:
            return {}
        except OSError as e:
            raise SettingsError(f"Failed to read {self.settings_path}: {e}") from e

        if not payload.strip():
            return {}
        try:
            raw = json.loads(payload.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise SettingsError(f"{self.settings_path} is not valid JSON: {e}") from e
        if not isinstance(raw, dict):
            raise SettingsError(f"{self.settings_path} does not contain a JSON object")
        return raw

    def write_settings(self, env: Dict[str, str]) -> None:
        """Set ``env`` in the settings file, creating the file if needed.

        Args:
            env: Environment entries of the selected vendor

        Raises:
            SettingsError: If the existing file cannot be parsed or the write
                fails. The file is left untouched in both cases.
        """
        settings = self.read_settings()
        settings["env"] = dict(env)

        try:
            self.settings_path.parent.mkdir(parents=True, exist_ok=True)
            self._replace(settings)
        except OSError as e:
            raise SettingsError(f"Failed to write {self.settings_path}: {e}") from e

        logger.info("Wrote %d env entries to %s", len(env), self.settings_path)

    def _replace(self, settings: Dict[str, Any]) -> None:
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self.settings_path.name}.", dir=str(self.settings_path.parent)
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(settings, f, indent=2, ensure_ascii=False)
                f.write("\n")
            if self.settings_path.exists():
                # mkstemp creates 0600; keep whatever the user had
                os.chmod(tmp_name, self.settings_path.stat().st_mode & 0o777)
            os.replace(tmp_name, self.settings_path)
        except OSError:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise
