# src/filelink/core/config.py
"""
FileLink - Sandboxed Remote File Manager - Configuration Management
Copyright (C) 2025 AZHAR ZOUHIR / BYTEDz

This program is free software: you can redistribute it and/or modify
it under the terms of the GNU Affero General Public License as published
by the Free Software Foundation, either version 3 of the License, or
(at your option) any later version.

This program is distributed in the hope that it will be useful,
but WITHOUT ANY WARRANTY; without even the implied warranty of
MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE. See the
GNU Affero General Public License for more details.

You should have received a copy of the GNU Affero General Public License
along with this program. If not, see <https://www.gnu.org/licenses/>.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from . import constants
from .exceptions import ConfigurationError
from .utils import get_desktop_path

log = logging.getLogger(__name__)

# --- Default Configuration Values ---
# Central source of truth for all application settings and their defaults.
# Path settings left empty fall back to the platform defaults in constants.

DEFAULT_SETTINGS = {
    # Storage settings
    "storage_root": "",
    "backup_dir": "",
    "upload_dir": "",
    "compression_level": constants.DEFAULT_COMPRESSION_LEVEL,

    # Server settings
    "server_host": constants.DEFAULT_HOST,
    "server_port": constants.DEFAULT_PORT,
    "cors_origins": ["*"],
    "log_level": "INFO",
}


class ConfigManager:
    """
    Manages application settings using a JSON file for all configuration.
    """

    def __init__(self, config_file: Optional[Path] = None):
        self.config_file = Path(config_file or constants.CONFIG_FILE)
        self._values: Dict[str, Any] = self._read_settings()

    def _read_settings(self) -> Dict[str, Any]:
        """
        Settings from the config file layered over ``DEFAULT_SETTINGS``. A
        missing file is written out with the defaults; an unreadable one is
        reported and ignored.
        """
        settings = dict(DEFAULT_SETTINGS)
        if not self.config_file.exists():
            log.info(f"No config file at {self.config_file}, writing defaults.")
            self._write_settings(settings)
            return settings

        try:
            stored = json.loads(self.config_file.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            log.error(f"Ignoring unreadable config file {self.config_file}: {e}")
            return settings
        if not isinstance(stored, dict):
            log.error(f"Ignoring config file {self.config_file}: expected a JSON object")
            return settings

        unknown = sorted(set(stored) - set(DEFAULT_SETTINGS))
        if unknown:
            log.warning(f"Unknown configuration keys ignored: {', '.join(unknown)}")
        settings.update((key, stored[key]) for key in stored if key in DEFAULT_SETTINGS)
        log.info(f"Configuration loaded from {self.config_file}")
        return settings

    def _write_settings(self, settings: Dict[str, Any]):
        try:
            self.config_file.parent.mkdir(parents=True, exist_ok=True)
            self.config_file.write_text(json.dumps(settings, indent=4), encoding="utf-8")
        except OSError as e:
            raise ConfigurationError(f"Cannot write configuration file {self.config_file}: {e}") from e

    def get(self, key: str, default: Any = None) -> Any:
        return self._values.get(key, default)

    def override(self, **values: Any):
        """
        Applies in-memory overrides (e.g. from the command line) without
        persisting them. ``None`` values are ignored.
        """
        for key, value in values.items():
            if value is None:
                continue
            if key not in DEFAULT_SETTINGS:
                raise ConfigurationError(f"Unknown configuration key: '{key}'")
            self._values[key] = value

    # --- Typed accessors ---

    def _path(self, key: str, fallback: Path) -> Path:
        value = self.get(key)
        if not value:
            return fallback
        if not isinstance(value, str):
            raise ConfigurationError(f"'{key}' must be a path string, got {type(value).__name__}")
        return Path(value).expanduser()

    def storage_root(self) -> Path:
        return self._path("storage_root", constants.DEFAULT_STORAGE_ROOT)

    def backup_dir(self) -> Path:
        return self._path("backup_dir", get_desktop_path())

    def upload_dir(self) -> Path:
        return self._path("upload_dir", constants.DEFAULT_UPLOAD_DIR)

    def compression_level(self) -> int:
        level = self.get("compression_level")
        if isinstance(level, bool) or not isinstance(level, int) or not 0 <= level <= 9:
            raise ConfigurationError(f"'compression_level' must be an integer in 0..9, got {level!r}")
        return level

    def server_host(self) -> str:
        host = self.get("server_host")
        if not isinstance(host, str) or not host:
            raise ConfigurationError(f"'server_host' must be a non-empty string, got {host!r}")
        return host

    def server_port(self) -> int:
        port = self.get("server_port")
        if isinstance(port, bool) or not isinstance(port, int) or not 0 < port < 65536:
            raise ConfigurationError(f"'server_port' must be a TCP port number, got {port!r}")
        return port

    def cors_origins(self) -> List[str]:
        origins = self.get("cors_origins")
        if not isinstance(origins, list) or not all(isinstance(o, str) for o in origins):
            raise ConfigurationError("'cors_origins' must be a list of strings")
        return origins

    def log_level(self) -> str:
        return str(self.get("log_level") or "INFO").upper()
