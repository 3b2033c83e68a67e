# filename: src/filelink/core/constants.py
"""
FileLink - Sandboxed Remote File Manager - Constants Module
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

from .utils import get_app_data_path
from .version import __app_name__

# --- Application Metadata ---
APP_NAME = __app_name__

# --- Core Application Settings ---
DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 3000
DEFAULT_COMPRESSION_LEVEL = 9  # zlib maximum

# --- Transfer Settings ---
DOWNLOAD_CHUNK_SIZE = 65536  # 64KB
UPLOAD_CHUNK_SIZE = 262144  # 256KB

# --- File Names ---
CONFIG_FILENAME = "config.json"
LOG_FILENAME = "filelink.log"
BACKUP_FILENAME_TEMPLATE = "backup-{username}-{date}.zip"

# --- Application Paths ---
# Base directory for configuration, logs and upload scratch space.
APP_DATA_PATH = get_app_data_path(APP_NAME)

CONFIG_FILE = APP_DATA_PATH / CONFIG_FILENAME
DEFAULT_STORAGE_ROOT = APP_DATA_PATH / "storage"
# Upload scratch space lives outside the storage root so half-received
# files never show up in listings or backups.
DEFAULT_UPLOAD_DIR = APP_DATA_PATH / "uploads"


def initialize_app_directories():
    """
    Creates required application directories.
    This function should be called once at the application's entry point
    to ensure all necessary folders exist before they are accessed.
    """
    APP_DATA_PATH.mkdir(parents=True, exist_ok=True)
