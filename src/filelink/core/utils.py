# src/filelink/core/utils.py
# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2025 AZHAR ZOUHIR / BYTEDz

import getpass
import logging
import os
import sys
import urllib.parse
from pathlib import Path

log = logging.getLogger(__name__)

FALLBACK_USERNAME = "user"


def get_app_data_path(app_name: str) -> Path:
    """
    Returns the per-user directory where the application keeps its
    configuration, logs and scratch space.
    """
    if sys.platform == "win32":
        base = os.environ.get("APPDATA") or str(Path.home() / "AppData" / "Roaming")
        return Path(base) / app_name
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / app_name
    base = os.environ.get("XDG_CONFIG_HOME") or str(Path.home() / ".config")
    return Path(base) / app_name.lower()


def get_desktop_path() -> Path:
    """The caller's desktop folder (used as the default backup destination)."""
    return Path.home() / "Desktop"


def get_username() -> str:
    """Current OS user name, or a fallback literal when it cannot be determined."""
    try:
        username = getpass.getuser()
    except (KeyError, OSError, ImportError) as e:
        # getpass raises when neither the environment nor the pwd database know us
        log.debug(f"Could not determine OS username: {e}")
        return FALLBACK_USERNAME
    return username or FALLBACK_USERNAME


def encode_content_disposition(filename: str) -> str:
    try:
        filename.encode("ascii")
        return f'attachment; filename="{filename}"'
    except UnicodeEncodeError:
        encoded_filename = urllib.parse.quote(filename, safe="")
        return f"attachment; filename*=UTF-8''{encoded_filename}"
