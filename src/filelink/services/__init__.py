# src/filelink/services/__init__.py
# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2025 AZHAR ZOUHIR / BYTEDz

from .backup_service import BackupService
from .file_service import FileEntry, FileService

__all__ = [
    "BackupService",
    "FileEntry",
    "FileService",
]
