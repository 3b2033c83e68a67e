# src/filelink/services/backup_service.py
# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2025 AZHAR ZOUHIR / BYTEDz

import asyncio
import logging
import os
import stat
import zipfile
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Callable, Iterator, Optional, Tuple, Union

from ..core.constants import BACKUP_FILENAME_TEMPLATE, DEFAULT_COMPRESSION_LEVEL
from ..core.exceptions import BackupError, ConfigurationError
from ..core.utils import FALLBACK_USERNAME, get_desktop_path, get_username

log = logging.getLogger(__name__)


def _raise_walk_error(error: OSError):
    raise error


class BackupService:
    """
    Writes the whole storage root into a single ZIP archive placed outside
    the root. Each call walks and compresses the full tree again.
    """

    def __init__(
        self,
        root: Union[str, Path],
        destination_dir: Optional[Union[str, Path]] = None,
        compression_level: int = DEFAULT_COMPRESSION_LEVEL,
        username_provider: Callable[[], str] = get_username,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.root = Path(root).expanduser().resolve()
        self.destination_dir = Path(destination_dir or get_desktop_path()).expanduser().resolve()
        if self.destination_dir == self.root or self.root in self.destination_dir.parents:
            raise ConfigurationError(
                f"Backup destination {self.destination_dir} must be outside the storage root."
            )
        if not 0 <= compression_level <= 9:
            raise ConfigurationError(f"Compression level must be in 0..9, got {compression_level}")
        self.compression_level = compression_level
        self._username_provider = username_provider
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    @staticmethod
    def backup_filename(username: str, day: date) -> str:
        return BACKUP_FILENAME_TEMPLATE.format(username=username, date=day.strftime("%Y-%m-%d"))

    def destination_path(self) -> Path:
        """Where today's archive goes. Same-day backups share (and overwrite) one file."""
        username = self._username_provider() or FALLBACK_USERNAME
        return self.destination_dir / self.backup_filename(username, self._clock().date())

    def iter_entries(self) -> Iterator[Tuple[Path, str]]:
        """
        Yields ``(filesystem path, archive name)`` for every directory and
        regular file under the root, in sorted walk order. Archive names are
        relative to the root, so the root's contents form the top level.
        """
        for dirpath, dirnames, filenames in os.walk(self.root, onerror=_raise_walk_error):
            dirnames.sort()
            current = Path(dirpath)
            prefix = current.relative_to(self.root).as_posix()
            prefix = "" if prefix == "." else prefix + "/"
            for name in dirnames:
                yield current / name, prefix + name
            for name in sorted(filenames):
                path = current / name
                # Follows symlinks; a dangling link fails the backup here.
                if not stat.S_ISREG(os.stat(path).st_mode):
                    log.debug(f"Skipping non-regular file in backup: {path}")
                    continue
                yield path, prefix + name

    def _write_archive(self, destination: Path) -> int:
        destination.parent.mkdir(parents=True, exist_ok=True)
        output = open(destination, "wb")
        try:
            with output, zipfile.ZipFile(
                output,
                "w",
                compression=zipfile.ZIP_DEFLATED,
                compresslevel=self.compression_level,
                allowZip64=True,
                strict_timestamps=False,
            ) as archive:
                for path, arcname in self.iter_entries():
                    # ZipFile.write streams the file from disk in chunks.
                    archive.write(path, arcname)
        except BaseException:
            destination.unlink(missing_ok=True)
            raise
        return destination.stat().st_size

    async def create_backup(self) -> str:
        """
        Archives the storage root and returns the archive path once the file
        has been fully written and closed.
        """
        destination = self.destination_path()
        log.info(f"Creating backup of {self.root} at {destination}")
        try:
            total_bytes = await asyncio.to_thread(self._write_archive, destination)
        except Exception as e:
            log.error(f"Backup failed: {e}")
            raise BackupError(f"Backup failed: {e}") from e
        log.info(f"Backup created successfully: {total_bytes} total bytes")
        log.info(f"Path: {destination}")
        return str(destination)
