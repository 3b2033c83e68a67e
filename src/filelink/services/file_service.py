# src/filelink/services/file_service.py
# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2025 AZHAR ZOUHIR / BYTEDz

import asyncio
import logging
import os
import shutil
import stat
from datetime import datetime, timezone
from pathlib import Path
from typing import AsyncIterator, Iterable, List, Tuple

import aiofiles
from pydantic import BaseModel, ConfigDict, Field

from ..core.constants import DOWNLOAD_CHUNK_SIZE
from ..core.exceptions import (AccessDeniedError, ConflictError, InvalidPathError,
                               ListingError, PathTypeError)
from ..core.sandbox import ResolvedPath, StorageSandbox

log = logging.getLogger(__name__)


class FileEntry(BaseModel):
    """Externally visible shape of one directory entry."""

    model_config = ConfigDict(populate_by_name=True)

    name: str
    is_directory: bool = Field(alias="isDirectory")
    size: int
    last_modified: datetime = Field(alias="lastModified")


def _is_within(child: ResolvedPath, parent: ResolvedPath) -> bool:
    return child.path == parent.path or parent.path in child.path.parents


def _remove(path: Path):
    if path.is_dir() and not path.is_symlink():
        shutil.rmtree(path)
    elif os.path.lexists(path):
        path.unlink()


class FileService:
    """Filesystem operations on paths already confined by a StorageSandbox."""

    def __init__(self, sandbox: StorageSandbox, chunk_size: int = DOWNLOAD_CHUNK_SIZE):
        self.sandbox = sandbox
        self.chunk_size = chunk_size

    def _refuse_root(self, target: ResolvedPath, action: str):
        if self.sandbox.is_root(target):
            raise AccessDeniedError(f"Forbidden: The storage root itself cannot be {action}.")

    async def list_directory(self, directory: ResolvedPath) -> List[FileEntry]:
        """Lists a directory in enumeration order (unsorted)."""
        def _scan():
            items = []
            with os.scandir(directory) as entries:
                for entry in entries:
                    try:
                        st = entry.stat()
                    except OSError as e:
                        raise ListingError(f"Cannot read directory entry '{entry.name}': {e.strerror}") from e
                    items.append(FileEntry(
                        name=entry.name,
                        is_directory=stat.S_ISDIR(st.st_mode),
                        size=st.st_size,
                        last_modified=datetime.fromtimestamp(st.st_mtime, tz=timezone.utc),
                    ))
            return items

        try:
            return await asyncio.to_thread(_scan)
        except NotADirectoryError as e:
            raise PathTypeError("The specified path is a file, not a directory.") from e

    async def create_file(self, path: ResolvedPath):
        """Creates an empty file (and its parents) unless a file is already there."""
        def _ensure_file():
            target = path.path
            if target.is_file():
                return
            if os.path.lexists(target):
                raise ConflictError("A folder already exists at the specified path.")
            target.parent.mkdir(parents=True, exist_ok=True)
            target.touch(exist_ok=True)

        await asyncio.to_thread(_ensure_file)
        log.info(f"Created file {self.sandbox.relative(path)}")

    async def create_folder(self, path: ResolvedPath):
        await asyncio.to_thread(path.path.mkdir, parents=True, exist_ok=True)
        log.info(f"Created folder {self.sandbox.relative(path)}")

    async def delete(self, path: ResolvedPath):
        """Removes a file or folder tree; a missing target is not an error."""
        self._refuse_root(path, "deleted")
        await asyncio.to_thread(_remove, path.path)
        log.info(f"Deleted {self.sandbox.relative(path)}")

    async def rename(self, old: ResolvedPath, new: ResolvedPath):
        self._refuse_root(old, "renamed")
        if old.path in new.path.parents:
            raise InvalidPathError("Cannot rename a folder into itself.")
        await asyncio.to_thread(os.rename, old, new)
        log.info(f"Renamed {self.sandbox.relative(old)} -> {self.sandbox.relative(new)}")

    async def copy(self, source: ResolvedPath, destination: ResolvedPath):
        """
        Copies a file or folder. Missing destination parents are created,
        existing files are overwritten and existing folders are merged.
        """
        if source == destination:
            raise InvalidPathError("Source and destination must not be the same.")

        def _copy():
            if source.path.is_dir():
                if _is_within(destination, source):
                    raise InvalidPathError("Cannot copy a folder into itself.")
                shutil.copytree(source.path, destination.path, symlinks=True, dirs_exist_ok=True)
                return
            if destination.path.is_dir():
                raise ConflictError("Cannot overwrite a folder with a file.")
            destination.path.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(source.path, destination.path)

        await asyncio.to_thread(_copy)
        log.info(f"Copied {self.sandbox.relative(source)} -> {self.sandbox.relative(destination)}")

    async def move(self, source: ResolvedPath, destination: ResolvedPath):
        """Moves a file or folder; the destination must not exist yet."""
        self._refuse_root(source, "moved")
        if source == destination:
            raise InvalidPathError("Source and destination must not be the same.")

        def _move():
            os.lstat(source)
            if os.path.lexists(destination):
                raise ConflictError("Destination already exists.")
            if source.path.is_dir() and _is_within(destination, source):
                raise InvalidPathError("Cannot move a folder into itself.")
            destination.path.parent.mkdir(parents=True, exist_ok=True)
            shutil.move(str(source.path), str(destination.path))

        await asyncio.to_thread(_move)
        log.info(f"Moved {self.sandbox.relative(source)} -> {self.sandbox.relative(destination)}")

    async def save_uploads(self, directory: ResolvedPath, uploads: Iterable[Tuple[Path, str]]) -> int:
        """
        Moves already-received temporary files into ``directory`` under their
        original names, replacing whatever is there.
        """
        # Reject the whole batch before anything is moved if any name is bad.
        targets = [(Path(temp), self.sandbox.child(directory, name)) for temp, name in uploads]
        await asyncio.to_thread(directory.path.mkdir, parents=True, exist_ok=True)

        def _place(temp: Path, target: ResolvedPath):
            _remove(target.path)
            shutil.move(str(temp), str(target.path))

        for temp, target in targets:
            await asyncio.to_thread(_place, temp, target)
            log.info(f"Stored upload {self.sandbox.relative(target)}")
        return len(targets)

    async def prepare_download(self, path: ResolvedPath) -> int:
        """Returns the size of the file to send; directories are refused."""
        st = await asyncio.to_thread(os.stat, path)
        if stat.S_ISDIR(st.st_mode):
            raise PathTypeError(
                "The specified path is a directory, not a file. Only files can be downloaded."
            )
        return st.st_size

    async def iter_file(self, path: ResolvedPath) -> AsyncIterator[bytes]:
        """Asynchronous iterator over the bytes of a file."""
        async with aiofiles.open(path.path, "rb") as f:
            while True:
                chunk = await f.read(self.chunk_size)
                if not chunk:
                    break
                yield chunk
