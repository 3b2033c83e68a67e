# src/filelink/core/sandbox.py
# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2025 AZHAR ZOUHIR / BYTEDz

"""
Confinement of caller-supplied paths to the storage root.

Every path that reaches the filesystem layer is a ``ResolvedPath``, and the
only way to obtain one is through ``StorageSandbox``. A ``ResolvedPath`` is
therefore contained in the root by construction.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Union

from .exceptions import AccessDeniedError, ConfigurationError, InvalidPathError

log = logging.getLogger(__name__)

# Request fields that carry a path relative to the storage root, in the
# order they are validated.
PATH_FIELDS = ("path", "oldPath", "newPath", "destination")

_SEPARATORS = os.sep + (os.altsep or "")
_RESOLVER_KEY = object()


@dataclass(frozen=True)
class ResolvedPath:
    """An absolute path proven to lie inside the storage root."""

    path: Path
    raw: str = field(default="", compare=False)
    _key: object = field(default=None, repr=False, compare=False)

    def __post_init__(self):
        if self._key is not _RESOLVER_KEY:
            raise TypeError("ResolvedPath instances can only be created by StorageSandbox")

    def __fspath__(self) -> str:
        return str(self.path)

    def __str__(self) -> str:
        return str(self.path)

    @property
    def name(self) -> str:
        return self.path.name


class StorageSandbox:
    """Resolves untrusted relative paths against a fixed storage root."""

    def __init__(self, root: Union[str, Path]):
        if root is None or not str(root).strip():
            raise ConfigurationError("Storage root must not be empty.")
        self.root = Path(root).expanduser().resolve()
        self._root_str = os.path.normpath(str(self.root))
        self._root_key = os.path.normcase(self._root_str)
        self._prefix_key = self._root_key if self._root_key.endswith(os.sep) else self._root_key + os.sep
        self.ensure_root()

    def ensure_root(self):
        """Creates the storage root (and parents) if it does not exist yet."""
        try:
            self.root.mkdir(parents=True, exist_ok=True)
        except FileExistsError as e:
            raise ConfigurationError(f"Storage root is not a directory: {self.root}") from e
        except OSError as e:
            raise ConfigurationError(f"Cannot create storage root {self.root}: {e}") from e

    def _join(self, user_path: str) -> str:
        # Drive letters and leading separators are dropped: the input is always
        # taken as relative to the root, never as an absolute path of its own.
        _, tail = os.path.splitdrive(user_path)
        return os.path.normpath(os.path.join(self._root_str, tail.lstrip(_SEPARATORS)))

    def _contains(self, candidate: str) -> bool:
        key = os.path.normcase(candidate)
        # Compare against "root/" so that a sibling such as "/data2" never
        # passes for a root of "/data".
        return key == self._root_key or key.startswith(self._prefix_key)

    def _make(self, candidate: str, raw: str) -> ResolvedPath:
        if not self._contains(candidate):
            log.warning(f"Rejected path outside storage root: {raw!r}")
            raise AccessDeniedError("Forbidden: Access to this path is not allowed.")
        return ResolvedPath(Path(candidate), raw, _key=_RESOLVER_KEY)

    def resolve(self, user_path: Any) -> ResolvedPath:
        """
        Joins ``user_path`` onto the root, normalises it and checks that the
        result is still inside the root. ``""`` and ``"."`` yield the root.
        """
        if not isinstance(user_path, str) or "\x00" in user_path:
            raise InvalidPathError("Invalid path provided.")
        return self._make(self._join(user_path), user_path)

    def resolve_many(self, fields: Mapping[str, Any]) -> Dict[str, ResolvedPath]:
        """Validates every well-known path field present in ``fields``."""
        resolved = {}
        for name in PATH_FIELDS:
            value = fields.get(name)
            if value is None:
                continue
            resolved[name] = self.resolve(value)
        return resolved

    def child(self, parent: ResolvedPath, name: Any) -> ResolvedPath:
        """
        Places a single client-supplied file name directly under ``parent``.
        Any directory components in ``name`` are discarded.
        """
        if not isinstance(name, str) or "\x00" in name:
            raise InvalidPathError("Invalid file name provided.")
        _, tail = os.path.splitdrive(name)
        if os.altsep:
            tail = tail.replace(os.altsep, os.sep)
        base = os.path.basename(tail.rstrip(os.sep))
        if base in ("", ".", ".."):
            raise InvalidPathError(f"Invalid file name provided: {name!r}")
        return self._make(os.path.normpath(os.path.join(str(parent.path), base)), name)

    def is_root(self, resolved: ResolvedPath) -> bool:
        return os.path.normcase(str(resolved.path)) == self._root_key

    def relative(self, resolved: ResolvedPath) -> str:
        """Path of ``resolved`` relative to the root, with forward slashes."""
        return resolved.path.relative_to(self.root).as_posix()
