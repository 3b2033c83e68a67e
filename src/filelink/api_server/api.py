# filename: src/filelink/api_server/api.py
"""
FileLink - Sandboxed Remote File Manager - Main API Module
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

import logging
from pathlib import Path
from typing import Optional, Sequence, Union

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ..core import constants
from ..core.exceptions import ConfigurationError
from ..core.sandbox import StorageSandbox
from ..core.version import __app_name__, __version__
from ..services.backup_service import BackupService
from ..services.file_service import FileService
from .errors import register_error_handlers
from .file_browser import router as file_browser_router

log = logging.getLogger(__name__)


# --- FastAPI App Factory ---
def create_api_app(
    sandbox: StorageSandbox,
    backup_service: Optional[BackupService] = None,
    file_service: Optional[FileService] = None,
    upload_dir: Optional[Union[str, Path]] = None,
    cors_origins: Sequence[str] = ("*",),
) -> FastAPI:
    """
    Builds the HTTP application around one storage root. All collaborators
    are injected so that tests can point everything at temporary folders.
    """
    app = FastAPI(
        title=f"{__app_name__} API",
        version=__version__,
        description="API for managing files and folders inside a single storage directory.",
        docs_url="/api-docs",
        redoc_url=None,
    )

    upload_dir = Path(upload_dir or constants.DEFAULT_UPLOAD_DIR).expanduser().resolve()
    if upload_dir == sandbox.root or sandbox.root in upload_dir.parents:
        raise ConfigurationError(f"Upload scratch folder {upload_dir} must be outside the storage root.")
    upload_dir.mkdir(parents=True, exist_ok=True)

    app.state.sandbox = sandbox
    app.state.file_service = file_service or FileService(sandbox)
    app.state.backup_service = backup_service or BackupService(sandbox.root)
    app.state.upload_dir = upload_dir

    app.add_middleware(
        CORSMiddleware, allow_origins=list(cors_origins), allow_methods=["*"], allow_headers=["*"]
    )
    register_error_handlers(app)
    app.include_router(file_browser_router, prefix="/api")

    log.info(f"File manager API ready for storage root {sandbox.root}")
    return app
