# src/filelink/api_server/file_browser.py
"""
FileLink - Sandboxed Remote File Manager - File Browser API Module
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

import asyncio
import logging
import mimetypes
import shutil
import uuid
from pathlib import Path
from typing import Dict, List, Type

import aiofiles
from fastapi import APIRouter, Depends, File, Form, Query, Request, UploadFile
from fastapi.responses import StreamingResponse
from pydantic import BaseModel

from ..core.constants import UPLOAD_CHUNK_SIZE
from ..core.sandbox import ResolvedPath, StorageSandbox
from ..core.utils import encode_content_disposition
from ..services.backup_service import BackupService
from ..services.file_service import FileEntry, FileService

log = logging.getLogger(__name__)


# --- Pydantic Models ---
class PathPayload(BaseModel):
    path: str


class RenamePayload(BaseModel):
    oldPath: str
    newPath: str


class TransferPayload(BaseModel):
    path: str
    destination: str


class MessageResponse(BaseModel):
    message: str


class BackupResponse(MessageResponse):
    path: str


# --- API Router ---
router = APIRouter(tags=["File Manager"])


# --- Dependencies ---
def get_sandbox(request: Request) -> StorageSandbox:
    return request.app.state.sandbox


def get_file_service(request: Request) -> FileService:
    return request.app.state.file_service


def get_backup_service(request: Request) -> BackupService:
    return request.app.state.backup_service


def resolved_body(model: Type[BaseModel]):
    """Dependency that parses a JSON body and resolves its path fields."""
    def dependency(
        payload: model,
        sandbox: StorageSandbox = Depends(get_sandbox),
    ) -> Dict[str, ResolvedPath]:
        return sandbox.resolve_many(payload.model_dump())

    return dependency


def resolved_browse_path(
    path: str = Query("", description='Relative directory path. Use "." for the root.'),
    sandbox: StorageSandbox = Depends(get_sandbox),
) -> ResolvedPath:
    return sandbox.resolve(path)


def resolved_download_path(
    path: str = Query(...),
    sandbox: StorageSandbox = Depends(get_sandbox),
) -> ResolvedPath:
    return sandbox.resolve(path)


def resolved_upload_dir(
    path: str = Form(""),
    sandbox: StorageSandbox = Depends(get_sandbox),
) -> ResolvedPath:
    return sandbox.resolve(path)


# --- File Browsing and Management Endpoints ---
@router.get("/browse", response_model=List[FileEntry])
async def browse_directory(
    directory: ResolvedPath = Depends(resolved_browse_path),
    files: FileService = Depends(get_file_service),
):
    return await files.list_directory(directory)


@router.post("/create-folder", status_code=201, response_model=MessageResponse)
async def create_folder(
    paths: Dict[str, ResolvedPath] = Depends(resolved_body(PathPayload)),
    files: FileService = Depends(get_file_service),
):
    await files.create_folder(paths["path"])
    return {"message": "Folder created successfully"}


@router.post("/create-file", status_code=201, response_model=MessageResponse)
async def create_file(
    paths: Dict[str, ResolvedPath] = Depends(resolved_body(PathPayload)),
    files: FileService = Depends(get_file_service),
):
    await files.create_file(paths["path"])
    return {"message": "File created successfully"}


@router.put("/rename", response_model=MessageResponse)
async def rename_item(
    paths: Dict[str, ResolvedPath] = Depends(resolved_body(RenamePayload)),
    files: FileService = Depends(get_file_service),
):
    await files.rename(paths["oldPath"], paths["newPath"])
    return {"message": "Renamed successfully"}


@router.post("/copy", response_model=MessageResponse)
async def copy_item(
    paths: Dict[str, ResolvedPath] = Depends(resolved_body(TransferPayload)),
    files: FileService = Depends(get_file_service),
):
    await files.copy(paths["path"], paths["destination"])
    return {"message": "Copied successfully"}


@router.post("/move", response_model=MessageResponse)
async def move_item(
    paths: Dict[str, ResolvedPath] = Depends(resolved_body(TransferPayload)),
    files: FileService = Depends(get_file_service),
):
    await files.move(paths["path"], paths["destination"])
    return {"message": "Moved successfully"}


@router.delete("/delete", response_model=MessageResponse)
async def delete_item(
    paths: Dict[str, ResolvedPath] = Depends(resolved_body(PathPayload)),
    files: FileService = Depends(get_file_service),
):
    await files.delete(paths["path"])
    return {"message": "Item deleted successfully"}


# --- Transfer Endpoints ---
async def _receive_upload(upload: UploadFile, temp_path: Path):
    async with aiofiles.open(temp_path, "wb") as out:
        while chunk := await upload.read(UPLOAD_CHUNK_SIZE):
            await out.write(chunk)


@router.post("/upload", status_code=201, response_model=MessageResponse)
async def upload_files(
    request: Request,
    files: List[UploadFile] = File(...),
    destination: ResolvedPath = Depends(resolved_upload_dir),
    file_service: FileService = Depends(get_file_service),
):
    # Each request buffers into its own scratch folder outside the storage root.
    batch_dir = Path(request.app.state.upload_dir) / uuid.uuid4().hex
    await asyncio.to_thread(batch_dir.mkdir, parents=True, exist_ok=True)
    try:
        received = []
        for upload in files:
            temp_path = batch_dir / uuid.uuid4().hex
            await _receive_upload(upload, temp_path)
            received.append((temp_path, upload.filename or ""))
        count = await file_service.save_uploads(destination, received)
    finally:
        await asyncio.to_thread(shutil.rmtree, batch_dir, ignore_errors=True)
    return {"message": f"{count} files uploaded successfully"}


@router.get("/download")
async def download_file(
    target: ResolvedPath = Depends(resolved_download_path),
    sandbox: StorageSandbox = Depends(get_sandbox),
    files: FileService = Depends(get_file_service),
):
    size = await files.prepare_download(target)
    media_type, _ = mimetypes.guess_type(target.name)
    headers = {
        "Content-Disposition": encode_content_disposition(target.name),
        "Content-Length": str(size),
    }
    log.info(f"Sending {sandbox.relative(target)} ({size} bytes)")
    return StreamingResponse(
        files.iter_file(target),
        media_type=media_type or "application/octet-stream",
        headers=headers,
    )


@router.post("/backup", status_code=201, response_model=BackupResponse)
async def create_backup(backups: BackupService = Depends(get_backup_service)):
    backup_path = await backups.create_backup()
    return {"message": "Backup created successfully!", "path": backup_path}


@router.get("/health")
async def health(sandbox: StorageSandbox = Depends(get_sandbox)):
    return {"status": "ok", "storage_root": str(sandbox.root)}
