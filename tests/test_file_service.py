"""Tests for filesystem operations on sandbox-resolved paths."""

import asyncio
import os
from datetime import timezone

import pytest

from filelink.core.exceptions import (AccessDeniedError, ConflictError, InvalidPathError,
                                      ListingError, PathTypeError)


def run(coro):
    return asyncio.run(coro)


@pytest.fixture
def populated(storage_root):
    (storage_root / "folder").mkdir()
    (storage_root / "folder" / "file.txt").write_text("content")
    (storage_root / "folder" / "nested").mkdir()
    (storage_root / "folder" / "nested" / "deep.txt").write_text("deep")
    (storage_root / "top.txt").write_text("12345")
    return storage_root


def test_list_directory_describes_each_entry(file_service, sandbox, populated):
    entries = {e.name: e for e in run(file_service.list_directory(sandbox.resolve(".")))}
    assert set(entries) == {"folder", "top.txt"}
    assert entries["folder"].is_directory is True
    assert entries["top.txt"].is_directory is False
    assert entries["top.txt"].size == 5
    assert entries["top.txt"].last_modified.tzinfo == timezone.utc


def test_list_directory_serializes_with_camel_case_keys(file_service, sandbox, populated):
    entry = run(file_service.list_directory(sandbox.resolve("folder/nested")))[0]
    dumped = entry.model_dump(by_alias=True)
    assert set(dumped) == {"name", "isDirectory", "size", "lastModified"}


def test_list_directory_of_a_file_is_a_type_error(file_service, sandbox, populated):
    with pytest.raises(PathTypeError):
        run(file_service.list_directory(sandbox.resolve("top.txt")))


@pytest.mark.skipif(not hasattr(os, "symlink") or os.name == "nt", reason="needs POSIX symlinks")
def test_list_directory_with_dangling_link_names_the_entry(file_service, sandbox, populated):
    os.symlink(populated / "gone", populated / "folder" / "broken")
    with pytest.raises(ListingError) as excinfo:
        run(file_service.list_directory(sandbox.resolve("folder")))
    assert "broken" in excinfo.value.message
    assert excinfo.value.status_code == 500


def test_list_missing_directory_surfaces_not_found(file_service, sandbox):
    with pytest.raises(FileNotFoundError):
        run(file_service.list_directory(sandbox.resolve("nope")))


def test_create_file_creates_parents(file_service, sandbox, storage_root):
    run(file_service.create_file(sandbox.resolve("new/dir/file.txt")))
    assert (storage_root / "new" / "dir" / "file.txt").read_bytes() == b""


def test_create_file_leaves_existing_content(file_service, sandbox, populated):
    run(file_service.create_file(sandbox.resolve("top.txt")))
    assert (populated / "top.txt").read_text() == "12345"


def test_create_file_over_a_folder_conflicts(file_service, sandbox, populated):
    with pytest.raises(ConflictError):
        run(file_service.create_file(sandbox.resolve("folder")))


def test_create_folder_is_idempotent(file_service, sandbox, storage_root):
    run(file_service.create_folder(sandbox.resolve("a/b/c")))
    run(file_service.create_folder(sandbox.resolve("a/b/c")))
    assert (storage_root / "a" / "b" / "c").is_dir()


def test_delete_removes_files_and_trees(file_service, sandbox, populated):
    run(file_service.delete(sandbox.resolve("top.txt")))
    run(file_service.delete(sandbox.resolve("folder")))
    assert list(populated.iterdir()) == []


def test_delete_missing_path_is_not_an_error(file_service, sandbox):
    run(file_service.delete(sandbox.resolve("ghost/file.txt")))


def test_storage_root_cannot_be_deleted(file_service, sandbox, populated):
    with pytest.raises(AccessDeniedError):
        run(file_service.delete(sandbox.resolve(".")))
    assert (populated / "top.txt").exists()


def test_rename_moves_the_item(file_service, sandbox, populated):
    run(file_service.rename(sandbox.resolve("top.txt"), sandbox.resolve("renamed.txt")))
    assert not (populated / "top.txt").exists()
    assert (populated / "renamed.txt").read_text() == "12345"


def test_rename_missing_source_surfaces_not_found(file_service, sandbox):
    with pytest.raises(FileNotFoundError):
        run(file_service.rename(sandbox.resolve("ghost.txt"), sandbox.resolve("x.txt")))


def test_rename_folder_into_itself_is_rejected(file_service, sandbox, populated):
    with pytest.raises(InvalidPathError):
        run(file_service.rename(sandbox.resolve("folder"), sandbox.resolve("folder/nested/moved")))
    assert (populated / "folder" / "nested" / "deep.txt").exists()


def test_copy_file_keeps_source(file_service, sandbox, populated):
    run(file_service.copy(sandbox.resolve("folder/file.txt"), sandbox.resolve("other/file.txt")))
    assert (populated / "folder" / "file.txt").read_text() == "content"
    assert (populated / "other" / "file.txt").read_text() == "content"


def test_copy_folder_is_recursive(file_service, sandbox, populated):
    run(file_service.copy(sandbox.resolve("folder"), sandbox.resolve("backup/folder")))
    assert (populated / "backup" / "folder" / "nested" / "deep.txt").read_text() == "deep"
    assert (populated / "folder" / "nested" / "deep.txt").exists()


def test_copy_folder_into_itself_is_rejected(file_service, sandbox, populated):
    with pytest.raises(InvalidPathError):
        run(file_service.copy(sandbox.resolve("folder"), sandbox.resolve("folder/nested/again")))


def test_copy_onto_itself_is_rejected(file_service, sandbox, populated):
    with pytest.raises(InvalidPathError):
        run(file_service.copy(sandbox.resolve("top.txt"), sandbox.resolve("./top.txt")))


def test_move_file_removes_source(file_service, sandbox, populated):
    run(file_service.move(sandbox.resolve("folder/file.txt"), sandbox.resolve("other/file.txt")))
    assert not (populated / "folder" / "file.txt").exists()
    assert (populated / "other" / "file.txt").read_text() == "content"


def test_move_onto_existing_destination_conflicts(file_service, sandbox, populated):
    with pytest.raises(ConflictError):
        run(file_service.move(sandbox.resolve("top.txt"), sandbox.resolve("folder/file.txt")))
    assert (populated / "top.txt").exists()


def test_move_missing_source_surfaces_not_found(file_service, sandbox, storage_root):
    with pytest.raises(FileNotFoundError):
        run(file_service.move(sandbox.resolve("ghost.txt"), sandbox.resolve("dest/ghost.txt")))
    assert not (storage_root / "dest").exists()


def test_move_folder_into_itself_is_rejected(file_service, sandbox, populated):
    with pytest.raises(InvalidPathError):
        run(file_service.move(sandbox.resolve("folder"), sandbox.resolve("folder/nested/x")))


def test_save_uploads_moves_and_overwrites(file_service, sandbox, populated, tmp_path):
    scratch = tmp_path / "scratch"
    scratch.mkdir()
    first, second = scratch / "1", scratch / "2"
    first.write_text("fresh")
    second.write_text("other")

    count = run(file_service.save_uploads(
        sandbox.resolve("folder"), [(first, "file.txt"), (second, "../sneaky.txt")]
    ))

    assert count == 2
    assert (populated / "folder" / "file.txt").read_text() == "fresh"
    assert (populated / "folder" / "sneaky.txt").read_text() == "other"
    assert list(scratch.iterdir()) == []


def test_save_uploads_creates_destination(file_service, sandbox, storage_root, tmp_path):
    temp = tmp_path / "upload.bin"
    temp.write_bytes(b"\x00\x01")
    run(file_service.save_uploads(sandbox.resolve("incoming/today"), [(temp, "data.bin")]))
    assert (storage_root / "incoming" / "today" / "data.bin").read_bytes() == b"\x00\x01"


def test_save_uploads_rejects_batch_with_bad_name(file_service, sandbox, storage_root, tmp_path):
    temp = tmp_path / "upload.bin"
    temp.write_bytes(b"x")
    with pytest.raises(InvalidPathError):
        run(file_service.save_uploads(sandbox.resolve("in"), [(temp, "ok.bin"), (temp, "..")]))
    assert not (storage_root / "in").exists()


def test_prepare_download_refuses_directories(file_service, sandbox, populated):
    with pytest.raises(PathTypeError):
        run(file_service.prepare_download(sandbox.resolve("folder")))
    assert run(file_service.prepare_download(sandbox.resolve("top.txt"))) == 5


def test_iter_file_streams_in_chunks(file_service, sandbox, populated):
    async def collect():
        return [chunk async for chunk in file_service.iter_file(sandbox.resolve("folder/file.txt"))]

    chunks = run(collect())
    assert chunks == [b"cont", b"ent"]
