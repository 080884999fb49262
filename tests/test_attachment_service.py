import asyncio
import io

import pytest
from fastapi import UploadFile

from app.core.exceptions import UpstreamError, ValidationError
from app.services.attachment_service import AttachmentService
from app.storage.cloudinary_storage import parse_cloudinary_url
from app.storage.base import StorageError
from app.storage.local import LocalStorage
from app.utils.file_utils import sanitize_filename, storage_path_for

from conftest import PNG_BYTES


def _upload(name, content):
    return UploadFile(file=io.BytesIO(content), filename=name)


def test_upload_rejects_empty_and_unsupported_files(fake_storage) -> None:
    service = AttachmentService(fake_storage)

    with pytest.raises(ValidationError, match="empty"):
        asyncio.run(service.upload(_upload("empty.txt", b""), "questions"))
    with pytest.raises(ValidationError, match="unsupported type"):
        asyncio.run(service.upload(_upload("tool.exe", b"MZ\x90\x00\x03\x00\x00\x00\xff\xfe"), "questions"))
    assert fake_storage.objects == {}


def test_upload_many_limits_file_count(fake_storage) -> None:
    service = AttachmentService(fake_storage)
    files = [_upload(f"{i}.txt", b"x") for i in range(6)]

    with pytest.raises(ValidationError, match="At most 5"):
        asyncio.run(service.upload_many(files, "questions"))


def test_upload_many_skips_empty_form_parts(fake_storage) -> None:
    service = AttachmentService(fake_storage)
    files = [_upload("", b""), _upload("fig.png", PNG_BYTES)]

    references = asyncio.run(service.upload_many(files, "answers"))

    assert len(references) == 1
    assert references[0].startswith("https://files.test/answers/")
    assert references[0].endswith("_fig.png")


def test_storage_failure_surfaces_as_upstream_error(fake_storage) -> None:
    fake_storage.fail_on_save = True

    with pytest.raises(UpstreamError) as exc_info:
        asyncio.run(AttachmentService(fake_storage).upload(_upload("a.txt", b"a"), "questions"))

    assert exc_info.value.error == "storage unavailable"


def test_discard_never_raises(fake_storage) -> None:
    fake_storage.fail_on_delete.add("https://files.test/a")
    service = AttachmentService(fake_storage)

    results = asyncio.run(service.discard_all(["https://files.test/a", None, "https://files.test/b"]))

    assert [(r.reference, r.ok) for r in results] == [
        ("https://files.test/a", False),
        ("https://files.test/b", True),
    ]


def test_local_storage_round_trip(tmp_path) -> None:
    storage = LocalStorage(base_path=str(tmp_path), public_base_url="http://localhost:8000")

    on_disk = tmp_path / "questions" / "abc_notes.txt"

    async def scenario():
        stored = await storage.save(b"hello", "questions/abc_notes.txt", "text/plain")
        written = on_disk.read_bytes()
        deleted = await storage.delete(stored.url)
        deleted_again = await storage.delete(stored.url)
        return stored, written, deleted, deleted_again

    stored, written, deleted, deleted_again = asyncio.run(scenario())

    assert stored.url == "http://localhost:8000/uploads/questions/abc_notes.txt"
    assert stored.path == "questions/abc_notes.txt"
    assert written == b"hello"
    assert deleted and not deleted_again
    assert not on_disk.exists()
    assert asyncio.run(storage.delete("https://elsewhere.test/x.png")) is False


def test_local_storage_blocks_path_traversal(tmp_path) -> None:
    storage = LocalStorage(base_path=str(tmp_path), public_base_url="http://localhost:8000")

    with pytest.raises(StorageError):
        asyncio.run(storage.save(b"x", "../escape.txt", "text/plain"))


def test_parse_cloudinary_url() -> None:
    assert parse_cloudinary_url(
        "https://res.cloudinary.com/demo/image/upload/v1712/qna-education/questions/abc_fig.png"
    ) == ("image", "qna-education/questions/abc_fig")
    assert parse_cloudinary_url(
        "https://res.cloudinary.com/demo/raw/upload/v1/qna-education/answers/notes.docx"
    ) == ("raw", "qna-education/answers/notes.docx")


def test_sanitize_filename_strips_paths() -> None:
    assert sanitize_filename("../../etc/passwd") == "passwd"
    assert sanitize_filename("my file (1).png") == "my_file_1_.png"


def test_storage_paths_are_unique_and_sanitised() -> None:
    first = storage_path_for("/questions/", "my diagram.png")
    second = storage_path_for("questions", "my diagram.png")

    assert first.startswith("questions/")
    assert first.endswith("_my_diagram.png")
    assert first != second
