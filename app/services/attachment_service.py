"""
Attachment Service

Relays uploaded files to the configured storage backend and cleans
them up again. Records keep only the returned references.

Uploads fail loudly (the owning record must not be created).
Deletions are best-effort: every attempt produces a DeletionResult,
failures are logged and never propagate.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence

from fastapi import UploadFile

from app.core.config import settings
from app.core.exceptions import UpstreamError, ValidationError
from app.storage import StorageBackend, StorageError
from app.utils.file_utils import storage_path_for, validate_upload

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DeletionResult:
    reference: str
    ok: bool
    error: Optional[str] = None


class AttachmentService:
    """
    Upload relay and best-effort cleanup over a StorageBackend.
    """

    def __init__(self, storage: StorageBackend):
        self.storage = storage

    # ============================================================
    # UPLOADS
    # ============================================================

    async def upload(self, file: UploadFile, folder: str) -> str:
        """
        Validate and store one file, returning its reference.

        Raises:
            ValidationError: empty, too large or unsupported file
            UpstreamError: the storage backend rejected the upload
        """
        original_filename = file.filename or "unnamed_file"
        try:
            content = await file.read()
        except Exception as e:
            logger.error(f"Failed to read uploaded file {original_filename}: {e}")
            raise UpstreamError("Failed to read uploaded file", str(e))

        validation = validate_upload(content, original_filename)
        if not validation.is_valid:
            logger.warning(f"Upload rejected for '{original_filename}': {validation.error_message}")
            raise ValidationError(validation.error_message)

        path = storage_path_for(folder, original_filename)

        try:
            stored = await self.storage.save(
                file_content=content,
                destination_path=path,
                content_type=validation.mime_type,
            )
        except StorageError as e:
            logger.error(f"Storage failed for {path}: {e}")
            raise UpstreamError("Failed to upload file", str(e))

        logger.debug(f"Attachment {original_filename!r} stored at {stored.path}")
        return stored.url

    async def upload_many(self, files: Optional[Sequence[UploadFile]], folder: str) -> List[str]:
        """
        Store every file in order. A failure aborts the whole batch;
        files already stored by this call are not removed.
        """
        files = [f for f in (files or []) if f is not None and f.filename]
        if len(files) > settings.MAX_FILES_PER_POST:
            raise ValidationError(f"At most {settings.MAX_FILES_PER_POST} files can be attached")

        references = []
        for file in files:
            references.append(await self.upload(file, folder))
        return references

    # ============================================================
    # BEST-EFFORT CLEANUP
    # ============================================================

    async def discard(self, reference: Optional[str]) -> Optional[DeletionResult]:
        """Attempt to delete one referenced object. Never raises."""
        if not reference:
            return None
        try:
            await self.storage.delete(reference)
        except Exception as e:
            logger.warning(f"Failed to delete stored file {reference}: {e}")
            return DeletionResult(reference=reference, ok=False, error=str(e))
        return DeletionResult(reference=reference, ok=True)

    async def discard_all(self, references: Iterable[Optional[str]]) -> List[DeletionResult]:
        results = []
        for reference in references:
            result = await self.discard(reference)
            if result is not None:
                results.append(result)
        return results
