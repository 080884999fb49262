"""
Disk-backed attachment storage.

Files land under ``UPLOAD_DIR/{folder}/{uuid}_{name}`` and are served by
the application's static mount, so the reference handed out is
``{PUBLIC_BASE_URL}/uploads/{folder}/{uuid}_{name}``. Folders in use:
questions, answers, avatars, resources, books.
"""

import logging
import aiofiles
import aiofiles.os
from pathlib import Path
from typing import Optional

from app.storage.base import StorageBackend, StoredFile, StorageError

logger = logging.getLogger(__name__)

PUBLIC_MOUNT = "/uploads"


class LocalStorage(StorageBackend):

    def __init__(self, base_path: str, public_base_url: str = ""):
        self.base_path = Path(base_path)
        self.public_base_url = public_base_url.rstrip("/")
        self.base_path.mkdir(parents=True, exist_ok=True)
        logger.info(f"Local uploads directory: {self.base_path.absolute()}")

    def _resolve(self, relative_path: str) -> Path:
        """Absolute path for ``relative_path``; refuses anything outside base_path."""
        root = self.base_path.resolve()
        target = (root / relative_path).resolve()
        if target != root and root not in target.parents:
            logger.warning(f"Rejected upload path outside storage root: {relative_path}")
            raise StorageError(f"Invalid path: {relative_path}")
        return target

    def build_url(self, relative_path: str) -> str:
        return f"{self.public_base_url}{PUBLIC_MOUNT}/{relative_path}"

    def reference_to_path(self, reference: str) -> Optional[str]:
        """
        Inverse of build_url(). Accepts the absolute form and the bare
        ``/uploads/...`` form; anything else is not ours and yields None.
        """
        prefix = f"{PUBLIC_MOUNT}/"
        for candidate in (self.public_base_url + prefix, prefix):
            if reference.startswith(candidate):
                return reference[len(candidate):]
        return None

    async def save(
        self,
        file_content: bytes,
        destination_path: str,
        content_type: Optional[str] = None
    ) -> StoredFile:
        target = self._resolve(destination_path)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(target, "wb") as f:
                await f.write(file_content)
        except OSError as e:
            logger.error(f"Could not write {destination_path}: {e}")
            raise StorageError(f"Failed to save file: {e}")

        logger.info(f"Stored {destination_path} ({len(file_content)} bytes, {content_type or 'unknown type'})")
        return StoredFile(url=self.build_url(destination_path), path=destination_path)

    async def delete(self, reference: str) -> bool:
        relative_path = self.reference_to_path(reference)
        if relative_path is None:
            logger.debug(f"Skipping foreign reference: {reference}")
            return False

        target = self._resolve(relative_path)
        if not target.exists():
            return False
        try:
            await aiofiles.os.remove(target)
        except OSError as e:
            logger.error(f"Could not remove {relative_path}: {e}")
            raise StorageError(f"Failed to delete file: {e}")
        logger.info(f"Removed {relative_path}")
        return True
