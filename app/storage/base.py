"""
Attachment storage interface.

Questions, answers, avatars, resources and books keep only the reference
(a URL) returned by ``save``. Removal later goes through the same backend
using that reference, so a backend must be able to map its own references
back to stored objects.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional


@dataclass
class StoredFile:
    """Result of a successful upload. ``url`` is what gets persisted."""
    url: str
    # backend-side location: relative path on disk, or Cloudinary public id
    path: str


class StorageError(Exception):
    """Any failure talking to the storage backend."""
    pass


class StorageBackend(ABC):
    """
    Contract shared by LocalStorage and CloudinaryStorage.

        stored = await storage.save(data, "questions/3f2a9c1b_diagram.png", "image/png")
        question.files = [stored.url]
        await storage.delete(stored.url)
    """

    @abstractmethod
    async def save(
        self,
        file_content: bytes,
        destination_path: str,
        content_type: Optional[str] = None
    ) -> StoredFile:
        """
        Store ``file_content`` under ``destination_path`` (folder/name).

        Raises:
            StorageError: the object could not be written
        """

    @abstractmethod
    async def delete(self, reference: str) -> bool:
        """
        Remove the object behind ``reference``.

        Returns False when there was nothing to remove (already gone, or a
        reference this backend never issued). Raises StorageError only when
        the backend itself fails.
        """

    async def close(self) -> None:
        """Release client resources at shutdown."""
        return None
