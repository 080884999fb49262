"""
Attachment storage.

``get_storage()`` returns the process-wide backend selected by
STORAGE_BACKEND ("local" or "cloudinary").
"""

from app.storage.base import StorageBackend, StoredFile, StorageError
from app.storage.local import LocalStorage
from app.core.config import settings

_storage_instance: StorageBackend | None = None


def get_storage() -> StorageBackend:
    global _storage_instance

    if _storage_instance is None:
        _storage_instance = _build_backend(settings.STORAGE_BACKEND.lower())
    return _storage_instance


def _build_backend(kind: str) -> StorageBackend:
    if kind == "local":
        return LocalStorage(
            base_path=settings.UPLOAD_DIR,
            public_base_url=settings.PUBLIC_BASE_URL,
        )

    if kind == "cloudinary":
        # Imported lazily so local setups never configure the SDK
        from app.storage.cloudinary_storage import CloudinaryStorage

        missing = [
            name for name in ("CLOUDINARY_CLOUD_NAME", "CLOUDINARY_API_KEY", "CLOUDINARY_API_SECRET")
            if not getattr(settings, name)
        ]
        if missing:
            raise ValueError(f"STORAGE_BACKEND=cloudinary needs {', '.join(missing)}")
        return CloudinaryStorage(
            cloud_name=settings.CLOUDINARY_CLOUD_NAME,
            api_key=settings.CLOUDINARY_API_KEY,
            api_secret=settings.CLOUDINARY_API_SECRET,
            folder_prefix=settings.CLOUDINARY_FOLDER_PREFIX,
        )

    raise ValueError(f"Unknown storage backend {kind!r} (expected local or cloudinary)")


__all__ = [
    "get_storage",
    "StorageBackend",
    "StoredFile",
    "StorageError",
    "LocalStorage",
]
