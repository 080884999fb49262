"""
Cloudinary Storage Backend

Stores uploads on Cloudinary using resource_type "auto", so images are
served as images and documents (PDF, DOCX, ...) as raw files.
The secure URL Cloudinary returns is the reference kept on records.

Setup:
------
   STORAGE_BACKEND=cloudinary
   CLOUDINARY_CLOUD_NAME=your-cloud-name
   CLOUDINARY_API_KEY=your-api-key
   CLOUDINARY_API_SECRET=your-api-secret
"""

import io
import logging
from typing import Optional, Tuple
from urllib.parse import urlparse

import cloudinary
import cloudinary.uploader
from starlette.concurrency import run_in_threadpool

from app.storage.base import (
    StorageBackend,
    StoredFile,
    StorageError,
)

logger = logging.getLogger(__name__)

RESOURCE_TYPES = ("image", "video", "raw")


def parse_cloudinary_url(url: str) -> Optional[Tuple[str, str]]:
    """
    Extract ``(resource_type, public_id)`` from a Cloudinary delivery URL.

    Example:
        https://res.cloudinary.com/demo/image/upload/v1712/qna/questions/ab12_cat.png
        -> ("image", "qna/questions/ab12_cat")

    Raw files keep their extension as part of the public id.
    Returns None for URLs that are not Cloudinary delivery URLs.
    """
    parsed = urlparse(url)
    if "cloudinary" not in parsed.netloc:
        return None

    parts = [p for p in parsed.path.split("/") if p]
    try:
        upload_index = parts.index("upload")
    except ValueError:
        return None
    if upload_index < 1:
        return None

    resource_type = parts[upload_index - 1]
    if resource_type not in RESOURCE_TYPES:
        return None

    rest = parts[upload_index + 1:]
    # Skip an optional version segment such as "v1712345678"
    if rest and rest[0].startswith("v") and rest[0][1:].isdigit():
        rest = rest[1:]
    if not rest:
        return None

    public_id = "/".join(rest)
    if resource_type != "raw" and "." in rest[-1]:
        public_id = public_id.rsplit(".", 1)[0]

    return resource_type, public_id


class CloudinaryStorage(StorageBackend):
    """
    Uploads go to ``{folder_prefix}/{folder}/{name}`` as the public id.
    The SDK is blocking, so every call is pushed to the threadpool.
    """

    def __init__(
        self,
        cloud_name: str,
        api_key: str,
        api_secret: str,
        folder_prefix: str = "qna-education",
    ):
        cloudinary.config(cloud_name=cloud_name, api_key=api_key, api_secret=api_secret, secure=True)
        self.folder_prefix = folder_prefix.strip("/")
        logger.info(f"Cloudinary storage ready (cloud={cloud_name}, prefix={self.folder_prefix or '-'})")

    def public_id_for(self, path: str) -> str:
        """``questions/ab12_cat.png`` -> ``{prefix}/questions/ab12_cat``."""
        segments = [s for s in f"{self.folder_prefix}/{path}".split("/") if s]
        stem, dot, _ = segments[-1].rpartition(".")
        if dot and stem:
            segments[-1] = stem
        return "/".join(segments)

    async def save(
        self,
        file_content: bytes,
        destination_path: str,
        content_type: Optional[str] = None,
    ) -> StoredFile:
        public_id = self.public_id_for(destination_path)
        try:
            result = await run_in_threadpool(
                cloudinary.uploader.upload,
                io.BytesIO(file_content),
                public_id=public_id,
                resource_type="auto",
                overwrite=True,
            )
        except Exception as e:
            logger.error(f"Cloudinary upload of {destination_path} failed: {e}")
            raise StorageError(f"Failed to upload file to Cloudinary: {e}")

        url = result.get("secure_url")
        if not url:
            raise StorageError("Cloudinary did not return a URL for the upload")

        logger.info(f"Uploaded {public_id} to Cloudinary")
        return StoredFile(url=url, path=result.get("public_id", public_id))

    async def delete(self, reference: str) -> bool:
        parsed = parse_cloudinary_url(reference)
        if parsed is None:
            logger.debug(f"Skipping foreign reference: {reference}")
            return False

        resource_type, public_id = parsed
        try:
            result = await run_in_threadpool(cloudinary.uploader.destroy, public_id, resource_type=resource_type)
        except Exception as e:
            logger.error(f"Cloudinary delete of {public_id} failed: {e}")
            raise StorageError(f"Failed to delete file: {e}")

        # "not found" is a normal outcome for an already removed object
        removed = result.get("result") == "ok"
        logger.info(f"Cloudinary delete {public_id}: {result.get('result')}")
        return removed
