"""
Upload checks and naming for attachments.

Client filenames and declared content types are never trusted: the MIME
type comes from the bytes, and the stored name is a sanitised copy of
the client name behind a random prefix.
"""

import os
import re
import uuid
import logging
from dataclasses import dataclass, field
from typing import List, Optional

import filetype

from app.core.config import settings

logger = logging.getLogger(__name__)

MAX_FILENAME_LENGTH = 200


@dataclass
class UploadValidationResult:
    is_valid: bool
    mime_type: Optional[str]
    file_size: int
    errors: List[str] = field(default_factory=list)

    @property
    def error_message(self) -> str:
        return "; ".join(self.errors)


def detect_mime_type(file_content: bytes) -> str:
    """Sniff the content type from magic bytes, falling back to text or octet-stream."""
    kind = filetype.guess(file_content)
    if kind is not None:
        return kind.mime

    # filetype has no signature for plain text
    try:
        file_content[:1024].decode("utf-8")
    except UnicodeDecodeError:
        return "application/octet-stream"
    return "text/plain"


def sanitize_filename(filename: str) -> str:
    name = os.path.basename((filename or "").replace("\x00", ""))
    name = re.sub(r"[^\w\-.]", "_", name)
    name = re.sub(r"_+", "_", name).strip("_.")

    if len(name) > MAX_FILENAME_LENGTH:
        stem, ext = os.path.splitext(name)
        name = stem[:MAX_FILENAME_LENGTH - len(ext)] + ext

    return name or "unnamed_file"


def storage_path_for(folder: str, original_filename: str) -> str:
    """
    Destination path for a new upload, unique per call.

        storage_path_for("questions", "my diagram.png")
        # "questions/3f2a9c1b7d4e_my_diagram.png"
    """
    return f"{folder.strip('/')}/{uuid.uuid4().hex[:12]}_{sanitize_filename(original_filename)}"


def validate_upload(file_content: bytes, original_filename: str) -> UploadValidationResult:
    """Reject empty or oversized files and content types outside ALLOWED_UPLOAD_MIME_TYPES."""
    size = len(file_content)

    if size == 0:
        return UploadValidationResult(False, None, size, ["File is empty"])
    if size > settings.MAX_FILE_SIZE_BYTES:
        return UploadValidationResult(
            False, None, size,
            [f"File size ({size / (1024 * 1024):.1f} MB) exceeds maximum ({settings.MAX_FILE_SIZE_MB} MB)"],
        )

    mime_type = detect_mime_type(file_content)
    errors = []
    if mime_type not in settings.ALLOWED_UPLOAD_MIME_TYPES:
        logger.debug(f"Sniffed {mime_type} for {original_filename!r}")
        errors.append(f"File '{sanitize_filename(original_filename)}' has unsupported type '{mime_type}'")

    return UploadValidationResult(not errors, mime_type, size, errors)
