# storage.py
import logging
import os
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta
from pathlib import Path
from typing import Iterable

from fastapi import UploadFile
from werkzeug.utils import secure_filename

from errors import InvalidUpload

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024
ALLOWED_TYPE_PREFIX = "image/"


@dataclass(frozen=True)
class StoredPhoto:
    file_name: str
    file_path: str
    file_type: str
    file_size: int


class PhotoStorage:
    """Photo attachments written straight to a directory on disk."""

    def __init__(self, upload_dir: str, max_bytes: int):
        self.upload_dir = Path(upload_dir)
        self.max_bytes = max_bytes

    def save(self, upload: UploadFile) -> StoredPhoto:
        content_type = upload.content_type or ""
        if not content_type.startswith(ALLOWED_TYPE_PREFIX):
            logger.warning(
                "Rejected upload %r with content type %r", upload.filename, content_type
            )
            raise InvalidUpload(f"Only image uploads are allowed, got {content_type!r}")

        file_name = secure_filename(upload.filename or "") or "photo"
        self.upload_dir.mkdir(parents=True, exist_ok=True)
        destination = self.upload_dir / f"{uuid.uuid4().hex}_{file_name}"

        size = 0
        with open(destination, "wb") as out:
            while True:
                chunk = upload.file.read(CHUNK_SIZE)
                if not chunk:
                    break
                size += len(chunk)
                if size > self.max_bytes:
                    break
                out.write(chunk)

        if size > self.max_bytes or size == 0:
            destination.unlink(missing_ok=True)
            logger.warning("Rejected upload %r of %d+ bytes", upload.filename, size)
            if size == 0:
                raise InvalidUpload("Uploaded file is empty")
            raise InvalidUpload(f"File exceeds the {self.max_bytes} byte limit")

        logger.info("Stored photo %s (%d bytes)", destination, size)
        return StoredPhoto(
            file_name=file_name,
            file_path=str(destination),
            file_type=content_type,
            file_size=size,
        )

    def delete(self, file_path: str) -> None:
        try:
            os.remove(file_path)
        except FileNotFoundError:
            logger.info("Photo file %s already gone", file_path)

    def sweep_orphans(self, referenced: Iterable[str], older_than: timedelta) -> int:
        """Remove files no photo row points at, skipping recent uploads."""
        if not self.upload_dir.is_dir():
            return 0
        keep = {os.path.abspath(p) for p in referenced}
        cutoff = datetime.now().timestamp() - older_than.total_seconds()
        removed = 0
        for path in self.upload_dir.iterdir():
            if not path.is_file() or os.path.abspath(path) in keep:
                continue
            if path.stat().st_mtime > cutoff:
                continue
            path.unlink(missing_ok=True)
            removed += 1
        logger.info("Swept %d orphaned photo file(s) from %s", removed, self.upload_dir)
        return removed
