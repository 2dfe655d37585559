"""Local-disk storage for task attachments and profile pictures."""

import io
import os
import secrets
import time
import zipfile
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

import structlog
from fastapi import UploadFile

from taskboard.config import Settings
from taskboard.exceptions import ValidationError

logger = structlog.get_logger()

CHUNK_SIZE = 1024 * 1024

# Stored paths are relative to this prefix, which is also where the files are served.
UPLOADS_PREFIX = "uploads"


@dataclass(frozen=True)
class StoredFile:
    filename: str
    original_name: str
    path: str
    size: int


def file_extension(filename: str) -> str:
    return Path(filename).suffix.lower().lstrip(".")


class FileStorage:
    """Writes uploads under ``settings.upload_dir`` with collision-free names."""

    def __init__(self, settings: Settings):
        self.root = Path(settings.upload_dir)
        self.max_bytes = settings.max_upload_bytes
        self.allowed_extensions = {ext.lower() for ext in settings.allowed_upload_extensions}

    def _unique_name(self, field_name: str, original_name: str) -> str:
        suffix = Path(original_name).suffix.lower()
        return f"{field_name}-{int(time.time() * 1000)}-{secrets.randbelow(10**9)}{suffix}"

    async def save(
        self,
        upload: UploadFile,
        field_name: str,
        allowed_extensions: Iterable[str] | None = None,
    ) -> StoredFile:
        """Stream an upload to disk, enforcing the extension list and size cap."""
        original_name = upload.filename or ""
        allowed = (
            {ext.lower() for ext in allowed_extensions}
            if allowed_extensions is not None
            else self.allowed_extensions
        )
        if file_extension(original_name) not in allowed:
            raise ValidationError("Only specific file types are allowed")

        self.root.mkdir(parents=True, exist_ok=True)
        filename = self._unique_name(field_name, original_name)
        path = self.root / filename

        size = 0
        with path.open("wb") as fh:
            while chunk := await upload.read(CHUNK_SIZE):
                size += len(chunk)
                if size > self.max_bytes:
                    break
                fh.write(chunk)

        if size > self.max_bytes:
            path.unlink(missing_ok=True)
            raise ValidationError(f"File exceeds the {self.max_bytes} byte limit")

        logger.info("file_stored", filename=filename, size=size)
        return StoredFile(
            filename=filename,
            original_name=original_name,
            path=f"{UPLOADS_PREFIX}/{filename}",
            size=size,
        )

    def is_writable(self) -> bool:
        """Whether uploads can currently be written under the storage root."""
        try:
            self.root.mkdir(parents=True, exist_ok=True)
        except OSError:
            return False
        return os.access(self.root, os.W_OK)

    def resolve(self, path: str) -> Path:
        """Location on disk of a stored ``uploads/<filename>`` path."""
        return self.root / Path(path).name

    def remove(self, path: str | None) -> None:
        """Delete a stored file if it is still on disk."""
        if not path:
            return
        try:
            self.resolve(path).unlink(missing_ok=True)
        except OSError as e:
            logger.warning("file_remove_failed", path=path, error=str(e))

    def build_zip(self, entries: Iterable[tuple[str, str]]) -> io.BytesIO:
        """Zip ``(path, archive_name)`` pairs; missing files are skipped.

        Repeated archive names get a ``(n)`` suffix so nothing is shadowed.
        """
        buffer = io.BytesIO()
        seen: dict[str, int] = {}
        with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED, compresslevel=9) as archive:
            for path, name in entries:
                source = self.resolve(path)
                if not source.is_file():
                    logger.warning("zip_entry_missing", path=path)
                    continue
                count = seen.get(name, 0)
                seen[name] = count + 1
                if count:
                    stem, suffix = Path(name).stem, Path(name).suffix
                    name = f"{stem} ({count}){suffix}"
                archive.write(source, arcname=name)
        buffer.seek(0)
        return buffer
