import os
import re
import tempfile
import uuid
from datetime import datetime
from pathlib import Path

from invoice_worker.logging.logger import Log
from invoice_worker.processor.exceptions import ContentNotFoundError, StorageError
from invoice_worker.storage.base import BaseContentStorage

_UNSAFE_CHARS = re.compile(r"[^a-zA-Z0-9._-]")


def sanitize_filename(filename: str | None) -> str:
    """Replace anything outside ``[a-zA-Z0-9._-]`` and drop ``..`` sequences."""
    if not filename:
        return "unnamed"
    return _UNSAFE_CHARS.sub("_", filename).replace("..", "")


def file_extension(filename: str) -> str:
    dot = filename.rfind(".")
    return filename[dot:] if dot > 0 else ""


class LocalFileStorage(BaseContentStorage):
    """Stores document bytes as files under a single upload directory.

    References are generated file names of the form
    ``{YYYYmmdd_HHMMSS}_{8 hex chars}{extension}``.
    """

    def __init__(self, upload_dir: Path | str, *, create_dirs: bool = True) -> None:
        self._upload_dir = Path(upload_dir)
        if create_dirs and not self._upload_dir.exists():
            try:
                self._upload_dir.mkdir(parents=True, exist_ok=True)
            except OSError as exc:
                raise StorageError(f"Failed to initialize storage: {exc}") from exc
            Log.info("Created upload directory", path=self._upload_dir.resolve())

    def store(self, content: bytes, suggested_name: str) -> str:
        extension = file_extension(sanitize_filename(suggested_name))
        content_ref = self._unique_name(extension)
        target = self._upload_dir / content_ref
        tmp_name: str | None = None
        try:
            self._upload_dir.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                dir=self._upload_dir, prefix="upload_", suffix=extension, delete=False
            ) as tmp:
                tmp_name = tmp.name
                tmp.write(content)
            os.replace(tmp_name, target)
        except OSError as exc:
            if tmp_name is not None:
                Path(tmp_name).unlink(missing_ok=True)
            raise StorageError(f"Failed to store file {suggested_name}: {exc}") from exc
        Log.info("File stored", filename=suggested_name, content_ref=content_ref)
        return content_ref

    def read(self, content_ref: str) -> bytes:
        path = self._resolve(content_ref)
        if not path.is_file():
            raise ContentNotFoundError(f"File not found in storage: {content_ref}")
        try:
            return path.read_bytes()
        except OSError as exc:
            raise StorageError(f"Failed to read file {content_ref}: {exc}") from exc

    def delete(self, content_ref: str) -> bool:
        path = self._resolve(content_ref)
        try:
            path.unlink()
        except FileNotFoundError:
            Log.warning("File not found for deletion", content_ref=content_ref)
            return False
        except OSError as exc:
            raise StorageError(f"Failed to delete file {content_ref}: {exc}") from exc
        Log.info("File deleted", content_ref=content_ref)
        return True

    def size(self, content_ref: str) -> int:
        try:
            return self._resolve(content_ref).stat().st_size
        except (OSError, StorageError):
            return 0

    def exists(self, content_ref: str) -> bool:
        try:
            return self._resolve(content_ref).is_file()
        except StorageError:
            return False

    def _resolve(self, content_ref: str) -> Path:
        if not content_ref or Path(content_ref).name != content_ref:
            raise StorageError(f"Invalid content reference: {content_ref!r}")
        return self._upload_dir / content_ref

    @staticmethod
    def _unique_name(extension: str) -> str:
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        return f"{timestamp}_{uuid.uuid4().hex[:8]}{extension}"
