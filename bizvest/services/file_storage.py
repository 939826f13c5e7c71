"""
File Storage

Writes uploaded legal documents below ``UPLOAD_DIR`` and returns the public
URL under which the ``/uploads`` static mount serves them back.

Layout:
    {UPLOAD_DIR}/legal/business/{business_id}_{unix_ts}_{filename}
    {UPLOAD_DIR}/legal/products/{business_id}_{product_id}_{unix_ts}_{filename}
"""

from pathlib import Path, PurePosixPath
from typing import Optional
from pydantic import BaseModel
import logging
import time

from bizvest.config import settings
from bizvest.exceptions import StorageError

logger = logging.getLogger(__name__)

UPLOAD_URL_PREFIX = "/uploads"


class StoredFile(BaseModel):
    file_name: str  # client filename, as recorded on the document
    stored_name: str
    file_path: str
    file_url: str


def safe_filename(filename: Optional[str]) -> str:
    """Keep only the last path component of a client-supplied filename."""
    name = PurePosixPath((filename or "").replace("\\", "/")).name
    return name or "document"


class FileStorage:
    def __init__(self, upload_dir: Optional[str] = None):
        self.root = Path(upload_dir or settings.UPLOAD_DIR)

    def save_business_legal(self, business_id: int, filename: Optional[str], content: bytes) -> StoredFile:
        name = safe_filename(filename)
        stored_name = f"{business_id}_{int(time.time())}_{name}"
        return self._write(("legal", "business"), name, stored_name, content)

    def save_product_legal(
        self,
        business_id: int,
        product_id: int,
        filename: Optional[str],
        content: bytes,
    ) -> StoredFile:
        name = safe_filename(filename)
        stored_name = f"{business_id}_{product_id}_{int(time.time())}_{name}"
        return self._write(("legal", "products"), name, stored_name, content)

    def _write(self, subdirs: tuple, name: str, stored_name: str, content: bytes) -> StoredFile:
        directory = self.root.joinpath(*subdirs)
        path = directory / stored_name
        try:
            directory.mkdir(parents=True, exist_ok=True)
            path.write_bytes(content)
        except OSError as e:
            logger.error(f"Failed to store upload {stored_name}: {e}")
            raise StorageError(str(e))

        logger.info(f"Stored upload {path} ({len(content)} bytes)")
        return StoredFile(
            file_name=name,
            stored_name=stored_name,
            file_path=str(path),
            file_url="/".join((UPLOAD_URL_PREFIX, *subdirs, stored_name)),
        )
