from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Optional, Protocol

from firebase_admin import storage as firebase_storage

from ..core.exceptions import StorageError

logger = logging.getLogger(__name__)


class ObjectStorage(Protocol):
    def upload(self, data: bytes, filename: str, content_type: str) -> str:
        """Store ``data`` and return a URL it can be downloaded from."""

        raise NotImplementedError


class FirebaseStorageUploader:
    """Upload into the project's Cloud Storage bucket and publish the blob."""

    def __init__(self, bucket_name: Optional[str] = None, *, app: Any = None, folder: str = "attendance-reports"):
        self._bucket_name = bucket_name
        self._app = app
        self._folder = folder.strip("/")

    def upload(self, data: bytes, filename: str, content_type: str) -> str:
        path = f"{self._folder}/{filename}" if self._folder else filename
        try:
            bucket = firebase_storage.bucket(self._bucket_name, app=self._app)
            blob = bucket.blob(path)
            blob.upload_from_string(data, content_type=content_type)
            blob.make_public()
        except Exception as e:
            raise StorageError(f"Upload failed: {e}") from e

        logger.info("Uploaded %s (%d bytes)", path, len(data))
        return blob.public_url


class LocalFileStorage:
    """Write files under a directory served at ``base_url``."""

    def __init__(self, directory: str | Path, base_url: str):
        self._directory = Path(directory)
        self._base_url = base_url.rstrip("/")

    def upload(self, data: bytes, filename: str, content_type: str) -> str:
        safe_name = Path(filename).name
        try:
            self._directory.mkdir(parents=True, exist_ok=True)
            (self._directory / safe_name).write_bytes(data)
        except OSError as e:
            raise StorageError(f"Upload failed: {e}") from e

        logger.info("Stored %s (%d bytes, %s)", safe_name, len(data), content_type)
        return f"{self._base_url}/{safe_name}"
