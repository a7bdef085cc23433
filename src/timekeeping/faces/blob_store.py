from __future__ import annotations

import os
import time
import uuid
from pathlib import Path
from typing import Optional, Protocol

from werkzeug.datastructures import FileStorage
from werkzeug.utils import secure_filename

from ..core.constants import ALLOWED_IMAGE_EXTENSIONS
from ..core.exceptions import ValidationError


class BlobStore(Protocol):
    def save(self, upload: FileStorage) -> str:
        """Persist the upload and return the URL to store alongside the embedding."""

        raise NotImplementedError

    def delete(self, url: str) -> bool:
        raise NotImplementedError


class LocalBlobStore(BlobStore):
    """Face images on local disk, referenced as ``<url_prefix>/<filename>``."""

    def __init__(self, upload_dir: str | Path, *, url_prefix: str = "uploads"):
        self._dir = Path(upload_dir)
        self._prefix = url_prefix.strip("/")

    @property
    def directory(self) -> Path:
        return self._dir

    @property
    def url_prefix(self) -> str:
        return self._prefix

    def save(self, upload: FileStorage) -> str:
        original = secure_filename(upload.filename or "")
        ext = os.path.splitext(original)[1].lower()
        if ext not in ALLOWED_IMAGE_EXTENSIONS:
            allowed = ", ".join(sorted(ALLOWED_IMAGE_EXTENSIONS))
            raise ValidationError(f"Image must be one of: {allowed}", kind="InvalidImage")

        self._dir.mkdir(parents=True, exist_ok=True)
        filename = f"face-{int(time.time() * 1000)}-{uuid.uuid4().hex[:8]}{ext}"
        upload.save(self._dir / filename)
        return f"{self._prefix}/{filename}"

    def path_for(self, url: str) -> Optional[Path]:
        prefix = f"{self._prefix}/"
        if not url or not url.startswith(prefix):
            return None
        filename = secure_filename(url[len(prefix):])
        if not filename:
            return None
        return self._dir / filename

    def delete(self, url: str) -> bool:
        path = self.path_for(url)
        if path is None or not path.exists():
            return False
        path.unlink()
        return True
