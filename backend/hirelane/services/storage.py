import logging
from pathlib import Path, PurePosixPath
from typing import Protocol
from urllib.parse import quote

from ..utils.error_handlers import UploadFailedError

logger = logging.getLogger(__name__)


class BlobStorage(Protocol):
    def upload(self, path: str, data: bytes, content_type: str | None = None) -> str: ...

    def public_url(self, path: str) -> str: ...

    def remove(self, path: str) -> None: ...


class LocalBlobStorage:
    """
    Bucket-style object storage on the local filesystem.

    Objects live at <root>/<bucket>/<path> and are served back through
    GET /files/<bucket>/<path>, so public_url() is resolvable by browsers.
    """

    def __init__(self, root: str, bucket: str, public_base_url: str):
        self.root = Path(root)
        self.bucket = bucket
        self.public_base_url = (public_base_url or "").rstrip("/")

    def _object_path(self, path: str) -> Path:
        rel = PurePosixPath(path)
        if rel.is_absolute() or any(part in ("", ".", "..") for part in rel.parts):
            raise UploadFailedError(details={"path": path})
        return self.root / self.bucket / Path(*rel.parts)

    def resolve(self, path: str) -> Path | None:
        """Existing file for an object path, or None."""
        try:
            dest = self._object_path(path)
        except UploadFailedError:
            return None
        return dest if dest.is_file() else None

    def upload(self, path: str, data: bytes, content_type: str | None = None) -> str:
        dest = self._object_path(path)
        try:
            dest.parent.mkdir(parents=True, exist_ok=True)
            # "x" mode: never overwrite an existing object
            with open(dest, "xb") as out:
                out.write(data)
        except FileExistsError:
            logger.error("Storage object already exists: %s/%s", self.bucket, path)
            raise UploadFailedError() from None
        except OSError as e:
            logger.error("Storage write failed for %s/%s: %s", self.bucket, path, e)
            raise UploadFailedError() from None
        logger.info("Stored object %s/%s (%d bytes, %s)", self.bucket, path, len(data), content_type)
        return path

    def public_url(self, path: str) -> str:
        return f"{self.public_base_url}/files/{quote(self.bucket)}/{quote(path)}"

    def remove(self, path: str) -> None:
        try:
            dest = self._object_path(path)
            if dest.exists():
                dest.unlink()
        except Exception as e:
            logger.warning("Failed to remove stored object %s/%s: %s", self.bucket, path, e)
