"""Blob storage for profile images — files under ``settings.BLOB_ROOT``."""
import logging
from pathlib import Path

from gatepass.config import settings
from gatepass.exceptions import StoreError, ValidationError

logger = logging.getLogger(__name__)


class LocalBlobStore:
    """Writes blobs to a local directory and serves them from ``base_url``."""

    def __init__(self, root: str = None, base_url: str = None):
        self.root = Path(root or settings.BLOB_ROOT).resolve()
        self.base_url = (base_url or settings.BLOB_BASE_URL).rstrip("/")

    def _target(self, path: str) -> Path:
        target = (self.root / path.lstrip("/")).resolve()
        if self.root not in target.parents:
            raise ValidationError({"path": f"Blob path {path!r} escapes the store root"})
        return target

    def upload(self, path: str, data: bytes) -> str:
        """Store ``data`` at ``path`` and return its public URL."""
        target = self._target(path)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)
        except OSError as exc:
            logger.error("Blob upload to %s failed: %s", target, exc)
            raise StoreError(f"Upload of {path} failed") from exc
        logger.info("Uploaded %d bytes to %s", len(data), path)
        return f"{self.base_url}/{path.lstrip('/')}"


def get_blob_store() -> LocalBlobStore:
    """FastAPI dependency."""
    return LocalBlobStore()
