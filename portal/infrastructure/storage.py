"""Local object storage: named buckets under STORAGE_DIR, served publicly at /storage.

Object keys are relative paths inside a bucket. Forum images are keyed
``forum-images/<epoch-ms>-<random>.<ext>`` in the ``forum-images`` bucket and
catalogues ``<epoch-ms>-<random>.pdf`` in the ``catalogues`` bucket.
"""

import secrets
import string
import time
from pathlib import Path

import structlog

from portal.config import get_settings
from portal.core.exceptions import EntityNotFoundException, ExternalServiceException

logger = structlog.get_logger(__name__)

FORUM_BUCKET = "forum-images"
CATALOGUE_BUCKET = "catalogues"
BUCKETS = (FORUM_BUCKET, CATALOGUE_BUCKET)

_KEY_ALPHABET = string.ascii_lowercase + string.digits


def random_suffix(length: int = 8) -> str:
    return "".join(secrets.choice(_KEY_ALPHABET) for _ in range(length))


def timestamped_key(extension: str, prefix: str = "") -> str:
    """``<prefix><epoch-ms>-<random>.<ext>``"""
    return f"{prefix}{int(time.time() * 1000)}-{random_suffix()}.{extension.lstrip('.').lower()}"


class LocalStorage:
    """Filesystem-backed bucket store."""

    def __init__(self, root: str, public_base_url: str = "/storage"):
        self.root = Path(root)
        self.public_base_url = public_base_url.rstrip("/")
        for bucket in BUCKETS:
            (self.root / bucket).mkdir(parents=True, exist_ok=True)

    def path(self, bucket: str, key: str) -> Path:
        if bucket not in BUCKETS:
            raise EntityNotFoundException(f"Unknown bucket '{bucket}'")
        bucket_dir = (self.root / bucket).resolve()
        target = (bucket_dir / key).resolve()
        if bucket_dir not in target.parents:
            raise EntityNotFoundException("Invalid object key", details={"key": key})
        return target

    def public_url(self, bucket: str, key: str) -> str:
        return f"{self.public_base_url}/{bucket}/{key}"

    def upload(self, bucket: str, key: str, content: bytes) -> str:
        """Store an object and return its public URL."""
        target = self.path(bucket, key)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(content)
        except OSError as e:
            logger.error("Storage upload failed", bucket=bucket, key=key, error=str(e))
            raise ExternalServiceException("Failed to store file", details={"bucket": bucket}) from e

        logger.info("Object stored", bucket=bucket, key=key, size=len(content))
        return self.public_url(bucket, key)

    def exists(self, bucket: str, key: str) -> bool:
        return self.path(bucket, key).is_file()

    def remove(self, bucket: str, key: str) -> None:
        target = self.path(bucket, key)
        try:
            target.unlink()
        except FileNotFoundError:
            logger.warning("Object already missing", bucket=bucket, key=key)
        except OSError as e:
            raise ExternalServiceException("Failed to remove file", details={"bucket": bucket}) from e


_storage: LocalStorage | None = None


def get_storage() -> LocalStorage:
    """FastAPI dependency returning the process-wide storage."""
    global _storage
    if _storage is None:
        settings = get_settings()
        _storage = LocalStorage(settings.STORAGE_DIR, settings.PUBLIC_BASE_URL)
    return _storage
