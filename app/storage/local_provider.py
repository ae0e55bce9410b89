"""
Local filesystem storage provider.
Generated reports and exports are written below a base directory and
served back through the authenticated files route.
"""
import logging
import mimetypes
from pathlib import Path
from typing import Optional
from urllib.parse import quote

from app.core.config import settings
from app.storage.provider import StorageProvider, normalize_key

logger = logging.getLogger(__name__)


class LocalStorageProvider(StorageProvider):
    """Local filesystem storage provider."""

    def __init__(self, base_dir: Optional[str] = None, public_base_url: Optional[str] = None):
        self.base_dir = Path(base_dir or settings.STORAGE_DIR)
        self.base_dir.mkdir(parents=True, exist_ok=True)
        self.public_base_url = (public_base_url or settings.PUBLIC_BASE_URL).rstrip("/")

    def _get_path(self, key: str) -> Path:
        """Get the local filesystem path for a given key."""
        return self.base_dir.joinpath(*normalize_key(key).split("/"))

    def url_for(self, key: str) -> str:
        return f"{self.public_base_url}/api/v1/files/{quote(key.lstrip('/'))}"

    def save(self, key: str, data: bytes, content_type: str) -> str:
        path = self._get_path(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "wb") as f:
            f.write(data)
        logger.info("Stored %s (%s, %d bytes)", key, content_type, len(data))
        return self.url_for(key)

    def open(self, key: str) -> Optional[bytes]:
        try:
            path = self._get_path(key)
        except ValueError:
            return None
        if not path.is_file():
            return None
        with open(path, "rb") as f:
            return f.read()

    def exists(self, key: str) -> bool:
        try:
            return self._get_path(key).is_file()
        except ValueError:
            return False

    @staticmethod
    def guess_content_type(key: str) -> str:
        return mimetypes.guess_type(key)[0] or "application/octet-stream"
