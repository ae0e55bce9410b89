from typing import Optional


def normalize_key(key: str) -> str:
    """
    Canonical form of a storage key: forward slashes, no empty, "." or ".." segments.

    Raises:
        ValueError: If nothing is left of the key
    """
    parts = [p for p in key.replace("\\", "/").split("/") if p not in ("", ".", "..")]
    if not parts:
        raise ValueError(f"Invalid storage key: {key!r}")
    return "/".join(parts)


class StorageProvider:
    def save(self, key: str, data: bytes, content_type: str) -> str:
        """Store data under key and return a URL the caller can download it from."""
        raise NotImplementedError

    def open(self, key: str) -> Optional[bytes]:
        raise NotImplementedError

    def exists(self, key: str) -> bool:
        raise NotImplementedError
