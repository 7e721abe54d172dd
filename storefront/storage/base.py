from abc import ABC, abstractmethod
from typing import BinaryIO

from storefront.core.config import get_settings


class StorageBackend(ABC):
    """Where uploaded product media lives. Keys look like products/<hex>.jpg."""

    @abstractmethod
    def url_for(self, key: str) -> str:
        """Public URL the storefront renders for a stored key."""

    @abstractmethod
    async def put(self, key: str, body: BinaryIO | bytes, content_type: str | None = None) -> str:
        """Store file; return url_for(key)."""

    @abstractmethod
    async def get(self, key: str) -> bytes:
        ...

    @abstractmethod
    async def delete(self, key: str) -> None:
        ...


def get_storage() -> StorageBackend:
    if get_settings().storage_backend == "gcs":
        from storefront.storage.gcs import GCSStorage
        return GCSStorage()
    from storefront.storage.local import LocalStorage
    return LocalStorage()
