from pathlib import Path
from typing import BinaryIO

from storefront.core.config import get_settings
from storefront.storage.base import StorageBackend


class LocalStorage(StorageBackend):
    """Files under storage_local_path, served by the API at media_base_url."""

    def __init__(self) -> None:
        settings = get_settings()
        self.root = Path(settings.storage_local_path)
        self.root.mkdir(parents=True, exist_ok=True)
        self.base_url = settings.media_base_url.rstrip("/")

    def _path(self, key: str) -> Path:
        path = (self.root / key).resolve()
        if self.root.resolve() not in path.parents:
            raise ValueError(f"Key escapes storage root: {key}")
        return path

    def url_for(self, key: str) -> str:
        return f"{self.base_url}/{key}"

    async def put(self, key: str, body: BinaryIO | bytes, content_type: str | None = None) -> str:
        path = self._path(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(body if isinstance(body, bytes) else body.read())
        return self.url_for(key)

    async def get(self, key: str) -> bytes:
        path = self._path(key)
        if not path.exists():
            raise FileNotFoundError(key)
        return path.read_bytes()

    async def delete(self, key: str) -> None:
        path = self._path(key)
        if path.exists():
            path.unlink()
