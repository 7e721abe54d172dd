import asyncio
from typing import BinaryIO

from google.cloud import storage

from storefront.core.config import get_settings
from storefront.storage.base import StorageBackend

PUBLIC_HOST = "https://storage.googleapis.com"
CACHE_CONTROL = "public, max-age=31536000"


class GCSStorage(StorageBackend):
    """Product media in a publicly readable bucket. Client calls block, so they run in a thread."""

    def __init__(self) -> None:
        self.bucket_name = get_settings().gcs_bucket_name or "storefront-media"
        self._bucket = storage.Client().bucket(self.bucket_name)

    def url_for(self, key: str) -> str:
        return f"{PUBLIC_HOST}/{self.bucket_name}/{key}"

    def _upload(self, key: str, body: BinaryIO | bytes, content_type: str) -> None:
        blob = self._bucket.blob(key)
        blob.cache_control = CACHE_CONTROL
        data = body if isinstance(body, bytes) else body.read()
        blob.upload_from_string(data, content_type=content_type)

    async def put(self, key: str, body: BinaryIO | bytes, content_type: str | None = None) -> str:
        await asyncio.to_thread(self._upload, key, body, content_type or "application/octet-stream")
        return self.url_for(key)

    async def get(self, key: str) -> bytes:
        blob = self._bucket.blob(key)
        if not await asyncio.to_thread(blob.exists):
            raise FileNotFoundError(key)
        return await asyncio.to_thread(blob.download_as_bytes)

    async def delete(self, key: str) -> None:
        blob = self._bucket.blob(key)
        if await asyncio.to_thread(blob.exists):
            await asyncio.to_thread(blob.delete)
