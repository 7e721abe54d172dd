import pytest

from storefront.storage.local import LocalStorage


@pytest.fixture
def storage(tmp_path):
    s = LocalStorage()
    s.root = tmp_path
    return s


async def test_put_returns_media_url_and_reads_back(storage):
    url = await storage.put("products/abc.jpg", b"jpeg-bytes", content_type="image/jpeg")
    assert url == f"{storage.base_url}/products/abc.jpg"
    assert await storage.get("products/abc.jpg") == b"jpeg-bytes"
    await storage.delete("products/abc.jpg")
    with pytest.raises(FileNotFoundError):
        await storage.get("products/abc.jpg")


async def test_keys_cannot_escape_root(storage):
    with pytest.raises(ValueError):
        await storage.put("../outside.jpg", b"x")
