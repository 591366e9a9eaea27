import pytest

from docvault.core.exceptions import StorageUnavailableError
from docvault.storage.uploads import UploadService
from tests.conftest import StubObjectStore


@pytest.mark.asyncio
async def test_public_upload_returns_public_url():
    store = StubObjectStore(public_url_base="https://cdn.example.com")
    uploads = UploadService(store)

    result = await uploads.upload("documents/1/id.png", b"png", "image/png", make_public=True)

    assert result.is_public is True
    assert result.url == "https://cdn.example.com/documents/1/id.png"
    assert [put["acl"] for put in store.puts] == ["public-read"]


@pytest.mark.asyncio
async def test_private_upload_is_presigned_without_acl(object_store, uploads):
    result = await uploads.upload("documents/1/id.png", b"png", "image/png")

    assert result.is_public is False
    assert result.url == "https://signed.example.com/documents/1/id.png?expires=3600"
    assert object_store.puts[0]["acl"] is None


@pytest.mark.asyncio
async def test_acl_rejection_retries_once_without_acl():
    store = StubObjectStore(reject_acl=True)
    uploads = UploadService(store, presign_ttl_seconds=900)

    result = await uploads.upload(
        "documents/1/scan.pdf",
        b"%PDF",
        "application/pdf",
        cache_control="public, max-age=31536000, immutable",
        make_public=True,
    )

    assert len(store.puts) == 2
    assert store.puts[0]["acl"] == "public-read"
    assert store.puts[1]["acl"] is None
    assert store.puts[1]["cache_control"] == "public, max-age=31536000, immutable"
    assert result.is_public is False
    assert result.url == "https://signed.example.com/documents/1/scan.pdf?expires=900"
    assert store.objects["documents/1/scan.pdf"] == b"%PDF"


@pytest.mark.asyncio
async def test_acl_fallback_is_logged(caplog):
    store = StubObjectStore(reject_acl=True)

    with caplog.at_level("WARNING", logger="docvault.storage.uploads"):
        await UploadService(store).upload("k", b"x", "image/png", make_public=True)

    assert "does not support ACLs" in caplog.text


@pytest.mark.asyncio
async def test_other_storage_errors_propagate_without_retry(object_store, uploads):
    object_store.put_error = StorageUnavailableError("bucket gone")

    with pytest.raises(StorageUnavailableError):
        await uploads.upload("k", b"x", "image/png", make_public=True)

    assert len(object_store.puts) == 1


@pytest.mark.asyncio
async def test_delete_object_is_forwarded(object_store, uploads):
    await uploads.upload("k", b"x", "image/png")

    await uploads.delete_object("k")

    assert object_store.deleted == ["k"]
    assert "k" not in object_store.objects
