import boto3
import pytest
from botocore.config import Config
from botocore.stub import ANY, Stubber

from docvault.core.exceptions import AclUnsupportedError, StorageUnavailableError
from docvault.storage.objects import S3ObjectStore
from docvault.storage.uploads import UploadService


@pytest.fixture
def s3():
    client = boto3.client(
        "s3",
        region_name="eu-west-1",
        aws_access_key_id="testing",
        aws_secret_access_key="testing",
        config=Config(signature_version="s3v4"),
    )
    with Stubber(client) as stubber:
        yield client, stubber
        stubber.assert_no_pending_responses()


def _put_params(acl=None):
    params = {
        "Bucket": "docs-bucket",
        "Key": "documents/1/scan.pdf",
        "Body": ANY,
        "ContentType": "application/pdf",
        "CacheControl": "public, max-age=31536000, immutable",
    }
    if acl:
        params["ACL"] = acl
    return params


@pytest.mark.asyncio
async def test_acl_not_supported_error_is_recognised(s3):
    client, stubber = s3
    stubber.add_client_error(
        "put_object",
        service_error_code="AccessControlListNotSupported",
        service_message="The bucket does not allow ACLs",
        http_status_code=400,
        expected_params=_put_params(acl="public-read"),
    )
    store = S3ObjectStore(client, "docs-bucket", region="eu-west-1")

    with pytest.raises(AclUnsupportedError):
        await store.put(
            "documents/1/scan.pdf",
            b"%PDF",
            "application/pdf",
            cache_control="public, max-age=31536000, immutable",
            acl="public-read",
        )


@pytest.mark.asyncio
async def test_invalid_request_mentioning_acls_is_recognised(s3):
    client, stubber = s3
    stubber.add_client_error(
        "put_object",
        service_error_code="InvalidRequest",
        service_message="This bucket does not allow ACLs",
        http_status_code=400,
    )
    store = S3ObjectStore(client, "docs-bucket")

    with pytest.raises(AclUnsupportedError):
        await store.put("documents/1/scan.pdf", b"%PDF", "application/pdf", acl="public-read")


@pytest.mark.asyncio
async def test_other_put_failures_are_storage_errors(s3):
    client, stubber = s3
    stubber.add_client_error("put_object", service_error_code="AccessDenied", http_status_code=403)
    store = S3ObjectStore(client, "docs-bucket")

    with pytest.raises(StorageUnavailableError):
        await store.put("documents/1/scan.pdf", b"%PDF", "application/pdf", acl="public-read")


@pytest.mark.asyncio
async def test_upload_falls_back_to_private_with_real_client(s3):
    client, stubber = s3
    stubber.add_client_error(
        "put_object",
        service_error_code="AccessControlListNotSupported",
        http_status_code=400,
        expected_params=_put_params(acl="public-read"),
    )
    stubber.add_response("put_object", {}, _put_params())
    uploads = UploadService(S3ObjectStore(client, "docs-bucket", region="eu-west-1"))

    result = await uploads.upload(
        "documents/1/scan.pdf",
        b"%PDF",
        "application/pdf",
        cache_control="public, max-age=31536000, immutable",
        make_public=True,
    )

    assert result.is_public is False
    assert "documents/1/scan.pdf" in result.url
    assert "X-Amz-Signature" in result.url


@pytest.mark.asyncio
async def test_presigned_url_carries_expiry():
    client = boto3.client(
        "s3",
        region_name="eu-west-1",
        aws_access_key_id="testing",
        aws_secret_access_key="testing",
        config=Config(signature_version="s3v4"),
    )
    store = S3ObjectStore(client, "docs-bucket", region="eu-west-1")

    url = await store.presign("documents/1/scan.pdf", expires_in=120)

    assert "docs-bucket" in url
    assert "documents/1/scan.pdf" in url
    assert "X-Amz-Expires=120" in url


def test_public_url_prefers_cdn_base():
    store = S3ObjectStore(None, "docs-bucket", region="eu-west-1", public_url_base="https://cdn.example.com/")

    assert store.public_url("thumbnails/1.jpg") == "https://cdn.example.com/thumbnails/1.jpg"


def test_public_url_uses_bucket_endpoint_without_cdn():
    assert (
        S3ObjectStore(None, "docs-bucket", region="eu-west-1").public_url("a/b.pdf")
        == "https://docs-bucket.s3.eu-west-1.amazonaws.com/a/b.pdf"
    )
    assert S3ObjectStore(None, "docs-bucket").public_url("a/b.pdf") == "https://docs-bucket.s3.amazonaws.com/a/b.pdf"
