"""Object storage abstraction for raw document binaries."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Optional

from botocore.exceptions import BotoCoreError, ClientError

from docvault.core.exceptions import AclUnsupportedError, StorageUnavailableError

logger = logging.getLogger(__name__)

PUBLIC_READ_ACL = "public-read"


def is_acl_unsupported(exc: ClientError) -> bool:
    """True when S3 rejected a request only because the bucket disallows object ACLs."""

    error = exc.response.get("Error", {})
    code = error.get("Code", "")
    message = error.get("Message", "") or ""
    if code == "AccessControlListNotSupported":
        return True
    return code == "InvalidRequest" and "does not allow ACLs" in message


class S3ObjectStore:
    """Persist, delete and sign S3 objects in a single bucket."""

    def __init__(self, client: Any, bucket: str, *, region: Optional[str] = None, public_url_base: Optional[str] = None) -> None:
        self._s3 = client
        self.bucket = bucket
        self.region = region
        self.public_url_base = public_url_base

    async def put(
        self,
        key: str,
        body: bytes,
        content_type: str,
        *,
        cache_control: Optional[str] = None,
        acl: Optional[str] = None,
    ) -> None:
        params: Dict[str, Any] = {
            "Bucket": self.bucket,
            "Key": key,
            "Body": body,
            "ContentType": content_type,
        }
        if cache_control:
            params["CacheControl"] = cache_control
        if acl:
            params["ACL"] = acl

        try:
            await asyncio.to_thread(self._s3.put_object, **params)
        except ClientError as exc:
            if acl and is_acl_unsupported(exc):
                raise AclUnsupportedError(f"Bucket {self.bucket} does not allow ACLs") from exc
            raise StorageUnavailableError(f"S3 upload of {key} failed: {exc}") from exc
        except BotoCoreError as exc:
            raise StorageUnavailableError(f"S3 upload of {key} failed: {exc}") from exc

    async def delete(self, key: str) -> None:
        # S3 reports success for keys that do not exist
        try:
            await asyncio.to_thread(self._s3.delete_object, Bucket=self.bucket, Key=key)
        except (ClientError, BotoCoreError) as exc:
            raise StorageUnavailableError(f"S3 delete of {key} failed: {exc}") from exc

    async def presign(self, key: str, expires_in: int = 3600) -> str:
        try:
            return await asyncio.to_thread(
                self._s3.generate_presigned_url,
                "get_object",
                Params={"Bucket": self.bucket, "Key": key},
                ExpiresIn=expires_in,
            )
        except (ClientError, BotoCoreError) as exc:
            raise StorageUnavailableError(f"Could not presign {key}: {exc}") from exc

    def public_url(self, key: str) -> str:
        if self.public_url_base:
            return f"{self.public_url_base.rstrip('/')}/{key}"
        region = f".{self.region}" if self.region else ""
        return f"https://{self.bucket}.s3{region}.amazonaws.com/{key}"
