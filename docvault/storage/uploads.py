"""Binary upload orchestration with ACL capability fallback."""

from __future__ import annotations

import logging
from typing import Optional

from docvault.core.exceptions import AclUnsupportedError
from docvault.models.document import UploadResult
from docvault.storage.objects import PUBLIC_READ_ACL, S3ObjectStore
from docvault.utils.monitoring import acl_fallbacks_total

logger = logging.getLogger(__name__)


class UploadService:
    """Store binaries and resolve the URL callers should persist."""

    def __init__(self, store: S3ObjectStore, *, presign_ttl_seconds: int = 3600) -> None:
        self._store = store
        self._presign_ttl_seconds = presign_ttl_seconds

    @property
    def bucket(self) -> str:
        return self._store.bucket

    async def upload(
        self,
        key: str,
        body: bytes,
        content_type: str,
        *,
        cache_control: Optional[str] = None,
        make_public: bool = False,
    ) -> UploadResult:
        """Upload `body` under `key`.

        When `make_public` is set the object is written with a public-read ACL.
        Buckets that enforce bucket-owner ownership reject ACLs outright; in that
        case the put is retried once without the ACL and the object is served
        through a presigned URL instead.
        """

        is_public = make_public
        try:
            await self._store.put(
                key,
                body,
                content_type,
                cache_control=cache_control,
                acl=PUBLIC_READ_ACL if is_public else None,
            )
        except AclUnsupportedError:
            logger.warning(
                "S3 bucket %s does not support ACLs. Uploading %s without public-read permissions. "
                "Consider setting AWS_S3_FORCE_PUBLIC_READ=false.",
                self._store.bucket,
                key,
            )
            acl_fallbacks_total.inc()
            is_public = False
            await self._store.put(key, body, content_type, cache_control=cache_control)

        url = self.public_url(key) if is_public else await self.presigned_url(key)
        return UploadResult(key=key, url=url, is_public=is_public)

    async def delete_object(self, key: str) -> None:
        await self._store.delete(key)

    def public_url(self, key: str) -> str:
        return self._store.public_url(key)

    async def presigned_url(self, key: str, expires_in: Optional[int] = None) -> str:
        return await self._store.presign(key, expires_in or self._presign_ttl_seconds)
