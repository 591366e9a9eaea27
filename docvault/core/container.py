"""Composition root: builds the clients and services one process shares."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from docvault.core.aws import AwsClientManager
from docvault.core.config import Settings
from docvault.repository.documents import DocumentRepository
from docvault.repository.provisioner import TableProvisioner
from docvault.repository.table import DynamoTableClient
from docvault.services.documents import DocumentService
from docvault.storage.objects import S3ObjectStore
from docvault.storage.thumbnails import ThumbnailTrigger
from docvault.storage.uploads import UploadService

logger = logging.getLogger(__name__)


@dataclass
class Container:
    settings: Settings
    aws: AwsClientManager
    provisioner: TableProvisioner
    repository: DocumentRepository
    uploads: UploadService
    thumbnails: ThumbnailTrigger
    documents: DocumentService

    async def close(self) -> None:
        await self.documents.drain(timeout=5)
        self.aws.close()


def build_container(settings: Settings, *, aws: Optional[AwsClientManager] = None, auto_create: Optional[bool] = None) -> Container:
    """Wire every component from `settings`. Missing required settings fail here, at startup."""

    settings.require("AWS_REGION")
    table_name = settings.require("AWS_DOCUMENTS_TABLE_NAME")
    bucket = settings.require("AWS_S3_BUCKET_NAME")
    aws = aws or AwsClientManager(settings)

    table = DynamoTableClient(aws.dynamodb, table_name)
    provisioner = TableProvisioner(
        table,
        auto_create=settings.auto_create_table if auto_create is None else auto_create,
        ready_timeout_seconds=settings.TABLE_READY_TIMEOUT_SECONDS,
    )
    repository = DocumentRepository(table, provisioner)

    store = S3ObjectStore(
        aws.s3,
        bucket,
        region=settings.AWS_REGION,
        public_url_base=settings.AWS_S3_PUBLIC_URL_BASE,
    )
    uploads = UploadService(store, presign_ttl_seconds=settings.PRESIGNED_URL_TTL_SECONDS)
    thumbnails = ThumbnailTrigger(
        aws.lambda_ if settings.AWS_RESIZE_LAMBDA_FUNCTION_NAME else None,
        settings.AWS_RESIZE_LAMBDA_FUNCTION_NAME,
    )
    documents = DocumentService(
        repository,
        uploads,
        thumbnails,
        make_public=settings.AWS_S3_FORCE_PUBLIC_READ,
        thumbnail_prefix=settings.thumbnail_prefix,
        max_upload_bytes=settings.MAX_UPLOAD_BYTES,
    )

    logger.info("DocVault wired for table %s and bucket %s", table_name, bucket)
    return Container(
        settings=settings,
        aws=aws,
        provisioner=provisioner,
        repository=repository,
        uploads=uploads,
        thumbnails=thumbnails,
        documents=documents,
    )
