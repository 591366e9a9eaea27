"""AWS connectivity layer for DocVault."""

from __future__ import annotations

import logging
import threading
from typing import Any, Dict, Optional

import boto3
from botocore.config import Config

from docvault.core.config import Settings

logger = logging.getLogger(__name__)


class AwsClientManager:
    """Lazily creates one boto3 client per service and reuses it for the process lifetime."""

    def __init__(self, settings: Settings) -> None:
        self._settings = settings
        self._session: Optional[boto3.session.Session] = None
        self._clients: Dict[str, Any] = {}
        self._lock = threading.Lock()

    @property
    def session(self) -> boto3.session.Session:
        if self._session is None:
            credentials: Dict[str, str] = {}
            # Fall back to the default provider chain (IAM roles, profiles) when no keys are set
            if self._settings.AWS_ACCESS_KEY_ID and self._settings.AWS_SECRET_ACCESS_KEY:
                credentials["aws_access_key_id"] = self._settings.AWS_ACCESS_KEY_ID
                credentials["aws_secret_access_key"] = self._settings.AWS_SECRET_ACCESS_KEY
                if self._settings.AWS_SESSION_TOKEN:
                    credentials["aws_session_token"] = self._settings.AWS_SESSION_TOKEN
            self._session = boto3.session.Session(region_name=self._settings.AWS_REGION, **credentials)
        return self._session

    def client(self, service_name: str) -> Any:
        """Return the shared client for `service_name`, creating it on first use."""

        # boto3 clients are thread-safe but their construction is not
        with self._lock:
            client = self._clients.get(service_name)
            if client is None:
                logger.info("Creating boto3 %s client (region=%s)", service_name, self._settings.AWS_REGION)
                client = self.session.client(
                    service_name,
                    endpoint_url=self._settings.AWS_ENDPOINT_URL,
                    config=Config(signature_version="s3v4") if service_name == "s3" else None,
                )
                self._clients[service_name] = client
        return client

    @property
    def dynamodb(self) -> Any:
        return self.client("dynamodb")

    @property
    def s3(self) -> Any:
        return self.client("s3")

    @property
    def lambda_(self) -> Any:
        return self.client("lambda")

    def close(self) -> None:
        """Release the underlying HTTP connection pools."""

        with self._lock:
            for name, client in self._clients.items():
                logger.info("Closing boto3 %s client", name)
                client.close()
            self._clients.clear()
