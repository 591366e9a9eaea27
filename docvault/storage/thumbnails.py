"""Fire-and-forget trigger for the external thumbnail resize function."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Optional

from docvault.utils.monitoring import thumbnail_triggers_total

logger = logging.getLogger(__name__)


class ThumbnailTrigger:
    """Asynchronously invoke the resize Lambda. Failures are logged, never raised."""

    def __init__(self, client: Any, function_name: Optional[str]) -> None:
        self._lambda = client
        self.function_name = function_name

    @property
    def enabled(self) -> bool:
        return bool(self.function_name)

    async def trigger(self, *, bucket: str, key: str, target_key: str, content_type: str) -> None:
        if not self.enabled:
            logger.debug("No resize function configured; skipping thumbnail for %s", key)
            thumbnail_triggers_total.labels(outcome="skipped").inc()
            return

        payload = {
            "bucket": bucket,
            "key": key,
            "targetKey": target_key,
            "contentType": content_type,
        }
        try:
            await asyncio.to_thread(
                self._lambda.invoke,
                FunctionName=self.function_name,
                InvocationType="Event",
                Payload=json.dumps(payload).encode("utf-8"),
            )
        except Exception:
            logger.exception("Failed to invoke thumbnail function %s for %s", self.function_name, key)
            thumbnail_triggers_total.labels(outcome="error").inc()
            return
        thumbnail_triggers_total.labels(outcome="invoked").inc()
