"""Logging bootstrap shared by the API server and the CLI."""

from __future__ import annotations

import logging

_LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
_CONFIGURED = False


def configure_logging(level: str = "INFO") -> None:
    """Install a single stream handler on the root logger."""

    global _CONFIGURED
    root = logging.getLogger()
    root.setLevel(level.upper())
    if _CONFIGURED:
        return

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(_LOG_FORMAT))
    root.addHandler(handler)

    # botocore is chatty at INFO when credentials are resolved
    logging.getLogger("botocore").setLevel(logging.WARNING)
    _CONFIGURED = True
