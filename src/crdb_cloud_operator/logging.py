"""Structured logging configuration for the CockroachDB Cloud Operator."""

import json
import logging
import os
import sys
from typing import Any

CONTROLLER_NAME = "crdb-cloud-operator"

SECRET_FIELDS = {"apiKey", "api_key", "password", "orgId", "org_id"}


def setup_structured_logging() -> None:
    """Configure structured JSON logging."""
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO").upper(),
        format="%(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    # httpx logs every request URL at INFO, which includes organization IDs
    logging.getLogger("httpx").setLevel(logging.WARNING)


def log_resource_event(
    logger: logging.Logger,
    controller: str,
    resource_kind: str,
    resource_name: str,
    namespace: str,
    uid: str,
    event: str,
    reason: str,
    message: str,
    level: int = logging.INFO,
    **kwargs: Any,
) -> None:
    """Log a structured resource event."""
    log_data = {
        "controller": controller,
        "resource": resource_kind,
        "name": resource_name,
        "namespace": namespace,
        "uid": uid,
        "event": event,
        "reason": reason,
        "message": message,
    }
    log_data.update(sanitize_secrets(kwargs))
    logger.log(level, json.dumps(log_data, default=str))


def sanitize_secrets(log_data: dict[str, Any]) -> dict[str, Any]:
    """Redact credential fields, including inside nested mappings."""
    return {
        key: "***REDACTED***" if key in SECRET_FIELDS
        else sanitize_secrets(value) if isinstance(value, dict)
        else value
        for key, value in log_data.items()
    }
