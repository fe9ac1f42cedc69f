"""Operator error types and sanitization utilities to prevent information leakage."""

from __future__ import annotations

import re


class OperatorError(Exception):
    """Base exception for all operator errors."""


class TransportError(OperatorError):
    """Network or TLS failure talking to the CockroachDB Cloud API.

    A single request can fail for several reasons at once (for example a
    DNS lookup error wrapped in a connection error). All of them are kept
    in ``errors`` and rendered together in the message.
    """

    def __init__(self, operation: str, errors: list[BaseException]) -> None:
        self.operation = operation
        self.errors = errors
        details = "; ".join(f"{type(e).__name__}: {e}" for e in errors) or "unknown transport error"
        super().__init__(f"{operation} failed: {details}")


class APIError(OperatorError):
    """The CockroachDB Cloud API answered with a non-success status."""

    def __init__(self, operation: str, status: int, body: str) -> None:
        self.operation = operation
        self.status = status
        self.body = body
        super().__init__(f"{operation} returned HTTP {status}: {body}")


class NotFoundError(OperatorError):
    """A custom resource or a dependency it references does not exist."""

    def __init__(self, kind: str, namespace: str, name: str) -> None:
        self.kind = kind
        self.namespace = namespace
        self.name = name
        super().__init__(f"{kind} {namespace}/{name} not found")


class IncompleteCredentialError(OperatorError):
    """The credentials secret lacks an orgId or an apiKey."""


class InstanceNotReadyError(OperatorError):
    """The inventory is not synced yet or does not list the instance."""


class InstanceNotFoundError(InstanceNotReadyError):
    """The inventory is synced but no longer reports the requested instance."""

    def __init__(self, instance_id: str, inventory: str) -> None:
        self.instance_id = instance_id
        self.inventory = inventory
        super().__init__(f"instance with id {instance_id} not found in inventory {inventory}")


class StatusCommitError(OperatorError):
    """Writing a resource status back to the API server failed."""


# Patterns that might expose sensitive information
SENSITIVE_PATTERNS = [
    r"bearer\s+([A-Za-z0-9\-_\.=]+)",
    r"orgs/([a-zA-Z0-9\-]+)",
]

# Fields to redact completely
SENSITIVE_FIELDS = {
    "apikey",
    "api_key",
    "orgid",
    "org_id",
    "password",
    "token",
}


def sanitize_error_message(message: str) -> str:
    """Sanitize error message to remove sensitive information.

    Args:
        message: Original error message

    Returns:
        Sanitized error message with sensitive data redacted
    """
    sanitized = message

    for pattern in SENSITIVE_PATTERNS:
        sanitized = re.sub(
            pattern,
            lambda m: m.group(0).replace(m.group(1), "[REDACTED]"),
            sanitized,
            flags=re.IGNORECASE,
        )

    for field in SENSITIVE_FIELDS:
        sanitized = re.sub(
            rf"\"?{field}\"?\s*[:=]\s*\"?([^\s,;\)\"]+)\"?",
            f"{field}: [REDACTED]",
            sanitized,
            flags=re.IGNORECASE,
        )

    return sanitized


def sanitize_exception(error: BaseException) -> str:
    """Sanitize exception message.

    Args:
        error: Exception object

    Returns:
        Sanitized error message
    """
    return sanitize_error_message(str(error))
