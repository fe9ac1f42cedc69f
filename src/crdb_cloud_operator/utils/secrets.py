"""Utilities for managing Kubernetes secrets."""

from __future__ import annotations

import base64
import binascii

from kubernetes import client

from ..constants import (
    CREDENTIAL_API_KEY_KEY,
    CREDENTIAL_ORG_ID_KEY,
    FIELD_MANAGER,
    KIND_SECRET,
)
from ..services.crdb.models import Credential
from .errors import IncompleteCredentialError, NotFoundError


def _decode(value: str | bytes) -> str:
    # Handle both string and bytes (different versions of kubernetes client)
    if isinstance(value, bytes):
        return value.decode("utf-8")
    try:
        return base64.b64decode(value, validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError):
        return value


def read_secret_data(
    api: client.CoreV1Api,
    namespace: str,
    secret_name: str,
) -> dict[str, str]:
    """Read all data from a Kubernetes secret.

    Args:
        api: Kubernetes API client
        namespace: Namespace of the secret
        secret_name: Name of the secret

    Returns:
        Dictionary of secret data (decoded)

    Raises:
        NotFoundError: If secret not found
    """
    try:
        secret = api.read_namespaced_secret(name=secret_name, namespace=namespace)
    except client.exceptions.ApiException as e:
        if e.status == 404:
            raise NotFoundError(KIND_SECRET, namespace, secret_name) from e
        raise
    return {key: _decode(value) for key, value in (secret.data or {}).items()}


def resolve_credential(
    api: client.CoreV1Api,
    namespace: str,
    secret_name: str,
) -> Credential:
    """Resolve the CockroachDB Cloud credential stored in a secret.

    Args:
        api: Kubernetes API client
        namespace: Namespace of the credentials secret
        secret_name: Name of the credentials secret

    Returns:
        Credential with organization ID and API key

    Raises:
        NotFoundError: If the secret does not exist
        IncompleteCredentialError: If orgId or apiKey is missing or empty
    """
    data = read_secret_data(api, namespace, secret_name)
    org_id = data.get(CREDENTIAL_ORG_ID_KEY, "").strip()
    api_key = data.get(CREDENTIAL_API_KEY_KEY, "").strip()
    if not org_id or not api_key:
        raise IncompleteCredentialError(
            f"Secret {namespace}/{secret_name} must contain non-empty "
            f"'{CREDENTIAL_ORG_ID_KEY}' and '{CREDENTIAL_API_KEY_KEY}' fields"
        )
    return Credential(org_id=org_id, api_key=api_key)


def create_secret(
    api: client.CoreV1Api,
    namespace: str,
    body: client.V1Secret,
) -> str:
    """Create a Kubernetes secret and return its (possibly generated) name."""
    created = api.create_namespaced_secret(
        namespace=namespace,
        body=body,
        field_manager=FIELD_MANAGER,
    )
    return created.metadata.name


def delete_secret(
    api: client.CoreV1Api,
    namespace: str,
    secret_name: str,
) -> None:
    """Delete a Kubernetes secret. A secret that is already gone is not an error."""
    try:
        api.delete_namespaced_secret(name=secret_name, namespace=namespace)
    except client.exceptions.ApiException as e:
        if e.status != 404:
            raise
