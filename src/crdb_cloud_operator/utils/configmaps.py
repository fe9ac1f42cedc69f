"""Utilities for managing Kubernetes config maps."""

from __future__ import annotations

from kubernetes import client

from ..constants import FIELD_MANAGER


def create_config_map(
    api: client.CoreV1Api,
    namespace: str,
    body: client.V1ConfigMap,
) -> str:
    """Create a config map and return its (possibly generated) name."""
    created = api.create_namespaced_config_map(
        namespace=namespace,
        body=body,
        field_manager=FIELD_MANAGER,
    )
    return created.metadata.name


def delete_config_map(
    api: client.CoreV1Api,
    namespace: str,
    name: str,
) -> None:
    """Delete a config map. A config map that is already gone is not an error."""
    try:
        api.delete_namespaced_config_map(name=name, namespace=namespace)
    except client.exceptions.ApiException as e:
        if e.status != 404:
            raise
