"""Shared utilities for handlers."""

from __future__ import annotations

import time
from typing import Any

from kubernetes import client, config

from .. import metrics
from ..constants import (
    API_GROUP,
    API_VERSION,
    COND_SPEC_SYNCED,
    KIND_INVENTORY,
    KIND_SECRET,
    PLURAL_INVENTORY,
)
from ..services.crdb.base import ClusterService
from ..utils.cache import ClusterClientCache, make_cache_key
from ..utils.conditions import is_condition_true
from ..utils.errors import (
    IncompleteCredentialError,
    InstanceNotFoundError,
    InstanceNotReadyError,
    NotFoundError,
)
from ..utils.secrets import resolve_credential

# One client per credentials secret, shared by every reconciler
CLIENT_CACHE = ClusterClientCache()


def get_k8s_clients() -> tuple[client.CustomObjectsApi, client.CoreV1Api]:
    """Get Kubernetes API clients.

    Returns:
        CustomObjectsApi and CoreV1Api instances
    """
    try:
        config.load_incluster_config()
    except config.ConfigException:
        config.load_kube_config()

    return client.CustomObjectsApi(), client.CoreV1Api()


def get_custom_object(
    api: client.CustomObjectsApi,
    kind: str,
    plural: str,
    namespace: str,
    name: str,
) -> dict[str, Any]:
    """Get a custom resource of this operator's API group.

    Raises:
        NotFoundError: If the resource does not exist
        client.exceptions.ApiException: On any other API error
    """
    operation = f"get_{kind.lower()}"
    start_time = time.time()
    try:
        obj = api.get_namespaced_custom_object(
            group=API_GROUP,
            version=API_VERSION,
            namespace=namespace,
            plural=plural,
            name=name,
        )
    except client.exceptions.ApiException as e:
        if e.status == 404:
            metrics.api_call_total.labels(api_type="k8s", operation=operation, result="not_found").inc()
            raise NotFoundError(kind, namespace, name) from e
        metrics.api_call_total.labels(api_type="k8s", operation=operation, result="error").inc()
        raise
    finally:
        duration = time.time() - start_time
        metrics.api_call_duration_seconds.labels(api_type="k8s", operation=operation).observe(duration)
    metrics.api_call_total.labels(api_type="k8s", operation=operation, result="success").inc()
    return obj


def get_inventory(api: client.CustomObjectsApi, namespace: str, name: str) -> dict[str, Any]:
    """Get an Inventory resource.

    Raises:
        NotFoundError: If the Inventory does not exist
    """
    return get_custom_object(api, KIND_INVENTORY, PLURAL_INVENTORY, namespace, name)


def find_instance(inventory: dict[str, Any], instance_id: str) -> dict[str, Any]:
    """Find an instance in a synced Inventory.

    Args:
        inventory: Inventory resource
        instance_id: ID of the cluster instance

    Returns:
        The instance record from the Inventory status

    Raises:
        InstanceNotReadyError: If the Inventory has not synced yet
        InstanceNotFoundError: If the synced Inventory does not list the instance
    """
    meta = inventory.get("metadata", {})
    ref = f"{meta.get('namespace')}/{meta.get('name')}"
    status = inventory.get("status") or {}

    if not is_condition_true(status.get("conditions") or [], COND_SPEC_SYNCED):
        raise InstanceNotReadyError(f"inventory {ref} is not synced yet")

    for instance in status.get("instances") or []:
        if instance.get("instanceID") == instance_id:
            return instance

    raise InstanceNotFoundError(instance_id, ref)


def resolve_cluster_client(
    core_api: client.CoreV1Api,
    cache: ClusterClientCache,
    credentials_ref: dict[str, Any],
    default_namespace: str,
) -> ClusterService:
    """Resolve the credential of a secret reference and return its cached client.

    The credential is read on every call, so a rotated secret takes effect
    on the next reconcile.

    Raises:
        NotFoundError: If the credentials secret does not exist
        IncompleteCredentialError: If the reference or the secret is incomplete
    """
    secret_name = credentials_ref.get("name")
    if not secret_name:
        raise IncompleteCredentialError("credentialsRef.name is required")
    secret_ns = credentials_ref.get("namespace") or default_namespace

    credential = resolve_credential(core_api, secret_ns, secret_name)
    return cache.get(make_cache_key(KIND_SECRET, secret_ns, secret_name), credential)
