"""Cache of CockroachDB Cloud clients keyed by their credentials secret."""

from __future__ import annotations

import logging
import threading
from typing import Callable

from ..services.crdb.base import ClusterService
from ..services.crdb.client import ClusterServiceClient
from ..services.crdb.models import Credential

logger = logging.getLogger(__name__)

ClientFactory = Callable[[Credential], ClusterService]


def make_cache_key(kind: str, namespace: str, name: str) -> str:
    """Create a cache key for a Kubernetes resource.

    Args:
        kind: Resource kind (e.g., "Secret")
        namespace: Resource namespace
        name: Resource name

    Returns:
        Cache key string
    """
    return f"{kind}:{namespace}:{name}"


class ClusterClientCache:
    """Thread-safe map from credentials secret to cluster client.

    Reconciles for different resources run concurrently on kopf's worker
    threads. Each credentials secret gets exactly one client, so two tenants
    never share a client and a credential refresh only ever replaces a
    credential with a newer copy of itself.
    """

    def __init__(self, factory: ClientFactory | None = None) -> None:
        self._factory: ClientFactory = factory or ClusterServiceClient
        self._clients: dict[str, ClusterService] = {}
        self._lock = threading.Lock()

    def get(self, key: str, credential: Credential) -> ClusterService:
        """Return the client for ``key``, creating it or refreshing its credential.

        Args:
            key: Identity of the credentials secret (see make_cache_key)
            credential: Freshly resolved credential from that secret

        Returns:
            The cached client, now using ``credential``
        """
        with self._lock:
            cluster_client = self._clients.get(key)
            if cluster_client is None:
                cluster_client = self._factory(credential)
                self._clients[key] = cluster_client
                logger.info(f"Created CockroachDB Cloud client for {key}")
                return cluster_client
        cluster_client.set_credential(credential)
        return cluster_client

    def invalidate(self, key: str | None = None) -> None:
        """Drop one cached client, or all of them when no key is given."""
        with self._lock:
            if key is None:
                dropped = list(self._clients.values())
                self._clients.clear()
            else:
                client = self._clients.pop(key, None)
                dropped = [client] if client is not None else []
        for client in dropped:
            close = getattr(client, "close", None)
            if close is not None:
                close()

    def __len__(self) -> int:
        with self._lock:
            return len(self._clients)
