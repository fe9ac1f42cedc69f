"""Handler for CrdbDBaaSInventory CRD."""

from __future__ import annotations

import os
from typing import Any

import kopf
from kubernetes import client

from .. import metrics
from ..builders.instance import build_instance
from ..constants import API_GROUP_VERSION, KIND_INVENTORY, PLURAL_INVENTORY
from ..services.crdb.base import ClusterService
from ..tracing import trace_span
from ..utils.cache import ClusterClientCache
from ..utils.conditions import set_spec_synced_condition
from ..utils.events import emit_inventory_synced
from ..utils.retry import ReconcileResult, result_for
from .base import BaseHandler
from .shared import CLIENT_CACHE, resolve_cluster_client

INVENTORY_RESYNC_INTERVAL_SECONDS = float(os.getenv("INVENTORY_RESYNC_INTERVAL_SECONDS", "300"))


class InventoryHandler(BaseHandler):
    """Publishes the clusters an organization can reach into Inventory status."""

    def __init__(
        self,
        custom_api: client.CustomObjectsApi | None = None,
        core_api: client.CoreV1Api | None = None,
        cache: ClusterClientCache | None = None,
    ):
        super().__init__(KIND_INVENTORY, PLURAL_INVENTORY, custom_api, core_api)
        self.cache = cache if cache is not None else CLIENT_CACHE

    def discover_instances(self, cluster_client: ClusterService) -> list[dict[str, Any]]:
        """List active clusters and describe each one as an instance record.

        Any failing call aborts the whole discovery.
        """
        instances = []
        for cluster in cluster_client.list_clusters():
            details = cluster_client.get_cluster(cluster.id)
            instances.append(build_instance(cluster, details))
        return instances

    def reconcile(
        self,
        spec: dict[str, Any],
        meta: dict[str, Any],
        status: dict[str, Any],
        patch: kopf.Patch,
        body: dict[str, Any],
    ) -> ReconcileResult:
        """Reconcile Inventory resource.

        Status is replaced as a whole on success and left untouched on failure.
        """
        namespace = meta.get("namespace", "default")
        name = meta.get("name", "unknown")

        with trace_span("reconcile_inventory", kind=KIND_INVENTORY, attributes={"inventory.name": name}):
            try:
                cluster_client = resolve_cluster_client(
                    self.core_api,
                    self.cache,
                    spec.get("credentialsRef") or {},
                    namespace,
                )
                instances = self.discover_instances(cluster_client)
            except Exception as e:
                self.log_warning(meta, f"Failed to sync cluster details: {e}", reason="SyncFailed")
                self.record_status(False)
                return result_for(e)

            conditions = set_spec_synced_condition(
                list((status or {}).get("conditions") or []),
                meta.get("generation"),
            )
            patch.status.update({
                "instances": instances,
                "conditions": conditions,
                "observedGeneration": meta.get("generation", 0),
            })

            metrics.instances_discovered.labels(namespace=namespace, inventory=name).set(len(instances))
            self.record_status(True)
            self.log_info(
                meta,
                f"Discovered {len(instances)} cluster instance(s)",
                event="synced",
                reason="SyncOK",
                instance_count=len(instances),
            )
            emit_inventory_synced(body, len(instances))
            return ReconcileResult.done()


# Global handler instance
_handler = InventoryHandler()


@kopf.on.create(API_GROUP_VERSION, KIND_INVENTORY)
@kopf.on.update(API_GROUP_VERSION, KIND_INVENTORY)
@kopf.on.resume(API_GROUP_VERSION, KIND_INVENTORY)
def handle_inventory(
    spec: dict[str, Any],
    meta: dict[str, Any],
    status: dict[str, Any],
    patch: kopf.Patch,
    body: dict[str, Any],
    **kwargs: Any,
) -> None:
    """Handle Inventory resource reconciliation."""
    _handler.reconcile_with_metrics(body, lambda: _handler.reconcile(spec, meta, status, patch, body))


# Fires only once the Inventory has gone unchanged for a full interval
@kopf.timer(
    API_GROUP_VERSION,
    KIND_INVENTORY,
    interval=INVENTORY_RESYNC_INTERVAL_SECONDS,
    idle=INVENTORY_RESYNC_INTERVAL_SECONDS,
)
def resync_inventory(
    spec: dict[str, Any],
    meta: dict[str, Any],
    status: dict[str, Any],
    patch: kopf.Patch,
    body: dict[str, Any],
    **kwargs: Any,
) -> None:
    """Periodically resync Inventory so removed clusters drop out of status."""
    _handler.reconcile_with_metrics(body, lambda: _handler.reconcile(spec, meta, status, patch, body))
