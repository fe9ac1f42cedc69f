"""Builder for inventory instance records."""

from __future__ import annotations

from typing import Any

from ..services.crdb.models import Cluster, ClusterDetails


def build_instance_info(cluster: Cluster, details: ClusterDetails) -> dict[str, str]:
    """Flatten a cluster and its regions into a string map.

    Regions are numbered from 1, so the primary SQL endpoint is
    ``regions.1.sqlDns``.
    """
    info = {"serverless.tenantName": cluster.serverless.tenant_name}
    for idx, region in enumerate(details.regions, start=1):
        info[f"regions.{idx}.name"] = region.name
        info[f"regions.{idx}.sqlDns"] = region.sql_dns
    info.update({
        "cockroachVersion": cluster.cockroach_version,
        "creatorId": cluster.creator_id,
        "cloudProvider": cluster.cloud_provider,
        "plan": cluster.plan,
        "state": cluster.state,
        "longRunningOperationStatus": cluster.long_running_operation_status,
        "createAt": cluster.created_at,
        "updateAt": cluster.updated_at,
    })
    return info


def build_instance(cluster: Cluster, details: ClusterDetails) -> dict[str, Any]:
    """Create an Inventory status instance from a discovered cluster."""
    return {
        "instanceID": cluster.id,
        "name": cluster.name,
        "instanceInfo": build_instance_info(cluster, details),
    }
