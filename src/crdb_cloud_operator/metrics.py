"""Prometheus metrics for the CockroachDB Cloud Operator."""

from prometheus_client import Counter, Gauge, Histogram

# Reconciliation metrics
reconcile_total = Counter(
    "crdb_cloud_operator_reconcile_total",
    "Total number of reconciliations",
    ["kind", "result"],
)

reconcile_duration_seconds = Histogram(
    "crdb_cloud_operator_reconcile_duration_seconds",
    "Duration of reconciliations in seconds",
    ["kind"],
    buckets=[0.1, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0],
)

error_total = Counter(
    "crdb_cloud_operator_error_total",
    "Total number of reconciliation errors",
    ["kind", "error_type"],
)

resource_status_total = Counter(
    "crdb_cloud_operator_resource_status_total",
    "Resource status transitions observed at the end of a reconciliation",
    ["kind", "status"],
)

# CockroachDB Cloud API metrics
api_call_total = Counter(
    "crdb_cloud_operator_api_call_total",
    "Total number of API calls",
    ["api_type", "operation", "result"],
)

api_call_duration_seconds = Histogram(
    "crdb_cloud_operator_api_call_duration_seconds",
    "Duration of API calls in seconds",
    ["api_type", "operation"],
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 2.5, 5.0, 10.0],
)

# Inventory metrics
instances_discovered = Gauge(
    "crdb_cloud_operator_instances_discovered",
    "Number of cluster instances published in an inventory",
    ["namespace", "inventory"],
)

# Compensation metrics
compensation_total = Counter(
    "crdb_cloud_operator_compensation_total",
    "Best-effort undo actions performed after a partial provisioning failure",
    ["artifact", "result"],
)
