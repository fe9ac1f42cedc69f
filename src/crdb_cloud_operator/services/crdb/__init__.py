"""CockroachDB Cloud cluster API client."""

from .base import ClusterService
from .client import ClusterServiceClient
from .models import (
    Cluster,
    ClusterCertificate,
    ClusterDetails,
    ClusterServerlessInfo,
    Credential,
    Region,
    SqlUser,
)

__all__ = [
    "ClusterService",
    "ClusterServiceClient",
    "Cluster",
    "ClusterCertificate",
    "ClusterDetails",
    "ClusterServerlessInfo",
    "Credential",
    "Region",
    "SqlUser",
]
