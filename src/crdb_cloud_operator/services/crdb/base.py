"""Base CockroachDB Cloud cluster service interface."""

from __future__ import annotations

from typing import Protocol

from .models import ClusterCertificate, ClusterDetails, Cluster, Credential, SqlUser


class ClusterService(Protocol):
    """Protocol defining CockroachDB Cloud cluster operations."""

    def list_clusters(self) -> list[Cluster]:
        """List active clusters of the organization."""
        ...

    def get_cluster(self, cluster_id: str) -> ClusterDetails:
        """Get one cluster together with its regions."""
        ...

    def list_users(self, cluster_id: str) -> list[SqlUser]:
        """List SQL users of a cluster."""
        ...

    def create_user(self, cluster_id: str, username: str | None = None) -> SqlUser:
        """Create a SQL user with a generated password."""
        ...

    def delete_user(self, cluster_id: str, username: str) -> None:
        """Delete a SQL user by name."""
        ...

    def get_cluster_certificate(self, cluster_id: str) -> ClusterCertificate:
        """Download the CA certificate of a cluster."""
        ...

    def set_credential(self, credential: Credential) -> None:
        """Replace the credential used for subsequent calls."""
        ...
