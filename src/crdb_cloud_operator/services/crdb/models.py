"""Models for CockroachDB Cloud API operations."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class Credential:
    """Organization ID and API key used to authenticate against the Cloud API."""

    org_id: str
    api_key: str = field(repr=False)


@dataclass
class Region:
    """A cluster region and its SQL endpoint."""

    name: str = ""
    sql_dns: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Region:
        return cls(name=data.get("name") or "", sql_dns=data.get("sqlDns") or "")


@dataclass
class ClusterServerlessInfo:
    """Serverless-specific cluster attributes."""

    regions: list[str] = field(default_factory=list)
    spend_limit: int = 0
    tenant_name: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> ClusterServerlessInfo:
        data = data or {}
        return cls(
            regions=list(data.get("regions") or []),
            spend_limit=int(data.get("spendLimit") or 0),
            tenant_name=data.get("tenantName") or "",
        )


@dataclass
class Cluster:
    """A cluster as reported by the Cloud API."""

    id: str
    name: str = ""
    cockroach_version: str = ""
    plan: str = ""
    cloud_provider: str = ""
    state: str = ""
    creator_id: str = ""
    long_running_operation_status: str = ""
    serverless: ClusterServerlessInfo = field(default_factory=ClusterServerlessInfo)
    created_at: str = ""
    updated_at: str = ""
    deleted_at: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Cluster:
        return cls(
            id=data.get("id") or "",
            name=data.get("name") or "",
            cockroach_version=data.get("cockroachVersion") or "",
            plan=data.get("plan") or "",
            cloud_provider=data.get("cloudProvider") or "",
            state=data.get("state") or "",
            creator_id=data.get("creatorId") or "",
            long_running_operation_status=data.get("longRunningOperationStatus") or "",
            serverless=ClusterServerlessInfo.from_dict(data.get("serverless")),
            created_at=data.get("createdAt") or "",
            updated_at=data.get("updatedAt") or "",
            deleted_at=data.get("deletedAt") or "",
        )


@dataclass
class ClusterDetails:
    """A cluster together with its regions."""

    cluster: Cluster
    regions: list[Region] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ClusterDetails:
        return cls(
            cluster=Cluster.from_dict(data.get("cluster") or {}),
            regions=[Region.from_dict(r) for r in data.get("regions") or []],
        )


@dataclass
class SqlUser:
    """A SQL user of a cluster. The password is only known at creation time."""

    name: str
    password: str = field(default="", repr=False)

    def to_dict(self) -> dict[str, Any]:
        """Render the create-user request body."""
        return {"user": {"name": self.name}, "password": self.password}


@dataclass
class ClusterCertificate:
    """PEM encoded CA certificate of a cluster."""

    file_name: str
    data: str = field(repr=False)
