"""Best-effort undo of provisioning side effects."""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass

from kubernetes import client

from .. import metrics
from ..services.crdb.base import ClusterService
from .configmaps import delete_config_map
from .errors import APIError, sanitize_exception
from .secrets import delete_secret

logger = logging.getLogger(__name__)


class ArtifactKind(enum.Enum):
    SQL_USER = "sql_user"
    SECRET = "secret"
    CONFIG_MAP = "config_map"


@dataclass(frozen=True)
class Artifact:
    """Something a provisioning pass created and may have to remove again.

    ``scope`` is the cluster ID for SQL users and the namespace for local
    objects.
    """

    kind: ArtifactKind
    scope: str
    name: str

    @classmethod
    def sql_user(cls, cluster_id: str, username: str) -> Artifact:
        return cls(ArtifactKind.SQL_USER, cluster_id, username)

    @classmethod
    def secret(cls, namespace: str, name: str) -> Artifact:
        return cls(ArtifactKind.SECRET, namespace, name)

    @classmethod
    def config_map(cls, namespace: str, name: str) -> Artifact:
        return cls(ArtifactKind.CONFIG_MAP, namespace, name)

    def __str__(self) -> str:
        return f"{self.kind.value} {self.scope}/{self.name}"


def compensate(
    artifacts: list[Artifact],
    cluster_client: ClusterService | None,
    core_api: client.CoreV1Api,
) -> list[tuple[Artifact, Exception]]:
    """Remove artifacts in reverse creation order.

    Every removal is attempted even if an earlier one fails. Failures are
    logged and returned, never raised.

    Returns:
        The artifacts that could not be removed, with their errors
    """
    failures: list[tuple[Artifact, Exception]] = []

    for artifact in reversed(artifacts):
        try:
            if artifact.kind is ArtifactKind.SQL_USER:
                if cluster_client is None:
                    raise RuntimeError("no CockroachDB Cloud client available")
                try:
                    cluster_client.delete_user(artifact.scope, artifact.name)
                except APIError as e:
                    # Never created, or already removed
                    if e.status != 404:
                        raise
            elif artifact.kind is ArtifactKind.SECRET:
                delete_secret(core_api, artifact.scope, artifact.name)
            else:
                delete_config_map(core_api, artifact.scope, artifact.name)
        except Exception as e:
            failures.append((artifact, e))
            metrics.compensation_total.labels(artifact=artifact.kind.value, result="failed").inc()
            logger.error(f"Failed to clean up {artifact}: {sanitize_exception(e)}")
        else:
            metrics.compensation_total.labels(artifact=artifact.kind.value, result="success").inc()
            logger.info(f"Cleaned up {artifact}")

    if failures:
        summary = ", ".join(f"{a}: {sanitize_exception(e)}" for a, e in failures)
        logger.warning(f"Compensation left {len(failures)} artifact(s) behind: {summary}")

    return failures
