"""CockroachDB Cloud REST client implementation."""

from __future__ import annotations

import logging
import os
import threading
import time
from typing import Any
from urllib.parse import quote

import httpx

from ... import metrics
from ...constants import CERTIFICATE_FILE_NAME
from ...tracing import trace_span
from ...utils.errors import APIError, TransportError
from ...utils.passwords import generate_password, generate_sql_username
from .models import ClusterCertificate, ClusterDetails, Cluster, Credential, SqlUser

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://cockroachlabs.cloud"
API_PREFIX = "/api/v1"
API_TYPE = "crdb_cloud"


def _collect_errors(error: BaseException) -> list[BaseException]:
    """Flatten an exception and its causes into a list, outermost first."""
    errors: list[BaseException] = []
    seen: set[int] = set()
    current: BaseException | None = error
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        errors.append(current)
        current = current.__cause__ or current.__context__
    return errors


class ClusterServiceClient:
    """Authenticated client for the CockroachDB Cloud cluster API.

    The active credential can be swapped at any time with ``set_credential``.
    Each request takes a snapshot of it under a lock, so the organization in
    the URL and the bearer token always belong to the same credential.
    """

    def __init__(
        self,
        credential: Credential,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            credential: Organization ID and API key
            base_url: API base URL (defaults to CRDB_CLOUD_API_URL or the public endpoint)
            timeout: Per-request timeout in seconds (defaults to CRDB_API_TIMEOUT_SECONDS or 30)
            transport: Optional httpx transport, used by tests
        """
        self._credential = credential
        self._lock = threading.Lock()
        self.base_url = (base_url or os.getenv("CRDB_CLOUD_API_URL", DEFAULT_BASE_URL)).rstrip("/")
        if timeout is None:
            timeout = float(os.getenv("CRDB_API_TIMEOUT_SECONDS", "30"))
        self.timeout = timeout
        self._http = httpx.Client(
            base_url=self.base_url,
            timeout=httpx.Timeout(timeout),
            transport=transport,
            follow_redirects=False,
        )

    @property
    def credential(self) -> Credential:
        with self._lock:
            return self._credential

    def set_credential(self, credential: Credential) -> None:
        """Replace the credential used for subsequent calls."""
        with self._lock:
            self._credential = credential

    def close(self) -> None:
        self._http.close()

    def _clusters_path(self, credential: Credential, *segments: str) -> str:
        path = f"{API_PREFIX}/orgs/{quote(credential.org_id, safe='')}/clusters"
        for segment in segments:
            path += "/" + quote(segment, safe="")
        return path

    def _request(
        self,
        operation: str,
        method: str,
        path: str,
        credential: Credential,
        json: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
    ) -> httpx.Response:
        """Issue an authenticated request and map failures to operator errors.

        Raises:
            TransportError: The request could not be completed
            APIError: The API answered with anything but HTTP 200
        """
        headers = {
            "Accept": "application/json",
            "Authorization": f"Bearer {credential.api_key}",
        }

        start_time = time.time()
        with trace_span(f"crdb.{operation}", attributes={"crdb.operation": operation}):
            try:
                response = self._http.request(method, path, headers=headers, json=json, params=params)
            except httpx.HTTPError as e:
                metrics.api_call_total.labels(api_type=API_TYPE, operation=operation, result="transport_error").inc()
                raise TransportError(operation, _collect_errors(e)) from e
            finally:
                duration = time.time() - start_time
                metrics.api_call_duration_seconds.labels(api_type=API_TYPE, operation=operation).observe(duration)

            if response.status_code != httpx.codes.OK:
                metrics.api_call_total.labels(api_type=API_TYPE, operation=operation, result="error").inc()
                raise APIError(operation, response.status_code, response.text)

        metrics.api_call_total.labels(api_type=API_TYPE, operation=operation, result="success").inc()
        return response

    def _json(self, operation: str, response: httpx.Response) -> dict[str, Any]:
        try:
            return response.json()
        except ValueError as e:
            raise APIError(operation, response.status_code, f"invalid JSON body: {e}") from e

    def list_clusters(self) -> list[Cluster]:
        """List active clusters of the organization."""
        credential = self.credential
        response = self._request(
            "list_clusters",
            "GET",
            self._clusters_path(credential),
            credential,
            params={"active": "true"},
        )
        data = self._json("list_clusters", response)
        return [Cluster.from_dict(c) for c in data.get("clusters") or []]

    def get_cluster(self, cluster_id: str) -> ClusterDetails:
        """Get one cluster together with its regions."""
        credential = self.credential
        response = self._request("get_cluster", "GET", self._clusters_path(credential, cluster_id), credential)
        return ClusterDetails.from_dict(self._json("get_cluster", response))

    def list_users(self, cluster_id: str) -> list[SqlUser]:
        """List SQL users of a cluster. Passwords are never returned."""
        credential = self.credential
        response = self._request(
            "list_users",
            "GET",
            self._clusters_path(credential, cluster_id, "sql-users"),
            credential,
        )
        data = self._json("list_users", response)
        return [SqlUser(name=u.get("name", "")) for u in data.get("users") or []]

    def create_user(self, cluster_id: str, username: str | None = None) -> SqlUser:
        """Create a SQL user with a generated password.

        The API is trusted to create exactly the requested user, so the
        locally generated record is returned on success.
        """
        credential = self.credential
        sql_user = SqlUser(name=username or generate_sql_username(), password=generate_password())
        self._request(
            "create_user",
            "POST",
            self._clusters_path(credential, cluster_id, "sql-users"),
            credential,
            json=sql_user.to_dict(),
        )
        logger.debug(f"Created SQL user {sql_user.name} on cluster {cluster_id}")
        return sql_user

    def delete_user(self, cluster_id: str, username: str) -> None:
        """Delete a SQL user by name."""
        credential = self.credential
        self._request(
            "delete_user",
            "DELETE",
            self._clusters_path(credential, cluster_id, "sql-users", username),
            credential,
        )
        logger.debug(f"Deleted SQL user {username} on cluster {cluster_id}")

    def get_cluster_certificate(self, cluster_id: str) -> ClusterCertificate:
        """Download the CA certificate of a cluster as PEM text."""
        credential = self.credential
        response = self._request(
            "get_cluster_certificate",
            "GET",
            f"/clusters/{quote(cluster_id, safe='')}/cert",
            credential,
        )
        return ClusterCertificate(file_name=CERTIFICATE_FILE_NAME, data=response.text)
