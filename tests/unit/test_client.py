"""Tests for the CockroachDB Cloud REST client."""

from __future__ import annotations

import json
import threading

import httpx
import pytest

from crdb_cloud_operator.services.crdb.client import ClusterServiceClient
from crdb_cloud_operator.services.crdb.models import Credential
from crdb_cloud_operator.utils.errors import APIError, TransportError

CREDENTIAL = Credential(org_id="org-1", api_key="key-1")

CLUSTER = {
    "id": "c1",
    "name": "alpha",
    "cockroachVersion": "v22.1.0",
    "plan": "SERVERLESS",
    "cloudProvider": "GCP",
    "state": "CREATED",
    "creatorId": "u1",
    "longRunningOperationStatus": "CLUSTER_OPERATION_STATUS_UNSPECIFIED",
    "serverless": {"regions": ["us-central1"], "spendLimit": 0, "tenantName": "alpha-123"},
    "createdAt": "2022-05-01T10:00:00Z",
    "updatedAt": "2022-05-02T10:00:00Z",
}


def make_client(handler, credential: Credential = CREDENTIAL) -> ClusterServiceClient:
    return ClusterServiceClient(
        credential,
        base_url="https://cockroachlabs.example",
        timeout=5,
        transport=httpx.MockTransport(handler),
    )


class Recorder:
    """Collects requests and answers them with a fixed response."""

    def __init__(self, status: int = 200, body: object = None, text: str | None = None):
        self.requests: list[httpx.Request] = []
        self.status = status
        self.body = body
        self.text = text

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.text is not None:
            return httpx.Response(self.status, text=self.text)
        return httpx.Response(self.status, json=self.body if self.body is not None else {})


class TestRequestHeaders:
    """Test cases for authentication headers."""

    def test_headers_set(self):
        """Test that every call carries Accept and bearer token headers."""
        recorder = Recorder(body={"clusters": []})
        make_client(recorder).list_clusters()

        request = recorder.requests[0]
        assert request.headers["Accept"] == "application/json"
        assert request.headers["Authorization"] == "Bearer key-1"

    def test_set_credential(self):
        """Test that a replaced credential is used by the next call."""
        recorder = Recorder(body={"clusters": []})
        cluster_client = make_client(recorder)

        cluster_client.set_credential(Credential(org_id="org-2", api_key="key-2"))
        cluster_client.list_clusters()

        request = recorder.requests[0]
        assert request.headers["Authorization"] == "Bearer key-2"
        assert request.url.path == "/api/v1/orgs/org-2/clusters"

    def test_credential_snapshot_is_consistent(self):
        """Test that concurrent credential swaps never mix org and key."""
        recorder = Recorder(body={"clusters": []})
        cluster_client = make_client(recorder)
        credentials = [Credential(org_id=f"org-{i}", api_key=f"key-{i}") for i in range(5)]

        def swap():
            for _ in range(50):
                for credential in credentials:
                    cluster_client.set_credential(credential)

        def call():
            for _ in range(50):
                cluster_client.list_clusters()

        threads = [threading.Thread(target=swap), threading.Thread(target=call)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        for request in recorder.requests:
            org = request.url.path.split("/")[4]
            assert request.headers["Authorization"] == f"Bearer key-{org.split('-')[1]}"


class TestClusterOperations:
    """Test cases for cluster operations."""

    def test_list_clusters(self):
        """Test listing active clusters."""
        recorder = Recorder(body={"clusters": [CLUSTER, {**CLUSTER, "id": "c2"}]})

        clusters = make_client(recorder).list_clusters()

        assert [c.id for c in clusters] == ["c1", "c2"]
        assert clusters[0].serverless.tenant_name == "alpha-123"
        request = recorder.requests[0]
        assert request.method == "GET"
        assert request.url.path == "/api/v1/orgs/org-1/clusters"
        assert request.url.params["active"] == "true"

    def test_list_clusters_empty(self):
        """Test listing when the organization has no clusters."""
        recorder = Recorder(body={})

        assert make_client(recorder).list_clusters() == []

    def test_get_cluster(self):
        """Test getting a cluster with its regions."""
        recorder = Recorder(body={
            "cluster": CLUSTER,
            "regions": [{"name": "us-central1", "sqlDns": "free-tier.gcp-us-central1.cockroachlabs.cloud"}],
        })

        details = make_client(recorder).get_cluster("c1")

        assert details.cluster.id == "c1"
        assert details.regions[0].sql_dns == "free-tier.gcp-us-central1.cockroachlabs.cloud"
        assert recorder.requests[0].url.path == "/api/v1/orgs/org-1/clusters/c1"

    def test_get_cluster_certificate(self):
        """Test downloading the cluster CA certificate as text."""
        pem = "-----BEGIN CERTIFICATE-----\nabc\n-----END CERTIFICATE-----\n"
        recorder = Recorder(text=pem)

        certificate = make_client(recorder).get_cluster_certificate("c1")

        assert certificate.file_name == "root.crt"
        assert certificate.data == pem
        assert recorder.requests[0].url.path == "/clusters/c1/cert"


class TestUserOperations:
    """Test cases for SQL user operations."""

    def test_create_user(self):
        """Test creating a user posts the generated credentials."""
        recorder = Recorder()

        sql_user = make_client(recorder).create_user("c1", "sql_user_1")

        request = recorder.requests[0]
        assert request.method == "POST"
        assert request.url.path == "/api/v1/orgs/org-1/clusters/c1/sql-users"
        assert json.loads(request.content) == {"user": {"name": "sql_user_1"}, "password": sql_user.password}
        assert sql_user.name == "sql_user_1"
        assert len(sql_user.password) == 12

    def test_create_user_generates_name(self):
        """Test that a username is generated when none is given."""
        recorder = Recorder()

        sql_user = make_client(recorder).create_user("c1")

        assert sql_user.name.startswith("sql_user_")

    def test_create_user_non_200(self):
        """Test that anything but HTTP 200 is an APIError, even other 2xx codes."""
        recorder = Recorder(status=201, body={})

        with pytest.raises(APIError) as exc_info:
            make_client(recorder).create_user("c1", "sql_user_1")

        assert exc_info.value.status == 201

    def test_list_users(self):
        """Test listing SQL users."""
        recorder = Recorder(body={"users": [{"name": "a"}, {"name": "b"}]})

        users = make_client(recorder).list_users("c1")

        assert [u.name for u in users] == ["a", "b"]
        assert recorder.requests[0].url.path == "/api/v1/orgs/org-1/clusters/c1/sql-users"

    def test_delete_user(self):
        """Test deleting a SQL user by name."""
        recorder = Recorder()

        make_client(recorder).delete_user("c1", "sql_user_1")

        request = recorder.requests[0]
        assert request.method == "DELETE"
        assert request.url.path == "/api/v1/orgs/org-1/clusters/c1/sql-users/sql_user_1"


class TestErrors:
    """Test cases for error mapping."""

    def test_api_error_keeps_body(self):
        """Test that the raw response body is kept in APIError."""
        recorder = Recorder(status=404, text='{"code":5,"message":"cluster not found"}')

        with pytest.raises(APIError) as exc_info:
            make_client(recorder).get_cluster("missing")

        assert exc_info.value.status == 404
        assert "cluster not found" in exc_info.value.body

    def test_transport_error(self):
        """Test that transport failures are wrapped."""

        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(TransportError) as exc_info:
            make_client(handler).list_clusters()

        assert "connection refused" in str(exc_info.value)
        assert exc_info.value.operation == "list_clusters"

    def test_transport_error_aggregates_causes(self):
        """Test that every chained failure ends up in the error."""

        def handler(request):
            try:
                raise OSError("name resolution failed")
            except OSError as dns_error:
                raise httpx.ConnectError("TLS handshake failed", request=request) from dns_error

        with pytest.raises(TransportError) as exc_info:
            make_client(handler).list_clusters()

        error = exc_info.value
        assert len(error.errors) >= 2
        assert "name resolution failed" in str(error)
        assert "TLS handshake failed" in str(error)
