"""Tests for the Secret and ConfigMap builders."""

from __future__ import annotations

from crdb_cloud_operator.builders.connection import (
    build_connection_config_map,
    build_connection_options,
    build_credentials_secret,
    build_owner_labels,
    build_owner_reference,
)
from crdb_cloud_operator.services.crdb.models import ClusterCertificate, SqlUser

CONNECTION = {
    "apiVersion": "dbaas.redhat.com/v1alpha1",
    "kind": "CrdbDBaaSConnection",
    "metadata": {"name": "my-conn", "namespace": "apps", "uid": "uid-1"},
    "spec": {"inventoryRef": {"name": "inv", "namespace": "ops"}, "instanceID": "c1"},
}

INSTANCE = {
    "instanceID": "c1",
    "name": "alpha",
    "instanceInfo": {
        "serverless.tenantName": "alpha-123",
        "regions.1.name": "us-central1",
        "regions.1.sqlDns": "free-tier.gcp-us-central1.cockroachlabs.cloud",
    },
}


class TestOwnership:
    """Test cases for ownership metadata."""

    def test_labels(self):
        """Test the owner labels."""
        assert build_owner_labels(CONNECTION) == {
            "managed-by": "ccapi-k8s-operator",
            "owner": "my-conn",
            "owner.kind": "CrdbDBaaSConnection",
            "owner.namespace": "apps",
        }

    def test_owner_reference(self):
        """Test that the owner reference points back at the Connection."""
        ref = build_owner_reference(CONNECTION)

        assert ref.api_version == "dbaas.redhat.com/v1alpha1"
        assert ref.kind == "CrdbDBaaSConnection"
        assert ref.name == "my-conn"
        assert ref.uid == "uid-1"
        assert ref.controller is True
        assert ref.block_owner_deletion is False


class TestCredentialsSecret:
    """Test cases for build_credentials_secret function."""

    def test_secret(self):
        """Test the credentials Secret contents."""
        secret = build_credentials_secret(
            CONNECTION,
            SqlUser(name="sql_user_1", password="5!abcdefghij"),
            ClusterCertificate(file_name="root.crt", data="PEM"),
        )

        assert secret.type == "Opaque"
        assert secret.metadata.generate_name == "crdb-cloud-user-credentials-"
        assert secret.metadata.name is None
        assert secret.metadata.namespace == "apps"
        assert secret.metadata.labels["owner"] == "my-conn"
        assert secret.metadata.owner_references[0].uid == "uid-1"
        assert secret.string_data == {
            "username": "sql_user_1",
            "password": "5!abcdefghij",
            "root.crt": "PEM",
        }


class TestConnectionConfigMap:
    """Test cases for build_connection_config_map function."""

    def test_config_map(self):
        """Test the six connection keys."""
        config_map = build_connection_config_map(CONNECTION, INSTANCE)

        assert config_map.metadata.generate_name == "crdb-cloud-conn-cm-"
        assert config_map.metadata.namespace == "apps"
        assert config_map.data == {
            "type": "postgresql",
            "provider": "CockroachDB Cloud",
            "host": "free-tier.gcp-us-central1.cockroachlabs.cloud",
            "port": "26257",
            "database": "defaultdb",
            "options": "sslmode=verify-full&sslrootcert=$HOME/.postgresql/root.crt&options=--cluster=alpha-123",
        }

    def test_options(self):
        """Test the routing option embeds the tenant name."""
        assert build_connection_options(INSTANCE).endswith("--cluster=alpha-123")
