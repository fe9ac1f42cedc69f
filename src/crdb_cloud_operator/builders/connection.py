"""Builders for the objects that hold a Connection's credentials and connection info."""

from __future__ import annotations

from typing import Any

from kubernetes import client

from ..constants import (
    API_GROUP_VERSION,
    CONNECTION_CONFIG_MAP_PREFIX,
    CONNECTION_DATABASE,
    CONNECTION_PORT,
    CONNECTION_PROVIDER,
    CONNECTION_TYPE,
    CREDENTIALS_SECRET_PREFIX,
    KIND_CONNECTION,
    LABEL_MANAGED_BY,
    LABEL_OWNER,
    LABEL_OWNER_KIND,
    LABEL_OWNER_NAMESPACE,
    OPERATOR_NAME,
)
from ..services.crdb.models import ClusterCertificate, SqlUser


def build_owner_labels(connection: dict[str, Any]) -> dict[str, str]:
    """Labels tying a generated object to the Connection that owns it."""
    meta = connection.get("metadata", {})
    return {
        LABEL_MANAGED_BY: OPERATOR_NAME,
        LABEL_OWNER: meta.get("name", ""),
        LABEL_OWNER_KIND: connection.get("kind", KIND_CONNECTION),
        LABEL_OWNER_NAMESPACE: meta.get("namespace", ""),
    }


def build_owner_reference(connection: dict[str, Any]) -> client.V1OwnerReference:
    """Owner reference so that deleting the Connection garbage-collects the object."""
    meta = connection.get("metadata", {})
    return client.V1OwnerReference(
        api_version=connection.get("apiVersion", API_GROUP_VERSION),
        kind=connection.get("kind", KIND_CONNECTION),
        name=meta.get("name"),
        uid=meta.get("uid"),
        controller=True,
        block_owner_deletion=False,
    )


def _build_metadata(connection: dict[str, Any], generate_name: str) -> client.V1ObjectMeta:
    return client.V1ObjectMeta(
        generate_name=generate_name,
        namespace=connection.get("metadata", {}).get("namespace"),
        labels=build_owner_labels(connection),
        owner_references=[build_owner_reference(connection)],
    )


def build_credentials_secret(
    connection: dict[str, Any],
    sql_user: SqlUser,
    certificate: ClusterCertificate,
) -> client.V1Secret:
    """Create the Secret holding a SQL user's credentials and the cluster CA."""
    return client.V1Secret(
        metadata=_build_metadata(connection, CREDENTIALS_SECRET_PREFIX),
        type="Opaque",
        string_data={
            "username": sql_user.name,
            "password": sql_user.password,
            certificate.file_name: certificate.data,
        },
    )


def build_connection_options(instance: dict[str, Any]) -> str:
    """Render the libpq style options string for an instance."""
    tenant_name = instance.get("instanceInfo", {}).get("serverless.tenantName", "")
    return (
        "sslmode=verify-full"
        "&sslrootcert=$HOME/.postgresql/root.crt"
        f"&options=--cluster={tenant_name}"
    )


def build_connection_config_map(
    connection: dict[str, Any],
    instance: dict[str, Any],
) -> client.V1ConfigMap:
    """Create the ConfigMap holding the connection parameters of an instance."""
    info = instance.get("instanceInfo", {})
    return client.V1ConfigMap(
        metadata=_build_metadata(connection, CONNECTION_CONFIG_MAP_PREFIX),
        data={
            "type": CONNECTION_TYPE,
            "provider": CONNECTION_PROVIDER,
            "host": info.get("regions.1.sqlDns", ""),
            "port": CONNECTION_PORT,
            "database": CONNECTION_DATABASE,
            "options": build_connection_options(instance),
        },
    )
