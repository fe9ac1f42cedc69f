"""Handler for CrdbDBaaSConnection CRD.

A Connection is provisioned in three steps, each with a side effect that
must not be repeated: a SQL user in CockroachDB Cloud, a Secret holding its
credentials and a ConfigMap holding the connection parameters. Before each
side effect the handler records in ``status.provisioning`` what it is
about to do, so a pass that dies halfway is resumed or undone by the next
one instead of being repeated:

* ``UserRequested``: the user may exist remotely; it is deleted and
  provisioning starts over.
* ``SecretCreated``: the user and the Secret exist; only the ConfigMap is
  missing.
* ``ConfigMapCreated``: everything exists; only the final status write is
  missing.
"""

from __future__ import annotations

from typing import Any

import kopf
from kubernetes import client

from ..builders.connection import build_connection_config_map, build_credentials_secret
from ..constants import (
    API_GROUP_VERSION,
    COND_READY_FOR_BINDING,
    KIND_CONNECTION,
    KIND_INVENTORY,
    PHASE_CONFIG_MAP_CREATED,
    PHASE_SECRET_CREATED,
    PHASE_USER_REQUESTED,
    PLURAL_CONNECTION,
)
from ..services.crdb.base import ClusterService
from ..tracing import trace_span
from ..utils.cache import ClusterClientCache
from ..utils.compensation import Artifact, compensate
from ..utils.conditions import ConnectionState, is_condition_true, set_connection_state
from ..utils.configmaps import create_config_map
from ..utils.errors import (
    IncompleteCredentialError,
    InstanceNotReadyError,
    NotFoundError,
    StatusCommitError,
    sanitize_error_message,
    sanitize_exception,
)
from ..utils.events import (
    emit_compensation_performed,
    emit_connection_ready,
    emit_sql_user_created,
)
from ..utils.passwords import generate_sql_username
from ..utils.retry import ReconcileResult, result_for
from ..utils.secrets import create_secret
from .base import BaseHandler
from .shared import CLIENT_CACHE, find_instance, get_custom_object, get_inventory, resolve_cluster_client


class ConnectionHandler(BaseHandler):
    """Provisions SQL credentials and connection info for a Connection."""

    def __init__(
        self,
        custom_api: client.CustomObjectsApi | None = None,
        core_api: client.CoreV1Api | None = None,
        cache: ClusterClientCache | None = None,
    ):
        super().__init__(KIND_CONNECTION, PLURAL_CONNECTION, custom_api, core_api)
        self.cache = cache if cache is not None else CLIENT_CACHE

    def reconcile(self, namespace: str, name: str) -> ReconcileResult:
        """Reconcile Connection resource.

        The Connection is read fresh so the provisioning journal reflects
        the last committed write, not the event that triggered this pass.

        Raises:
            InstanceNotReadyError: If the Inventory does not offer the instance yet
        """
        with trace_span("reconcile_connection", kind=KIND_CONNECTION, attributes={"connection.name": name}):
            try:
                connection = get_custom_object(self.custom_api, KIND_CONNECTION, PLURAL_CONNECTION, namespace, name)
            except NotFoundError:
                self.logger.info(f"{KIND_CONNECTION} {namespace}/{name} is gone, nothing to do")
                return ReconcileResult.done()

            try:
                return self._reconcile(connection)
            except Exception as e:
                return result_for(e)

    def _reconcile(self, connection: dict[str, Any]) -> ReconcileResult:
        meta = connection["metadata"]
        status = connection.get("status") or {}

        if is_condition_true(status.get("conditions") or [], COND_READY_FOR_BINDING):
            self.logger.debug(f"{KIND_CONNECTION} {meta.get('namespace')}/{meta.get('name')} is already ready")
            return ReconcileResult.done()

        journal = status.get("provisioning") or {}
        phase = journal.get("phase")

        # Everything exists; the Inventory is not consulted again
        if phase == PHASE_CONFIG_MAP_CREATED:
            self.log_info(meta, "Resuming after an interrupted status update", reason="Resume")
            return self._finalize(connection, journal)

        inventory = self._resolve_inventory(connection)
        instance = self._resolve_instance(connection, inventory)

        cluster_client = self._resolve_client(connection, inventory)

        if phase == PHASE_SECRET_CREATED:
            self.log_info(meta, "Resuming provisioning after the credentials secret", reason="Resume")
            artifacts = [
                Artifact.sql_user(journal["instanceID"], journal["username"]),
                Artifact.secret(meta["namespace"], journal["secretName"]),
            ]
            return self._persist_config_map(connection, instance, journal, artifacts, cluster_client)

        if phase == PHASE_USER_REQUESTED:
            # An earlier pass may have created this user before it died
            self._undo(
                connection,
                [Artifact.sql_user(journal["instanceID"], journal["username"])],
                cluster_client,
                "Interrupted provisioning found",
            )

        return self._provision(connection, instance, cluster_client)

    def _resolve_inventory(self, connection: dict[str, Any]) -> dict[str, Any]:
        namespace = connection["metadata"]["namespace"]
        inventory_ref = connection.get("spec", {}).get("inventoryRef") or {}
        inventory_ns = inventory_ref.get("namespace") or namespace
        try:
            if not inventory_ref.get("name"):
                raise NotFoundError(KIND_INVENTORY, inventory_ns, "<unset inventoryRef.name>")
            return get_inventory(self.custom_api, inventory_ns, inventory_ref["name"])
        except NotFoundError as e:
            self._set_state(connection, ConnectionState.INVENTORY_NOT_FOUND, str(e))
            raise

    def _resolve_instance(self, connection: dict[str, Any], inventory: dict[str, Any]) -> dict[str, Any]:
        instance_id = connection.get("spec", {}).get("instanceID", "")
        try:
            return find_instance(inventory, instance_id)
        except InstanceNotReadyError as e:
            self.log_warning(connection["metadata"], str(e), reason="InventoryNotReady")
            self._set_state(connection, ConnectionState.INVENTORY_NOT_READY, str(e))
            raise

    def _resolve_client(self, connection: dict[str, Any], inventory: dict[str, Any]) -> ClusterService:
        try:
            return resolve_cluster_client(
                self.core_api,
                self.cache,
                inventory.get("spec", {}).get("credentialsRef") or {},
                inventory["metadata"]["namespace"],
            )
        except (NotFoundError, IncompleteCredentialError) as e:
            self._set_state(connection, ConnectionState.CREDENTIALS_UNAVAILABLE, str(e))
            raise

    def _provision(
        self,
        connection: dict[str, Any],
        instance: dict[str, Any],
        cluster_client: ClusterService,
    ) -> ReconcileResult:
        meta = connection["metadata"]
        namespace = meta["namespace"]
        instance_id = instance["instanceID"]

        journal = {
            "instanceID": instance_id,
            "username": generate_sql_username(),
            "phase": PHASE_USER_REQUESTED,
        }
        self._commit_journal(connection, journal)

        try:
            sql_user = cluster_client.create_user(instance_id, journal["username"])
        except Exception as e:
            # The journal stays at UserRequested; the next pass cleans up
            return self._fail(connection, ConnectionState.PROVISIONING_FAILED, e)

        artifacts = [Artifact.sql_user(instance_id, sql_user.name)]
        self.log_info(meta, f"Created SQL user {sql_user.name}", event="created", reason="SqlUserCreated")
        emit_sql_user_created(connection, sql_user.name, instance_id)

        try:
            certificate = cluster_client.get_cluster_certificate(instance_id)
        except Exception as e:
            self._undo(connection, artifacts, cluster_client, "Failed to fetch cluster certificate", clear_journal=True)
            return self._fail(connection, ConnectionState.PROVISIONING_FAILED, e)

        try:
            secret_name = create_secret(
                self.core_api,
                namespace,
                build_credentials_secret(connection, sql_user, certificate),
            )
        except Exception as e:
            self._undo(connection, artifacts, cluster_client, "Failed to create credentials secret", clear_journal=True)
            return self._fail(connection, ConnectionState.PERSIST_FAILED, e)

        artifacts.append(Artifact.secret(namespace, secret_name))
        journal = {**journal, "phase": PHASE_SECRET_CREATED, "secretName": secret_name}
        self._commit_journal_or_undo(connection, journal, artifacts, cluster_client)

        return self._persist_config_map(connection, instance, journal, artifacts, cluster_client)

    def _persist_config_map(
        self,
        connection: dict[str, Any],
        instance: dict[str, Any],
        journal: dict[str, Any],
        artifacts: list[Artifact],
        cluster_client: ClusterService,
    ) -> ReconcileResult:
        namespace = connection["metadata"]["namespace"]
        try:
            config_map_name = create_config_map(
                self.core_api,
                namespace,
                build_connection_config_map(connection, instance),
            )
        except Exception as e:
            self._undo(connection, artifacts, cluster_client, "Failed to create connection config map", clear_journal=True)
            return self._fail(connection, ConnectionState.PERSIST_FAILED, e)

        artifacts = [*artifacts, Artifact.config_map(namespace, config_map_name)]
        journal = {**journal, "phase": PHASE_CONFIG_MAP_CREATED, "configMapName": config_map_name}
        self._commit_journal_or_undo(connection, journal, artifacts, cluster_client)

        return self._finalize(connection, journal)

    def _finalize(self, connection: dict[str, Any], journal: dict[str, Any]) -> ReconcileResult:
        meta = connection["metadata"]
        conditions = set_connection_state(
            (connection.get("status") or {}).get("conditions") or [],
            ConnectionState.READY,
            observed_generation=meta.get("generation"),
        )
        # A failed write leaves the journal at ConfigMapCreated for the next pass
        self._commit(connection, {
            "credentialsRef": {"name": journal["secretName"]},
            "connectionInfoRef": {"name": journal["configMapName"]},
            "conditions": conditions,
            "provisioning": None,
        })
        self.record_status(True)
        self.log_info(meta, "Connection is ready", event="ready", reason="Ready")
        emit_connection_ready(connection)
        return ReconcileResult.done()

    def _commit(self, connection: dict[str, Any], status: dict[str, Any]) -> None:
        meta = connection["metadata"]
        self.commit_status(meta["namespace"], meta["name"], status)
        current = connection.get("status") or {}
        connection["status"] = current
        for key, value in status.items():
            if value is None:
                current.pop(key, None)
            else:
                current[key] = value

    def _commit_journal(self, connection: dict[str, Any], journal: dict[str, Any] | None) -> None:
        self._commit(connection, {"provisioning": journal})

    def _commit_journal_or_undo(
        self,
        connection: dict[str, Any],
        journal: dict[str, Any],
        artifacts: list[Artifact],
        cluster_client: ClusterService,
    ) -> None:
        """Record progress, undoing everything created so far if that fails.

        Raises:
            StatusCommitError: If the journal write hit a conflict or a server error
            kubernetes.client.exceptions.ApiException: If the write was refused otherwise
        """
        try:
            self._commit_journal(connection, journal)
        except (StatusCommitError, client.exceptions.ApiException):
            self._undo(connection, artifacts, cluster_client, "Failed to record provisioning progress")
            raise

    def _undo(
        self,
        connection: dict[str, Any],
        artifacts: list[Artifact],
        cluster_client: ClusterService,
        cause: str,
        clear_journal: bool = False,
    ) -> None:
        meta = connection["metadata"]
        failures = compensate(artifacts, cluster_client, self.core_api)
        removed = len(artifacts) - len(failures)
        message = f"{cause}: removed {removed} of {len(artifacts)} provisioned artifact(s)"
        if failures:
            message += "; left behind " + ", ".join(str(a) for a, _ in failures)
        self.log_warning(meta, message, event="compensation", reason="CompensationPerformed")
        emit_compensation_performed(connection, message)

        if clear_journal:
            try:
                self._commit_journal(connection, None)
            except (StatusCommitError, client.exceptions.ApiException) as e:
                self.log_warning(meta, f"Failed to clear provisioning journal: {sanitize_exception(e)}", reason="PersistFailed")

    def _fail(self, connection: dict[str, Any], state: ConnectionState, error: Exception) -> ReconcileResult:
        """Report a provisioning failure and ask for a delayed retry."""
        meta = connection["metadata"]
        message = f"{state.default_message}: {sanitize_exception(error)}"
        self.log_error(meta, message, error=error, reason=state.reason)
        self._set_state(connection, state, message)
        return ReconcileResult.retry_later(message)

    def _set_state(self, connection: dict[str, Any], state: ConnectionState, message: str | None = None) -> None:
        meta = connection["metadata"]
        conditions = set_connection_state(
            (connection.get("status") or {}).get("conditions") or [],
            state,
            message=sanitize_error_message(message) if message else None,
            observed_generation=meta.get("generation"),
        )
        try:
            self._commit(connection, {"conditions": conditions})
        except (StatusCommitError, client.exceptions.ApiException) as e:
            # The failure being reported stays the outcome of the pass
            self.log_warning(
                meta,
                f"Failed to record {state.reason}: {sanitize_exception(e)}",
                reason="PersistFailed",
            )
        self.record_status(state.terminal)


# Global handler instance
_handler = ConnectionHandler()


@kopf.on.create(API_GROUP_VERSION, KIND_CONNECTION)
@kopf.on.update(API_GROUP_VERSION, KIND_CONNECTION)
@kopf.on.resume(API_GROUP_VERSION, KIND_CONNECTION)
def handle_connection(
    body: dict[str, Any],
    namespace: str,
    name: str,
    **kwargs: Any,
) -> None:
    """Handle Connection resource reconciliation."""
    _handler.reconcile_with_metrics(body, lambda: _handler.reconcile(namespace, name))
