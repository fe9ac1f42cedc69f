"""Shared plumbing for the Inventory and Connection handlers."""

from __future__ import annotations

import logging
import time
from typing import Any, Callable

import kopf
from kubernetes import client

from .. import metrics
from ..constants import API_GROUP, API_VERSION, FIELD_MANAGER
from ..logging import CONTROLLER_NAME, log_resource_event
from ..utils.errors import StatusCommitError, sanitize_error_message, sanitize_exception
from ..utils.events import emit_reconcile_failed, emit_reconcile_started
from ..utils.retry import ReconcileResult
from .shared import get_k8s_clients


def is_retryable_write_error(error: client.exceptions.ApiException) -> bool:
    """Conflicts and server-side failures clear up on their own; other rejections do not."""
    return error.status == 409 or (error.status or 0) >= 500


class BaseHandler:
    """Logging, metrics, status writes and kopf retry mapping for one CRD kind."""

    def __init__(
        self,
        kind: str,
        plural: str,
        custom_api: client.CustomObjectsApi | None = None,
        core_api: client.CoreV1Api | None = None,
    ):
        """Initialize base handler.

        Kubernetes API clients are created on first use unless given.

        Args:
            kind: The Kubernetes resource kind (e.g., "CrdbDBaaSConnection")
            plural: The resource plural used in API paths
            custom_api: Optional CustomObjectsApi instance
            core_api: Optional CoreV1Api instance
        """
        self.kind = kind
        self.plural = plural
        self._custom_api = custom_api
        self._core_api = core_api
        self.logger = logging.getLogger(__name__)

    @property
    def custom_api(self) -> client.CustomObjectsApi:
        if self._custom_api is None:
            self._custom_api, self._core_api = get_k8s_clients()
        return self._custom_api

    @property
    def core_api(self) -> client.CoreV1Api:
        if self._core_api is None:
            self._custom_api, self._core_api = get_k8s_clients()
        return self._core_api

    def _get_resource_context(self, meta: dict[str, Any]) -> dict[str, Any]:
        return {
            "name": meta.get("name", "unknown"),
            "namespace": meta.get("namespace", "default"),
            "uid": meta.get("uid", "unknown"),
        }

    def _log(
        self,
        level: int,
        meta: dict[str, Any],
        message: str,
        event: str,
        reason: str,
        **kwargs: Any,
    ) -> None:
        ctx = self._get_resource_context(meta)
        log_resource_event(
            self.logger,
            controller=CONTROLLER_NAME,
            resource_kind=self.kind,
            resource_name=ctx["name"],
            namespace=ctx["namespace"],
            uid=ctx["uid"],
            event=event,
            reason=reason,
            message=sanitize_error_message(message),
            level=level,
            **kwargs,
        )

    def log_info(
        self,
        meta: dict[str, Any],
        message: str,
        event: str = "info",
        reason: str = "Info",
        **kwargs: Any,
    ) -> None:
        """Log a structured INFO line tagged with the resource identity."""
        self._log(logging.INFO, meta, message, event, reason, **kwargs)

    def log_warning(
        self,
        meta: dict[str, Any],
        message: str,
        event: str = "warning",
        reason: str = "Warning",
        **kwargs: Any,
    ) -> None:
        """Log a warning-level structured log message."""
        self._log(logging.WARNING, meta, message, event, reason, **kwargs)

    def log_error(
        self,
        meta: dict[str, Any],
        message: str,
        error: BaseException | None = None,
        event: str = "error",
        reason: str = "Error",
        **kwargs: Any,
    ) -> None:
        """Log a structured ERROR line; ``error`` is attached sanitized."""
        log_data = kwargs.copy()
        if error is not None:
            log_data["error"] = sanitize_exception(error)
            log_data["error_type"] = type(error).__name__
        self._log(logging.ERROR, meta, message, event, reason, **log_data)

    def reconcile_with_metrics(
        self,
        body: dict[str, Any],
        reconcile_fn: Callable[[], ReconcileResult],
    ) -> None:
        """Execute reconciliation with metrics and error handling.

        A result that asks for a requeue is handed to kopf as a
        TemporaryError carrying the requested delay. Exceptions propagate
        unchanged so kopf applies its own backoff.

        Args:
            body: Kubernetes resource body
            reconcile_fn: Function to execute for reconciliation

        Raises:
            kopf.TemporaryError: If the reconcile asked to be requeued
        """
        meta = body.get("metadata", {})
        emit_reconcile_started(body)
        metrics.reconcile_total.labels(kind=self.kind, result="started").inc()

        start_time = time.time()
        try:
            result = reconcile_fn()
        except Exception as e:
            sanitized_error = sanitize_exception(e)
            metrics.error_total.labels(kind=self.kind, error_type=type(e).__name__).inc()
            self.log_error(meta, "Reconciliation failed", error=e, reason="ReconciliationFailed")
            emit_reconcile_failed(body, f"Reconciliation failed: {sanitized_error}")
            metrics.reconcile_total.labels(kind=self.kind, result="error").inc()
            raise
        finally:
            duration = time.time() - start_time
            metrics.reconcile_duration_seconds.labels(kind=self.kind).observe(duration)

        if result.requeue:
            message = sanitize_error_message(result.message) or "Reconciliation requeued"
            metrics.reconcile_total.labels(kind=self.kind, result="requeued").inc()
            self.log_warning(
                meta,
                message,
                event="requeue",
                reason="Requeued",
                delay=result.requeue_after,
            )
            emit_reconcile_failed(body, message)
            raise kopf.TemporaryError(message, delay=result.requeue_after)

        metrics.reconcile_total.labels(kind=self.kind, result="success").inc()

    def commit_status(self, namespace: str, name: str, status: dict[str, Any]) -> None:
        """Merge-patch the status subresource of a resource.

        Keys set to None are removed from the stored status.

        Raises:
            StatusCommitError: If the write hit a conflict or a server error
            kubernetes.client.exceptions.ApiException: For any other rejection,
                such as a forbidden status subresource
        """
        start_time = time.time()
        try:
            self.custom_api.patch_namespaced_custom_object_status(
                group=API_GROUP,
                version=API_VERSION,
                namespace=namespace,
                plural=self.plural,
                name=name,
                body={"status": status},
                field_manager=FIELD_MANAGER,
            )
        except client.exceptions.ApiException as e:
            metrics.api_call_total.labels(api_type="k8s", operation="patch_status", result="error").inc()
            if not is_retryable_write_error(e):
                raise
            raise StatusCommitError(
                f"Failed to update status of {self.kind} {namespace}/{name}: {e.status} {e.reason}"
            ) from e
        finally:
            duration = time.time() - start_time
            metrics.api_call_duration_seconds.labels(api_type="k8s", operation="patch_status").observe(duration)
        metrics.api_call_total.labels(api_type="k8s", operation="patch_status", result="success").inc()

    def record_status(self, ready: bool) -> None:
        """Count the status a reconcile left the resource in."""
        metrics.resource_status_total.labels(
            kind=self.kind,
            status="ready" if ready else "not_ready",
        ).inc()
