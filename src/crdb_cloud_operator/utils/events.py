"""Utilities for emitting Kubernetes events."""

from __future__ import annotations

import logging
from typing import Any

import kopf

from ..constants import (
    EVENT_REASON_COMPENSATION_PERFORMED,
    EVENT_REASON_CONNECTION_READY,
    EVENT_REASON_INVENTORY_SYNCED,
    EVENT_REASON_RECONCILE_FAILED,
    EVENT_REASON_RECONCILE_STARTED,
    EVENT_REASON_SQL_USER_CREATED,
)

logger = logging.getLogger(__name__)


def emit_event(
    body: dict[str, Any],
    reason: str,
    message: str,
    type_: str = "Normal",
) -> None:
    """Emit a Kubernetes event.

    Args:
        body: Resource body (apiVersion, kind and metadata are required)
        reason: Event reason
        message: Event message
        type_: Event type (Normal or Warning)
    """
    try:
        kopf.event(
            body,
            reason=reason,
            message=message,
            type=type_,
        )
    except Exception as e:
        # Best effort
        logger.warning(f"Failed to emit {reason} event: {e}")


def emit_reconcile_started(body: dict[str, Any]) -> None:
    """Emit reconcile started event."""
    emit_event(body, EVENT_REASON_RECONCILE_STARTED, "Reconciliation started")


def emit_reconcile_failed(body: dict[str, Any], message: str) -> None:
    """Emit reconcile failed event."""
    emit_event(body, EVENT_REASON_RECONCILE_FAILED, message, type_="Warning")


def emit_inventory_synced(body: dict[str, Any], instance_count: int) -> None:
    """Emit inventory synced event."""
    emit_event(body, EVENT_REASON_INVENTORY_SYNCED, f"Discovered {instance_count} cluster instance(s)")


def emit_sql_user_created(body: dict[str, Any], username: str, instance_id: str) -> None:
    """Emit SQL user created event."""
    emit_event(body, EVENT_REASON_SQL_USER_CREATED, f"SQL user {username} created on cluster {instance_id}")


def emit_connection_ready(body: dict[str, Any]) -> None:
    """Emit connection ready event."""
    emit_event(body, EVENT_REASON_CONNECTION_READY, "Connection is ready for binding")


def emit_compensation_performed(body: dict[str, Any], message: str) -> None:
    """Emit compensation performed event."""
    emit_event(body, EVENT_REASON_COMPENSATION_PERFORMED, message, type_="Warning")
