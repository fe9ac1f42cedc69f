"""Utilities for managing Kubernetes conditions."""

from __future__ import annotations

import enum
from datetime import datetime, timezone
from typing import Any

from ..constants import (
    COND_NOT_READY,
    COND_READY_FOR_BINDING,
    COND_SPEC_SYNCED,
    REASON_CREDENTIALS_UNAVAILABLE,
    REASON_INVENTORY_NOT_FOUND,
    REASON_INVENTORY_NOT_READY,
    REASON_PERSIST_FAILED,
    REASON_PROVISIONING_FAILED,
    REASON_READY,
    REASON_SYNC_OK,
)


class ConnectionState(enum.Enum):
    """Closed set of states a Connection can report.

    Each member carries the condition it serializes to and whether it is
    terminal. Only READY is terminal; every other state is overwritten by
    the next unsuccessful attempt.
    """

    READY = (COND_READY_FOR_BINDING, "True", REASON_READY, "Connection is ready", True)
    INVENTORY_NOT_FOUND = (COND_NOT_READY, "False", REASON_INVENTORY_NOT_FOUND, "Inventory not found", False)
    INVENTORY_NOT_READY = (COND_NOT_READY, "False", REASON_INVENTORY_NOT_READY, "Wait for Inventory", False)
    CREDENTIALS_UNAVAILABLE = (
        COND_NOT_READY,
        "False",
        REASON_CREDENTIALS_UNAVAILABLE,
        "Cannot resolve CockroachDB Cloud API credentials",
        False,
    )
    PROVISIONING_FAILED = (
        COND_NOT_READY,
        "False",
        REASON_PROVISIONING_FAILED,
        "Failed to provision SQL user in CockroachDB Cloud",
        False,
    )
    PERSIST_FAILED = (
        COND_NOT_READY,
        "False",
        REASON_PERSIST_FAILED,
        "Failed to store connection credentials",
        False,
    )

    def __init__(self, condition_type: str, status: str, reason: str, message: str, terminal: bool) -> None:
        self.condition_type = condition_type
        self.status = status
        self.reason = reason
        self.default_message = message
        self.terminal = terminal


def find_condition(conditions: list[dict[str, Any]], condition_type: str) -> dict[str, Any] | None:
    """Return the condition of the given type, if present."""
    for cond in conditions:
        if cond.get("type") == condition_type:
            return cond
    return None


def is_condition_true(conditions: list[dict[str, Any]], condition_type: str) -> bool:
    """Check whether a condition of the given type has status True."""
    cond = find_condition(conditions, condition_type)
    return cond is not None and cond.get("status") == "True"


def update_condition(
    conditions: list[dict[str, Any]],
    condition_type: str,
    status: str,
    reason: str,
    message: str,
    observed_generation: int | None = None,
) -> list[dict[str, Any]]:
    """Update or add a condition to the conditions list.

    Args:
        conditions: List of existing conditions
        condition_type: Type of condition
        status: Status of condition ("True", "False", "Unknown")
        reason: Reason for the condition
        message: Human-readable message
        observed_generation: Generation when condition was observed

    Returns:
        Updated list of conditions
    """
    now = datetime.now(timezone.utc).isoformat()

    existing_idx = None
    for idx, cond in enumerate(conditions):
        if cond.get("type") == condition_type:
            existing_idx = idx
            break

    new_condition = {
        "type": condition_type,
        "status": status,
        "reason": reason,
        "message": message,
        "lastTransitionTime": now,
    }

    if observed_generation is not None:
        new_condition["observedGeneration"] = observed_generation

    if existing_idx is not None:
        existing = conditions[existing_idx]
        # Only update lastTransitionTime if status changed
        if existing.get("status") == status:
            new_condition["lastTransitionTime"] = existing.get("lastTransitionTime", now)
        conditions[existing_idx] = new_condition
    else:
        conditions.append(new_condition)

    return conditions


def remove_condition(conditions: list[dict[str, Any]], condition_type: str) -> list[dict[str, Any]]:
    """Drop every condition of the given type."""
    return [cond for cond in conditions if cond.get("type") != condition_type]


def set_spec_synced_condition(
    conditions: list[dict[str, Any]],
    observed_generation: int | None = None,
) -> list[dict[str, Any]]:
    """Set the SpecSynced condition of an Inventory."""
    return update_condition(
        conditions,
        COND_SPEC_SYNCED,
        "True",
        REASON_SYNC_OK,
        "Cluster details in sync",
        observed_generation,
    )


def set_connection_state(
    conditions: list[dict[str, Any]],
    state: ConnectionState,
    message: str | None = None,
    observed_generation: int | None = None,
) -> list[dict[str, Any]]:
    """Record a Connection state as a condition.

    Reaching the terminal READY state clears the NotReady marker.
    """
    conditions = list(conditions)
    if state.terminal:
        conditions = remove_condition(conditions, COND_NOT_READY)
    return update_condition(
        conditions,
        state.condition_type,
        state.status,
        state.reason,
        message or state.default_message,
        observed_generation,
    )
