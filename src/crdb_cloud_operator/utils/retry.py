"""Retry policy shared by all reconcilers."""

from __future__ import annotations

import enum
import os
from dataclasses import dataclass

from .errors import (
    APIError,
    IncompleteCredentialError,
    InstanceNotReadyError,
    NotFoundError,
    StatusCommitError,
    TransportError,
)

RETRY_DELAY_SECONDS = float(os.getenv("RETRY_DELAY_SECONDS", "10"))


class RetryAction(enum.Enum):
    """How a failed reconcile is retried."""

    # Requeue after RETRY_DELAY_SECONDS without surfacing an error
    FIXED_DELAY = "fixed_delay"
    # Requeue right away without surfacing an error
    IMMEDIATE = "immediate"
    # Surface the error and let kopf apply its own backoff
    BACKOFF = "backoff"


RETRY_POLICY: dict[type[BaseException], RetryAction] = {
    NotFoundError: RetryAction.FIXED_DELAY,
    IncompleteCredentialError: RetryAction.FIXED_DELAY,
    TransportError: RetryAction.FIXED_DELAY,
    APIError: RetryAction.FIXED_DELAY,
    StatusCommitError: RetryAction.IMMEDIATE,
    InstanceNotReadyError: RetryAction.BACKOFF,
}


def retry_action_for(error: BaseException) -> RetryAction:
    """Look up the retry action for an error, most specific class first."""
    for cls in type(error).__mro__:
        if cls in RETRY_POLICY:
            return RETRY_POLICY[cls]
    return RetryAction.BACKOFF


@dataclass(frozen=True)
class ReconcileResult:
    """Outcome of a reconcile pass that did not raise.

    ``requeue_after`` is None when no retry is needed.
    """

    requeue_after: float | None = None
    message: str = ""

    @property
    def requeue(self) -> bool:
        return self.requeue_after is not None

    @classmethod
    def done(cls) -> ReconcileResult:
        return cls()

    @classmethod
    def retry_later(cls, message: str = "") -> ReconcileResult:
        return cls(requeue_after=RETRY_DELAY_SECONDS, message=message)

    @classmethod
    def retry_now(cls, message: str = "") -> ReconcileResult:
        return cls(requeue_after=0.0, message=message)


def result_for(error: BaseException) -> ReconcileResult:
    """Turn an error into a requeue result, or re-raise it for kopf's backoff.

    Must be called from an ``except`` block handling ``error``.
    """
    action = retry_action_for(error)
    if action is RetryAction.FIXED_DELAY:
        return ReconcileResult.retry_later(str(error))
    if action is RetryAction.IMMEDIATE:
        return ReconcileResult.retry_now(str(error))
    raise error
