"""
Transport adapter contract.

This module defines the *interface only*: no retries, no queueing, no
orchestration decisions live here.

Key invariants:
- One post() call per attempt. At most one attempt per CorrelationId is in
  flight; the send handler enforces this, not the transport.
- Failures are reported by raising TransportError. The engine converts them
  into FAIL actions; they never escape a handler.
- The surrounding application owns the transport. The engine only keeps a
  weak reference to it.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from orchestrator.activity import Activity


class TransportError(Exception):
    """A post attempt failed (network error, rejection, timeout)."""


class TransportUnavailable(TransportError):
    """No live transport is bound to the session."""


class Transport(ABC):
    """
    Abstract interface for the activity transport.

    Implementations are responsible for:
    - Delivering one activity to the remote peer
    - Returning the server-assigned activity id on success

    Non-responsibilities:
    - No retry policy
    - No CorrelationId bookkeeping
    - No state machine logic
    """

    @abstractmethod
    async def post(self, activity: Activity) -> str:
        """
        Post one activity.

        Returns:
            The server-assigned activity id.

        Raises:
            TransportError on any failure.
        """
        raise NotImplementedError
