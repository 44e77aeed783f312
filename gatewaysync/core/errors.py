"""Error taxonomy for the sync core.

Every error below is contained by the sync controller; none of them reach
the UI layer. Stale updates and cancellation are not errors and have no
class here.
"""

from __future__ import annotations


class SyncError(Exception):
    """Base class for sync failures."""

    def __init__(self, message: str, host: str | None = None):
        super().__init__(message)
        self.host = host


class ConnectivityError(SyncError):
    """Not authenticated, token rejected, or host unreachable."""


class SnapshotFetchError(SyncError):
    """The bulk session fetch failed for this cycle."""


class SubscriptionBrokenError(SyncError):
    """The update connection dropped mid-stream."""


class ScopeTerminatedError(SyncError):
    """Work was bound to a scope that has already been terminated."""
