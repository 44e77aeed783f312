"""Authoritative in-memory session table.

The reconciler is the only writer of the table. Snapshots replace it
wholesale; update events are merged under the staleness filter in
`models.is_up_to_date`. Each accepted change publishes exactly one read-only
view through the render channel.
"""

from __future__ import annotations

import asyncio
import logging
from types import MappingProxyType
from typing import Iterable

from gatewaysync.core.models import UpdateEvent, WorkspaceSession, is_up_to_date
from gatewaysync.core.render import RenderChannel, TableView
from gatewaysync.core.scope import Scope

logger = logging.getLogger(__name__)


class StateReconciler:
    """Owns the session table and serializes every mutation."""

    def __init__(self, channel: RenderChannel) -> None:
        self._channel = channel
        self._table: dict[str, WorkspaceSession] = {}
        self._lock = asyncio.Lock()

    @property
    def table(self) -> TableView:
        """Read-only copy of the current table."""
        return MappingProxyType(dict(self._table))

    def __len__(self) -> int:
        return len(self._table)

    def _publish(self, scope: Scope | None) -> None:
        self._channel.publish(self.table, scope)

    async def apply_snapshot(self, sessions: Iterable[WorkspaceSession], scope: Scope | None = None) -> None:
        """Replace the table with a freshly loaded snapshot."""
        async with self._lock:
            if scope is not None and not scope.is_alive:
                return
            self._table = {session.session_id: session for session in sessions}
            logger.debug("Applied snapshot with %d session(s)", len(self._table))
            self._publish(scope)

    async def apply_update(self, event: UpdateEvent, scope: Scope | None = None) -> bool:
        """Merge one update event.

        Returns:
            True if the event replaced the stored instance state.
        """
        async with self._lock:
            if scope is not None and not scope.is_alive:
                return False

            session = self._table.get(event.session_id)
            if session is None:
                logger.debug("Ignoring update for unknown session %s", event.session_id)
                return False

            if is_up_to_date(session.latest_instance, event.instance):
                logger.debug(
                    "Ignoring stale update for session %s (phase=%s, version=%s)",
                    event.session_id,
                    event.instance.phase.value,
                    event.instance.version,
                )
                return False

            self._table[event.session_id] = session.with_instance(event.instance)
            logger.debug("Session %s is now %s", event.session_id, event.instance.phase.value)
            self._publish(scope)
            return True

    async def clear(self, scope: Scope | None = None) -> None:
        """Empty the table. Publishes only when something was removed."""
        async with self._lock:
            if not self._table:
                return
            self._table = {}
            logger.debug("Cleared session table")
            self._publish(scope)
