"""End-to-end refresh cycles.

State machine:

    refresh() -> CONNECTING -> SYNCING -> LIVE -> STALE (subscription broke)
       |             |            |
       |             |            +-> STALE / IDLE (snapshot failed, table kept)
       |             +-> IDLE (token rejected, table cleared)
       +-> IDLE (not connected, table cleared, no cycle started)

    any state -> DISPOSED (owning scope terminated)

Each `refresh()` terminates the previous cycle's scope before starting a new
one, so at most one update subscription is ever live per controller. Nothing
re-triggers a refresh on its own; the host UI (or CLI) decides when.
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Callable

from gatewaysync.constants import ALL_SESSIONS_SELECTOR, DEFAULT_SNAPSHOT_LIMIT
from gatewaysync.core.errors import (
    ConnectivityError,
    ScopeTerminatedError,
    SnapshotFetchError,
    SubscriptionBrokenError,
)
from gatewaysync.core.protocols import ClientProvider
from gatewaysync.core.reconciler import StateReconciler
from gatewaysync.core.render import TableView
from gatewaysync.core.scope import Scope
from gatewaysync.core.snapshot import load_snapshot
from gatewaysync.core.updates import subscribe
from gatewaysync.utils import normalize_host

logger = logging.getLogger(__name__)

ConnectivityListener = Callable[[bool], None]


class SyncState(str, Enum):
    IDLE = "idle"
    CONNECTING = "connecting"
    SYNCING = "syncing"
    LIVE = "live"
    STALE = "stale"  # live updates lost, table kept until the next refresh
    DISPOSED = "disposed"


class SyncController:
    """Orchestrates snapshot + subscription cycles for one host."""

    def __init__(
        self,
        lifetime: Scope,
        provider: ClientProvider,
        reconciler: StateReconciler,
        host: str | Callable[[], str],
        *,
        limit: int = DEFAULT_SNAPSHOT_LIMIT,
        selector: str = ALL_SESSIONS_SELECTOR,
    ) -> None:
        if limit < 1:
            raise ValueError(f"limit must be at least 1, got {limit}")
        self._scope = lifetime.create_child("sync-controller")
        self._provider = provider
        self._reconciler = reconciler
        self._host = host
        self._limit = limit
        self._selector = selector
        self._sync_scope: Scope | None = None
        self._task: asyncio.Task[None] | None = None
        self._state = SyncState.IDLE
        self._listeners: list[ConnectivityListener] = []
        self._cycles = 0
        self._scope.on_termination(self._on_disposed)

    @property
    def host(self) -> str:
        # Resolved per call so a settings change is picked up by the next refresh.
        host = self._host() if callable(self._host) else self._host
        return normalize_host(host)

    @property
    def state(self) -> SyncState:
        return self._state

    @property
    def sync_scope(self) -> Scope | None:
        return self._sync_scope

    @property
    def table(self) -> TableView:
        return self._reconciler.table

    def is_connected(self) -> bool:
        return self._provider.is_connected(self.host)

    def add_connectivity_listener(self, listener: ConnectivityListener) -> None:
        """Call `listener(connected)` at the start of every refresh."""
        self._listeners.append(listener)

    def _notify_connectivity(self, connected: bool) -> None:
        for listener in list(self._listeners):
            try:
                listener(connected)
            except Exception as e:
                logger.error("Connectivity listener failed: %s", e, exc_info=True)

    def _set_state(self, state: SyncState, scope: Scope | None = None) -> None:
        if self._state is SyncState.DISPOSED:
            return
        # A superseded cycle must not overwrite the state of the current one.
        if scope is not None and (scope is not self._sync_scope or not scope.is_alive):
            return
        if state is not self._state:
            logger.debug("Sync state %s -> %s", self._state.value, state.value)
        self._state = state

    def _cancel_cycle(self) -> None:
        if self._sync_scope is not None:
            self._sync_scope.terminate()
        self._sync_scope = None
        self._task = None

    def refresh(self) -> asyncio.Task[None] | None:
        """Start a new sync cycle, cancelling any running one first.

        When the host is not connected the state is IDLE on return and the
        table is cleared in the background (see `wait_idle`).

        Returns:
            The cycle task, or None if no cycle was started (not connected or disposed)
        """
        if self._state is SyncState.DISPOSED or not self._scope.is_alive:
            return None

        host = self.host
        connected = self._provider.is_connected(host)
        self._notify_connectivity(connected)

        self._cancel_cycle()
        self._set_state(SyncState.CONNECTING)

        if not connected:
            logger.info("Not connected to %s, clearing sessions", host)
            self._set_state(SyncState.IDLE)
            self._task = self._scope.spawn(self._reconciler.clear(self._scope), name="sync-clear")
            return None

        self._cycles += 1
        scope = self._scope.create_child(f"sync-{self._cycles}")
        self._sync_scope = scope
        self._task = scope.spawn(self._run_cycle(scope, host), name=f"sync-cycle-{self._cycles}")
        return self._task

    async def _run_cycle(self, scope: Scope, host: str) -> None:
        try:
            client = await self._provider.obtain_client(host)
            self._set_state(SyncState.SYNCING, scope)
            sessions = await load_snapshot(client, self._limit)
        except ConnectivityError as e:
            logger.info("Not connected to %s: %s", host, e)
            await self._reconciler.clear(scope)
            self._set_state(SyncState.IDLE, scope)
            return
        except SnapshotFetchError as e:
            logger.warning("Snapshot fetch failed, keeping last known sessions: %s", e)
            self._set_state(SyncState.STALE if len(self._reconciler) else SyncState.IDLE, scope)
            return

        await self._reconciler.apply_snapshot(sessions, scope)
        self._set_state(SyncState.LIVE, scope)

        try:
            stream = subscribe(scope, client, self._selector)
        except ScopeTerminatedError:
            # refreshed or disposed from inside a render callback
            return

        try:
            async for event in stream:
                await self._reconciler.apply_update(event, scope)
        except SubscriptionBrokenError as e:
            logger.warning("Live updates from %s lost, sessions may be stale: %s", host, e)
            self._set_state(SyncState.STALE, scope)

    async def wait_idle(self) -> None:
        """Wait until the current cycle task (if any) finishes or is cancelled."""
        task = self._task
        if task is not None and not task.done():
            await asyncio.wait({task})

    async def logout(self) -> asyncio.Task[None] | None:
        """Forget the host's token and client, then refresh into IDLE."""
        await self._provider.logout(self.host)
        return self.refresh()

    def dispose(self) -> None:
        """Terminate every cycle; the controller ignores later refreshes."""
        self._scope.terminate()

    def _on_disposed(self) -> None:
        self._sync_scope = None
        self._task = None
        self._state = SyncState.DISPOSED
        logger.debug("Sync controller disposed")
