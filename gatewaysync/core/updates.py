"""Cancellable stream of instance-status updates.

`subscribe()` returns an `UpdateStream` bound to a scope. A pump task spawned
on that scope reads the client's push connection into a queue; the consumer
iterates the stream with `async for`. The stream has two distinct terminal
states:

- STOPPED: the scope was terminated. Iteration ends cleanly and anything
  still buffered is discarded.
- FAILED: the connection broke. Buffered events are still delivered, then
  `SubscriptionBrokenError` is raised once.

A finished stream stays finished; resuming needs a fresh `subscribe()`.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from enum import Enum

from gatewaysync.constants import ALL_SESSIONS_SELECTOR
from gatewaysync.core.errors import ScopeTerminatedError, SubscriptionBrokenError
from gatewaysync.core.models import UpdateEvent
from gatewaysync.core.protocols import WorkspaceSource
from gatewaysync.core.scope import Scope

logger = logging.getLogger(__name__)


class StreamState(str, Enum):
    OPEN = "open"
    STOPPED = "stopped"
    FAILED = "failed"


class _End:
    """Queue sentinel marking the end of the stream."""


_END = _End()


class UpdateStream:
    """Async iterator of UpdateEvents, terminated by its scope or by failure."""

    def __init__(self, scope: Scope, source: AsyncIterator[UpdateEvent], name: str = "updates") -> None:
        self._scope = scope
        self._source = source
        self._queue: asyncio.Queue[UpdateEvent | _End] = asyncio.Queue()
        self._state = StreamState.OPEN
        self._error: SubscriptionBrokenError | None = None
        self._finished = False
        scope.on_termination(self._stop)
        self._pump = scope.spawn(self._run_pump(), name=f"{name}-pump")

    @property
    def state(self) -> StreamState:
        return self._state

    @property
    def error(self) -> SubscriptionBrokenError | None:
        return self._error

    async def _run_pump(self) -> None:
        try:
            async for event in self._source:
                self._queue.put_nowait(event)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            broken = SubscriptionBrokenError(f"Update subscription broke: {e}")
            broken.__cause__ = e
            self._fail(broken)
            return
        self._fail(SubscriptionBrokenError("Update subscription closed by remote"))

    def _fail(self, error: SubscriptionBrokenError) -> None:
        if self._state is not StreamState.OPEN:
            return
        self._state = StreamState.FAILED
        self._error = error
        logger.warning("%s", error)
        self._queue.put_nowait(_END)

    def _stop(self) -> None:
        if self._state is not StreamState.OPEN:
            return
        self._state = StreamState.STOPPED
        logger.debug("Update stream on scope %s stopped", self._scope.name)
        self._queue.put_nowait(_END)

    def __aiter__(self) -> UpdateStream:
        return self

    async def __anext__(self) -> UpdateEvent:
        if self._finished or self._state is StreamState.STOPPED:
            raise StopAsyncIteration

        item = await self._queue.get()
        if self._state is StreamState.STOPPED:
            self._finished = True
            raise StopAsyncIteration
        if isinstance(item, _End):
            self._finished = True
            if self._error is not None:
                raise self._error
            raise StopAsyncIteration
        return item


def subscribe(scope: Scope, client: WorkspaceSource, selector: str = ALL_SESSIONS_SELECTOR) -> UpdateStream:
    """Open an update subscription bound to `scope`.

    Raises:
        ScopeTerminatedError: If `scope` is already terminated
    """
    if not scope.is_alive:
        raise ScopeTerminatedError(f"Cannot subscribe: scope {scope.name!r} is terminated")
    return UpdateStream(scope, client.listen_to_workspace(selector), name=f"updates-{client.host}")
