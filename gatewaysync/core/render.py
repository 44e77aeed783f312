"""Outbound channel from the reconciler to the UI render boundary.

The reconciler never calls the render callback on its own task. It publishes a
read-only table snapshot and the channel hands delivery to a dispatcher: by
default `loop.call_soon` on the running loop, or whatever the host UI supplies
(e.g. `ui_loop.call_soon_threadsafe`).
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Mapping

from gatewaysync.core.models import WorkspaceSession
from gatewaysync.core.scope import Scope

logger = logging.getLogger(__name__)

TableView = Mapping[str, WorkspaceSession]
RenderCallback = Callable[[TableView], None]
Dispatcher = Callable[[Callable[[], None]], object]


def _call_soon(fn: Callable[[], None]) -> None:
    asyncio.get_running_loop().call_soon(fn)


class RenderChannel:
    """Delivers table snapshots to an external render callback."""

    def __init__(self, callback: RenderCallback, dispatch: Dispatcher | None = None) -> None:
        self._callback = callback
        self._dispatch = dispatch or _call_soon
        self.published = 0
        self.delivered = 0
        self.dropped = 0

    def publish(self, table: TableView, scope: Scope | None = None) -> None:
        """Enqueue a consistent snapshot for delivery.

        When `scope` is given, delivery is skipped if that scope has been
        terminated by the time the dispatcher runs it.
        """
        self.published += 1

        def deliver() -> None:
            if scope is not None and not scope.is_alive:
                self.dropped += 1
                logger.debug("Dropped render for terminated scope %s", scope.name)
                return
            self.delivered += 1
            try:
                self._callback(table)
            except Exception as e:
                logger.error("Render callback failed: %s", e, exc_info=True)

        self._dispatch(deliver)
