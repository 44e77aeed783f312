"""Hierarchical cancellation scopes.

A scope is an explicit cancellation context. Children are created from a
parent and terminate independently, but terminating a parent terminates every
live descendant, cancels every task spawned on them, and runs every
registered termination callback exactly once.

Example:
    ui_scope = Scope("recents-view")
    sync_scope = ui_scope.create_child("sync")
    sync_scope.spawn(run_cycle(sync_scope), name="sync-cycle")

    ui_scope.terminate()  # cancels run_cycle and sync_scope's callbacks
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Coroutine, TypeVar

from gatewaysync.core.errors import ScopeTerminatedError

logger = logging.getLogger(__name__)

T = TypeVar("T")

TerminationCallback = Callable[[], object]


class Scope:
    """A node in the cancellation tree."""

    def __init__(self, name: str = "root", parent: Scope | None = None) -> None:
        self.name = name
        self._parent = parent
        self._children: list[Scope] = []
        self._callbacks: list[TerminationCallback] = []
        self._tasks: set[asyncio.Task[object]] = set()
        self._alive = True

    def __repr__(self) -> str:
        state = "alive" if self._alive else "terminated"
        return f"Scope({self.name!r}, {state})"

    @property
    def is_alive(self) -> bool:
        return self._alive

    @property
    def children(self) -> tuple[Scope, ...]:
        return tuple(self._children)

    def task_count(self) -> int:
        """Number of spawned tasks still running on this scope."""
        return len(self._tasks)

    def _ensure_alive(self, action: str) -> None:
        if not self._alive:
            raise ScopeTerminatedError(f"Cannot {action}: scope {self.name!r} is terminated")

    def create_child(self, name: str | None = None) -> Scope:
        """Create a nested scope that dies with this one."""
        self._ensure_alive("create child scope")
        child = Scope(name or f"{self.name}/{len(self._children)}", parent=self)
        self._children.append(child)
        return child

    def on_termination(self, callback: TerminationCallback) -> None:
        """Register a callback to run once when this scope terminates."""
        self._ensure_alive("register termination callback")
        self._callbacks.append(callback)

    def spawn(self, coro: Coroutine[object, object, T], name: str | None = None) -> asyncio.Task[T]:
        """Run a coroutine as a task bound to this scope.

        Terminating the scope cancels the task. A terminated scope refuses the
        work and closes the coroutine so it is never left un-awaited.
        """
        if not self._alive:
            coro.close()
            raise ScopeTerminatedError(f"Cannot spawn task: scope {self.name!r} is terminated")

        task = asyncio.create_task(coro, name=name)
        self._tasks.add(task)  # type: ignore[arg-type]
        task.add_done_callback(self._on_task_done)  # type: ignore[arg-type]
        logger.debug("Spawned task %s on scope %s (total: %d)", task.get_name(), self.name, len(self._tasks))
        return task

    def _on_task_done(self, task: asyncio.Task[object]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc:
            logger.error("Task %s on scope %s failed: %s", task.get_name(), self.name, exc, exc_info=exc)

    def terminate(self) -> None:
        """Terminate this scope and all descendants. Idempotent."""
        if not self._alive:
            return
        self._alive = False

        for child in list(reversed(self._children)):
            child.terminate()
        self._children.clear()

        for task in list(self._tasks):
            if not task.done():
                task.cancel()

        callbacks, self._callbacks = self._callbacks, []
        for callback in reversed(callbacks):
            try:
                callback()
            except Exception as e:
                logger.error("Termination callback failed on scope %s: %s", self.name, e, exc_info=True)

        if self._parent is not None:
            self._parent._detach(self)
        logger.debug("Scope %s terminated", self.name)

    def _detach(self, child: Scope) -> None:
        if child in self._children:
            self._children.remove(child)


def create_child(parent: Scope, name: str | None = None) -> Scope:
    return parent.create_child(name)


def terminate(scope: Scope) -> None:
    scope.terminate()


def on_termination(scope: Scope, callback: TerminationCallback) -> None:
    scope.on_termination(callback)
