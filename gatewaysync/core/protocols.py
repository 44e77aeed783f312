"""Structural types for the collaborators the sync core consumes."""

from __future__ import annotations

from collections.abc import AsyncIterator, Sequence
from typing import TYPE_CHECKING, Protocol

from gatewaysync.core.models import UpdateEvent

if TYPE_CHECKING:
    from gatewaysync.client.models import WorkspaceInfoPayload


class WorkspaceSource(Protocol):
    """What the loader and subscriber need from an API client."""

    host: str

    async def get_workspaces(self, limit: int) -> Sequence["WorkspaceInfoPayload"]: ...

    def listen_to_workspace(self, selector: str = ...) -> AsyncIterator[UpdateEvent]: ...


class ClientProvider(Protocol):
    """What the controller needs from the connection layer."""

    def is_connected(self, host: str) -> bool: ...

    async def obtain_client(self, host: str) -> WorkspaceSource: ...

    async def logout(self, host: str) -> None: ...
