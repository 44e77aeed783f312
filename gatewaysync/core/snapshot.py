"""One-shot bulk fetch of workspace sessions."""

from __future__ import annotations

import logging

from gatewaysync.client.api_client import APIError
from gatewaysync.core.errors import ConnectivityError, SnapshotFetchError
from gatewaysync.core.models import WorkspaceSession
from gatewaysync.core.protocols import WorkspaceSource

logger = logging.getLogger(__name__)


async def load_snapshot(client: WorkspaceSource, limit: int) -> list[WorkspaceSession]:
    """Fetch up to `limit` sessions, most relevant first.

    Workspaces without an instance are left out; they become visible once a
    later snapshot sees them with one.

    Raises:
        ConnectivityError: If the host rejected the access token
        SnapshotFetchError: For any other fetch failure
    """
    if limit < 1:
        raise ValueError(f"limit must be positive, got {limit}")

    try:
        infos = await client.get_workspaces(limit=limit)
    except APIError as e:
        if e.is_auth_error:
            raise ConnectivityError(f"Access to {client.host} rejected: {e.detail}", host=client.host) from e
        raise SnapshotFetchError(f"Failed to load workspaces from {client.host}: {e}", host=client.host) from e

    sessions: list[WorkspaceSession] = []
    skipped = 0
    for info in list(infos)[:limit]:
        session = info.to_session()
        if session is None:
            skipped += 1
            continue
        sessions.append(session)

    logger.debug("Loaded %d session(s) from %s (%d without instance)", len(sessions), client.host, skipped)
    return sessions
