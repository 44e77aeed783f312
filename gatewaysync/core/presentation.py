"""What the UI does with a session: connect via the gateway or open a browser."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

from gatewaysync.constants import GATEWAY_REFERRER
from gatewaysync.core.models import WorkspaceSession
from gatewaysync.utils import normalize_host


@dataclass(frozen=True)
class ConnectAction:
    kind: Literal["gateway", "browser"]
    url: str | None = None
    params: dict[str, str] = field(default_factory=dict)


def connect_action(host: str, session: WorkspaceSession) -> ConnectAction:
    """Gateway connection for running or starting sessions, the IDE URL otherwise."""
    instance = session.latest_instance
    if instance.can_connect:
        return ConnectAction(
            kind="gateway",
            params={"gitpodHost": normalize_host(host), "workspaceId": session.session_id},
        )
    return ConnectAction(kind="browser", url=instance.ide_url)


def dashboard_url(host: str) -> str:
    return f"https://{normalize_host(host)}"


def new_workspace_url(host: str, context_url: str) -> str:
    """Dashboard URL that creates a workspace for `context_url`."""
    context_url = context_url.strip()
    if not context_url:
        raise ValueError("context_url must not be blank")
    return f"{dashboard_url(host)}#referrer:{GATEWAY_REFERRER}/{context_url}"
