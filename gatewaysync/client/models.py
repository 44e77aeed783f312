"""Wire models for the remote workspace API.

The remote speaks camelCase JSON; these models accept it via aliases and
convert to the domain types in `gatewaysync.core.models`.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from gatewaysync.core.models import InstanceState, Phase, UpdateEvent, WorkspaceSession


class _WireModel(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)


class InstanceConditionsPayload(_WireModel):
    failed: str | None = None


class InstanceStatusPayload(_WireModel):
    phase: str | None = None
    version: int | None = None
    conditions: InstanceConditionsPayload = InstanceConditionsPayload()


class WorkspaceInstancePayload(_WireModel):
    id: str
    workspace_id: str = Field(alias="workspaceId")
    creation_time: datetime = Field(alias="creationTime")
    ide_url: str = Field(default="", alias="ideUrl")
    status: InstanceStatusPayload = InstanceStatusPayload()

    def to_state(self) -> InstanceState:
        return InstanceState(
            instance_id=self.id,
            phase=Phase.parse(self.status.phase),
            creation_time=self.creation_time,
            version=self.status.version,
            failed=self.status.conditions.failed,
            ide_url=self.ide_url,
        )

    def to_event(self) -> UpdateEvent:
        return UpdateEvent(session_id=self.workspace_id, instance=self.to_state())


class WorkspaceContextPayload(_WireModel):
    normalized_context_url: str = Field(default="", alias="normalizedContextURL")


class WorkspacePayload(_WireModel):
    id: str
    context: WorkspaceContextPayload = WorkspaceContextPayload()


class WorkspaceInfoPayload(_WireModel):
    workspace: WorkspacePayload
    latest_instance: WorkspaceInstancePayload | None = Field(default=None, alias="latestInstance")

    def to_session(self) -> WorkspaceSession | None:
        """Domain session, or None while the workspace has no instance yet."""
        if self.latest_instance is None:
            return None
        return WorkspaceSession(
            session_id=self.workspace.id,
            context_url=self.workspace.context.normalized_context_url,
            latest_instance=self.latest_instance.to_state(),
        )
