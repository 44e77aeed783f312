"""Domain models for workspace sessions and their instance states."""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum

logger = logging.getLogger(__name__)


class PresentationCategory(str, Enum):
    """How a session is presented and whether it can be connected to."""

    CONNECTABLE = "connectable"
    STOPPED_OK = "stopped_ok"
    STOPPED_FAILED = "stopped_failed"
    TRANSITIONING = "transitioning"


class Phase(str, Enum):
    """Closed set of instance phases reported by the remote system."""

    UNKNOWN = "unknown"
    PREPARING = "preparing"
    BUILDING = "building"
    PENDING = "pending"
    CREATING = "creating"
    INITIALIZING = "initializing"
    RUNNING = "running"
    INTERRUPTED = "interrupted"
    STOPPING = "stopping"
    STOPPED = "stopped"

    @classmethod
    def parse(cls, value: str | None) -> Phase:
        """Map a raw phase string onto the enum; anything unrecognised is UNKNOWN."""
        if value is None:
            return cls.UNKNOWN
        try:
            return cls(value.strip().lower())
        except ValueError:
            logger.warning("Unrecognised instance phase %r, treating as unknown", value)
            return cls.UNKNOWN


_TRANSITIONING_PHASES = frozenset(
    {
        Phase.PREPARING,
        Phase.BUILDING,
        Phase.PENDING,
        Phase.CREATING,
        Phase.INITIALIZING,
        Phase.STOPPING,
    }
)


def categorize(phase: Phase, failed: str | None = None) -> PresentationCategory:
    """Map a phase (plus failure detail) to exactly one presentation category."""
    if phase is Phase.RUNNING:
        return PresentationCategory.CONNECTABLE
    if phase is Phase.STOPPED:
        if failed and failed.strip():
            return PresentationCategory.STOPPED_FAILED
        return PresentationCategory.STOPPED_OK
    if phase in (Phase.INTERRUPTED, Phase.UNKNOWN):
        return PresentationCategory.STOPPED_FAILED
    if phase in _TRANSITIONING_PHASES:
        return PresentationCategory.TRANSITIONING
    raise ValueError(f"Unhandled phase: {phase}")


@dataclass(frozen=True)
class InstanceState:
    """Latest observed runtime status of a workspace session.

    `creation_time` and `version` together form the recency marker:
    a different instance is ordered by creation time, the same instance by
    its status version.
    """

    instance_id: str
    phase: Phase
    creation_time: datetime
    version: int | None = None
    failed: str | None = None
    ide_url: str = ""

    @property
    def category(self) -> PresentationCategory:
        return categorize(self.phase, self.failed)

    @property
    def can_connect(self) -> bool:
        return self.category in (PresentationCategory.CONNECTABLE, PresentationCategory.TRANSITIONING)


@dataclass(frozen=True)
class WorkspaceSession:
    session_id: str
    context_url: str
    latest_instance: InstanceState

    def with_instance(self, instance: InstanceState) -> WorkspaceSession:
        """Return a copy carrying a new instance state."""
        return replace(self, latest_instance=instance)


@dataclass(frozen=True)
class UpdateEvent:
    session_id: str
    instance: InstanceState


def is_up_to_date(current: InstanceState | None, update: InstanceState) -> bool:
    """Return True when `update` is NOT strictly newer than `current`.

    Ties and unorderable pairs count as up to date so the stored value never
    oscillates between two candidates.
    """
    if current is None:
        return False
    if current.instance_id != update.instance_id:
        try:
            return current.creation_time >= update.creation_time
        except TypeError:
            # naive vs aware timestamps
            return True
    if current.version is None or update.version is None:
        return True
    return current.version >= update.version
