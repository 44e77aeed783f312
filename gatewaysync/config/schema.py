from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from gatewaysync.constants import (
    ALL_SESSIONS_SELECTOR,
    DEFAULT_HOST,
    DEFAULT_REQUEST_TIMEOUT_S,
    DEFAULT_SNAPSHOT_LIMIT,
    MAX_SNAPSHOT_LIMIT,
)
from gatewaysync.utils import normalize_host


class SyncConfig(BaseModel):
    model_config = ConfigDict(extra="allow")
    host: str = DEFAULT_HOST
    snapshot_limit: int = Field(default=DEFAULT_SNAPSHOT_LIMIT, ge=1, le=MAX_SNAPSHOT_LIMIT)
    selector: str = ALL_SESSIONS_SELECTOR
    request_timeout_s: float = Field(default=DEFAULT_REQUEST_TIMEOUT_S, gt=0)
    # Only the CLI re-triggers on a timer; the controller itself never does.
    resync_interval_s: Optional[float] = Field(default=None, gt=0)
    tokens: Dict[str, str] = {}

    @field_validator("host")
    @classmethod
    def validate_host(cls, v: str) -> str:
        host = normalize_host(v)
        if not host:
            raise ValueError("host must not be empty")
        return host

    @field_validator("tokens")
    @classmethod
    def normalize_token_hosts(cls, v: Dict[str, str]) -> Dict[str, str]:
        return {normalize_host(host): token for host, token in v.items() if token}
