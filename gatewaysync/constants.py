"""Constants used across gatewaysync.

This module defines shared constants to ensure consistency.
"""

# Remote host defaults
DEFAULT_HOST = "gitpod.io"
API_PATH = "/api"
WS_PATH = "/api/v1"

# Snapshot fetch cap (not a pagination cursor)
DEFAULT_SNAPSHOT_LIMIT = 20
MAX_SNAPSHOT_LIMIT = 100

# Selector meaning "all sessions visible to this connection"
ALL_SESSIONS_SELECTOR = "*"

# Transport
DEFAULT_REQUEST_TIMEOUT_S = 5.0
WS_OPEN_TIMEOUT_S = 10.0
WS_CLOSE_TIMEOUT_S = 2.0

# Referrer used when opening the dashboard to start a new workspace
GATEWAY_REFERRER = "jetbrains-gateway"

# Env vars
ENV_LOG_LEVEL = "GATEWAYSYNC_LOG_LEVEL"
ENV_TOKEN = "GATEWAYSYNC_TOKEN"
ENV_CONFIG_PATH = "GATEWAYSYNC_CONFIG"
ENV_DOTENV_PATH = "GATEWAYSYNC_ENV_PATH"
