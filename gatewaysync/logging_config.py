"""gatewaysync logging configuration.

Modules log through `logging.getLogger(__name__)`; this module only wires the
`gatewaysync` logger to a stream handler. Host applications that embed the
sync client configure logging themselves and never call `setup_logging`.
"""

from __future__ import annotations

import logging
import os
from typing import Optional

from gatewaysync.constants import ENV_LOG_LEVEL

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def setup_logging(level: Optional[str] = None) -> None:
    """Configure gatewaysync logging.

    Args:
        level: Optional override for `GATEWAYSYNC_LOG_LEVEL`.
    """
    if level:
        os.environ[ENV_LOG_LEVEL] = level

    resolved = os.getenv(ENV_LOG_LEVEL, "INFO").upper()
    root = logging.getLogger("gatewaysync")
    root.setLevel(getattr(logging, resolved, logging.INFO))

    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)
