"""gwsync-watch: live terminal view of the workspace sessions on a host."""

from __future__ import annotations

import argparse
import asyncio
import logging
from pathlib import Path

from rich.console import Console
from rich.live import Live
from rich.table import Table
from rich.text import Text

from gatewaysync import __version__
from gatewaysync.client.connection import ConnectionProvider, EnvTokenStore
from gatewaysync.config import SyncConfig, config, load_config
from gatewaysync.core.models import PresentationCategory
from gatewaysync.core.presentation import connect_action, dashboard_url
from gatewaysync.core.reconciler import StateReconciler
from gatewaysync.core.render import RenderChannel, TableView
from gatewaysync.core.scope import Scope
from gatewaysync.core.sync_controller import SyncController
from gatewaysync.logging_config import setup_logging
from gatewaysync.utils import normalize_host

logger = logging.getLogger(__name__)

_CATEGORY_STYLES = {
    PresentationCategory.CONNECTABLE: "green",
    PresentationCategory.TRANSITIONING: "yellow",
    PresentationCategory.STOPPED_OK: "dim",
    PresentationCategory.STOPPED_FAILED: "red",
}


def build_table(host: str, sessions: TableView) -> Table:
    """Render the session table as a rich Table."""
    table = Table(title=f"Workspaces on {dashboard_url(host)}", expand=True)
    table.add_column("Workspace", no_wrap=True)
    table.add_column("Phase")
    table.add_column("Context")
    table.add_column("Connect")

    for session in sessions.values():
        instance = session.latest_instance
        category = instance.category
        phase = Text(instance.phase.value, style=_CATEGORY_STYLES[category])
        if instance.failed:
            phase.append(f" ({instance.failed})", style="red")
        action = connect_action(host, session)
        target = "gateway" if action.kind == "gateway" else (action.url or "-")
        table.add_row(session.session_id, phase, session.context_url, target)

    if not sessions:
        table.caption = "No workspaces"
    return table


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Watch remote workspace sessions")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--config", default=None, help="Path to gatewaysync.yml")
    parser.add_argument("--host", default=None, help="Remote host (overrides config)")
    parser.add_argument("--limit", type=int, default=None, help="Maximum number of workspaces to load")
    parser.add_argument("--log-level", default=None, help="Log level (overrides GATEWAYSYNC_LOG_LEVEL)")
    return parser.parse_args(argv)


def _resolve_config(args: argparse.Namespace) -> SyncConfig:
    cfg = load_config(Path(args.config).expanduser()) if args.config else config
    updates: dict[str, object] = {}
    if args.host:
        updates["host"] = normalize_host(args.host)
    if args.limit is not None:
        updates["snapshot_limit"] = args.limit
    # Re-validate so CLI overrides get the same checks as the file.
    return SyncConfig.model_validate({**cfg.model_dump(), **updates}) if updates else cfg


async def watch(cfg: SyncConfig, console: Console | None = None) -> None:
    """Run sync cycles for `cfg.host` until cancelled."""
    console = console or Console()
    root = Scope("gwsync-watch")
    provider = ConnectionProvider(EnvTokenStore(cfg.tokens), timeout=cfg.request_timeout_s)

    with Live(build_table(cfg.host, {}), console=console, auto_refresh=False) as live:

        def on_table_changed(sessions: TableView) -> None:
            live.update(build_table(cfg.host, sessions), refresh=True)

        def on_connectivity(connected: bool) -> None:
            if not connected:
                console.print(f"[yellow]Not connected to {cfg.host}; set a token and retry.[/yellow]")

        reconciler = StateReconciler(RenderChannel(on_table_changed))
        controller = SyncController(
            root,
            provider,
            reconciler,
            cfg.host,
            limit=cfg.snapshot_limit,
            selector=cfg.selector,
        )
        controller.add_connectivity_listener(on_connectivity)

        try:
            controller.refresh()
            if cfg.resync_interval_s is None:
                await asyncio.Event().wait()
            while True:
                await asyncio.sleep(cfg.resync_interval_s)
                logger.debug("Periodic resync of %s", cfg.host)
                controller.refresh()
        finally:
            root.terminate()
            await provider.close()


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    setup_logging(args.log_level)
    cfg = _resolve_config(args)
    try:
        asyncio.run(watch(cfg))
    except KeyboardInterrupt:
        pass
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
