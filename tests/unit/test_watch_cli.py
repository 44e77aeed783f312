"""Unit tests for the gwsync-watch CLI."""

import pytest
from rich.console import Console

from gatewaysync import __version__
from gatewaysync.cli.watch import _parse_args, _resolve_config, build_table
from gatewaysync.core.models import Phase
from tests.fakes import make_session


def _render(table) -> str:
    console = Console(width=200, record=True)
    console.print(table)
    return console.export_text()


def test_build_table_lists_sessions():
    sessions = {
        "ws-run": make_session("ws-run", Phase.RUNNING),
        "ws-fail": make_session("ws-fail", Phase.STOPPED, failed="OOM"),
    }

    text = _render(build_table("gitpod.example", sessions))

    assert "ws-run" in text
    assert "gateway" in text
    assert "stopped (OOM)" in text
    assert sessions["ws-fail"].latest_instance.ide_url in text


def test_build_table_empty():
    text = _render(build_table("gitpod.example", {}))

    assert "No workspaces" in text


def test_cli_overrides_config(tmp_path):
    path = tmp_path / "gatewaysync.yml"
    path.write_text("host: gitpod.example\nsnapshot_limit: 10\n", encoding="utf-8")

    args = _parse_args(["--config", str(path), "--host", "https://other.example/", "--limit", "5"])
    cfg = _resolve_config(args)

    assert cfg.host == "other.example"
    assert cfg.snapshot_limit == 5


def test_cli_without_overrides_uses_file(tmp_path):
    path = tmp_path / "gatewaysync.yml"
    path.write_text("host: gitpod.example\n", encoding="utf-8")

    cfg = _resolve_config(_parse_args(["--config", str(path)]))

    assert cfg.host == "gitpod.example"


def test_version_flag_prints_package_version(capsys):
    with pytest.raises(SystemExit) as exc:
        _parse_args(["--version"])

    assert exc.value.code == 0
    assert __version__ in capsys.readouterr().out
