"""Unit tests for StateReconciler and RenderChannel."""

import asyncio

import pytest

from gatewaysync.core.models import Phase
from gatewaysync.core.reconciler import StateReconciler
from gatewaysync.core.render import RenderChannel
from gatewaysync.core.scope import Scope
from tests.fakes import make_event, make_session


def _immediate(fn):
    fn()


@pytest.fixture
def rendered():
    return []


@pytest.fixture
def reconciler(rendered):
    return StateReconciler(RenderChannel(rendered.append, dispatch=_immediate))


def _phases(table):
    return {session_id: session.latest_instance.phase for session_id, session in table.items()}


@pytest.mark.asyncio
async def test_apply_snapshot_replaces_table_and_renders_once(reconciler, rendered):
    await reconciler.apply_snapshot([make_session("old")])
    await reconciler.apply_snapshot([make_session("a", Phase.PENDING), make_session("b")])

    assert _phases(reconciler.table) == {"a": Phase.PENDING, "b": Phase.RUNNING}
    assert len(rendered) == 2
    assert _phases(rendered[-1]) == {"a": Phase.PENDING, "b": Phase.RUNNING}


@pytest.mark.asyncio
async def test_newer_update_is_applied(reconciler, rendered):
    await reconciler.apply_snapshot([make_session("a", Phase.PENDING, version=1)])

    applied = await reconciler.apply_update(make_event("a", Phase.RUNNING, version=2))

    assert applied is True
    assert reconciler.table["a"].latest_instance.phase is Phase.RUNNING
    assert len(rendered) == 2


@pytest.mark.asyncio
@pytest.mark.parametrize("version", [1, 2, None])
async def test_stale_or_equal_update_is_rejected(reconciler, rendered, version):
    await reconciler.apply_snapshot([make_session("a", Phase.RUNNING, version=2)])
    rendered.clear()

    applied = await reconciler.apply_update(make_event("a", Phase.PENDING, version=version))

    assert applied is False
    assert reconciler.table["a"].latest_instance.phase is Phase.RUNNING
    assert rendered == []


@pytest.mark.asyncio
async def test_update_for_unknown_session_is_ignored(reconciler, rendered):
    await reconciler.apply_snapshot([make_session("a")])
    rendered.clear()

    applied = await reconciler.apply_update(make_event("zzz", Phase.RUNNING, version=5))

    assert applied is False
    assert "zzz" not in reconciler.table
    assert rendered == []


@pytest.mark.asyncio
async def test_table_views_are_read_only_snapshots(reconciler, rendered):
    await reconciler.apply_snapshot([make_session("a", Phase.PENDING, version=1)])
    first_view = rendered[0]

    with pytest.raises(TypeError):
        first_view["b"] = make_session("b")  # type: ignore[index]

    await reconciler.apply_update(make_event("a", Phase.RUNNING, version=2))

    # Earlier views keep the state they were published with.
    assert first_view["a"].latest_instance.phase is Phase.PENDING
    assert rendered[1]["a"].latest_instance.phase is Phase.RUNNING


@pytest.mark.asyncio
async def test_clear_renders_only_when_table_had_sessions(reconciler, rendered):
    await reconciler.clear()
    assert rendered == []

    await reconciler.apply_snapshot([make_session("a")])
    await reconciler.clear()

    assert len(reconciler) == 0
    assert len(rendered) == 2
    assert dict(rendered[-1]) == {}


@pytest.mark.asyncio
async def test_update_bound_to_terminated_scope_is_ignored(reconciler, rendered):
    scope = Scope("cycle")
    await reconciler.apply_snapshot([make_session("a", version=1)], scope)
    scope.terminate()

    applied = await reconciler.apply_update(make_event("a", Phase.STOPPING, version=2), scope)

    assert applied is False
    assert reconciler.table["a"].latest_instance.phase is Phase.RUNNING
    assert len(rendered) == 1


@pytest.mark.asyncio
async def test_concurrent_updates_are_serialized(reconciler):
    await reconciler.apply_snapshot([make_session("a", version=1)])

    results = await asyncio.gather(
        *(reconciler.apply_update(make_event("a", Phase.RUNNING, version=v)) for v in (3, 2, 5, 4))
    )

    assert results == [True, False, True, False]
    assert reconciler.table["a"].latest_instance.version == 5


# ==================== RenderChannel ====================


@pytest.mark.asyncio
async def test_default_dispatch_defers_to_event_loop():
    rendered = []
    reconciler = StateReconciler(RenderChannel(rendered.append))

    await reconciler.apply_snapshot([make_session("a")])
    assert rendered == []

    await asyncio.sleep(0)
    assert len(rendered) == 1


@pytest.mark.asyncio
async def test_queued_render_dropped_after_scope_terminates():
    rendered = []
    channel = RenderChannel(rendered.append)
    scope = Scope("cycle")

    channel.publish({}, scope)
    scope.terminate()
    await asyncio.sleep(0)

    assert rendered == []
    assert channel.published == 1
    assert channel.dropped == 1


def test_failing_render_callback_is_contained():
    def boom(_table):
        raise RuntimeError("render failed")

    channel = RenderChannel(boom, dispatch=_immediate)
    channel.publish({})

    assert channel.delivered == 1


@pytest.mark.asyncio
async def test_clear_render_dropped_when_scope_terminated():
    rendered = []
    reconciler = StateReconciler(RenderChannel(rendered.append))
    scope = Scope("sync")
    await reconciler.apply_snapshot([make_session("a")])
    await asyncio.sleep(0)

    await reconciler.clear(scope)
    scope.terminate()
    await asyncio.sleep(0)

    assert len(reconciler) == 0
    assert len(rendered) == 1


@pytest.mark.asyncio
async def test_snapshot_bound_to_terminated_scope_is_ignored(reconciler, rendered):
    scope = Scope("cycle")
    scope.terminate()

    await reconciler.apply_snapshot([make_session("a")], scope)

    assert len(reconciler) == 0
    assert rendered == []
