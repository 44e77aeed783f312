"""Unit tests for session models and the recency rule."""

import pytest

from gatewaysync.core.models import Phase, PresentationCategory, categorize, is_up_to_date
from tests.fakes import later, make_instance, make_session


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("running", Phase.RUNNING),
        ("STOPPED", Phase.STOPPED),
        (" interrupted ", Phase.INTERRUPTED),
        ("hibernating", Phase.UNKNOWN),
        (None, Phase.UNKNOWN),
    ],
)
def test_phase_parse(raw, expected):
    """Unrecognised phases map to UNKNOWN instead of falling through."""
    assert Phase.parse(raw) is expected


@pytest.mark.parametrize(
    ("phase", "failed", "expected"),
    [
        (Phase.RUNNING, None, PresentationCategory.CONNECTABLE),
        (Phase.STOPPED, None, PresentationCategory.STOPPED_OK),
        (Phase.STOPPED, "  ", PresentationCategory.STOPPED_OK),
        (Phase.STOPPED, "image build failed", PresentationCategory.STOPPED_FAILED),
        (Phase.INTERRUPTED, None, PresentationCategory.STOPPED_FAILED),
        (Phase.UNKNOWN, None, PresentationCategory.STOPPED_FAILED),
        (Phase.PENDING, None, PresentationCategory.TRANSITIONING),
        (Phase.INITIALIZING, None, PresentationCategory.TRANSITIONING),
        (Phase.STOPPING, None, PresentationCategory.TRANSITIONING),
    ],
)
def test_categorize(phase, failed, expected):
    assert categorize(phase, failed) is expected


def test_every_phase_has_a_category():
    for phase in Phase:
        assert isinstance(categorize(phase), PresentationCategory)


def test_can_connect_for_running_and_starting_only():
    assert make_instance(Phase.RUNNING).can_connect is True
    assert make_instance(Phase.CREATING).can_connect is True
    assert make_instance(Phase.STOPPED).can_connect is False
    assert make_instance(Phase.INTERRUPTED).can_connect is False


def test_with_instance_returns_copy():
    session = make_session("ws-a", Phase.PENDING)
    updated = session.with_instance(make_instance(Phase.RUNNING, version=2, instance_id="ws-a-inst"))

    assert updated is not session
    assert updated.latest_instance.phase is Phase.RUNNING
    assert session.latest_instance.phase is Phase.PENDING
    assert updated.context_url == session.context_url


# ==================== is_up_to_date ====================


def test_newer_version_of_same_instance_is_not_up_to_date():
    assert is_up_to_date(make_instance(version=1), make_instance(version=2)) is False


def test_equal_version_is_up_to_date():
    assert is_up_to_date(make_instance(version=3), make_instance(Phase.STOPPING, version=3)) is True


def test_older_version_is_up_to_date():
    assert is_up_to_date(make_instance(version=5), make_instance(version=4)) is True


@pytest.mark.parametrize(("current", "update"), [(None, 2), (2, None), (None, None)])
def test_missing_version_is_unorderable(current, update):
    """Unorderable pairs are rejected so the stored value never oscillates."""
    assert is_up_to_date(make_instance(version=current), make_instance(version=update)) is True


def test_newer_instance_supersedes_older_instance():
    current = make_instance(Phase.STOPPED, version=9, instance_id="old")
    update = make_instance(Phase.PENDING, version=1, instance_id="new", created=later(5))
    assert is_up_to_date(current, update) is False


def test_older_instance_is_up_to_date():
    current = make_instance(instance_id="new", created=later(5))
    update = make_instance(instance_id="old", version=99)
    assert is_up_to_date(current, update) is True


def test_different_instance_same_creation_time_is_up_to_date():
    assert is_up_to_date(make_instance(instance_id="a"), make_instance(instance_id="b")) is True


def test_no_current_state_accepts_anything():
    assert is_up_to_date(None, make_instance()) is False
