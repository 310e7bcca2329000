import pytest

from toggl_sync.services.reconciler import (
    ChangeKind,
    classify,
    filter_workspace,
    status_text,
    tags_changed,
    timer_duration,
)


def test_no_timer_before_and_after_is_unchanged():
    assert classify(None, None) == ChangeKind.UNCHANGED


def test_new_timer_is_started(make_snapshot):
    assert classify(None, make_snapshot()) == ChangeKind.STARTED


def test_timer_gone_is_stopped(make_snapshot):
    assert classify(make_snapshot(), None) == ChangeKind.STOPPED


def test_different_id_is_switched_even_if_fields_match(make_snapshot):
    assert classify(make_snapshot(id=1), make_snapshot(id=2)) == ChangeKind.SWITCHED


def test_identical_snapshot_is_unchanged(make_snapshot):
    assert classify(make_snapshot(), make_snapshot()) == ChangeKind.UNCHANGED


@pytest.mark.parametrize("field,value", [
    ("description", "Something else"),
    ("project_id", 11),
    ("project_id", None),
    ("start", "2023-11-14T23:00:00+00:00"),
    ("tags", ["a", "c"]),
    ("tags", ["a"]),
])
def test_single_field_change_is_updated(make_snapshot, field, value):
    assert classify(make_snapshot(), make_snapshot(**{field: value})) == ChangeKind.UPDATED


def test_running_duration_is_not_a_change(make_snapshot):
    previous = make_snapshot(duration=-1700000000)
    current = make_snapshot(duration=-1700000000, stop=None)
    assert classify(previous, current) == ChangeKind.UNCHANGED


def test_tag_order_is_ignored(make_snapshot):
    assert classify(make_snapshot(tags=["a", "b"]), make_snapshot(tags=["b", "a"])) == ChangeKind.UNCHANGED


def test_missing_tags_equal_empty_tags():
    assert tags_changed(None, []) is False
    assert tags_changed([], None) is False
    assert tags_changed(None, ["x"]) is True


def test_running_duration_counts_from_negative_epoch(make_snapshot):
    entry = make_snapshot(duration=-1700000000, stop=None)
    assert timer_duration(entry, now=1700000100) == 100


def test_stopped_duration_is_literal(make_snapshot):
    entry = make_snapshot(duration=3600, stop="2023-11-15T00:00:00+00:00")
    assert timer_duration(entry, now=1700000100) == 3600


def test_timer_from_other_workspace_is_dropped(make_snapshot):
    entry = make_snapshot(workspace_id=999, project_id=10)
    assert filter_workspace(entry, "100") is None
    assert classify(None, filter_workspace(entry, "100")) == ChangeKind.UNCHANGED


def test_projectless_timer_from_other_workspace_is_kept(make_snapshot):
    entry = make_snapshot(workspace_id=999, project_id=None)
    assert filter_workspace(entry, "100") is entry


def test_timer_from_configured_workspace_is_kept(make_snapshot):
    entry = make_snapshot(workspace_id=100)
    assert filter_workspace(entry, "100") is entry
    assert filter_workspace(None, "100") is None


def test_status_text_without_timer():
    assert status_text(None, 20) == "Timer: -"


def test_status_text_minutes(make_snapshot):
    entry = make_snapshot(description="Review", duration=-1700000000)
    assert status_text(entry, 20, now=1700000000 + 61) == "Timer: Review (1 minute)"
    assert status_text(entry, 20, now=1700000000 + 185) == "Timer: Review (3 minutes)"


def test_status_text_truncates_long_titles(make_snapshot):
    entry = make_snapshot(description="A very long description indeed", duration=0, stop="2023-11-15T00:00:00+00:00")
    assert status_text(entry, 10) == "Timer: A very ... (0 minutes)"


def test_status_text_without_description(make_snapshot):
    entry = make_snapshot(description=None, duration=120, stop="2023-11-15T00:00:00+00:00")
    assert status_text(entry, 20) == "Timer: No description (2 minutes)"
