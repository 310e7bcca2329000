from enum import Enum
from typing import Iterable, Optional
import logging
import time

from toggl_sync.constants.anomalies import AnomalyCode, explain_anomaly
from toggl_sync.schemas.toggl import TimeEntrySnapshot

log = logging.getLogger(__name__)


class ChangeKind(str, Enum):
    NO_TIMER = "no_timer"  # label for "nothing running"; classify() never returns it
    STARTED = "started"
    SWITCHED = "switched"
    UPDATED = "updated"
    STOPPED = "stopped"
    UNCHANGED = "unchanged"


def tags_changed(old_tags: Optional[Iterable[str]], new_tags: Optional[Iterable[str]]) -> bool:
    """Order-insensitive tag comparison: same size and every old tag still present."""
    old_tags = list(old_tags or [])
    new_tags = list(new_tags or [])
    if len(old_tags) != len(new_tags):
        return True
    return any(tag not in new_tags for tag in old_tags)


def classify(previous: Optional[TimeEntrySnapshot], current: Optional[TimeEntrySnapshot]) -> ChangeKind:
    """
    Compares two consecutive polls of the running timer.

    Only description, project, start and tags count as an update of the same
    entry; the running duration changes on every poll and is ignored.
    """
    if current is None and previous is None:
        return ChangeKind.UNCHANGED

    if current is not None:
        if previous is None:
            log.debug("Case 1: no timer -> active timer")
            return ChangeKind.STARTED
        if previous.id != current.id:
            log.debug("Case 2: old timer -> new timer (new ID)")
            return ChangeKind.SWITCHED
        if (previous.description != current.description or
                previous.project_id != current.project_id or
                previous.start != current.start or
                tags_changed(previous.tags, current.tags)):
            log.debug("Case 3: timer details update (same ID)")
            return ChangeKind.UPDATED
        return ChangeKind.UNCHANGED

    log.debug("Case 4: active timer -> no timer")
    return ChangeKind.STOPPED


def filter_workspace(snapshot: Optional[TimeEntrySnapshot], workspace_id: Optional[str]) -> Optional[TimeEntrySnapshot]:
    """
    Drops a timer that belongs to another workspace.

    A timer is only dropped when it also has a project: projectless timers
    are kept whatever their workspace.
    """
    if snapshot is None:
        return None
    if (str(snapshot.workspace_id) != str(workspace_id) and
            snapshot.project_id is not None):
        log.info(explain_anomaly(AnomalyCode.CROSS_WORKSPACE_TIMER, {
            "entry_id": snapshot.id,
            "entry_workspace_id": snapshot.workspace_id,
            "workspace_id": workspace_id,
        }))
        return None
    return snapshot


def timer_duration(entry: TimeEntrySnapshot, now: Optional[float] = None) -> int:
    """
    Elapsed seconds of a time entry.

    Stopped entries carry their duration literally. Running entries carry
    the negative epoch of their start, so elapsed = now_epoch + duration.
    """
    if entry.stop:
        return entry.duration
    epoch_time = round(time.time() if now is None else now)
    return epoch_time + entry.duration


def status_text(entry: Optional[TimeEntrySnapshot], char_limit: int, now: Optional[float] = None) -> str:
    """One-line description of the running timer, e.g. 'Timer: Review (12 minutes)'."""
    if entry is None:
        return "Timer: -"

    title = entry.description or "No description"
    if len(title) > char_limit:
        title = f"{title[:char_limit - 3]}..."
    minutes = timer_duration(entry, now) // 60
    time_string = f"{minutes} minute{'s' if minutes != 1 else ''}"
    return f"Timer: {title} ({time_string})"
