from enum import Enum
from typing import Dict


class AnomalyCode(Enum):
    """Remote data problems that are repaired locally and only logged."""
    DUPLICATE_RECORDS = "DUPLICATE_RECORDS"
    CROSS_WORKSPACE_TIMER = "CROSS_WORKSPACE_TIMER"


def explain_anomaly(code: AnomalyCode, context: Dict) -> str:
    templates = {
        AnomalyCode.DUPLICATE_RECORDS: "Toggl returned {dropped} duplicate record(s) for {since} to {until}; kept first occurrence of each id.",
        AnomalyCode.CROSS_WORKSPACE_TIMER: "Ignoring running timer {entry_id} from workspace {entry_workspace_id} (configured workspace: {workspace_id}).",
    }
    return templates[code].format(**context)
