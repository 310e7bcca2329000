from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from toggl_sync.schemas.report import DetailedRecord, ReportQuery, SummaryReport
from toggl_sync.schemas.toggl import (
    Project,
    Tag,
    TimeEntrySnapshot,
    TimeEntryStart,
    Workspace,
)


class TimeTrackingConnector(ABC):
    """Abstract Base Class for the remote time-tracking account."""

    def __init__(self, config: Dict[str, Any]):
        self.config = config

    @abstractmethod
    async def test_connection(self) -> None:
        """Raises ConnectivityError when the remote API cannot be reached."""
        pass

    @abstractmethod
    async def fetch_current_timer(self) -> Optional[TimeEntrySnapshot]:
        """Returns the currently running timer, if any."""
        pass

    @abstractmethod
    async def fetch_daily_summary(self) -> SummaryReport:
        """Summary report for the current day, ordered by duration."""
        pass

    @abstractmethod
    async def fetch_summary_report(self, query: ReportQuery) -> SummaryReport:
        pass

    @abstractmethod
    async def fetch_detailed_report_all(self, query: ReportQuery) -> List[DetailedRecord]:
        """Walks every page of the detailed report and returns the raw records."""
        pass

    @abstractmethod
    async def start_timer(self, entry: TimeEntryStart) -> TimeEntrySnapshot:
        pass

    @abstractmethod
    async def stop_timer(self, entry_id: int) -> TimeEntrySnapshot:
        pass

    @abstractmethod
    async def list_workspaces(self) -> List[Workspace]:
        pass

    @abstractmethod
    async def list_projects(self, workspace_id: str) -> List[Project]:
        pass

    @abstractmethod
    async def list_tags(self, workspace_id: str) -> List[Tag]:
        pass

    async def close(self) -> None:
        """Releases network resources held by the connector."""
        pass
