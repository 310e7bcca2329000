import asyncio
import logging
from typing import Callable, List, Optional, Set

from apscheduler.schedulers.base import BaseScheduler
from apscheduler.triggers.interval import IntervalTrigger
from pydantic import BaseModel

from toggl_sync.config import Settings
from toggl_sync.connectors.base import TimeTrackingConnector
from toggl_sync.connectors.toggl_connector import TogglConnector
from toggl_sync.exceptions import ApiUnavailableError, ConfigurationError, ConnectivityError
from toggl_sync.schemas.report import DetailedReport, ReportQuery, SummaryReport
from toggl_sync.schemas.status import ApiStatus
from toggl_sync.schemas.toggl import Project, Tag, TimeEntry, TimeEntrySnapshot, TimeEntryStart, Workspace
from toggl_sync.services.events import EventBus, SyncEvent
from toggl_sync.services.reconciler import ChangeKind, classify, filter_workspace, status_text
from toggl_sync.services.report_assembler import ReportAssembler
from toggl_sync.services.request_queue import RequestQueue

log = logging.getLogger(__name__)

ConnectorFactory = Callable[[str, Settings], TimeTrackingConnector]

NOTICES = {
    ApiStatus.NO_TOKEN: "No Toggl Track API token is set.",
    ApiStatus.UNREACHABLE: (
        "The Toggl Track API is unreachable. Either the Toggl services are down, "
        "or your API token is incorrect."
    ),
}


class RefreshResult(BaseModel):
    """Outcome of a background refresh; fire-and-forget callers drop it."""
    ok: bool
    error: Optional[str] = None


class SyncCoordinator:
    """
    Keeps the local view of the Toggl account in sync.

    Owns the API status, the last settled snapshot of the running timer, the
    cached projects and tags, and the polling job. Listeners are notified via
    the EventBus. Only reconcile() writes the snapshot.
    """

    POLL_JOB_ID = "current_timer_poll"

    def __init__(
        self,
        settings: Settings,
        scheduler: BaseScheduler,
        events: Optional[EventBus] = None,
        connector_factory: Optional[ConnectorFactory] = None,
    ):
        self.settings = settings
        self.scheduler = scheduler
        self.events = events or EventBus()
        self._connector_factory = connector_factory or TogglConnector.from_settings
        self._connector: Optional[TimeTrackingConnector] = None
        self._queue = RequestQueue()
        self._reports: Optional[ReportAssembler] = None

        self._api_status = ApiStatus.UNTESTED
        self._snapshot: Optional[TimeEntrySnapshot] = None
        self._current_entry: Optional[TimeEntry] = None
        self._projects: List[Project] = []
        self._tags: List[Tag] = []
        self._daily_summary: Optional[SummaryReport] = None
        self._status_text = "Connecting to Toggl..."
        self._config_problem: Optional[str] = None

        # Poll passes may overlap; only the newest settled result is committed.
        self._poll_sequence = 0
        self._committed_sequence = 0
        # Bumped by stop_polling() so in-flight passes drop their results.
        self._generation = 0
        self._background_tasks: Set[asyncio.Task] = set()

    # -- read-only state ---------------------------------------------------

    @property
    def api_status(self) -> ApiStatus:
        return self._api_status

    @property
    def is_api_available(self) -> bool:
        """True if the API token is valid and the Toggl API is responsive."""
        return self._api_status == ApiStatus.AVAILABLE

    @property
    def current_snapshot(self) -> Optional[TimeEntrySnapshot]:
        return self._snapshot

    @property
    def current_entry(self) -> Optional[TimeEntry]:
        return self._current_entry

    @property
    def cached_projects(self) -> List[Project]:
        """User's projects as preloaded after the token was accepted."""
        return self._projects

    @property
    def cached_tags(self) -> List[Tag]:
        return self._tags

    @property
    def daily_summary(self) -> Optional[SummaryReport]:
        return self._daily_summary

    @property
    def status_text(self) -> str:
        return self._status_text

    @property
    def workspace_id(self) -> str:
        return self.settings.toggl_workspace_id

    @property
    def is_polling(self) -> bool:
        return self.scheduler.get_job(self.POLL_JOB_ID) is not None

    # -- credentials and status ----------------------------------------------

    async def set_token(self, token: Optional[str]) -> ApiStatus:
        """
        Replace the API client. Probes the API, then starts polling and
        preloads workspace data when the probe succeeds.
        """
        self.stop_polling()
        self._set_api_status(ApiStatus.UNTESTED)
        self._set_status_text("Connecting to Toggl...")
        await self._close_connector()

        self._config_problem = None
        try:
            self._connector = self._connector_factory(token, self.settings)
        except ConfigurationError as e:
            log.warning(f"Toggl API token not configured: {e}")
            self._set_status_text("Open settings to add a Toggl API token.")
            self._set_api_status(ApiStatus.NO_TOKEN)
            self._notice_api_not_available()
            return self._api_status

        # Without a workspace every timer with a project would be filtered out.
        if not self.workspace_id:
            self._config_problem = "No Toggl workspace is configured."
            log.warning(f"Toggl API not configured: {self._config_problem}")
            await self._close_connector()
            self._set_status_text("Open settings to choose a Toggl workspace.")
            self._set_api_status(ApiStatus.NO_TOKEN)
            self._notice_api_not_available()
            return self._api_status

        self._reports = ReportAssembler(self._connector, self._queue)
        try:
            await self._connector.test_connection()
        except ConnectivityError as e:
            log.error(f"Cannot connect to Toggl API: {e}")
            self._set_status_text("Cannot connect to Toggl API")
            self._set_api_status(ApiStatus.UNREACHABLE)
            self._notice_api_not_available()
            return self._api_status

        self._set_api_status(ApiStatus.AVAILABLE)
        await self.start_polling()
        self._spawn(self.preload_workspace_data())
        return self._api_status

    async def test_connection(self) -> ApiStatus:
        """Re-probe the API; a failure makes the service UNREACHABLE."""
        if self._connector is None:
            self._notice_api_not_available()
            raise ApiUnavailableError(self._api_status)
        try:
            await self._connector.test_connection()
        except ConnectivityError:
            self.stop_polling()
            self._set_status_text("Cannot connect to Toggl API")
            self._set_api_status(ApiStatus.UNREACHABLE)
            self._notice_api_not_available()
            raise
        if not self.is_api_available:
            self._set_api_status(ApiStatus.AVAILABLE)
            await self.start_polling()
        return self._api_status

    def _set_api_status(self, status: ApiStatus) -> None:
        if status != self._api_status:
            log.info(f"Toggl API status: {self._api_status.value} -> {status.value}")
        self._api_status = status

    def _set_status_text(self, text: str) -> None:
        self._status_text = text
        self.events.emit(SyncEvent.STATUS_TEXT, text)

    def _notice_api_not_available(self) -> None:
        notice = NOTICES.get(self._api_status)
        if self._api_status == ApiStatus.NO_TOKEN and self._config_problem:
            notice = self._config_problem
        if notice:
            self.events.emit(SyncEvent.NOTICE, notice)

    def _ensure_api_available(self) -> TimeTrackingConnector:
        if not self.is_api_available:
            self._notice_api_not_available()
            raise ApiUnavailableError(self._api_status)
        return self._connector

    # -- polling -------------------------------------------------------------

    async def start_polling(self) -> None:
        """Run one pass now, then every polling interval."""
        self.stop_polling()
        generation = self._generation
        await self.reconcile()
        if generation != self._generation or not self.is_api_available:
            return
        self.scheduler.add_job(
            self.reconcile,
            IntervalTrigger(seconds=self.settings.polling_interval_seconds),
            id=self.POLL_JOB_ID,
            replace_existing=True,
            max_instances=3,
            coalesce=True,
        )
        log.info(f"Polling current timer every {self.settings.polling_interval_seconds}s")

    def stop_polling(self) -> None:
        self._generation += 1
        if self.scheduler.get_job(self.POLL_JOB_ID):
            self.scheduler.remove_job(self.POLL_JOB_ID)
            log.info("Stopped polling current timer")

    async def reconcile(self) -> Optional[ChangeKind]:
        """
        One reconciliation pass: fetch, filter, classify, notify.
        Returns None when the pass was skipped or its result discarded.
        """
        if not self.is_api_available:
            return None

        self._poll_sequence += 1
        sequence = self._poll_sequence
        generation = self._generation

        try:
            current = await self._connector.fetch_current_timer()
        except ConnectivityError as e:
            log.error(f"Error reaching Toggl API, skipping poll #{sequence}: {e}")
            return None
        except Exception as e:
            log.error(f"Unexpected error in poll #{sequence}: {e}", exc_info=True)
            return None

        if generation != self._generation:
            log.debug(f"Discarding poll #{sequence}: polling was stopped")
            return None
        if sequence < self._committed_sequence:
            log.warning(f"Discarding poll #{sequence}: poll #{self._committed_sequence} already settled")
            return None
        self._committed_sequence = sequence

        current = filter_workspace(current, self.workspace_id)
        change = classify(self._snapshot, current)

        if change != ChangeKind.UNCHANGED:
            self._snapshot = current
            self._current_entry = self._to_time_entry(current)
            self.events.emit(SyncEvent.TIMER_CHANGED, self._current_entry)
            # fetch updated daily summary report
            self._spawn(self.refresh_daily_summary())

        self._set_status_text(status_text(self._snapshot, self.settings.status_bar_char_limit))
        return change

    def _to_time_entry(self, snapshot: Optional[TimeEntrySnapshot]) -> Optional[TimeEntry]:
        # NOTE: relies on cached projects for project names
        if snapshot is None:
            return None
        project = next((p for p in self._projects if p.id == snapshot.project_id), None)
        if snapshot.project_id is None:
            project_name = "(No project)"
        else:
            project_name = project.name if project else "(Unknown)"
        return TimeEntry(
            **snapshot.model_dump(),
            project=project_name,
            project_hex_color=project.hex_color if project and project.hex_color else "var(--text-muted)",
        )

    # -- background work -------------------------------------------------------

    def _spawn(self, coro) -> asyncio.Task:
        task = asyncio.create_task(coro)
        self._background_tasks.add(task)
        task.add_done_callback(self._background_tasks.discard)
        return task

    async def refresh_daily_summary(self) -> RefreshResult:
        """Refetch today's summary and notify listeners. Never raises."""
        try:
            summary = await self._reports.fetch_daily_summary()
        except Exception as e:
            log.warning(f"Daily summary refresh failed: {e}")
            return RefreshResult(ok=False, error=str(e))
        self._daily_summary = summary
        self.events.emit(SyncEvent.SUMMARY_UPDATED, summary)
        return RefreshResult(ok=True)

    async def preload_workspace_data(self) -> None:
        """Preloads projects, tags and the daily summary."""
        try:
            self._projects = await self._connector.list_projects(self.workspace_id)
        except (ConnectivityError, ConfigurationError) as e:
            log.warning(f"Failed to preload projects: {e}")
        except Exception as e:
            log.error(f"Unexpected error preloading projects: {e}", exc_info=True)
        else:
            # Update the current timer if it was fetched before the preload finished.
            if self._snapshot is not None and self._snapshot.project_id is not None:
                self._current_entry = self._to_time_entry(self._snapshot)
                self.events.emit(SyncEvent.TIMER_CHANGED, self._current_entry)

        try:
            self._tags = await self._connector.list_tags(self.workspace_id)
        except (ConnectivityError, ConfigurationError) as e:
            log.warning(f"Failed to preload tags: {e}")
        except Exception as e:
            log.error(f"Unexpected error preloading tags: {e}", exc_info=True)

        await self.refresh_daily_summary()
        log.info(f"Preloaded {len(self._projects)} projects and {len(self._tags)} tags")

    # -- timer operations ------------------------------------------------------

    async def start_timer(self, entry: TimeEntryStart) -> TimeEntrySnapshot:
        connector = self._ensure_api_available()
        started = await connector.start_timer(entry)
        log.debug(f"Started timer: {started.id}")
        await self.reconcile()
        return started

    async def stop_timer(self) -> Optional[TimeEntrySnapshot]:
        connector = self._ensure_api_available()
        if self._snapshot is None:
            log.debug("No running timer to stop")
            return None
        stopped = await connector.stop_timer(self._snapshot.id)
        await self.reconcile()
        return stopped

    # -- reports and workspace data ----------------------------------------------

    async def get_summary_report(self, query: ReportQuery) -> SummaryReport:
        self._ensure_api_available()
        return await self._reports.fetch_summary(query)

    async def get_detailed_report(self, query: ReportQuery) -> DetailedReport:
        self._ensure_api_available()
        return await self._reports.fetch_detailed(query)

    async def get_recent_entries(self) -> List[TimeEntry]:
        self._ensure_api_available()
        return await self._reports.fetch_recent_entries(self.settings.recent_entries_days)

    async def get_workspaces(self) -> List[Workspace]:
        connector = self._ensure_api_available()
        return await connector.list_workspaces()

    # -- lifecycle ---------------------------------------------------------------

    async def _close_connector(self) -> None:
        if self._connector is not None:
            await self._connector.close()
            self._connector = None
            self._reports = None

    async def close(self) -> None:
        self.stop_polling()
        for task in list(self._background_tasks):
            task.cancel()
        await self._queue.close()
        await self._close_connector()
