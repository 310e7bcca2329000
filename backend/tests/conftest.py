import asyncio
from unittest.mock import MagicMock

import pytest
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from fastapi.testclient import TestClient

from toggl_sync.api.dependencies import get_coordinator, get_notices
from toggl_sync.config import Settings
from toggl_sync.connectors.toggl_connector import TogglConnector
from toggl_sync.exceptions import ConfigurationError
from toggl_sync.main import app
from toggl_sync.schemas.report import SummaryReport
from toggl_sync.schemas.status import ApiStatus
from toggl_sync.schemas.toggl import TimeEntrySnapshot
from toggl_sync.services.events import EventBus, RecentNotices
from toggl_sync.services.sync_coordinator import SyncCoordinator

WORKSPACE_ID = "100"


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        toggl_api_token="test-token",
        toggl_workspace_id=WORKSPACE_ID,
        polling_interval_seconds=6,
        status_bar_char_limit=20,
    )


@pytest.fixture
def make_snapshot():
    def _make(**overrides) -> TimeEntrySnapshot:
        fields = {
            "id": 1,
            "workspace_id": int(WORKSPACE_ID),
            "project_id": 10,
            "description": "Write report",
            "start": "2023-11-14T22:13:20+00:00",
            "duration": -1700000000,
            "tags": ["a", "b"],
        }
        fields.update(overrides)
        return TimeEntrySnapshot(**fields)
    return _make


@pytest.fixture
def connector():
    """Connector double; every coroutine method is an AsyncMock."""
    connector = MagicMock(spec=TogglConnector)
    connector.fetch_current_timer.return_value = None
    connector.list_projects.return_value = []
    connector.list_tags.return_value = []
    connector.fetch_daily_summary.return_value = SummaryReport(total_grand=0, data=[])
    return connector


@pytest.fixture
def scheduler() -> AsyncIOScheduler:
    # Never started: added jobs stay pending and never fire on their own.
    return AsyncIOScheduler()


@pytest.fixture
def events():
    """EventBus that records every emission as (event, payload)."""
    bus = EventBus()
    bus.emitted = []
    original_emit = bus.emit

    def record(event, payload):
        bus.emitted.append((event, payload))
        original_emit(event, payload)

    bus.emit = record
    return bus


@pytest.fixture
def coordinator(settings, scheduler, events, connector) -> SyncCoordinator:
    def factory(token, _settings):
        if not token:
            raise ConfigurationError("No Toggl Track API token is set.")
        return connector

    return SyncCoordinator(settings, scheduler, events=events, connector_factory=factory)


@pytest.fixture
def connect(connector):
    """Bring a coordinator to AVAILABLE and let the preload finish."""
    async def _connect(coordinator: SyncCoordinator) -> SyncCoordinator:
        await coordinator.set_token("test-token")
        await asyncio.gather(*list(coordinator._background_tasks))
        connector.reset_mock()
        return coordinator
    return _connect


@pytest.fixture
def api_coordinator() -> MagicMock:
    coordinator = MagicMock(spec=SyncCoordinator)
    coordinator.api_status = ApiStatus.AVAILABLE
    coordinator.status_text = "Timer: -"
    coordinator.workspace_id = WORKSPACE_ID
    coordinator.current_entry = None
    coordinator.daily_summary = None
    coordinator.cached_projects = []
    coordinator.cached_tags = []
    return coordinator


@pytest.fixture
def client(api_coordinator) -> TestClient:
    notices = RecentNotices()
    app.dependency_overrides[get_coordinator] = lambda: api_coordinator
    app.dependency_overrides[get_notices] = lambda: notices
    yield TestClient(app)
    app.dependency_overrides.clear()
