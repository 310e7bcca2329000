from fastapi import Request

from toggl_sync.services.events import RecentNotices
from toggl_sync.services.sync_coordinator import SyncCoordinator


def get_coordinator(request: Request) -> SyncCoordinator:
    return request.app.state.coordinator


def get_notices(request: Request) -> RecentNotices:
    return request.app.state.notices
