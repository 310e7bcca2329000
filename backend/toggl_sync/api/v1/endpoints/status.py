import logging

from fastapi import APIRouter, Depends

from toggl_sync.api.dependencies import get_coordinator, get_notices
from toggl_sync.schemas.status import ApiStatus, StatusResponse, TokenUpdate
from toggl_sync.services.events import RecentNotices
from toggl_sync.services.sync_coordinator import SyncCoordinator

log = logging.getLogger(__name__)
router = APIRouter()


def _status_response(coordinator: SyncCoordinator, notices: RecentNotices) -> StatusResponse:
    return StatusResponse(
        api_status=coordinator.api_status,
        status_text=coordinator.status_text,
        workspace_id=coordinator.workspace_id,
        notices=notices.list(),
    )


@router.get("", response_model=StatusResponse)
async def get_status(
    coordinator: SyncCoordinator = Depends(get_coordinator),
    notices: RecentNotices = Depends(get_notices),
):
    """API status, status-bar text and recent notices."""
    return _status_response(coordinator, notices)


@router.put("/token", response_model=StatusResponse)
async def update_token(
    body: TokenUpdate,
    coordinator: SyncCoordinator = Depends(get_coordinator),
    notices: RecentNotices = Depends(get_notices),
):
    """Replace the Toggl API token; restarts polling when the token works."""
    api_status = await coordinator.set_token(body.api_token)
    log.info(f"API token updated, status: {api_status.value}")
    return _status_response(coordinator, notices)


@router.post("/test", response_model=StatusResponse)
async def test_connection(
    coordinator: SyncCoordinator = Depends(get_coordinator),
    notices: RecentNotices = Depends(get_notices),
):
    await coordinator.test_connection()
    return _status_response(coordinator, notices)
