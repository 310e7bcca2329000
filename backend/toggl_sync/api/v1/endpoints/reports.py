from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import ValidationError

from toggl_sync.api.dependencies import get_coordinator
from toggl_sync.schemas.report import DetailedReport, ReportQuery, SummaryReport
from toggl_sync.schemas.toggl import TimeEntry
from toggl_sync.services.sync_coordinator import SyncCoordinator

router = APIRouter()


def report_query(
    from_: date = Query(..., alias="from"),
    until: date = Query(...),
) -> ReportQuery:
    try:
        return ReportQuery(from_=from_, until=until)
    except ValidationError as e:
        raise HTTPException(
            status_code=422,
            detail=f"Invalid report range: {e.errors()[0]['msg']}"
        )


@router.get("/daily", response_model=Optional[SummaryReport])
async def get_daily_summary(coordinator: SyncCoordinator = Depends(get_coordinator)):
    """Today's summary as of the last refresh."""
    return coordinator.daily_summary


@router.get("/summary", response_model=SummaryReport)
async def get_summary_report(
    query: ReportQuery = Depends(report_query),
    coordinator: SyncCoordinator = Depends(get_coordinator),
):
    return await coordinator.get_summary_report(query)


@router.get("/detailed", response_model=DetailedReport)
async def get_detailed_report(
    query: ReportQuery = Depends(report_query),
    coordinator: SyncCoordinator = Depends(get_coordinator),
):
    """All pages of the detailed report, deduplicated by entry id."""
    return await coordinator.get_detailed_report(query)


@router.get("/recent", response_model=List[TimeEntry])
async def get_recent_entries(coordinator: SyncCoordinator = Depends(get_coordinator)):
    return await coordinator.get_recent_entries()
