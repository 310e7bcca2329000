import logging
from datetime import date, timedelta
from typing import List

from toggl_sync.connectors.base import TimeTrackingConnector
from toggl_sync.constants.anomalies import AnomalyCode, explain_anomaly
from toggl_sync.schemas.report import DetailedRecord, DetailedReport, ReportQuery, SummaryReport
from toggl_sync.schemas.toggl import TimeEntry
from toggl_sync.services.request_queue import RequestQueue

log = logging.getLogger(__name__)


def deduplicate_records(records: List[DetailedRecord]) -> List[DetailedRecord]:
    """Keep the first record per id, preserving the order of first occurrences."""
    seen = set()
    unique = []
    for record in records:
        if record.id in seen:
            continue
        seen.add(record.id)
        unique.append(record)
    return unique


class ReportAssembler:
    """
    Fetches historical reports through the shared RequestQueue.

    Detailed reports are deduplicated before totals are computed, since the
    Reports API sometimes repeats entries across pages.
    """

    def __init__(self, connector: TimeTrackingConnector, queue: RequestQueue):
        self.connector = connector
        self.queue = queue

    async def fetch_detailed(self, query: ReportQuery) -> DetailedReport:
        raw = await self.queue.enqueue(lambda: self.connector.fetch_detailed_report_all(query))
        data = deduplicate_records(raw)

        dropped = len(raw) - len(data)
        if dropped:
            log.warning(explain_anomaly(AnomalyCode.DUPLICATE_RECORDS, {
                "dropped": dropped,
                "since": query.from_,
                "until": query.until,
            }))

        return DetailedReport(
            total_count=len(data),
            total_grand=sum(record.dur for record in data),
            data=data,
        )

    async def fetch_summary(self, query: ReportQuery) -> SummaryReport:
        return await self.queue.enqueue(lambda: self.connector.fetch_summary_report(query))

    async def fetch_daily_summary(self) -> SummaryReport:
        return await self.queue.enqueue(self.connector.fetch_daily_summary)

    async def fetch_recent_entries(self, days: int = 9) -> List[TimeEntry]:
        """Entries of the last `days` days, for restarting a recent timer."""
        today = date.today()
        report = await self.fetch_detailed(ReportQuery(from_=today - timedelta(days=days), until=today))
        log.debug(f"Fetched {report.total_count} recent time entries")
        return [
            TimeEntry(
                id=r.id,
                description=r.description,
                project_id=r.pid,
                start=r.start or "",
                stop=r.end,
                duration=r.dur // 1000,
                tags=r.tags,
                project=r.project or "(No project)",
                project_hex_color=r.project_hex_color or "var(--text-muted)",
            )
            for r in report.data
        ]
