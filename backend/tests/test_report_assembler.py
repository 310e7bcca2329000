from datetime import date
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from toggl_sync.connectors.toggl_connector import TogglConnector
from toggl_sync.schemas.report import DetailedRecord, ReportQuery, SummaryReport
from toggl_sync.services.report_assembler import ReportAssembler, deduplicate_records
from toggl_sync.services.request_queue import RequestQueue


def _page(ids, total_count, dur=1000):
    return {
        "total_count": total_count,
        "per_page": 50,
        "total_grand": None,
        "data": [{"id": i, "dur": dur, "description": f"entry {i}", "tags": None} for i in ids],
    }


@pytest.fixture
def toggl_connector():
    return TogglConnector({
        "api_token": "test-token",
        "workspace_id": "100",
        "api_base_url": "https://api.example.com/api/v8",
        "reports_base_url": "https://api.example.com/reports/api/v2",
    })


def test_deduplicate_keeps_first_occurrence_order():
    records = [DetailedRecord(id=i, description=str(n)) for n, i in enumerate([3, 1, 3, 2, 1])]
    unique = deduplicate_records(records)
    assert [r.id for r in unique] == [3, 1, 2]
    assert [r.description for r in unique] == ["0", "1", "3"]


@pytest.mark.asyncio
class TestReportAssembler:
    async def test_pages_are_combined_and_deduplicated(self, toggl_connector):
        query = ReportQuery(from_=date(2024, 1, 1), until=date(2024, 1, 31))
        pages = [_page([1, 2], 5), _page([2, 3], 5), _page([4], 5)]

        with patch.object(toggl_connector, "_request", new_callable=AsyncMock) as mock_request:
            mock_request.side_effect = pages
            report = await ReportAssembler(toggl_connector, RequestQueue()).fetch_detailed(query)

        assert [r.id for r in report.data] == [1, 2, 3, 4]
        assert report.total_count == 4
        # totals are computed on the deduplicated set
        assert report.total_grand == 4000
        assert mock_request.await_count == 3
        assert [c.kwargs["params"]["page"] for c in mock_request.await_args_list] == [1, 2, 3]

    async def test_empty_range_yields_empty_report(self, toggl_connector):
        query = ReportQuery(from_=date(2024, 1, 1), until=date(2024, 1, 1))

        with patch.object(toggl_connector, "_request", new_callable=AsyncMock) as mock_request:
            mock_request.return_value = _page([], 0)
            report = await ReportAssembler(toggl_connector, RequestQueue()).fetch_detailed(query)

        assert report.total_count == 0
        assert report.total_grand == 0
        assert report.data == []
        mock_request.assert_awaited_once()

    async def test_reports_go_through_the_queue(self):
        connector = MagicMock(spec=TogglConnector)
        connector.fetch_summary_report.return_value = SummaryReport(total_grand=7200000, data=[])
        queue = MagicMock(wraps=RequestQueue())
        query = ReportQuery(from_=date(2024, 2, 1), until=date(2024, 2, 29))

        report = await ReportAssembler(connector, queue).fetch_summary(query)

        assert report.total_grand == 7200000
        queue.enqueue.assert_called_once()
        connector.fetch_summary_report.assert_awaited_once_with(query)

    async def test_recent_entries_are_converted_to_seconds(self):
        connector = MagicMock(spec=TogglConnector)
        connector.fetch_detailed_report_all.return_value = [
            DetailedRecord(id=5, description="Standup", dur=900000, pid=10, project="Ops",
                           project_hex_color="#ff0000", start="2024-01-01T09:00:00", end="2024-01-01T09:15:00"),
            DetailedRecord(id=6, dur=60000, start="2024-01-01T10:00:00"),
        ]

        entries = await ReportAssembler(connector, RequestQueue()).fetch_recent_entries(days=9)

        assert [e.id for e in entries] == [5, 6]
        assert entries[0].duration == 900
        assert entries[0].project == "Ops"
        assert entries[0].stop == "2024-01-01T09:15:00"
        assert entries[1].project == "(No project)"
        query = connector.fetch_detailed_report_all.await_args.args[0]
        assert (query.until - query.from_).days == 9
