import httpx
import logging
from datetime import date
from typing import Dict, Any, List, Optional

from toggl_sync.config import Settings
from toggl_sync.connectors.base import TimeTrackingConnector
from toggl_sync.exceptions import ConfigurationError, ConnectivityError
from toggl_sync.schemas.report import DetailedRecord, ReportQuery, SummaryReport
from toggl_sync.schemas.toggl import (
    Project,
    Tag,
    TimeEntrySnapshot,
    TimeEntryStart,
    Workspace,
)

log = logging.getLogger(__name__)


def _snapshot_from_api(entry: Optional[Dict[str, Any]]) -> Optional[TimeEntrySnapshot]:
    """Map a Toggl v8 time entry payload (wid/pid naming) to a snapshot."""
    if not entry:
        return None
    return TimeEntrySnapshot(
        id=entry["id"],
        workspace_id=entry.get("wid"),
        project_id=entry.get("pid"),
        description=entry.get("description"),
        start=entry["start"],
        stop=entry.get("stop"),
        duration=entry.get("duration", 0),
        tags=entry.get("tags") or [],
    )


class TogglConnector(TimeTrackingConnector):
    """
    Connector for the Toggl Track API (v8) and the Toggl Reports API (v2).

    Authentication uses HTTP basic auth with the API token as the user name
    and the literal password "api_token".
    """

    def __init__(self, config: Dict[str, Any]):
        super().__init__(config)
        self.api_token = self.config.get("api_token")
        if not self.api_token:
            raise ConfigurationError("No Toggl Track API token is set.")
        self.workspace_id = str(self.config.get("workspace_id") or "")
        self.api_base_url = self.config["api_base_url"].rstrip("/")
        self.reports_base_url = self.config["reports_base_url"].rstrip("/")
        self.user_agent = self.config.get("user_agent", "toggl-sync")

        self.client = httpx.AsyncClient(
            auth=(self.api_token, "api_token"),
            follow_redirects=True,
            timeout=self.config.get("timeout", 30.0),
        )
        self.headers = {"Content-Type": "application/json"}

        log.info(f"Toggl connector initialized with base URL: {self.api_base_url}")

    @classmethod
    def from_settings(cls, api_token: str, settings: Settings) -> "TogglConnector":
        return cls({
            "api_token": api_token,
            "workspace_id": settings.toggl_workspace_id,
            "api_base_url": settings.toggl_api_base_url,
            "reports_base_url": settings.toggl_reports_base_url,
            "user_agent": settings.user_agent,
            "timeout": settings.request_timeout,
        })

    def _require_workspace(self, workspace_id: Optional[str] = None) -> str:
        wid = str(workspace_id or self.workspace_id or "")
        if not wid:
            raise ConfigurationError("No Toggl workspace is configured.")
        return wid

    async def _request(self, method: str, url: str, **kwargs) -> Any:
        """
        Helper to make authenticated requests to the Toggl APIs.
        Every failure is raised as ConnectivityError with an informative message.
        """
        try:
            log.trace(f"Toggl API {method} {url} params={kwargs.get('params', 'none')}")
            response = await self.client.request(method, url, headers=self.headers, **kwargs)
            log.trace(f"Toggl API response: {response.status_code}")
            response.raise_for_status()
            if not response.content:
                return None
            return response.json()

        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            request_url = str(e.request.url)
            response_text = e.response.text

            # Always log the raw response body
            log.error(f"Toggl API raw response body: {response_text}")

            if status in (401, 403):
                error_msg = f"Toggl authentication failed: invalid API token for {request_url}"
            elif status == 404:
                error_msg = f"Toggl resource not found: {request_url}"
            elif status == 429:
                error_msg = f"Toggl rate limit exceeded for {request_url}"
            else:
                error_msg = f"Toggl HTTP {status} error for {request_url}: {response_text}"
            log.error(error_msg)
            raise ConnectivityError(error_msg, status_code=status) from e

        except httpx.RequestError as e:
            error_msg = f"Toggl request error for {e.request.url}: {str(e)}"
            log.error(error_msg)
            raise ConnectivityError(error_msg) from e

    async def _api(self, method: str, path: str, **kwargs) -> Any:
        return await self._request(method, f"{self.api_base_url}{path}", **kwargs)

    async def _reports(self, path: str, params: Dict[str, Any]) -> Dict[str, Any]:
        params = {
            "workspace_id": self._require_workspace(),
            "user_agent": self.user_agent,
            **params,
        }
        return await self._request("GET", f"{self.reports_base_url}{path}", params=params) or {}

    def _entry_from_response(self, response: Optional[Dict[str, Any]], action: str) -> TimeEntrySnapshot:
        snapshot = _snapshot_from_api((response or {}).get("data"))
        if snapshot is None:
            error_msg = f"Toggl returned no time entry for timer {action}"
            log.error(error_msg)
            raise ConnectivityError(error_msg)
        return snapshot

    async def test_connection(self) -> None:
        await self._api("GET", "/workspaces")
        log.info("Toggl connection validated successfully")

    async def list_workspaces(self) -> List[Workspace]:
        response = await self._api("GET", "/workspaces") or []
        return [Workspace(id=str(w["id"]), name=w["name"]) for w in response]

    async def list_projects(self, workspace_id: Optional[str] = None) -> List[Project]:
        wid = self._require_workspace(workspace_id)
        # Toggl answers null instead of [] for a workspace without projects
        response = await self._api("GET", f"/workspaces/{wid}/projects") or []
        log.debug(f"Fetched {len(response)} projects for workspace {wid}")
        return [Project.model_validate(p) for p in response]

    async def list_tags(self, workspace_id: Optional[str] = None) -> List[Tag]:
        wid = self._require_workspace(workspace_id)
        response = await self._api("GET", f"/workspaces/{wid}/tags") or []
        return [Tag(id=t["id"], name=t["name"], workspace_id=t.get("wid")) for t in response]

    async def fetch_current_timer(self) -> Optional[TimeEntrySnapshot]:
        response = await self._api("GET", "/time_entries/current") or {}
        return _snapshot_from_api(response.get("data"))

    async def start_timer(self, entry: TimeEntryStart) -> TimeEntrySnapshot:
        payload = {
            "time_entry": {
                "description": entry.description,
                "pid": entry.project_id,
                "tags": entry.tags,
                "billable": entry.billable,
                "created_with": self.user_agent,
            }
        }
        response = await self._api("POST", "/time_entries/start", json=payload)
        snapshot = self._entry_from_response(response, "start")
        log.info(f"Started Toggl timer {snapshot.id}: {snapshot.description!r}")
        return snapshot

    async def stop_timer(self, entry_id: int) -> TimeEntrySnapshot:
        response = await self._api("PUT", f"/time_entries/{entry_id}/stop")
        snapshot = self._entry_from_response(response, f"stop of {entry_id}")
        log.info(f"Stopped Toggl timer {entry_id}")
        return snapshot

    async def fetch_daily_summary(self) -> SummaryReport:
        today = date.today().isoformat()
        response = await self._reports("/summary", {
            "since": today,
            "until": today,
            "order_field": "duration",
            "order_desc": "on",
        })
        return SummaryReport.model_validate(response)

    async def fetch_summary_report(self, query: ReportQuery) -> SummaryReport:
        response = await self._reports("/summary", {
            "since": query.from_.isoformat(),
            "until": query.until.isoformat(),
            "order_field": "duration",
            "order_desc": "on",
        })
        return SummaryReport.model_validate(response)

    async def fetch_detailed_report_all(self, query: ReportQuery) -> List[DetailedRecord]:
        """
        Walks the paginated detailed report until total_count records were
        collected or the server returns an empty page. Records are returned
        as received; duplicates across pages are left to the caller.
        """
        records: List[DetailedRecord] = []
        page = 1
        while True:
            response = await self._reports("/details", {
                "since": query.from_.isoformat(),
                "until": query.until.isoformat(),
                "page": page,
            })
            data = response.get("data") or []
            total_count = response.get("total_count") or 0
            records.extend(DetailedRecord.model_validate(r) for r in data)
            log.debug(f"Detailed report page {page}: {len(data)} records ({len(records)}/{total_count})")
            if not data or len(records) >= total_count:
                break
            page += 1

        log.info(f"Toggl detailed report fetched {len(records)} raw records ({query.from_} → {query.until}) in {page} page(s)")
        return records

    async def close(self) -> None:
        await self.client.aclose()
