from datetime import date
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class ReportQuery(BaseModel):
    """Closed date interval; from == until covers a single day."""
    model_config = ConfigDict(populate_by_name=True)

    from_: date = Field(..., alias="from")
    until: date

    @model_validator(mode="after")
    def _check_order(self):
        if self.from_ > self.until:
            raise ValueError(f"'from' ({self.from_}) must not be after 'until' ({self.until})")
        return self


class DetailedRecord(BaseModel):
    """One itemized time entry from the detailed report (durations in ms)."""
    model_config = ConfigDict(extra="ignore")

    id: int
    description: Optional[str] = None
    dur: int = 0
    start: Optional[str] = None
    end: Optional[str] = None
    pid: Optional[int] = None
    project: Optional[str] = None
    project_hex_color: Optional[str] = None
    tags: List[str] = []

    @field_validator("tags", mode="before")
    @classmethod
    def _tags_default(cls, value):
        return value or []


class DetailedReport(BaseModel):
    total_count: int = 0
    total_grand: int = 0
    data: List[DetailedRecord] = []


class SummaryGroup(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: Optional[int] = None
    title: Dict[str, Any] = {}
    time: int = 0
    items: List[Dict[str, Any]] = []


class SummaryReport(BaseModel):
    """Summary report as returned by the Reports API, extra fields kept."""
    model_config = ConfigDict(extra="allow")

    total_grand: Optional[int] = 0
    total_billable: Optional[int] = None
    data: List[SummaryGroup] = []

    @field_validator("data", mode="before")
    @classmethod
    def _data_default(cls, value):
        return value or []
