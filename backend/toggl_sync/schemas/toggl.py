"""Toggl Track entities as seen by the sync service."""

from typing import List, Optional

from pydantic import BaseModel, Field, field_validator


class TimeEntrySnapshot(BaseModel):
    """One polled state of the currently running timer."""
    id: int = Field(..., description="Toggl time entry ID, stable for the entry's lifetime")
    workspace_id: Optional[int] = Field(None, description="Toggl workspace ID (wid)")
    project_id: Optional[int] = Field(None, description="Toggl project ID (pid), if any")
    description: Optional[str] = Field(None, description="Free-text description")
    start: str = Field(..., description="ISO 8601 start timestamp")
    stop: Optional[str] = Field(None, description="ISO 8601 stop timestamp, unset while running")
    duration: int = Field(0, description="Seconds if stopped, negative start epoch while running")
    tags: List[str] = Field([], description="Tag names, compared as a set")

    @field_validator("tags", mode="before")
    @classmethod
    def _tags_default(cls, value):
        return value or []

    @property
    def is_running(self) -> bool:
        return not self.stop


class TimeEntry(TimeEntrySnapshot):
    """
    Snapshot enriched with project display data for listeners.
    Project names come from the cached project list.
    """
    project: str = "(No project)"
    project_hex_color: str = "var(--text-muted)"


class TimeEntryStart(BaseModel):
    description: str = ""
    project_id: Optional[int] = None
    tags: List[str] = []
    billable: bool = False


class Project(BaseModel):
    id: int
    name: str
    cid: Optional[int] = None
    active: bool = True
    actual_hours: Optional[float] = None
    hex_color: Optional[str] = None


class Tag(BaseModel):
    id: int
    name: str
    workspace_id: Optional[int] = None


class Workspace(BaseModel):
    id: str
    name: str
