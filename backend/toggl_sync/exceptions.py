"""Errors raised by the connector and the sync coordinator."""

from typing import Optional


class TogglSyncError(Exception):
    """Base class for all toggl_sync errors."""


class ConnectivityError(TogglSyncError):
    """The Toggl API could not be reached, or rejected the request."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ConfigurationError(TogglSyncError):
    """A required setting (API token, workspace) is missing."""


class ApiUnavailableError(TogglSyncError):
    """A timer operation was attempted while the API status is not AVAILABLE."""

    def __init__(self, api_status):
        super().__init__(f"Toggl API not available (status: {api_status.value})")
        self.api_status = api_status
