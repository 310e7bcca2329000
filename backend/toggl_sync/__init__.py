"""Toggl Track sync service: local view of the running timer and reports."""

from toggl_sync.utils import logging_setup  # noqa: F401  registers the TRACE level

__version__ = "0.3.0"
