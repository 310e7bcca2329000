"""Logging configuration shared by the service and its background jobs."""

import logging

# Custom TRACE level
logging.TRACE = 5
logging.addLevelName(logging.TRACE, "TRACE")


# Add trace method to standard Logger class for all instances
def trace_method(self, msg, *args, **kwargs):
    if self.isEnabledFor(logging.TRACE):
        self._log(logging.TRACE, msg, args, **kwargs)


logging.Logger.trace = trace_method


def configure_logging(level_name: str) -> None:
    """
    Configure the root logger once.

    VERBOSE and TRACE keep the HTTP client loggers chatty; every other level
    quiets httpx/httpcore to WARNING so polling does not flood the output.
    """
    level_name = level_name.upper()
    if level_name == "TRACE":
        log_level = logging.TRACE
    elif level_name == "VERBOSE":
        log_level = logging.DEBUG
    else:
        log_level = getattr(logging, level_name, logging.INFO)

    root = logging.getLogger()
    if root.hasHandlers():
        return

    logging.basicConfig(
        level=log_level,
        format='%(asctime)s - %(name)s - %(levelname)-8s - %(message)s'
    )

    if level_name == "TRACE":
        http_level = logging.TRACE
        connectors_level = logging.TRACE
    elif level_name == "VERBOSE":
        http_level = logging.DEBUG
        connectors_level = logging.TRACE
        root.info("VERBOSE mode enabled: HTTP details and connector traces active for debugging.")
    else:
        http_level = logging.WARNING
        connectors_level = logging.DEBUG if log_level <= logging.DEBUG else log_level

    root.setLevel(log_level)
    logging.getLogger("httpcore").setLevel(http_level)
    logging.getLogger("httpx").setLevel(http_level)
    logging.getLogger("apscheduler").setLevel(max(log_level, logging.INFO))
    logging.getLogger("toggl_sync.connectors").setLevel(connectors_level)

    if level_name == "TRACE":
        root.trace("Trace logging enabled at startup (verbose details).")
    else:
        root.debug("Debug logging enabled at startup.")
