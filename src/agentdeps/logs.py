"""
Durable run log and the per-run event list.

Every warning and error goes to two places: the stdlib logging tree
(which ``setup_logging`` points at agentdeps.log) and an explicit
``EventLog`` owned by the caller. The CLI reads the event log at the
end of a command to decide whether to print the log-file hint, so
nothing here keeps process-wide counters.
"""

from __future__ import annotations

import logging
import traceback
from enum import Enum
from pathlib import Path
from typing import Optional

from pydantic import BaseModel

from .paths import log_dir

LOG_FILE_NAME = "agentdeps.log"
LOG_FORMAT = "%(asctime)s [%(name)s] %(levelname)s: %(message)s"

logger = logging.getLogger("agentdeps.logs")


def log_path() -> Path:
    """Full path of the run log file."""
    return log_dir() / LOG_FILE_NAME


def setup_logging(path: Optional[Path] = None, level: int = logging.INFO) -> Optional[Path]:
    """Attach a file handler for the ``agentdeps`` logger tree.

    Returns the log file path, or None when the directory could not be
    created; file logging is skipped in that case and the run goes on.
    Calling it twice for the same file does not add a second handler.
    """
    path = path or log_path()
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        logger.debug("Log directory unavailable, file logging disabled: %s", exc)
        return None

    root = logging.getLogger("agentdeps")
    for handler in root.handlers:
        if isinstance(handler, logging.FileHandler) and Path(handler.baseFilename).resolve() == path.resolve():
            return path

    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)
    root.setLevel(level)
    return path


class EventLevel(str, Enum):
    WARNING = "warning"
    ERROR = "error"


class RunEvent(BaseModel):
    """A warning or error raised while processing one dependency or target."""

    level: EventLevel
    context: str
    message: str


class EventLog:
    """Ordered warnings and errors for a single operation or run."""

    def __init__(self, name: str = "agentdeps.run"):
        self._logger = logging.getLogger(name)
        self.events: list[RunEvent] = []

    def warn(self, context: str, message: str) -> RunEvent:
        self._logger.warning("[%s] %s", context, message)
        return self._append(EventLevel.WARNING, context, message)

    def error(self, context: str, error: BaseException | str) -> RunEvent:
        """Record an error; exceptions are logged with their traceback."""
        if isinstance(error, BaseException):
            detail = "".join(
                traceback.format_exception(type(error), error, error.__traceback__)
            ).rstrip()
            self._logger.error("[%s] %s", context, detail)
            message = str(error) or type(error).__name__
        else:
            self._logger.error("[%s] %s", context, error)
            message = error
        return self._append(EventLevel.ERROR, context, message)

    def extend(self, other: "EventLog") -> None:
        self.events.extend(other.events)

    @property
    def errors(self) -> list[RunEvent]:
        return [e for e in self.events if e.level == EventLevel.ERROR]

    @property
    def warnings(self) -> list[RunEvent]:
        return [e for e in self.events if e.level == EventLevel.WARNING]

    def _append(self, level: EventLevel, context: str, message: str) -> RunEvent:
        event = RunEvent(level=level, context=context, message=message)
        self.events.append(event)
        return event


def log_hint(events: list[RunEvent], path: Optional[Path] = None) -> Optional[str]:
    """User-facing pointer to the log file, or None when nothing failed."""
    count = sum(1 for e in events if e.level == EventLevel.ERROR)
    if count == 0:
        return None
    plural = "" if count == 1 else "s"
    return f"{count} error{plural} occurred. See log for details:\n  {path or log_path()}"
