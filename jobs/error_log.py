"""In-memory, append-only error log for the admin panel."""

import logging
import traceback
from datetime import datetime, timezone

from jobs.models import ErrorLogEntry

logger = logging.getLogger(__name__)


class ErrorLog:
    """Process-wide record of every caught failure, newest entries listed first.

    One instance is created at application startup and handed to everything
    that records failures. Entries live for the session only.
    """

    def __init__(self):
        self._entries: list[ErrorLogEntry] = []

    def record(self, context: str, error: object) -> ErrorLogEntry | None:
        """Append an entry for ``error``. Never raises."""
        try:
            if isinstance(error, BaseException):
                message = str(error) or error.__class__.__name__
                stack = "".join(
                    traceback.format_exception(type(error), error, error.__traceback__)
                )
            else:
                message = str(error)
                stack = None
            entry = ErrorLogEntry(
                timestamp=datetime.now(timezone.utc).isoformat(),
                context=context,
                message=message,
                stack=stack,
            )
            self._entries.append(entry)
            logger.error("[%s] %s", context, message)
            return entry
        except Exception:
            logger.warning("Failed to record error for %s", context, exc_info=True)
            return None

    def clear(self) -> int:
        """Empty the log. Returns the number of entries removed."""
        removed = len(self._entries)
        self._entries = []
        logger.info("Error log cleared (%d entries)", removed)
        return removed

    def list(self) -> list[ErrorLogEntry]:
        return list(reversed(self._entries))

    def __len__(self) -> int:
        return len(self._entries)
