"""Job, failure, stream-event and error-log records."""

from __future__ import annotations

import asyncio
import traceback
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from jobs.errors import JobError


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class JobKind(Enum):
    TEXT = "text"
    STREAMING_TEXT = "streaming-text"
    IMAGE = "image"
    EDIT = "edit"
    VIDEO = "video"


class JobStatus(Enum):
    PENDING = "pending"
    STREAMING = "streaming"
    DONE = "done"
    FAILED = "failed"


TERMINAL_STATUSES = (JobStatus.DONE, JobStatus.FAILED)


@dataclass
class JobFailure:
    """Structured, human-readable failure detail attached to a failed job."""

    message: str
    category: str = "remote"
    stack: str | None = None

    @classmethod
    def from_exception(cls, exc: BaseException) -> "JobFailure":
        category = exc.category if isinstance(exc, JobError) else "remote"
        message = str(exc) or "An unknown error occurred."
        stack = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
        return cls(message=message, category=category, stack=stack)

    def to_dict(self) -> dict:
        return {"message": self.message, "category": self.category}


@dataclass
class AsyncJob:
    """One outstanding request to the remote generative service."""

    kind: JobKind
    status: JobStatus = JobStatus.PENDING
    submitted_at: datetime = field(default_factory=_utcnow)
    poll_interval_ms: int = 0
    result: Any = None
    error: JobFailure | None = None
    handle: Any = None  # remote operation reference for pollable jobs
    result_ref: str | None = None  # where a finished remote result can be fetched
    polls: int = 0
    id: str = field(default_factory=lambda: uuid.uuid4().hex)

    @property
    def ok(self) -> bool:
        return self.status == JobStatus.DONE

    @property
    def finished(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def mark_streaming(self) -> None:
        self._ensure_live()
        self.status = JobStatus.STREAMING

    def mark_done(self, result: Any) -> None:
        self._ensure_live()
        self.result = result
        self.status = JobStatus.DONE

    def mark_failed(self, failure: JobFailure) -> None:
        self._ensure_live()
        self.error = failure
        self.status = JobStatus.FAILED

    def _ensure_live(self) -> None:
        if self.finished:
            raise RuntimeError(f"Job {self.id} already {self.status.value}")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "kind": self.kind.value,
            "status": self.status.value,
            "submitted_at": self.submitted_at.isoformat(),
            "poll_interval_ms": self.poll_interval_ms,
            "polls": self.polls,
            "result_ref": self.result_ref,
            "error": self.error.to_dict() if self.error else None,
        }


@dataclass
class StreamEvent:
    """One event of a streamed text job: a delta, or the single terminal event."""

    type: str  # delta | done | error
    text: str = ""
    failure: JobFailure | None = None

    @property
    def terminal(self) -> bool:
        return self.type in ("done", "error")


@dataclass
class StudioImage:
    """Base64 image bytes shared between the studio's generate and edit flows."""

    data: str
    mime_type: str = "image/png"

    @property
    def data_url(self) -> str:
        return f"data:{self.mime_type};base64,{self.data}"


@dataclass
class ErrorLogEntry:
    timestamp: str
    context: str
    message: str
    stack: str | None = None

    def to_dict(self) -> dict:
        return {
            "timestamp": self.timestamp,
            "context": self.context,
            "message": self.message,
            "stack": self.stack,
        }


class CancelToken:
    """Cooperative cancellation flag shared between a widget and its running job."""

    def __init__(self):
        self._event = asyncio.Event()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        self._event.set()

    async def wait(self, timeout: float) -> bool:
        """Sleep up to ``timeout`` seconds; return True early if cancelled."""
        if self.cancelled:
            return True
        try:
            await asyncio.wait_for(self._event.wait(), timeout=timeout)
        except asyncio.TimeoutError:
            return False
        return True
