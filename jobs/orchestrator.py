"""Job orchestrator: runs one generative request end to end.

Every operation converts remote failures into a ``JobFailure`` on the returned
job, records them in the error log under the caller's context label, and never
lets them escape. Blank input raises ``InputFailure`` before any remote call.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Callable
from datetime import datetime, timezone

from pydantic import BaseModel, ValidationError

from config import settings
from jobs.error_log import ErrorLog
from jobs.errors import (
    InputFailure,
    JobCancelled,
    PollTimeout,
    RemoteCallFailure,
    ValidationFailure,
)
from jobs.models import AsyncJob, CancelToken, JobFailure, JobKind, JobStatus, StreamEvent, StudioImage
from providers.image.base import ASPECT_RATIOS, ImageProvider
from providers.llm.base import LLMProvider
from providers.video.base import VideoOperation, VideoProvider, VideoResult

logger = logging.getLogger(__name__)

VIDEO_PROGRESS_MESSAGES = [
    "Contacting video synthesis servers...",
    "Analyzing your prompt...",
    "Animating initial keyframes...",
    "Rendering motion vectors...",
    "Upscaling video resolution...",
    "This can take a few minutes...",
    "Finalizing the video sequence...",
]
DOWNLOAD_MESSAGE = "Downloading generated video..."


def require_text(value: str | None, message: str) -> str:
    """Strip ``value`` and raise InputFailure if nothing is left."""
    text = (value or "").strip()
    if not text:
        raise InputFailure(message)
    return text


def _check_cancel(cancel: CancelToken | None) -> None:
    if cancel is not None and cancel.cancelled:
        raise JobCancelled("Superseded by a newer request")


class JobOrchestrator:
    """Drives text, streaming, image, edit and video jobs against the providers.

    Providers are resolved lazily so a process without credentials can still
    construct the orchestrator. ``current_image`` is the studio image that edits
    apply to; generation and successful edits replace it.
    """

    def __init__(
        self,
        error_log: ErrorLog,
        llm: LLMProvider | None = None,
        image: ImageProvider | None = None,
        video: VideoProvider | None = None,
        poll_interval: float | None = None,
        max_polls: int | None = None,
    ):
        self.error_log = error_log
        self._llm = llm
        self._image = image
        self._video = video
        self.poll_interval = settings.video_poll_interval if poll_interval is None else poll_interval
        self.max_polls = settings.video_max_polls if max_polls is None else max_polls
        self.current_image: StudioImage | None = None

    @property
    def llm(self) -> LLMProvider:
        if self._llm is None:
            from providers.factory import get_llm_provider

            self._llm = get_llm_provider()
        return self._llm

    @property
    def image(self) -> ImageProvider:
        if self._image is None:
            from providers.factory import get_image_provider

            self._image = get_image_provider()
        return self._image

    @property
    def video(self) -> VideoProvider:
        if self._video is None:
            from providers.factory import get_video_provider

            self._video = get_video_provider()
        return self._video

    def _fail(self, job: AsyncJob, exc: Exception, context: str) -> AsyncJob:
        failure = JobFailure.from_exception(exc)
        if isinstance(exc, JobCancelled):
            logger.info("[%s] job %s cancelled", context, job.id)
        else:
            self.error_log.record(context, exc)
        job.mark_failed(failure)
        return job

    # ── Text ────────────────────────────────────────────

    async def submit_streaming(
        self,
        messages: list[dict],
        system_prompt: str | None = None,
        *,
        context: str = "Co-pilot",
        cancel: CancelToken | None = None,
    ) -> AsyncIterator[StreamEvent]:
        """Stream a chat reply: deltas in receipt order, then one terminal event."""
        if not messages:
            raise InputFailure("Please enter a message.")
        require_text(messages[-1].get("text"), "Please enter a message.")

        job = AsyncJob(kind=JobKind.STREAMING_TEXT)
        full_text = ""
        try:
            async for delta in self.llm.stream(system_prompt, messages):
                _check_cancel(cancel)
                if job.status == JobStatus.PENDING:
                    job.mark_streaming()
                full_text += delta
                yield StreamEvent(type="delta", text=delta)
            _check_cancel(cancel)
            job.mark_done(full_text)
        except Exception as e:
            self._fail(job, e, context)
            yield StreamEvent(type="error", text=full_text, failure=job.error)
            return
        yield StreamEvent(type="done", text=full_text)

    async def submit_single_shot(
        self,
        prompt: str,
        schema: type[BaseModel] | None = None,
        *,
        system_prompt: str | None = None,
        use_search: bool = False,
        context: str = "AI Insights",
        cancel: CancelToken | None = None,
    ) -> AsyncJob:
        """One-shot text generation.

        Without ``schema`` the job result is the ``LLMResponse``; with it, the
        validated model instance.
        """
        prompt = require_text(prompt, "Please enter a prompt.")
        job = AsyncJob(kind=JobKind.TEXT)
        response_schema = None
        if schema is not None:
            builder = getattr(schema, "response_schema", None)
            response_schema = builder() if callable(builder) else schema.model_json_schema()

        try:
            response = await self.llm.complete(
                system_prompt,
                prompt,
                response_schema=response_schema,
                use_search=use_search,
            )
            _check_cancel(cancel)
            payload = self._validate(schema, response.text) if schema is not None else response
            job.mark_done(payload)
        except Exception as e:
            self._fail(job, e, context)
        return job

    @staticmethod
    def _validate(schema: type[BaseModel], text: str) -> BaseModel:
        try:
            return schema.model_validate_json(text)
        except ValidationError as e:
            first = e.errors()[0] if e.errors() else {}
            detail = first.get("msg", str(e))
            raise ValidationFailure(f"Invalid {schema.__name__} data received from AI: {detail}") from e

    # ── Images ──────────────────────────────────────────

    async def generate_image(
        self,
        prompt: str,
        aspect_ratio: str = "1:1",
        *,
        context: str = "AI Studio",
        cancel: CancelToken | None = None,
    ) -> AsyncJob:
        """Generate a fresh image. The current image is dropped when this starts."""
        prompt = require_text(prompt, "Please describe the visualization you want to generate.")
        if aspect_ratio not in ASPECT_RATIOS:
            raise InputFailure(f"Aspect ratio must be one of {', '.join(ASPECT_RATIOS)}")

        self.current_image = None
        job = AsyncJob(kind=JobKind.IMAGE)
        try:
            result = await self.image.generate(prompt, aspect_ratio=aspect_ratio)
            _check_cancel(cancel)
            self.current_image = result.image
            job.mark_done(result)
        except Exception as e:
            self._fail(job, e, context)
        return job

    async def submit_editable(
        self,
        edit_prompt: str,
        image: StudioImage | None = None,
        *,
        context: str = "AI Studio Edit",
        cancel: CancelToken | None = None,
    ) -> AsyncJob:
        """Edit ``image`` (default: the current image); success replaces the current image."""
        edit_prompt = require_text(edit_prompt, "Please describe your edits.")
        source = image or self.current_image
        if source is None:
            raise InputFailure("An image must be present to edit.")

        job = AsyncJob(kind=JobKind.EDIT)
        try:
            result = await self.image.edit(source, edit_prompt)
            _check_cancel(cancel)
            self.current_image = result.image
            job.mark_done(result)
        except Exception as e:
            self._fail(job, e, context)
        return job

    # ── Video ───────────────────────────────────────────

    async def submit_pollable(
        self,
        prompt: str,
        image: StudioImage | None = None,
        *,
        context: str = "AI Studio Video",
    ) -> AsyncJob:
        """Start a video operation. The returned job is pending (or failed)."""
        prompt = require_text(prompt, "Please describe the video you want to generate.")
        job = AsyncJob(kind=JobKind.VIDEO, poll_interval_ms=int(self.poll_interval * 1000))
        try:
            operation = await self.video.submit(prompt, image=image)
            self._apply_operation(job, operation)
        except Exception as e:
            self._fail(job, e, context)
        return job

    async def poll(self, job: AsyncJob, *, context: str = "AI Studio Video") -> AsyncJob:
        """Refresh a pending video job once.

        Afterwards the job is either still in progress, ready to fetch
        (``result_ref`` set), or failed.
        """
        if job.finished or job.result_ref is not None:
            return job
        try:
            operation = await self.video.poll(job.handle)
            job.polls += 1
            self._apply_operation(job, operation)
            logger.debug("Video job %s poll %d: done=%s", job.id, job.polls, operation.done)
        except Exception as e:
            self._fail(job, e, context)
        return job

    @staticmethod
    def _apply_operation(job: AsyncJob, operation: VideoOperation) -> None:
        job.handle = operation
        if operation.error:
            raise RemoteCallFailure(f"Video generation failed: {operation.error}")
        if operation.done:
            if not operation.video_uri:
                raise RemoteCallFailure("Video generation completed, but no download link was returned.")
            job.result_ref = operation.video_uri

    async def fetch_result(self, job: AsyncJob, *, context: str = "AI Studio Video") -> AsyncJob:
        """Download a ready video; the job becomes done with a ``VideoResult``."""
        if job.finished:
            return job
        if job.result_ref is None:
            raise InputFailure("Video is not ready to download yet.")
        try:
            data = await self.video.fetch(job.result_ref)
            if not data:
                raise RemoteCallFailure("Failed to download video: empty response")
            elapsed_ms = (datetime.now(timezone.utc) - job.submitted_at).total_seconds() * 1000
            job.mark_done(
                VideoResult(
                    video_bytes=data,
                    video_uri=job.result_ref,
                    provider=self.video.provider_name,
                    generation_time_ms=elapsed_ms,
                )
            )
        except Exception as e:
            self._fail(job, e, context)
        return job

    async def run_pollable(
        self,
        prompt: str,
        image: StudioImage | None = None,
        *,
        on_progress: Callable[[str], object] | None = None,
        cancel: CancelToken | None = None,
        context: str = "AI Studio Video",
    ) -> AsyncJob:
        """Submit, poll every ``poll_interval`` seconds up to ``max_polls``, then fetch."""
        if on_progress:
            on_progress(VIDEO_PROGRESS_MESSAGES[0])
        job = await self.submit_pollable(prompt, image, context=context)

        while not job.finished and job.result_ref is None:
            if job.polls >= self.max_polls:
                waited = int(job.polls * self.poll_interval)
                return self._fail(
                    job,
                    PollTimeout(f"Video generation timed out after {job.polls} status checks ({waited}s)"),
                    context,
                )
            if cancel is not None:
                if await cancel.wait(self.poll_interval):
                    return self._fail(job, JobCancelled("Superseded by a newer request"), context)
            else:
                await asyncio.sleep(self.poll_interval)

            await self.poll(job, context=context)
            if on_progress and not job.finished:
                on_progress(VIDEO_PROGRESS_MESSAGES[job.polls % len(VIDEO_PROGRESS_MESSAGES)])

        if job.finished:
            return job
        if cancel is not None and cancel.cancelled:
            return self._fail(job, JobCancelled("Superseded by a newer request"), context)

        if on_progress:
            on_progress(DOWNLOAD_MESSAGE)
        return await self.fetch_result(job, context=context)
