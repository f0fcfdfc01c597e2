"""AI Studio: image generation, image edits, and video generation."""

from __future__ import annotations

import asyncio
import base64
import binascii

from jobs.errors import InputFailure
from jobs.models import AsyncJob, StudioImage
from jobs.orchestrator import require_text
from providers.image.base import ASPECT_RATIOS
from providers.video.base import VideoResult
from widgets.base import BaseWidget, error_card

OUTPUT_REGION = "studio-output"
EDIT_REGION = "studio-edit"

IMAGE_PROMPT = """Generate a professional, high-fidelity financial visualization for an elite investment dashboard.
The style should be clean, modern, and data-rich, suitable for FULXERPRO INVESTORS.
Use a dark theme with highlights of blue and green for positive trends.
Visualization request: "{prompt}\""""


class StudioWidget(BaseWidget):
    """Image and video output share one region; edit status has its own.

    The image that edits apply to lives on the orchestrator as
    ``current_image``. Video jobs run as background tasks and the finished
    file is kept in memory until the next video or a reset.
    """

    name = "studio"
    context = "AI Studio"
    regions = (OUTPUT_REGION, EDIT_REGION)

    def __init__(self, orchestrator, reconciler):
        super().__init__(orchestrator, reconciler)
        self.videos: dict[str, VideoResult] = {}
        self._tasks: set[asyncio.Task] = set()

    @property
    def edit_controls_visible(self) -> bool:
        return self.orchestrator.current_image is not None

    # ── Images ──────────────────────────────────────────

    async def generate_image(self, prompt: str, aspect_ratio: str = "1:1") -> AsyncJob:
        user_prompt = require_text(prompt, "Please describe the visualization you want to generate.")
        if aspect_ratio not in ASPECT_RATIOS:
            raise InputFailure(f"Aspect ratio must be one of {', '.join(ASPECT_RATIOS)}")

        self._drop_pending_edit()
        cancel = self.supersede(OUTPUT_REGION)
        handle = self.region(OUTPUT_REGION)
        token = handle.begin("Generating your visualization...")

        job = await self.orchestrator.generate_image(
            IMAGE_PROMPT.format(prompt=user_prompt),
            aspect_ratio=aspect_ratio,
            context="AI Studio",
            cancel=cancel,
        )
        if job.ok:
            handle.commit(token, self._image_content(job.result.image, alt=user_prompt))
        else:
            handle.fail(token, error_card("Sorry, there was an issue generating your visualization.", job.error))
        return job

    async def apply_edit(self, edit_prompt: str) -> AsyncJob:
        """Edit the current image. On failure the displayed image is left as it was."""
        edit_prompt = require_text(edit_prompt, "Please describe your edits. An image must be present to edit.")
        if self.orchestrator.current_image is None:
            raise InputFailure("Please describe your edits. An image must be present to edit.")

        cancel = self.supersede(EDIT_REGION)
        edit_handle = self.region(EDIT_REGION)
        token = edit_handle.begin("Applying your edits...")

        job = await self.orchestrator.submit_editable(edit_prompt, context="AI Studio Edit", cancel=cancel)
        if job.ok:
            if edit_handle.commit(token, {"status": "applied", "instruction": edit_prompt}):
                self.supersede(OUTPUT_REGION)
                output = self.region(OUTPUT_REGION)
                output.commit(output.begin(), self._image_content(job.result.image, alt=edit_prompt))
        else:
            edit_handle.fail(token, error_card("Sorry, there was an issue applying your edits:", job.error))
        return job

    def _drop_pending_edit(self) -> None:
        self.supersede(EDIT_REGION)
        self.region(EDIT_REGION).reset()

    @staticmethod
    def _image_content(image: StudioImage, alt: str) -> dict:
        return {"type": "image", "src": image.data_url, "alt": alt, "edit_controls": True}

    # ── Video ───────────────────────────────────────────

    def decode_upload(self, data: str | None, mime_type: str | None) -> StudioImage | None:
        """Turn an optional base64 upload into a StudioImage, rejecting unreadable files."""
        if not data:
            return None
        try:
            if not (mime_type or "").startswith("image/"):
                raise ValueError(f"Unsupported file type: {mime_type or 'unknown'}")
            if data.startswith("data:"):
                data = data.split(",", 1)[1]
            base64.b64decode(data, validate=True)
        except (ValueError, binascii.Error, IndexError) as e:
            self.orchestrator.error_log.record("AI Studio Video File", e)
            raise InputFailure("There was an error processing your image file. Please try another one.") from e
        return StudioImage(data=data, mime_type=mime_type)

    async def generate_video(
        self,
        prompt: str,
        image_data: str | None = None,
        image_mime_type: str | None = None,
    ) -> AsyncJob:
        """Run a video job to completion (submit, poll, download)."""
        _, run = self._prepare_video(prompt, image_data, image_mime_type)
        return await run()

    def start_video(
        self,
        prompt: str,
        image_data: str | None = None,
        image_mime_type: str | None = None,
    ) -> int:
        """Validate and begin a video job in the background; returns the region token."""
        token, run = self._prepare_video(prompt, image_data, image_mime_type)
        task = asyncio.create_task(run())
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return token

    def _prepare_video(self, prompt, image_data, image_mime_type):
        user_prompt = require_text(prompt, "Please describe the video you want to generate.")
        image = self.decode_upload(image_data, image_mime_type)

        self._drop_pending_edit()
        cancel = self.supersede(OUTPUT_REGION)
        handle = self.region(OUTPUT_REGION)
        token = handle.begin()

        async def run() -> AsyncJob:
            job = await self.orchestrator.run_pollable(
                user_prompt,
                image,
                on_progress=lambda message: handle.progress(token, message),
                cancel=cancel,
                context="AI Studio Video",
            )
            if job.ok:
                content = {
                    "type": "video",
                    "src": f"/api/studio/videos/{job.id}",
                    "mime_type": job.result.mime_type,
                    "edit_controls": False,
                }
                if handle.commit(token, content):
                    self.videos = {job.id: job.result}
            else:
                handle.fail(token, error_card("Sorry, there was an issue generating your video.", job.error))
            return job

        return token, run

    # ── Session ─────────────────────────────────────────

    def reset(self) -> None:
        self.cancel_all()
        self.orchestrator.current_image = None
        self.videos = {}
        for region in self.regions:
            self.region(region).reset()

    def state(self) -> dict:
        return {
            "regions": self.snapshot(),
            "edit_controls": self.edit_controls_visible,
            "videos": list(self.videos),
        }
