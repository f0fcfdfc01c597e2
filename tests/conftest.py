"""Pytest configuration: project root on sys.path plus in-memory providers.

The fake providers implement the provider interfaces without any network, so
orchestrator, widget and route tests can script exact remote behavior.
"""

import asyncio
import base64
import os
import sys

import pytest

# Project root = parent directory of this tests/ folder
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))

if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from jobs.error_log import ErrorLog  # noqa: E402
from jobs.models import StudioImage  # noqa: E402
from jobs.orchestrator import JobOrchestrator  # noqa: E402
from jobs.reconciler import ViewStateReconciler  # noqa: E402
from providers.image.base import ImageProvider, ImageResult  # noqa: E402
from providers.llm.base import LLMProvider, LLMResponse  # noqa: E402
from providers.video.base import VideoOperation, VideoProvider  # noqa: E402
from widgets import build_widgets, register_regions  # noqa: E402


class FakeLLM(LLMProvider):
    """Scripted text provider.

    ``texts`` are returned by successive ``complete`` calls (the last one
    repeats); ``delays`` optionally hold each call back. ``chunks`` are streamed
    and ``stream_error`` is raised after they have all been sent.
    """

    def __init__(self, texts=None, chunks=None, error=None, stream_error=None, delays=None):
        self.texts = list(texts or ["Generated text"])
        self.chunks = list(chunks or [])
        self.error = error
        self.stream_error = stream_error
        self.delays = list(delays or [])
        self.calls: list[dict] = []
        self.stream_calls: list[list[dict]] = []

    @property
    def provider_name(self) -> str:
        return "fake"

    async def complete(self, system_prompt, user_prompt, response_schema=None, use_search=False):
        index = len(self.calls)
        self.calls.append(
            {
                "system_prompt": system_prompt,
                "user_prompt": user_prompt,
                "response_schema": response_schema,
                "use_search": use_search,
            }
        )
        if index < len(self.delays):
            await asyncio.sleep(self.delays[index])
        if self.error:
            raise self.error
        text = self.texts[min(index, len(self.texts) - 1)]
        sources = [{"title": "Example", "uri": "https://example.com"}] if use_search else []
        return LLMResponse(
            text=text,
            input_tokens=10,
            output_tokens=20,
            model="fake-model",
            provider=self.provider_name,
            latency_ms=1.0,
            sources=sources,
        )

    async def stream(self, system_prompt, messages):
        self.stream_calls.append([dict(m) for m in messages])
        for chunk in self.chunks:
            yield chunk
        if self.stream_error:
            raise self.stream_error

    async def health_check(self) -> bool:
        return True


def fake_image(label: str) -> StudioImage:
    return StudioImage(data=base64.b64encode(label.encode()).decode())


class FakeImage(ImageProvider):
    def __init__(self, error=None, edit_error=None):
        self.error = error
        self.edit_error = edit_error
        self.generate_calls: list[dict] = []
        self.edit_calls: list[dict] = []

    @property
    def provider_name(self) -> str:
        return "fake-image"

    async def generate(self, prompt, aspect_ratio="1:1"):
        self.generate_calls.append({"prompt": prompt, "aspect_ratio": aspect_ratio})
        if self.error:
            raise self.error
        return ImageResult(
            image=fake_image(f"generated-{len(self.generate_calls)}"),
            provider=self.provider_name,
            model="fake-imagen",
        )

    async def edit(self, image, instruction):
        self.edit_calls.append({"image": image, "instruction": instruction})
        if self.edit_error:
            raise self.edit_error
        return ImageResult(
            image=fake_image(f"edited-{len(self.edit_calls)}"),
            provider=self.provider_name,
            model="fake-edit",
        )

    async def health_check(self) -> bool:
        return True


class FakeVideo(VideoProvider):
    """Operation that reports done after ``done_after`` polls."""

    def __init__(
        self,
        done_after=2,
        video_uri="https://files.example.com/video.mp4",
        data=b"\x00\x00\x00\x18ftypmp42",
        submit_error=None,
        operation_error=None,
        fetch_error=None,
    ):
        self.done_after = done_after
        self.video_uri = video_uri
        self.data = data
        self.submit_error = submit_error
        self.operation_error = operation_error
        self.fetch_error = fetch_error
        self.submit_calls: list[dict] = []
        self.poll_count = 0
        self.fetched: list[str] = []

    @property
    def provider_name(self) -> str:
        return "fake-video"

    async def submit(self, prompt, image=None):
        self.submit_calls.append({"prompt": prompt, "image": image})
        if self.submit_error:
            raise self.submit_error
        return VideoOperation(name="operations/fake-1")

    async def poll(self, operation):
        self.poll_count += 1
        if self.operation_error:
            return VideoOperation(name=operation.name, done=True, error=self.operation_error)
        if self.poll_count >= self.done_after:
            return VideoOperation(name=operation.name, done=True, video_uri=self.video_uri)
        return VideoOperation(name=operation.name)

    async def fetch(self, video_uri):
        self.fetched.append(video_uri)
        if self.fetch_error:
            raise self.fetch_error
        return self.data

    async def health_check(self) -> bool:
        return True


@pytest.fixture
def error_log():
    return ErrorLog()


@pytest.fixture
def reconciler():
    reconciler = ViewStateReconciler()
    register_regions(reconciler)
    return reconciler


@pytest.fixture
def llm():
    return FakeLLM()


@pytest.fixture
def image():
    return FakeImage()


@pytest.fixture
def video():
    return FakeVideo()


@pytest.fixture
def orchestrator(error_log, llm, image, video):
    return JobOrchestrator(error_log, llm=llm, image=image, video=video, poll_interval=0, max_polls=5)


@pytest.fixture
def widgets(orchestrator, reconciler):
    return build_widgets(orchestrator, reconciler)
