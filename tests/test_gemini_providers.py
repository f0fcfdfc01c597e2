import json

import httpx
import pytest

from jobs.errors import RemoteCallFailure
from jobs.models import StudioImage
from providers.gemini_client import GeminiClient
from providers.image.imagen import ImagenProvider
from providers.llm.gemini import GeminiProvider
from providers.video.base import VideoOperation
from providers.video.veo import VeoProvider

BASE_URL = "https://gemini.test/v1beta"


def _client(handler) -> GeminiClient:
    return GeminiClient(api_key="test-key", base_url=BASE_URL, timeout=5, transport=httpx.MockTransport(handler))


# ── Text ────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_complete_sends_schema_and_search_tool():
    captured = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["path"] = request.url.path
        captured["key"] = request.headers["x-goog-api-key"]
        captured["body"] = json.loads(request.content)
        return httpx.Response(
            200,
            json={
                "candidates": [
                    {
                        "content": {"parts": [{"text": "**Orbital "}, {"text": "Infrastructure**"}]},
                        "groundingMetadata": {
                            "groundingChunks": [
                                {"web": {"uri": "https://news.example.com/a", "title": "Markets"}},
                                {"web": {"uri": "https://news.example.com/b"}},
                            ]
                        },
                    }
                ],
                "usageMetadata": {"promptTokenCount": 12, "candidatesTokenCount": 30},
            },
        )

    provider = GeminiProvider(_client(handler), model="gemini-2.5-flash")
    response = await provider.complete("Be brief.", "Find themes", response_schema={"type": "OBJECT"}, use_search=True)

    assert captured["path"] == "/v1beta/models/gemini-2.5-flash:generateContent"
    assert captured["key"] == "test-key"
    assert captured["body"]["systemInstruction"] == {"parts": [{"text": "Be brief."}]}
    assert captured["body"]["generationConfig"]["responseMimeType"] == "application/json"
    assert captured["body"]["tools"] == [{"google_search": {}}]
    assert response.text == "**Orbital Infrastructure**"
    assert response.input_tokens == 12
    assert response.sources == [
        {"title": "Markets", "uri": "https://news.example.com/a"},
        {"title": "https://news.example.com/b", "uri": "https://news.example.com/b"},
    ]


@pytest.mark.asyncio
async def test_blocked_prompt_raises():
    def handler(request):
        return httpx.Response(200, json={"promptFeedback": {"blockReason": "SAFETY"}})

    provider = GeminiProvider(_client(handler))
    with pytest.raises(RemoteCallFailure, match="SAFETY"):
        await provider.complete(None, "Hello")


@pytest.mark.asyncio
async def test_http_error_becomes_remote_failure():
    def handler(request):
        return httpx.Response(429, text="Resource has been exhausted")

    provider = GeminiProvider(_client(handler))
    with pytest.raises(RemoteCallFailure, match="Gemini API error 429"):
        await provider.complete(None, "Hello")


@pytest.mark.asyncio
async def test_connect_error_becomes_remote_failure():
    def handler(request):
        raise httpx.ConnectError("connection refused")

    provider = GeminiProvider(_client(handler))
    with pytest.raises(RemoteCallFailure, match="Cannot connect"):
        await provider.complete(None, "Hello")


@pytest.mark.asyncio
async def test_stream_parses_server_sent_events():
    captured = {}
    chunks = [
        {"candidates": [{"content": {"parts": [{"text": "Hel"}]}}]},
        {"candidates": [{"content": {"parts": [{"text": "lo"}]}}]},
        {"usageMetadata": {"candidatesTokenCount": 2}},
    ]
    sse = "".join(f"data: {json.dumps(chunk)}\r\n\r\n" for chunk in chunks)

    def handler(request):
        captured["alt"] = request.url.params["alt"]
        captured["body"] = json.loads(request.content)
        return httpx.Response(200, content=sse.encode(), headers={"content-type": "text/event-stream"})

    provider = GeminiProvider(_client(handler), model="gemini-2.5-flash")
    history = [{"role": "user", "text": "Hi"}, {"role": "model", "text": "Hello!"}, {"role": "user", "text": "More"}]
    deltas = [delta async for delta in provider.stream("System", history)]

    assert deltas == ["Hel", "lo"]
    assert captured["alt"] == "sse"
    assert [c["role"] for c in captured["body"]["contents"]] == ["user", "model", "user"]


# ── Images ──────────────────────────────────────────────

@pytest.mark.asyncio
async def test_imagen_generate_requests_aspect_ratio():
    captured = {}

    def handler(request):
        captured["path"] = request.url.path
        captured["body"] = json.loads(request.content)
        return httpx.Response(200, json={"predictions": [{"bytesBase64Encoded": "aW1n", "mimeType": "image/png"}]})

    provider = ImagenProvider(_client(handler), model="imagen-4.0-generate-001")
    result = await provider.generate("Show growth trend", aspect_ratio="1:1")

    assert captured["path"].endswith("imagen-4.0-generate-001:predict")
    assert captured["body"]["instances"] == [{"prompt": "Show growth trend"}]
    assert captured["body"]["parameters"]["aspectRatio"] == "1:1"
    assert captured["body"]["parameters"]["sampleCount"] == 1
    assert result.image.data_url == "data:image/png;base64,aW1n"


@pytest.mark.asyncio
async def test_imagen_without_predictions_raises():
    provider = ImagenProvider(_client(lambda request: httpx.Response(200, json={"predictions": []})))
    with pytest.raises(RemoteCallFailure, match="No images returned"):
        await provider.generate("Chart")


@pytest.mark.asyncio
async def test_edit_sends_image_and_instruction_together():
    captured = {}

    def handler(request):
        captured["body"] = json.loads(request.content)
        return httpx.Response(
            200,
            json={
                "candidates": [
                    {
                        "content": {
                            "parts": [
                                {"text": "Here you go"},
                                {"inlineData": {"mimeType": "image/png", "data": "ZWRpdGVk"}},
                            ]
                        }
                    }
                ]
            },
        )

    provider = ImagenProvider(_client(handler), edit_model="gemini-2.5-flash-image-preview")
    result = await provider.edit(StudioImage(data="b3JpZw=="), "Make the bars green")

    parts = captured["body"]["contents"][0]["parts"]
    assert parts[0] == {"inlineData": {"mimeType": "image/png", "data": "b3JpZw=="}}
    assert parts[1] == {"text": "Make the bars green"}
    assert captured["body"]["generationConfig"]["responseModalities"] == ["IMAGE", "TEXT"]
    assert result.image.data == "ZWRpdGVk"


@pytest.mark.asyncio
async def test_edit_without_image_part_raises():
    def handler(request):
        return httpx.Response(200, json={"candidates": [{"content": {"parts": [{"text": "I cannot do that"}]}}]})

    provider = ImagenProvider(_client(handler))
    with pytest.raises(RemoteCallFailure, match="did not return an edited image"):
        await provider.edit(StudioImage(data="b3JpZw=="), "Remove everything")


# ── Video ───────────────────────────────────────────────

@pytest.mark.asyncio
async def test_veo_submit_poll_and_download():
    requests = []

    def handler(request):
        requests.append(request)
        if request.method == "POST":
            return httpx.Response(200, json={"name": "models/veo/operations/abc"})
        if request.url.host == "files.example.com":
            return httpx.Response(200, content=b"mp4-bytes")
        return httpx.Response(
            200,
            json={
                "name": "models/veo/operations/abc",
                "done": True,
                "response": {
                    "generateVideoResponse": {
                        "generatedSamples": [{"video": {"uri": "https://files.example.com/v.mp4?alt=media"}}]
                    }
                },
            },
        )

    provider = VeoProvider(_client(handler), model="veo-2.0-generate-001")
    image = StudioImage(data="aW1n", mime_type="image/jpeg")

    operation = await provider.submit("Animated ticker", image=image)
    assert operation == VideoOperation(name="models/veo/operations/abc")
    submitted = json.loads(requests[0].content)
    assert submitted["instances"][0]["image"] == {"bytesBase64Encoded": "aW1n", "mimeType": "image/jpeg"}

    operation = await provider.poll(operation)
    assert requests[1].url.path == "/v1beta/models/veo/operations/abc"
    assert operation.done
    assert operation.video_uri == "https://files.example.com/v.mp4?alt=media"

    data = await provider.fetch(operation.video_uri)
    assert data == b"mp4-bytes"
    assert requests[2].url.params["key"] == "test-key"
    assert requests[2].url.params["alt"] == "media"


@pytest.mark.asyncio
async def test_veo_operation_error_is_reported():
    def handler(request):
        return httpx.Response(200, json={"name": "operations/x", "done": True, "error": {"message": "Quota exceeded"}})

    provider = VeoProvider(_client(handler))
    operation = await provider.poll(VideoOperation(name="operations/x"))
    assert operation.done
    assert operation.error == "Quota exceeded"


@pytest.mark.asyncio
async def test_failed_download_raises_with_reason():
    provider = VeoProvider(_client(lambda request: httpx.Response(403)))
    with pytest.raises(RemoteCallFailure, match="Failed to download video: Forbidden"):
        await provider.fetch("https://files.example.com/v.mp4")
