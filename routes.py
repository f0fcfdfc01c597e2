"""FastAPI routes for the FulxerPro dashboard API."""

import json
import logging
import traceback
from contextlib import aclosing

from fastapi import APIRouter, HTTPException, Request, WebSocket, WebSocketDisconnect
from fastapi.responses import Response
from pydantic import BaseModel

from jobs.errors import ConfigurationFailure, InputFailure
from jobs.models import AsyncJob
from widgets import Widgets
from widgets.copilot import CopilotWidget

logger = logging.getLogger(__name__)
router = APIRouter()

DISABLED_MESSAGE = "AI features are disabled: API_KEY environment variable not set."


# ── Pydantic models ─────────────────────────────────────

class AllocationRequest(BaseModel):
    portfolio_value: str = "$12M"
    risk_profile: str = "Nexus Growth (accelerated, diversified returns)"


class GuideRequest(BaseModel):
    force: bool = False


class ImageRequest(BaseModel):
    prompt: str
    aspect_ratio: str = "1:1"


class EditRequest(BaseModel):
    prompt: str


class VideoRequest(BaseModel):
    prompt: str
    image_data: str | None = None
    image_mime_type: str | None = None


# ── Helpers ─────────────────────────────────────────────

def _widgets(request: Request) -> Widgets:
    widgets = request.app.state.widgets
    if widgets is None:
        raise HTTPException(503, DISABLED_MESSAGE)
    return widgets


def _job_response(job: AsyncJob, region: dict) -> dict:
    return {"job": job.to_dict(), "region": region}


# ── Co-pilot WebSocket ──────────────────────────────────

@router.websocket("/ws/copilot")
async def websocket_copilot(websocket: WebSocket):
    """Streaming co-pilot chat. Each reply is a run of deltas then done or error.

    Every connection has its own conversation, dropped when the client leaves.
    """
    await websocket.accept()
    orchestrator = websocket.app.state.orchestrator
    copilot = CopilotWidget.for_connection(orchestrator) if orchestrator is not None else None

    try:
        while True:
            data = await websocket.receive_text()
            try:
                msg = json.loads(data)
            except json.JSONDecodeError:
                await websocket.send_text(json.dumps({"type": "error", "content": "Invalid message format."}))
                continue

            if msg.get("type") == "clear":
                if copilot is not None:
                    copilot.clear()
                await websocket.send_text(json.dumps({"type": "cleared"}))
                continue
            if msg.get("type") != "message":
                continue

            if copilot is None:
                await websocket.send_text(json.dumps({"type": "error", "content": DISABLED_MESSAGE}))
                continue

            try:
                async with aclosing(copilot.send(msg.get("content", ""))) as events:
                    async for event in events:
                        if event.type == "delta":
                            payload = {"type": "delta", "content": event.text}
                        elif event.type == "done":
                            payload = {"type": "done", "content": event.text}
                        else:
                            payload = {
                                "type": "error",
                                "content": "Sorry, I couldn't process that request.",
                                "detail": event.failure.message if event.failure else None,
                            }
                        await websocket.send_text(json.dumps(payload))
            except InputFailure as e:
                await websocket.send_text(json.dumps({"type": "error", "content": str(e)}))

    except WebSocketDisconnect:
        logger.info("Co-pilot client disconnected")
    except Exception:
        logger.error("Co-pilot WebSocket error: %s", traceback.format_exc())
    finally:
        if copilot is not None:
            copilot.cancel_all()


# ── Dashboard widgets ───────────────────────────────────

@router.post("/api/insights")
async def refresh_insights(request: Request):
    """Regenerate the strategic opportunities panel."""
    widget = _widgets(request).insights
    job = await widget.refresh()
    return _job_response(job, widget.snapshot()["insights-panel"])


@router.post("/api/guide")
async def load_guide(request: Request, body: GuideRequest | None = None):
    """Generate the platform guide once; ``force`` regenerates it."""
    widget = _widgets(request).guide
    job = await widget.load(force=body.force if body else False)
    region = widget.snapshot()["guide-content"]
    if job is None:
        return {"job": None, "region": region}
    return _job_response(job, region)


@router.post("/api/allocation")
async def refresh_allocation(request: Request, body: AllocationRequest | None = None):
    widget = _widgets(request).allocation
    body = body or AllocationRequest()
    try:
        job = await widget.refresh(body.portfolio_value, body.risk_profile)
    except InputFailure as e:
        raise HTTPException(400, str(e))
    return _job_response(job, widget.snapshot()["asset-allocation"])


# ── Social trading ──────────────────────────────────────

@router.get("/api/traders")
async def list_traders(request: Request, q: str = ""):
    return {"traders": _widgets(request).social.search(q)}


@router.post("/api/traders/{name}/follow")
async def toggle_follow(request: Request, name: str):
    social = _widgets(request).social
    try:
        following = social.toggle_follow(name)
    except KeyError:
        raise HTTPException(404, f"Trader '{name}' not found")
    return {"name": social.find(name).name, "following": following}


@router.post("/api/traders/{name}/analysis")
async def analyze_trader(request: Request, name: str):
    social = _widgets(request).social
    trader = social.find(name)
    if trader is None:
        raise HTTPException(404, f"Trader '{name}' not found")
    job = await social.analyze(trader)
    return _job_response(job, social.snapshot()["trader-analysis"])


# ── AI Studio ───────────────────────────────────────────

@router.get("/api/studio")
async def get_studio(request: Request):
    return _widgets(request).studio.state()


@router.post("/api/studio/image")
async def generate_image(request: Request, body: ImageRequest):
    studio = _widgets(request).studio
    try:
        job = await studio.generate_image(body.prompt, body.aspect_ratio)
    except InputFailure as e:
        raise HTTPException(400, str(e))
    return {"job": job.to_dict(), **studio.state()}


@router.post("/api/studio/edit")
async def apply_edit(request: Request, body: EditRequest):
    studio = _widgets(request).studio
    try:
        job = await studio.apply_edit(body.prompt)
    except InputFailure as e:
        raise HTTPException(400, str(e))
    return {"job": job.to_dict(), **studio.state()}


@router.post("/api/studio/video", status_code=202)
async def generate_video(request: Request, body: VideoRequest):
    """Start a video job in the background; poll /api/regions/studio-output for progress."""
    studio = _widgets(request).studio
    try:
        token = studio.start_video(body.prompt, body.image_data, body.image_mime_type)
    except InputFailure as e:
        raise HTTPException(400, str(e))
    return {"status": "accepted", "region": "studio-output", "token": token}


@router.get("/api/studio/videos/{job_id}")
async def get_video(request: Request, job_id: str):
    video = _widgets(request).studio.videos.get(job_id)
    if video is None:
        raise HTTPException(404, f"Video '{job_id}' not found")
    return Response(content=video.video_bytes, media_type=video.mime_type)


@router.post("/api/studio/reset")
async def reset_studio(request: Request):
    studio = _widgets(request).studio
    studio.reset()
    return studio.state()


# ── Regions ─────────────────────────────────────────────

@router.get("/api/regions")
async def list_regions(request: Request):
    return {"regions": [snapshot.to_dict() for snapshot in request.app.state.reconciler.snapshots()]}


@router.get("/api/regions/{name}")
async def get_region(request: Request, name: str):
    try:
        return request.app.state.reconciler.snapshot(name).to_dict()
    except ConfigurationFailure:
        raise HTTPException(404, f"Region '{name}' not found")


# ── Admin ───────────────────────────────────────────────

@router.get("/api/admin/errors")
async def list_errors(request: Request):
    entries = request.app.state.error_log.list()
    return {"errors": [entry.to_dict() for entry in entries], "count": len(entries)}


@router.delete("/api/admin/errors")
async def clear_errors(request: Request):
    removed = request.app.state.error_log.clear()
    return {"status": "cleared", "removed": removed}


@router.get("/api/admin/providers")
async def provider_health():
    """Health of the text, image and video providers."""
    from providers.factory import check_all_providers

    return await check_all_providers()
