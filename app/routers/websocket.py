import asyncio
import time

from fastapi import APIRouter, WebSocket
from starlette.websockets import WebSocketDisconnect

from app.dependencies import open_session
from app.models.enums import JobStatus
from app.models.job import Job

router = APIRouter()

POLL_INTERVAL_S = 1.0
MAX_STREAM_S = 5 * 60

def _load(job_id: int):
    with open_session() as session:
        job = session.get(Job, job_id)
        if job is None:
            return None
        return {"status": job.status, "result": job.result, "error": job.error, "user_id": job.user_id}

def _event(job_id: int, snapshot: dict) -> dict:
    status = snapshot["status"]
    if status == JobStatus.COMPLETED:
        return {"type": "completed", "job_id": job_id, "data": {"status": status.value, "result": snapshot["result"]}}
    if status == JobStatus.FAILED:
        return {"type": "failed", "job_id": job_id, "data": {"status": status.value, "error": snapshot["error"]}}
    return {"type": "status", "job_id": job_id, "data": {"status": status.value}}

@router.websocket("/ws/jobs/{job_id}")
async def job_stream(job_id: int, websocket: WebSocket):
    """Push job status changes until the job is terminal or the stream times out."""
    user_id = websocket.headers.get("x-user-id")
    await websocket.accept()

    snapshot = _load(job_id)
    if snapshot is None or snapshot["user_id"] != user_id:
        await websocket.send_json({"type": "failed", "job_id": job_id, "data": {"error": "Job not found"}})
        await websocket.close()
        return

    await websocket.send_json(_event(job_id, snapshot))
    last_status = snapshot["status"]
    started = time.monotonic()

    try:
        while not last_status.is_terminal:
            if time.monotonic() - started > MAX_STREAM_S:
                await websocket.send_json({"type": "timeout", "job_id": job_id,
                                           "data": {"message": "Stream timed out after 5 minutes"}})
                break

            await asyncio.sleep(POLL_INTERVAL_S)
            snapshot = _load(job_id)
            if snapshot is None:
                await websocket.send_json({"type": "failed", "job_id": job_id, "data": {"error": "Job not found"}})
                break
            if snapshot["status"] != last_status:
                last_status = snapshot["status"]
                await websocket.send_json(_event(job_id, snapshot))
        await websocket.close()
    except WebSocketDisconnect:
        pass
