from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlmodel import Session

from app.dependencies import get_queue, get_session
from app.services.queue_service import RedisJobQueue

router = APIRouter()

@router.get("/health")
def health():
    return {"ok": True}

@router.get("/health/ready")
async def ready(session: Session = Depends(get_session), queue: RedisJobQueue = Depends(get_queue)):
    out = {}
    try:
        session.connection().execute(text("SELECT 1"))
        out["database"] = {"ok": True}
    except Exception as e:
        out["database"] = {"ok": False, "error": str(e)}
    try:
        out["redis"] = {"ok": await queue.ping()}
    except Exception as e:
        out["redis"] = {"ok": False, "error": str(e)}

    ok = all(v["ok"] for v in out.values())
    return JSONResponse({"ready": ok, **out}, status_code=200 if ok else 503)
