from fastapi import APIRouter, Request

from app.salecalc.core.config import settings

router = APIRouter()


@router.get("/health")
async def health(request: Request):
    trace_id = getattr(request.state, "trace_id", "")
    return {"status": "ok", "app": settings.APP_NAME, "trace_id": trace_id}
