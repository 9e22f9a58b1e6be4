from fastapi import APIRouter, Depends, Request

from sima.api.deps import require_admin

router = APIRouter(prefix="/api", tags=["system"])


@router.get("/health")
async def health():
    return {"ok": True}


@router.get("/metrics", dependencies=[Depends(require_admin)])
async def metrics(request: Request, minutes: int = 30):
    return request.app.state.metrics.summary(window_minutes=max(1, minutes))
