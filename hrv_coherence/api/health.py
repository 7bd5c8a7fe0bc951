from __future__ import annotations

from fastapi import APIRouter, Request, Response
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest


router = APIRouter(tags=["health"])


@router.get("/healthz")
def healthz(request: Request) -> Response:
    worker = request.app.state.analysis_worker
    if not worker.is_alive:
        return JSONResponse(status_code=503, content={"status": "degraded", "worker": "down"})
    return JSONResponse(
        content={
            "status": "ok",
            "config_hash": request.app.state.analysis_config.to_hash(),
        }
    )


@router.get("/metrics")
def metrics() -> Response:
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)
