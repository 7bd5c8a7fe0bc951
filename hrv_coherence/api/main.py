from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager
from http import HTTPStatus

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from hrv_coherence.api.error_payloads import ERROR_STATUS, error_payload
from hrv_coherence.api.health import router as health_router
from hrv_coherence.api.routes import router as analysis_router
from hrv_coherence.config import load_config
from hrv_coherence.core.logging import configure_logging
from hrv_coherence.core.metrics import ERROR_COUNT, REQUEST_COUNT, REQUEST_LATENCY
from hrv_coherence.core.request_id import get_request_id, set_request_id
from hrv_coherence.core.settings import Settings, get_settings
from hrv_coherence.errors import AnalysisError
from hrv_coherence.quality.monitor import SignalQualityMonitor, SignalQualityTicker
from hrv_coherence.worker import AnalysisWorker


@asynccontextmanager
async def lifespan(app: FastAPI):
    log = logging.getLogger("hrv_coherence.startup")
    app.state.analysis_worker.start()
    ticker = None
    if app.state.settings.quality_tick_enabled:
        ticker = SignalQualityTicker(
            app.state.quality_monitor,
            interval_sec=app.state.settings.quality_tick_seconds
            or app.state.analysis_config.quality.tick_sec,
        )
        ticker.start()
    log.info("startup_complete", extra={"config_hash": app.state.analysis_config.to_hash()})
    try:
        yield
    finally:
        if ticker is not None:
            ticker.stop(timeout=2.0)
        app.state.analysis_worker.stop()


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.log_level)
    config = load_config(settings.analysis_config_path)

    app = FastAPI(title=settings.app_name, version="1.0.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.analysis_config = config
    app.state.analysis_worker = AnalysisWorker(
        config=config, timeout_seconds=settings.worker_request_timeout_seconds
    )
    app.state.quality_monitor = SignalQualityMonitor(config=config.quality, limits=config.artifact)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
    )

    @app.middleware("http")
    async def request_context(request: Request, call_next):
        request_id = set_request_id(request.headers.get("X-Request-Id"))
        start = time.perf_counter()
        status_code = HTTPStatus.INTERNAL_SERVER_ERROR
        metric_path = request.url.path
        try:
            response = await call_next(request)
            status_code = response.status_code
        finally:
            REQUEST_LATENCY.labels(path=metric_path).observe(time.perf_counter() - start)
            REQUEST_COUNT.labels(
                method=request.method,
                path=metric_path,
                status=str(int(status_code)),
            ).inc()
        response.headers["X-Request-Id"] = request_id
        return response

    @app.exception_handler(AnalysisError)
    async def analysis_error_handler(request: Request, exc: AnalysisError):
        status_code, classification = ERROR_STATUS.get(exc.code, (500, "server"))
        logging.getLogger("hrv_coherence").warning(
            "analysis_error", extra={"code": exc.code, "detail": exc.message}
        )
        ERROR_COUNT.labels(code=exc.code, classification=classification).inc()
        payload = error_payload(
            code=exc.code,
            message=exc.message,
            classification=classification,
            extra=exc.details or None,
        )
        return _error_response(status_code, payload)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        code, classification = _map_http_error(exc.status_code)
        ERROR_COUNT.labels(code=code, classification=classification).inc()
        payload = error_payload(code=code, message=str(exc.detail), classification=classification)
        return _error_response(exc.status_code, payload)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        detail = jsonable_encoder(exc.errors())
        ERROR_COUNT.labels(code="validation_error", classification="client").inc()
        payload = error_payload(
            code="validation_error",
            message="Request validation failed",
            classification="client",
            extra={"detail": detail},
        )
        return _error_response(422, payload)

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logging.getLogger("hrv_coherence").exception("unhandled_error")
        ERROR_COUNT.labels(code="internal_error", classification="server").inc()
        payload = error_payload(
            code="internal_error",
            message="Unexpected error",
            classification="server",
        )
        return _error_response(500, payload)

    app.include_router(health_router)
    app.include_router(analysis_router, prefix=settings.api_v1_prefix)
    return app


def _map_http_error(status_code: int) -> tuple[str, str]:
    if status_code == 404:
        return "not_found", "client"
    if status_code == 405:
        return "method_not_allowed", "client"
    if 400 <= status_code < 500:
        return "bad_request", "client"
    return "http_error", "server"


def _error_response(status_code: int, payload: dict) -> JSONResponse:
    response = JSONResponse(status_code=status_code, content=payload)
    request_id = get_request_id()
    if request_id:
        response.headers["X-Request-Id"] = request_id
    return response
