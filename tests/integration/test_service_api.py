from __future__ import annotations

import pytest
from httpx import ASGITransport, AsyncClient

from hrv_coherence.api.main import create_app
from hrv_coherence.core.settings import Settings


def _app():
    return create_app(Settings(quality_tick_enabled=False))


@pytest.mark.anyio
async def test_health_and_metrics() -> None:
    app = _app()
    async with app.router.lifespan_context(app):
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            health = await client.get("/healthz")
            assert health.status_code == 200
            assert health.json()["status"] == "ok"
            assert len(health.json()["config_hash"]) == 64

            metrics = await client.get("/metrics")
            assert metrics.status_code == 200
            assert "hrv_http_requests_total" in metrics.text


@pytest.mark.anyio
async def test_analyze_and_calibrate_flow(paced_rr) -> None:
    times, intervals = paced_rr(120.0, 0.1)
    app = _app()
    async with app.router.lifespan_context(app):
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            response = await client.post(
                "/v1/analyze",
                json={"rrTimes_s": times, "rr_s": intervals, "targetHz": 0.1},
                headers={"X-Request-Id": "req-analyze"},
            )
            assert response.status_code == 200
            assert response.headers["X-Request-Id"] == "req-analyze"
            body = response.json()
            assert body["metrics"]["coherenceScore"] > 0.5
            assert len(body["psd"]["f"]) == len(body["psd"]["p"]) > 0
            assert len(body["cleaned"]["rr_s"]) > 0

            calibration = await client.post(
                "/v1/calibration",
                json={
                    "rrTimes_s": times,
                    "rr_s": intervals,
                    "frequenciesHz": [0.1, 0.2],
                    "stepSec": 60.0,
                },
            )
            assert calibration.status_code == 200
            summary = calibration.json()
            assert len(summary["scanned"]) == 2
            assert summary["best"]["frequencyHz"] == 0.1
            assert summary["best"]["breathsPerMin"] == pytest.approx(6.0)


@pytest.mark.anyio
async def test_analyze_error_mapping() -> None:
    app = _app()
    async with app.router.lifespan_context(app):
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            mismatch = await client.post(
                "/v1/analyze",
                json={"rrTimes_s": [1.0, 2.0], "rr_s": [0.8], "targetHz": 0.1},
            )
            assert mismatch.status_code == 400
            error = mismatch.json()["error"]
            assert error["code"] == "length_mismatch"
            assert error["failure_classification"] == "FATAL"
            assert error["request_id"]

            invalid = await client.post("/v1/analyze", json={"rr_s": [0.8]})
            assert invalid.status_code == 422
            assert invalid.json()["error"]["code"] == "validation_error"

            app.state.analysis_worker.stop()
            unavailable = await client.post(
                "/v1/analyze",
                json={"rrTimes_s": [1.0], "rr_s": [0.8], "targetHz": 0.1},
            )
            assert unavailable.status_code == 503
            assert unavailable.json()["error"]["failure_classification"] == "TRANSIENT"

            health = await client.get("/healthz")
            assert health.status_code == 503


@pytest.mark.anyio
async def test_session_report(paced_rr) -> None:
    _, intervals = paced_rr(60.0, 0.1)
    events = [{"t_ms": i * 850, "hr": 70, "rr_s": [rr]} for i, rr in enumerate(intervals)]
    app = _app()
    async with app.router.lifespan_context(app):
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            response = await client.post(
                "/v1/sessions/report",
                json={
                    "mode": "hrvb",
                    "settings": {"targetHz": 0.1},
                    "startedAtMs": 0,
                    "endedAtMs": 60_000,
                    "events": events,
                },
            )
            assert response.status_code == 200
            report = response.json()
            assert report["status"] == "completed"
            assert report["session"]["id"].startswith("hrvb-")
            assert report["session"]["derived"]["analysis"]["metrics"]["meanHr"] > 0
            assert len(report["session"]["rawEvents"]) == len(events)

            short = await client.post(
                "/v1/sessions/report",
                json={"mode": "measurement", "settings": {"targetHz": 0.1}, "events": events[:5]},
            )
            assert short.status_code == 200
            assert short.json()["status"] == "insufficient_data"
            assert short.json()["message"] == "not enough data for analysis"


@pytest.mark.anyio
async def test_signal_quality_endpoints() -> None:
    app = _app()
    async with app.router.lifespan_context(app):
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            initial = await client.get("/v1/signal-quality")
            assert initial.json() == {"score": 0, "label": "Searching"}

            pushed = await client.post(
                "/v1/signal-quality/events", json={"hr": 72, "rr_s": [0.8] * 6}
            )
            assert pushed.status_code == 200
            assert pushed.json() == {"score": 100, "label": "Excellent"}

            # client clocks are ignored; samples are stamped on arrival
            foreign = await client.post(
                "/v1/signal-quality/events",
                json={"hr": 72, "rr_s": [0.8] * 6, "arrivalTime": 0.0},
            )
            assert foreign.json() == {"score": 100, "label": "Excellent"}

            invalid = await client.post("/v1/signal-quality/events", json={})
            assert invalid.status_code == 422

            cleared = await client.delete("/v1/signal-quality")
            assert cleared.status_code == 204
            after = await client.get("/v1/signal-quality")
            assert after.json()["label"] == "Searching"


@pytest.mark.anyio
async def test_unknown_route_uses_error_payload() -> None:
    app = _app()
    async with app.router.lifespan_context(app):
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            response = await client.get("/v1/unknown")
            assert response.status_code == 404
            assert response.json()["error"]["code"] == "not_found"
