from __future__ import annotations

"""REST API exposing monitoring job health and metrics."""

from fastapi import FastAPI, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from .jobs import MonitoringJobs


def create_health_app(jobs: MonitoringJobs) -> FastAPI:
    """Create a FastAPI app exposing health endpoints."""

    app = FastAPI()

    @app.get("/health")
    @app.get("/status")
    async def health() -> dict:
        report = jobs.health_report()
        failed = [name for name, r in report.items() if r["status"] == "failed"]
        return {"status": "degraded" if failed else "ok", "jobs": report}

    @app.get("/metrics")
    def metrics() -> Response:  # pragma: no cover - simple return
        data = generate_latest()
        return Response(content=data, media_type=CONTENT_TYPE_LATEST)

    return app
