# backend/tutorsched/routes/v1/metrics.py
"""
Prometheus metrics endpoint.

Public, unauthenticated scrape target exposing the counters and
histograms recorded by the services.
"""

from fastapi import APIRouter, Response

from ...monitoring.prometheus_metrics import prometheus_metrics

router = APIRouter(tags=["monitoring"])


@router.get("/metrics", include_in_schema=False)
def get_metrics() -> Response:
    return Response(
        content=prometheus_metrics.get_metrics(),
        media_type=prometheus_metrics.get_content_type(),
    )
