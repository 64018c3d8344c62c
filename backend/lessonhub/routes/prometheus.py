# backend/lessonhub/routes/prometheus.py
"""
Prometheus metrics endpoint.

Exposes the service operation timings, check failures and batch failure
counters collected in the application's registry.
"""

from fastapi import APIRouter, Response

from ..monitoring.prometheus_metrics import prometheus_metrics

router = APIRouter(tags=["monitoring"])


@router.get("/metrics", include_in_schema=False)
def get_prometheus_metrics() -> Response:
    return Response(
        content=prometheus_metrics.get_metrics(),
        media_type=prometheus_metrics.get_content_type(),
    )
