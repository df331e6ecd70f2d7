# inbound_desk/api/routers/metrics.py
from __future__ import annotations

import os

from fastapi import APIRouter
from fastapi.responses import Response
from prometheus_client import CONTENT_TYPE_LATEST, REGISTRY, CollectorRegistry, generate_latest, multiprocess

router = APIRouter()


@router.get("/metrics", include_in_schema=False)
def metrics() -> Response:
    """
    Single process: the default REGISTRY. With PROMETHEUS_MULTIPROC_DIR
    set (several uvicorn workers), merge the per-process shards.
    """
    if os.environ.get("PROMETHEUS_MULTIPROC_DIR"):
        registry = CollectorRegistry()
        multiprocess.MultiProcessCollector(registry)
        payload = generate_latest(registry)
    else:
        payload = generate_latest(REGISTRY)
    return Response(content=payload, media_type=CONTENT_TYPE_LATEST)
