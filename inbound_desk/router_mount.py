# inbound_desk/router_mount.py
from __future__ import annotations

from fastapi import FastAPI


def mount_routers(app: FastAPI) -> None:
    from inbound_desk.api.routers.checklists import router as checklists_router
    from inbound_desk.api.routers.damage_reports import router as damage_reports_router
    from inbound_desk.api.routers.health import router as health_router
    from inbound_desk.api.routers.inbound import router as inbound_router
    from inbound_desk.api.routers.metrics import router as metrics_router
    from inbound_desk.api.routers.putaway import router as putaway_router
    from inbound_desk.api.routers.scan import router as scan_router

    # receiving
    app.include_router(inbound_router)
    app.include_router(putaway_router)
    app.include_router(scan_router)

    # adjacent records
    app.include_router(damage_reports_router)
    app.include_router(checklists_router)

    # ops
    app.include_router(metrics_router)
    app.include_router(health_router)
