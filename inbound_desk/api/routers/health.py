# inbound_desk/api/routers/health.py
from __future__ import annotations

from fastapi import APIRouter, Request

router = APIRouter(tags=["health"])


@router.get("/")
async def root(request: Request):
    return {"name": request.app.title, "version": request.app.version}


@router.get("/health")
async def health():
    return {"status": "ok"}
