# inbound_desk/api/deps.py
from __future__ import annotations

from fastapi import Depends, Request

from inbound_desk.api.problem import raise_404, raise_502
from inbound_desk.api.sessions import SessionRegistry
from inbound_desk.clients.base import DataApi
from inbound_desk.core.config import AppSettings, get_settings
from inbound_desk.services.order_detail import ORDER_NOT_FOUND, OrderDetailPage


def get_data_api(request: Request) -> DataApi:
    """The data API client created in the app lifespan."""
    return request.app.state.data_api


def get_sessions(request: Request) -> SessionRegistry:
    return request.app.state.sessions


def get_app_settings(request: Request) -> AppSettings:
    return getattr(request.app.state, "settings", None) or get_settings()


async def load_order_page(
    order_id: str,
    api: DataApi = Depends(get_data_api),
    settings: AppSettings = Depends(get_app_settings),
) -> OrderDetailPage:
    page = await OrderDetailPage(api, order_id, enforce_qty_invariant=settings.ENFORCE_QTY_INVARIANT).load()
    if page.error == ORDER_NOT_FOUND:
        raise_404("inbound_order_not_found", ORDER_NOT_FOUND, context={"order_id": order_id})
    if page.error:
        raise_502("data_api_unavailable", page.error, context={"order_id": order_id})
    return page
