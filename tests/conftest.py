# tests/conftest.py
from __future__ import annotations

import os
from typing import AsyncGenerator

import httpx
import pytest
import pytest_asyncio

# settings are read on app import; point them at a data API that is never called
os.environ.setdefault("DATA_API_BASE_URL", "http://data-api.test/api")

from inbound_desk.core.config import AppSettings  # noqa: E402
from inbound_desk.main import create_app  # noqa: E402
from tests.helpers.fake_data_api import FakeDataApi  # noqa: E402


@pytest.fixture
def api() -> FakeDataApi:
    return FakeDataApi()


@pytest.fixture
def settings() -> AppSettings:
    return AppSettings(
        DATA_API_BASE_URL="http://data-api.test/api",
        ENFORCE_QTY_INVARIANT=True,
        SCANNER_ID="RF01",
        STATION_ID="DOCK-1",
        RECENT_PUTAWAYS_LIMIT=3,
    )


@pytest.fixture
def app(api: FakeDataApi, settings: AppSettings):
    return create_app(settings=settings, data_api=api)


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[httpx.AsyncClient, None]:
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
