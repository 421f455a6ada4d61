from __future__ import annotations

from collections.abc import Callable

import httpx
import pytest
from fastapi import FastAPI

from app.main import create_app
from app.service import users_service


@pytest.fixture(autouse=True)
def _reset_users():
    users_service.store.clear()
    yield
    users_service.store.clear()


@pytest.fixture
def stub_app() -> FastAPI:
    return create_app()


@pytest.fixture
def asgi_client() -> Callable[[FastAPI], httpx.AsyncClient]:
    """Factory for an async client talking to an app in-process."""

    def _make(app: FastAPI) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://testserver")

    return _make
