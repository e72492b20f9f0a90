"""Shared fixtures: a real httpx client mocked with respx, and a fake clock."""

from __future__ import annotations

import json
from collections.abc import AsyncIterator, Iterator
from typing import Any, Dict, List

import httpx
import pytest
import respx

from app.core.config import Settings
from app.services.erp.cache import CollectionCache
from app.services.erp.dispatcher import RequestDispatcher
from app.services.erp.gateway import ErpGateway, build_gateway
from app.services.erp.registration_store import InMemoryRegistrationStore
from app.services.erp.token_broker import TokenBroker

BASE_URL = "http://erp.test"
TOKEN_PATH = "/api/data/util/gettokenNonAid"


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def token_response(token: str = "tok-abcdef123456", reqtime: str = "20240101120000") -> httpx.Response:
    return httpx.Response(200, json={"token": token, "reqtime": reqtime})


def rows_response(rows: List[Dict[str, Any]]) -> httpx.Response:
    return httpx.Response(200, json={"result": "Success", "errorcode": 0, "data": rows})


def sent_json(call) -> Dict[str, Any]:
    return json.loads(call.request.content)


def process_path(reqid: str) -> str:
    return f"/api/data/process/{reqid}"


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None, erp_api_url=BASE_URL, cms_asset_base_url="https://cms.test")


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache(clock: FakeClock) -> CollectionCache:
    return CollectionCache(clock=clock)


@pytest.fixture
def erp_mock() -> Iterator[respx.MockRouter]:
    with respx.mock(base_url=BASE_URL, assert_all_called=False) as mock:
        yield mock


@pytest.fixture
def token_route(erp_mock: respx.MockRouter) -> respx.Route:
    return erp_mock.post(TOKEN_PATH).mock(return_value=token_response())


@pytest.fixture
async def http_client() -> AsyncIterator[httpx.AsyncClient]:
    async with httpx.AsyncClient() as client:
        yield client


@pytest.fixture
def broker(http_client: httpx.AsyncClient) -> TokenBroker:
    return TokenBroker(http_client, BASE_URL)


@pytest.fixture
def dispatcher(http_client: httpx.AsyncClient, broker: TokenBroker) -> RequestDispatcher:
    return RequestDispatcher(http_client, broker, BASE_URL)


@pytest.fixture
def store() -> InMemoryRegistrationStore:
    return InMemoryRegistrationStore()


@pytest.fixture
def gateway(
    settings: Settings,
    http_client: httpx.AsyncClient,
    cache: CollectionCache,
    store: InMemoryRegistrationStore,
) -> ErpGateway:
    return build_gateway(settings, http_client, cache=cache, store=store)
