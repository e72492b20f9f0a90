import httpx
import pytest

from app.schemas.erp import Token
from app.services.erp.outcomes import AuthFailure
from app.services.erp.token_broker import TokenBroker

from tests.conftest import BASE_URL, TOKEN_PATH, sent_json, token_response


@pytest.mark.asyncio
async def test_acquire_token_stores_token_per_reqid(broker: TokenBroker, erp_mock):
    route = erp_mock.post(TOKEN_PATH).mock(return_value=token_response("tok-1"))

    token = await broker.acquire_token("iContainerHub_Depot")

    assert isinstance(token, Token)
    assert token.token == "tok-1"
    assert token.reqid == "iContainerHub_Depot"
    assert broker.get_cached("iContainerHub_Depot") == token
    assert broker.get_cached("GetListReUse_Now") is None
    assert sent_json(route.calls.last) == {"reqid": "iContainerHub_Depot", "data": {"appversion": "2023"}}


@pytest.mark.asyncio
async def test_extra_payload_is_merged_into_token_data(broker: TokenBroker, erp_mock):
    route = erp_mock.post(TOKEN_PATH).mock(return_value=token_response())

    await broker.acquire_token("GetList_AccountInfo", extra_payload={"AccountID": "111735"})

    assert sent_json(route.calls.last)["data"] == {"appversion": "2023", "AccountID": "111735"}


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(200, json={"token": "", "reqtime": "1"}),
        httpx.Response(200, json={"token": "t"}),
        httpx.Response(200, text="not json"),
        httpx.Response(500, json={"msg": "boom"}),
    ],
)
async def test_unusable_token_response_is_auth_failure(broker: TokenBroker, erp_mock, response):
    erp_mock.post(TOKEN_PATH).mock(return_value=response)

    result = await broker.acquire_token("iContainerHub_Depot")

    assert isinstance(result, AuthFailure)
    assert broker.get_cached("iContainerHub_Depot") is None


@pytest.mark.asyncio
async def test_timeout_is_auth_failure(broker: TokenBroker, erp_mock):
    erp_mock.post(TOKEN_PATH).mock(side_effect=httpx.ConnectTimeout("timed out"))

    result = await broker.acquire_token("iContainerHub_Depot")

    assert isinstance(result, AuthFailure)
    assert "timed out" in result.message


@pytest.mark.asyncio
async def test_invalidate_clears_only_that_reqid(broker: TokenBroker, erp_mock):
    erp_mock.post(TOKEN_PATH).mock(return_value=token_response())
    await broker.acquire_token("a")
    await broker.acquire_token("b")

    broker.invalidate("a")

    assert broker.get_cached("a") is None
    assert broker.get_cached("b") is not None


@pytest.mark.asyncio
async def test_privileged_token_uses_credentials(http_client, erp_mock):
    route = erp_mock.post("/api/data/util/gettoken").mock(return_value=token_response())
    broker = TokenBroker(http_client, BASE_URL, account_id="acc", password="secret")

    token = await broker.acquire_token("Admin_Op", privileged=True)

    assert isinstance(token, Token)
    body = sent_json(route.calls.last)
    assert body["aid"] == "acc"
    assert body["pwd"] == "secret"


@pytest.mark.asyncio
async def test_privileged_token_without_credentials_fails_locally(broker: TokenBroker, erp_mock):
    result = await broker.acquire_token("Admin_Op", privileged=True)

    assert isinstance(result, AuthFailure)
    assert len(erp_mock.calls) == 0
