import math

import httpx
import pytest

from app.schemas.erp import GateOutRequest
from app.services.erp.dispatcher import RequestDispatcher
from app.services.erp.gate_out import GateOutFlow, sanitize
from app.services.erp.gateway import ErpGateway, build_gateway
from app.services.erp.outcomes import SanitizationFailure, ValidationFailure
from app.services.erp.registration_store import JsonFileRegistrationStore
from app.services.erp.token_broker import TokenBroker

from tests.conftest import BASE_URL, process_path, rows_response, sent_json, token_response

GATE_OUT = "Create_GateOut_Reuse"

VALID_PAYLOAD = {
    "HangTauID": 5,
    "ContTypeSizeID": 2,
    "SoChungTuNhapBai": "DOC1",
    "DonViVanTaiID": 9,
    "SoXe": "51C-123",
    "NguoiTao": 111735,
    "CongTyInHoaDon_PhiHaTang": 1,
    "CongTyInHoaDon": 1,
    "DepotID": 3,
    "SoLuongCont": 1,
    "HangHoa": 4,
}


def test_sanitize_coerces_fields():
    request = sanitize({**VALID_PAYLOAD, "HangTauID": "5", "SoLuongCont": "2 cont", "DepotID": 3.7, "SoXe": 123})

    assert isinstance(request, GateOutRequest)
    assert request.HangTauID == 5
    assert request.SoLuongCont == 2
    assert request.DepotID == 3
    assert request.SoXe == "123"


def test_missing_and_invalid_fields_are_reported_together():
    payload = {**VALID_PAYLOAD, "SoLuongCont": "abc"}
    del payload["SoXe"]

    result = sanitize(payload)

    assert isinstance(result, ValidationFailure)
    assert result.missing_fields == ["SoXe"]
    assert result.invalid_fields == ["SoLuongCont"]


@pytest.mark.parametrize("empty", [None, "", math.nan])
def test_empty_values_count_as_missing(empty):
    result = sanitize({**VALID_PAYLOAD, "DepotID": empty})

    assert isinstance(result, ValidationFailure)
    assert result.missing_fields == ["DepotID"]


def test_only_invalid_fields_is_sanitization_failure():
    result = sanitize({**VALID_PAYLOAD, "HangHoa": "n/a"})

    assert isinstance(result, SanitizationFailure)
    assert result.invalid_fields == ["HangHoa"]
    assert "HangHoa" in result.message


@pytest.mark.asyncio
async def test_invalid_payload_never_reaches_upstream(gateway: ErpGateway, erp_mock, token_route, store):
    payload = {**VALID_PAYLOAD, "SoLuongCont": "abc"}
    del payload["SoXe"]

    response = await gateway.create_gate_out(payload)

    assert response.success is False
    assert response.failure_kind == "validation"
    assert response.missing_fields == ["SoXe"]
    assert response.invalid_fields == ["SoLuongCont"]
    assert len(erp_mock.calls) == 0
    assert store.list_all() == []


@pytest.mark.asyncio
async def test_successful_gate_out_registers_one_container(gateway: ErpGateway, erp_mock, token_route, store):
    route = erp_mock.post(process_path(GATE_OUT)).mock(
        return_value=httpx.Response(200, json={"errorcode": 0, "result": "Success"})
    )

    response = await gateway.create_gate_out(dict(VALID_PAYLOAD))

    assert response.success is True
    assert response.data == {"errorcode": 0, "result": "Success"}
    registered = await gateway.list_registered_containers(111735)
    assert len(registered) == 1
    assert registered[0].user_id == 111735
    assert registered[0].container_data == {"errorcode": 0, "result": "Success"}
    assert registered[0].gate_out_data == VALID_PAYLOAD
    assert len(store.list_all()) == 1

    token_data = sent_json(token_route.calls.last)["data"]
    assert token_data == {"appversion": "2023", **VALID_PAYLOAD}
    assert sent_json(route.calls.last)["data"] == {"appversion": "2023", **VALID_PAYLOAD}


@pytest.mark.asyncio
async def test_success_invalidates_container_caches(gateway: ErpGateway, erp_mock, token_route, cache):
    erp_mock.post(process_path("GetListReUse_Now")).mock(return_value=rows_response([{"ID": "c-1"}]))
    erp_mock.post(process_path("GetList_DonHang_ReUse_Out_Now")).mock(return_value=rows_response([{"ID": "o-1"}]))
    erp_mock.post(process_path("iContainerHub_HangHoa")).mock(return_value=rows_response([{"ID": "g-1"}]))
    erp_mock.post(process_path(GATE_OUT)).mock(return_value=httpx.Response(200, json={"result": "Success"}))
    await gateway.fetch_containers()
    await gateway.fetch_registered_orders("9")
    await gateway.fetch_goods()

    await gateway.create_gate_out(dict(VALID_PAYLOAD))

    assert cache.peek("containers") is None
    assert cache.peek("registered_orders:9") is None
    assert cache.peek("goods") is not None


@pytest.mark.asyncio
async def test_business_failure_is_reported_verbatim(gateway: ErpGateway, erp_mock, token_route, store):
    erp_mock.post(process_path(GATE_OUT)).mock(
        return_value=httpx.Response(200, json={"result": "Failed", "errorcode": "E07", "msg": "Container already out"})
    )

    response = await gateway.create_gate_out(dict(VALID_PAYLOAD))

    assert response.success is False
    assert response.failure_kind == "business"
    assert response.error == "Container already out"
    assert response.error_code == "E07"
    assert response.hint is None
    assert store.list_all() == []


@pytest.mark.asyncio
async def test_auth_failure_after_retry_carries_hint(gateway: ErpGateway, erp_mock, token_route):
    route = erp_mock.post(process_path(GATE_OUT)).mock(return_value=httpx.Response(401, json={"msg": "Invalid token"}))

    response = await gateway.create_gate_out(dict(VALID_PAYLOAD))

    assert response.success is False
    assert response.failure_kind == "auth"
    assert response.status_code == 401
    assert response.hint
    assert route.call_count == 2


@pytest.mark.asyncio
async def test_store_failure_does_not_fail_the_gate_out(dispatcher, erp_mock, token_route):
    class BrokenStore:
        def add(self, *args):
            raise OSError("disk full")

    erp_mock.post(process_path(GATE_OUT)).mock(return_value=httpx.Response(200, json={"result": "Success"}))
    flow = GateOutFlow(dispatcher, BrokenStore())

    response = await flow.create_gate_out(dict(VALID_PAYLOAD))

    assert response.success is True


@pytest.mark.asyncio
async def test_unreadable_store_file_is_left_intact(dispatcher, erp_mock, token_route, tmp_path):
    path = tmp_path / "registered-containers.json"
    path.write_text('[{"id": "1-111735-abc", "user_id": 111735', encoding="utf-8")
    erp_mock.post(process_path(GATE_OUT)).mock(return_value=httpx.Response(200, json={"result": "Success"}))
    flow = GateOutFlow(dispatcher, JsonFileRegistrationStore(str(path)))

    response = await flow.create_gate_out(dict(VALID_PAYLOAD))

    assert response.success is True
    assert path.read_text(encoding="utf-8") == '[{"id": "1-111735-abc", "user_id": 111735'


@pytest.mark.asyncio
async def test_privileged_gate_out_uses_credentialed_token(http_client, erp_mock, store):
    token_route = erp_mock.post("/api/data/util/gettoken").mock(return_value=token_response())
    plain_route = erp_mock.post("/api/data/util/gettokenNonAid").mock(return_value=token_response())
    erp_mock.post(process_path(GATE_OUT)).mock(return_value=httpx.Response(200, json={"result": "Success"}))
    broker = TokenBroker(http_client, BASE_URL, account_id="acc", password="secret")
    flow = GateOutFlow(RequestDispatcher(http_client, broker, BASE_URL), store, privileged=True)

    response = await flow.create_gate_out(dict(VALID_PAYLOAD))

    assert response.success is True
    body = sent_json(token_route.calls.last)
    assert (body["aid"], body["pwd"]) == ("acc", "secret")
    assert body["data"]["NguoiTao"] == 111735
    assert plain_route.call_count == 0


@pytest.mark.asyncio
async def test_gateway_gate_out_is_privileged_only_with_credentials(settings, http_client):
    with_credentials = settings.model_copy(update={"erp_account_id": "acc", "erp_password": "secret"})

    assert build_gateway(settings, http_client).gate_out.privileged is False
    assert build_gateway(with_credentials, http_client).gate_out.privileged is True
