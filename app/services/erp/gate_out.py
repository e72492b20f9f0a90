"""Gate-out registration: validate, sanitize, dispatch, then persist or report."""

import asyncio
import logging
import math
from typing import Any, Callable, Dict, List, Optional, Union

from app.schemas.erp import GateOutRequest, GateOutResponse
from app.services.erp.dispatcher import RequestDispatcher
from app.services.erp.outcomes import (
    AuthFailure,
    BusinessFailure,
    NetworkFailure,
    SanitizationFailure,
    Success,
    ValidationFailure,
)
from app.services.erp.registration_store import RegistrationStore
from app.services.erp.tagged_value import parse_leading_int

logger = logging.getLogger(__name__)

GATE_OUT_REQID = "Create_GateOut_Reuse"

REQUIRED_FIELDS = (
    "HangTauID",
    "ContTypeSizeID",
    "SoChungTuNhapBai",
    "DonViVanTaiID",
    "SoXe",
    "NguoiTao",
    "CongTyInHoaDon_PhiHaTang",
    "CongTyInHoaDon",
    "DepotID",
    "SoLuongCont",
    "HangHoa",
)

INTEGER_FIELDS = (
    "HangTauID",
    "ContTypeSizeID",
    "DonViVanTaiID",
    "NguoiTao",
    "CongTyInHoaDon_PhiHaTang",
    "CongTyInHoaDon",
    "DepotID",
    "SoLuongCont",
    "HangHoa",
)

TEXT_FIELDS = ("SoChungTuNhapBai", "SoXe")

PERMISSION_HINT = (
    "The upstream rejected the request as unauthorized. Verify that the "
    "Create_GateOut_Reuse operation is enabled for these credentials and that "
    "every field matches the expected format."
)

GateOutFailure = Union[ValidationFailure, SanitizationFailure, NetworkFailure, AuthFailure, BusinessFailure]


def is_missing(value: Any) -> bool:
    if value is None or value == "":
        return True
    return isinstance(value, float) and math.isnan(value)


def sanitize(payload: Dict[str, Any]) -> Union[GateOutRequest, ValidationFailure, SanitizationFailure]:
    """Check required fields and coerce them to the types the upstream expects.

    Missing and un-coercible fields are collected together so one response
    reports everything wrong with the payload.
    """
    missing = [name for name in REQUIRED_FIELDS if is_missing(payload.get(name))]

    sanitized: Dict[str, Any] = {}
    invalid: List[str] = []
    for name in INTEGER_FIELDS:
        if name in missing:
            continue
        number = parse_leading_int(payload[name])
        if number is None:
            invalid.append(name)
        else:
            sanitized[name] = number
    for name in TEXT_FIELDS:
        if name not in missing:
            sanitized[name] = str(payload[name])

    if missing:
        return ValidationFailure(missing_fields=missing, invalid_fields=invalid)
    if invalid:
        return SanitizationFailure(invalid_fields=invalid)
    return GateOutRequest(**sanitized)


def needs_permission_hint(failure: GateOutFailure) -> bool:
    if isinstance(failure, AuthFailure):
        return True
    if isinstance(failure, BusinessFailure):
        message = failure.message.lower()
        return "invalid token" in message or str(failure.error_code) == "404" or failure.status_code == 400
    return False


def failure_response(failure: GateOutFailure) -> GateOutResponse:
    return GateOutResponse(
        success=False,
        error=failure.message,
        error_code=getattr(failure, "error_code", None),
        status_code=getattr(failure, "status_code", None),
        failure_kind=failure.kind,
        missing_fields=getattr(failure, "missing_fields", None),
        invalid_fields=getattr(failure, "invalid_fields", None) or None,
        hint=PERMISSION_HINT if needs_permission_hint(failure) else None,
    )


class GateOutFlow:
    """Registers a container gate-out with the ERP.

    Steps run strictly in sequence. A successful registration is recorded in
    the registration store; a failure to record it is logged and does not
    change the response. With `privileged` the token comes from the
    credentialed endpoint.
    """

    def __init__(
        self,
        dispatcher: RequestDispatcher,
        store: RegistrationStore,
        on_success: Optional[Callable[[], None]] = None,
        privileged: bool = False,
    ):
        self.dispatcher = dispatcher
        self.store = store
        self.on_success = on_success
        self.privileged = privileged

    async def create_gate_out(self, payload: Dict[str, Any]) -> GateOutResponse:
        request = sanitize(payload or {})
        if isinstance(request, (ValidationFailure, SanitizationFailure)):
            logger.warning(f"Rejected gate-out payload: {request.message}")
            return failure_response(request)

        gate_out_data = request.model_dump()
        logger.info(f"Creating gate-out for user {request.NguoiTao}, depot {request.DepotID}")

        # The upstream only accepts a token issued for this exact payload
        result = await self.dispatcher.call(
            GATE_OUT_REQID,
            gate_out_data,
            bind_token=True,
            privileged=self.privileged,
        )
        if not isinstance(result, Success):
            logger.error(f"Gate-out failed ({result.kind}): {result.message}")
            return failure_response(result)

        logger.info("Gate-out created successfully")
        await self.notify_registered(request.NguoiTao, result.body, gate_out_data)
        if self.on_success:
            self.on_success()
        return GateOutResponse(success=True, data=result.body, status_code=result.status_code)

    async def notify_registered(self, user_id: int, container_data: Dict[str, Any], gate_out_data: Dict[str, Any]) -> None:
        try:
            # File-backed stores block on disk I/O
            await asyncio.to_thread(self.store.add, user_id, container_data, gate_out_data)
        except Exception as e:
            logger.error(f"Failed to record gate-out for user {user_id}: {e}", exc_info=True)
