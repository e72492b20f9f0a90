"""Request envelope dispatch and outcome classification for the ERP API."""

import logging
from typing import Any, Dict, Optional, Union

import httpx

from app.schemas.erp import Token
from app.services.erp.outcomes import (
    AuthFailure,
    BusinessFailure,
    DispatchResult,
    NetworkFailure,
    Success,
)
from app.services.erp.token_broker import TokenBroker, json_body, upstream_message

logger = logging.getLogger(__name__)

AUTH_STATUS_CODES = (401, 403)


def is_error_code(errorcode: Any) -> bool:
    """A present errorcode other than 0/"0" marks an upstream error."""
    return errorcode not in (None, "", 0, "0")


def reports_failure(body: Dict[str, Any]) -> bool:
    return body.get("result") == "Failed" or is_error_code(body.get("errorcode"))


def reports_token_rejection(body: Optional[Dict[str, Any]]) -> bool:
    message = (upstream_message(body) or "").lower()
    return "token" in message and ("invalid" in message or "expired" in message)


class RequestDispatcher:
    """Sends `{reqid, token, reqtime, data}` envelopes to the process endpoint.

    Auth rejections invalidate the cached token and the call is retried once
    with a freshly minted token; everything else is classified and returned.
    """

    PROCESS_PATH = "/api/data/process/{reqid}"
    MAX_AUTH_RETRIES = 1

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        token_broker: TokenBroker,
        base_url: str,
        timeout: float = 30.0,
    ):
        self.http_client = http_client
        self.token_broker = token_broker
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    async def call(
        self,
        reqid: str,
        payload: Optional[Dict[str, Any]] = None,
        bind_token: bool = False,
        privileged: bool = False,
    ) -> DispatchResult:
        """Dispatch `reqid` with `payload`.

        With `bind_token` the token is minted on every attempt with the request
        payload as its data; the upstream scopes filtered lookups and mutations
        to the payload the token was issued for.
        """
        payload = payload or {}
        data = {**self.token_broker.default_payload(), **payload}
        result: DispatchResult = AuthFailure(f"No attempt made for {reqid}")

        for attempt in range(self.MAX_AUTH_RETRIES + 1):
            token = await self._token_for(reqid, payload, bind_token, privileged)
            if isinstance(token, AuthFailure):
                return token

            result = await self._send(reqid, token, data)
            if not isinstance(result, AuthFailure):
                return result

            self.token_broker.invalidate(reqid)
            if attempt < self.MAX_AUTH_RETRIES:
                logger.warning(f"{reqid} rejected the token ({result.message}), retrying with a new token")

        logger.error(f"{reqid} rejected a freshly acquired token: {result.message}")
        return result

    async def _token_for(
        self,
        reqid: str,
        payload: Dict[str, Any],
        bind_token: bool,
        privileged: bool,
    ) -> Union[Token, AuthFailure]:
        if not bind_token:
            cached = self.token_broker.get_cached(reqid)
            if cached:
                return cached
            logger.info(f"Token not available for {reqid}, requesting a new one")
        return await self.token_broker.acquire_token(
            reqid,
            extra_payload=payload if bind_token else None,
            privileged=privileged,
        )

    async def _send(self, reqid: str, token: Token, data: Dict[str, Any]) -> DispatchResult:
        url = f"{self.base_url}{self.PROCESS_PATH.format(reqid=reqid)}"
        envelope = {
            "reqid": reqid,
            "token": token.token,
            "reqtime": token.reqtime,
            "data": data,
        }

        logger.debug(f"Calling {url}")
        try:
            response = await self.http_client.post(url, json=envelope, timeout=self.timeout)
        except httpx.TimeoutException:
            logger.error(f"{reqid} timed out after {self.timeout}s")
            return NetworkFailure(f"Request to {reqid} timed out after {self.timeout}s")
        except httpx.HTTPError as e:
            logger.error(f"{reqid} request error: {str(e)}")
            return NetworkFailure(f"Network error calling {reqid}: {str(e)}")

        return self.classify(reqid, response)

    def classify(self, reqid: str, response: httpx.Response) -> DispatchResult:
        body = json_body(response)
        status_code = response.status_code

        if status_code in AUTH_STATUS_CODES:
            return AuthFailure(
                upstream_message(body) or f"{reqid} returned HTTP {status_code}",
                status_code=status_code,
                upstream=body,
            )

        if not response.is_success:
            logger.error(f"{reqid} returned {status_code}: {response.text[:200]}")
            return BusinessFailure(
                upstream_message(body) or f"{reqid} returned HTTP {status_code}",
                error_code=(body or {}).get("errorcode"),
                status_code=status_code,
                upstream=body,
            )

        if body is None:
            logger.error(f"{reqid} returned a non-JSON body")
            return BusinessFailure(
                f"{reqid} returned a response that is not a JSON object",
                status_code=status_code,
            )

        if reports_token_rejection(body):
            return AuthFailure(upstream_message(body) or "Invalid token", status_code=status_code, upstream=body)

        if reports_failure(body):
            logger.error(f"{reqid} reported an error: {body.get('errorcode')} {upstream_message(body)}")
            return BusinessFailure(
                upstream_message(body) or "API returned error",
                error_code=body.get("errorcode"),
                status_code=status_code,
                upstream=body,
            )

        if not _has_success_marker(body) and "data" not in body:
            # TODO: confirm with the ERP owner whether unmarked 2xx bodies can carry errors
            logger.warning(f"{reqid} returned {status_code} without a success or failure marker, treating as success")

        return Success(body=body, status_code=status_code)


def _has_success_marker(body: Dict[str, Any]) -> bool:
    return (
        body.get("result") == "Success"
        or body.get("success") is True
        or body.get("errorcode") in ("0", 0)
    )
