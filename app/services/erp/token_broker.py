"""Per-operation token acquisition for the ERP API."""

import logging
from datetime import datetime
from typing import Any, Dict, Optional, Union

import httpx

from app.schemas.erp import Token
from app.services.erp.outcomes import AuthFailure

logger = logging.getLogger(__name__)


class TokenBroker:
    """Acquires and holds one `(token, reqtime)` pair per reqid.

    The upstream issues a token per operation name ("reqid"). Tokens are kept
    until the dispatcher reports an auth rejection; validity is never checked
    proactively. Concurrent callers for the same reqid may each fetch a token,
    the last one stored wins.
    """

    TOKEN_PATH = "/api/data/util/gettokenNonAid"
    PRIVILEGED_TOKEN_PATH = "/api/data/util/gettoken"

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        base_url: str,
        app_version: str = "2023",
        timeout: float = 10.0,
        account_id: Optional[str] = None,
        password: Optional[str] = None,
    ):
        self.http_client = http_client
        self.base_url = base_url.rstrip("/")
        self.app_version = app_version
        self.timeout = timeout
        self.account_id = account_id
        self.password = password
        self._tokens: Dict[str, Token] = {}

    def default_payload(self) -> Dict[str, Any]:
        return {"appversion": self.app_version}

    def get_cached(self, reqid: str) -> Optional[Token]:
        return self._tokens.get(reqid)

    def invalidate(self, reqid: str) -> None:
        if self._tokens.pop(reqid, None) is not None:
            logger.info(f"Cleared cached token for {reqid}")

    async def acquire_token(
        self,
        reqid: str,
        extra_payload: Optional[Dict[str, Any]] = None,
        privileged: bool = False,
    ) -> Union[Token, AuthFailure]:
        """Request a fresh token for `reqid` and cache it on success."""
        data = self.default_payload()
        if extra_payload:
            data.update(extra_payload)

        body: Dict[str, Any] = {"reqid": reqid, "data": data}
        path = self.TOKEN_PATH
        if privileged:
            if not (self.account_id and self.password):
                return AuthFailure(f"Privileged token for {reqid} requested but no ERP credentials are configured")
            body["aid"] = self.account_id
            body["pwd"] = self.password
            path = self.PRIVILEGED_TOKEN_PATH

        logger.debug(f"Requesting token for {reqid}")
        try:
            response = await self.http_client.post(
                f"{self.base_url}{path}",
                json=body,
                timeout=self.timeout,
            )
        except httpx.TimeoutException:
            logger.error(f"Token request for {reqid} timed out after {self.timeout}s")
            return AuthFailure(f"Token request for {reqid} timed out")
        except httpx.HTTPError as e:
            logger.error(f"Token request for {reqid} failed: {str(e)}")
            return AuthFailure(f"Failed to get token: {str(e)}")

        payload = json_body(response)
        if not response.is_success:
            logger.error(f"Token request for {reqid} returned {response.status_code}: {response.text[:200]}")
            return AuthFailure(
                upstream_message(payload) or f"Token endpoint returned HTTP {response.status_code}",
                status_code=response.status_code,
                upstream=payload,
            )

        token = (payload or {}).get("token")
        reqtime = (payload or {}).get("reqtime")
        if not token or not reqtime:
            logger.error(f"Invalid token response for {reqid}: {payload}")
            return AuthFailure(
                upstream_message(payload) or f"Invalid token response for {reqid}",
                status_code=response.status_code,
                upstream=payload,
            )

        issued = Token(
            token=str(token),
            reqtime=str(reqtime),
            reqid=reqid,
            acquired_at=datetime.utcnow(),
        )
        self._tokens[reqid] = issued
        logger.info(f"Token acquired for {reqid} ({issued.token[:8]}...)")
        return issued


def json_body(response: httpx.Response) -> Optional[Dict[str, Any]]:
    try:
        payload = response.json()
    except ValueError:
        return None
    return payload if isinstance(payload, dict) else None


def upstream_message(payload: Optional[Dict[str, Any]]) -> Optional[str]:
    if not payload:
        return None
    message = payload.get("msg") or payload.get("error") or payload.get("message")
    return str(message) if message else None
