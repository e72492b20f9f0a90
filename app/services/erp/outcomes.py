"""Tagged results returned by the ERP integration layer.

Upstream conditions are returned, not raised, so callers branch with
isinstance() instead of wrapping every call in try/except.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union


@dataclass(frozen=True)
class Success:
    body: Dict[str, Any]
    status_code: int = 200

    kind = "success"
    ok = True


@dataclass(frozen=True)
class NetworkFailure:
    """Connection error or timeout."""

    message: str

    kind = "network"
    ok = False


@dataclass(frozen=True)
class AuthFailure:
    """Token could not be acquired or was rejected (401/403, invalid token)."""

    message: str
    status_code: Optional[int] = None
    upstream: Optional[Dict[str, Any]] = None

    kind = "auth"
    ok = False


@dataclass(frozen=True)
class BusinessFailure:
    """Upstream answered but reported an error."""

    message: str
    error_code: Optional[Union[str, int]] = None
    status_code: Optional[int] = None
    upstream: Optional[Dict[str, Any]] = None

    kind = "business"
    ok = False


@dataclass(frozen=True)
class ValidationFailure:
    """Required fields missing (and, reported alongside, fields that failed coercion)."""

    missing_fields: List[str]
    invalid_fields: List[str] = field(default_factory=list)

    kind = "validation"
    ok = False

    @property
    def message(self) -> str:
        parts = [f"Missing or invalid required fields: {', '.join(self.missing_fields)}"]
        if self.invalid_fields:
            parts.append(f"Invalid numeric values for: {', '.join(self.invalid_fields)}")
        return ". ".join(parts)


@dataclass(frozen=True)
class SanitizationFailure:
    invalid_fields: List[str]

    kind = "sanitization"
    ok = False

    @property
    def message(self) -> str:
        return (
            f"Invalid numeric values for: {', '.join(self.invalid_fields)}. "
            "Please ensure all numeric fields contain valid numbers."
        )


DispatchResult = Union[Success, NetworkFailure, AuthFailure, BusinessFailure]


class ErpRequestError(Exception):
    """Raised inside cache refreshes when a dispatch did not succeed."""

    def __init__(self, reqid: str, result: DispatchResult):
        self.reqid = reqid
        self.result = result
        super().__init__(f"{reqid} failed ({result.kind}): {getattr(result, 'message', '')}")
