import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Generic, List, Optional, TypeVar

from app.schemas.erp import CollectionStatistics
from app.services.erp.cache import CollectionCache
from app.services.erp.dispatcher import RequestDispatcher
from app.services.erp.outcomes import ErpRequestError, Success
from app.services.erp.tagged_value import decode, is_true_flag

logger = logging.getLogger(__name__)

T = TypeVar("T")


def status_from_flag(row: Dict[str, Any], field: str = "Active") -> str:
    """Map the upstream boolean-like column to active/inactive."""
    return "active" if is_true_flag(decode(row.get(field))) else "inactive"


def extract_rows(body: Dict[str, Any], reqid: str) -> List[Dict[str, Any]]:
    rows = body.get("data")
    if rows is None:
        logger.warning(f"No data field in {reqid} response")
        return []
    if not isinstance(rows, list):
        logger.error(f"{reqid} data is not an array")
        return []
    return [row for row in rows if isinstance(row, dict)]


class ErpTransformer(ABC, Generic[T]):
    """Base class for ERP collection transformers.

    Subclasses name their upstream reqid and cache key and map one upstream row
    to a domain record. Fetching goes through the shared collection cache, so
    a failed refresh degrades to stale or empty data instead of raising.
    """

    REQID: str
    CACHE_KEY: str

    def __init__(self, dispatcher: RequestDispatcher, cache: CollectionCache, ttl_seconds: float):
        self.dispatcher = dispatcher
        self.cache = cache
        self.ttl_seconds = ttl_seconds

    @abstractmethod
    def transform_row(self, row: Dict[str, Any]) -> Optional[T]:
        """Map one upstream row to a domain record, or None to drop it."""

    async def fetch_all(self) -> List[T]:
        return await self.cache.get_or_refresh(self.CACHE_KEY, self.ttl_seconds, self._refresh)

    async def refresh(self) -> List[T]:
        self.cache.invalidate(self.CACHE_KEY)
        return await self.fetch_all()

    async def get_by_id(self, record_id: str) -> Optional[T]:
        for record in await self.fetch_all():
            if getattr(record, "id", None) == str(record_id):
                return record
        return None

    async def get_by_code(self, code: str) -> Optional[T]:
        code = code.lower()
        for record in await self.fetch_all():
            if str(getattr(record, "code", "")).lower() == code:
                return record
        return None

    async def get_active(self) -> List[T]:
        return [record for record in await self.fetch_all() if getattr(record, "status", None) == "active"]

    async def get_statistics(self) -> CollectionStatistics:
        records = await self.fetch_all()
        active = len([record for record in records if getattr(record, "status", None) == "active"])
        return CollectionStatistics(total=len(records), active=active, inactive=len(records) - active)

    async def _refresh(self) -> List[T]:
        rows = await self.load_rows(self.REQID)
        return self.transform(rows, self.transform_row)

    async def load_rows(
        self,
        reqid: str,
        payload: Optional[Dict[str, Any]] = None,
        bind_token: bool = False,
    ) -> List[Dict[str, Any]]:
        result = await self.dispatcher.call(reqid, payload, bind_token=bind_token)
        if not isinstance(result, Success):
            raise ErpRequestError(reqid, result)
        rows = extract_rows(result.body, reqid)
        logger.info(f"{reqid} returned {len(rows)} rows")
        return rows

    def transform(self, rows: List[Dict[str, Any]], mapper: Callable[[Dict[str, Any]], Optional[T]]) -> List[T]:
        records = []
        for row in rows:
            try:
                record = mapper(row)
            except Exception as e:
                logger.warning(f"Skipping {self.REQID} row that failed to transform: {e}")
                continue
            if record is not None:
                records.append(record)
        return records
