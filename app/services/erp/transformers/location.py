from typing import Any, Dict, Optional

from app.schemas.erp import Location
from app.services.erp.tagged_value import decode
from app.services.erp.transformers.base import ErpTransformer

UNKNOWN_LOCATION = "Khác"


class LocationTransformer(ErpTransformer[Location]):
    """City/province lookup (GetList_tbLocation), used to name depot provinces."""

    REQID = "GetList_tbLocation"
    CACHE_KEY = "locations"

    def transform_row(self, row: Dict[str, Any]) -> Optional[Location]:
        code = decode(row.get("ID"))
        if not code:
            return None
        return Location(code=code, name=decode(row.get("TenThanhPho")) or UNKNOWN_LOCATION)

    async def names_by_code(self) -> Dict[str, str]:
        return {location.code: location.name for location in await self.fetch_all()}

    async def get_location_name(self, code: str) -> str:
        return (await self.names_by_code()).get(str(code), UNKNOWN_LOCATION)
